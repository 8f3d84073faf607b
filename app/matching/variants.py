"""
app/matching/variants.py

Project-number normalization, variant expansion and ranking.

Upstream finance systems append free-text suffixes (phase tags, contractor
codes) to an otherwise stable base number, e.g. ``24-1-061-ige03``. Matching
works on variant sets: the normalized identifier plus every base obtained by
stripping trailing segments that contain a letter.
"""

from __future__ import annotations

import math
import re

_DELIMITER_PATTERN = re.compile(r"[_/]")
_DASH_RUN_PATTERN = re.compile(r"-{2,}")
_CELL_SEPARATOR_PATTERN = re.compile(r"[,;|&\s]+")
_DASHED_IDENTIFIER_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)+$", re.IGNORECASE)
_LETTER_PATTERN = re.compile(r"[a-z]")


def normalize_identifier(value: str | None) -> str:
    """
    Lower-case and trim an identifier; ``_`` and ``/`` are treated as ``-``.

    Examples:
        ``" 24_1_061/IGE03 "`` -> ``"24-1-061-ige03"``
    """

    if value is None:
        return ""
    normalized = str(value).strip().lower()
    normalized = _DELIMITER_PATTERN.sub("-", normalized)
    normalized = _DASH_RUN_PATTERN.sub("-", normalized)
    return normalized.strip("-")


def build_project_number_variants(value: str | None) -> frozenset[str]:
    """
    Expand one identifier into its variant set.

    A trailing segment is stripped only while it contains a letter; a purely
    numeric segment such as the ``123`` in ``24-1-061-123`` is part of the
    number and ends the expansion.
    """

    normalized = normalize_identifier(value)
    if not normalized:
        return frozenset()

    variants = {normalized}
    segments = normalized.split("-")
    while len(segments) > 1:
        suffix = segments[-1]
        if not _LETTER_PATTERN.search(suffix):
            break
        segments = segments[:-1]
        variants.add("-".join(segments))
    return frozenset(variants)


def split_project_number_cell(value: str | None) -> tuple[str, ...]:
    """
    Split a possibly multi-valued project-number cell into single tokens.

    Commas, semicolons, pipes, ampersands and whitespace always separate.
    A slash separates only when every piece is itself a dashed identifier,
    so ``24-1-063/24-1-064`` splits while ``24/1/065/abc`` stays whole.
    """

    if value is None:
        return ()
    tokens: list[str] = []
    for part in _CELL_SEPARATOR_PATTERN.split(str(value).strip()):
        if not part:
            continue
        pieces = [piece for piece in part.split("/") if piece]
        if len(pieces) > 1 and all(_DASHED_IDENTIFIER_PATTERN.match(piece) for piece in pieces):
            tokens.extend(pieces)
        else:
            tokens.append(part)

    seen: set[str] = set()
    unique: list[str] = []
    for token in tokens:
        if token not in seen:
            seen.add(token)
            unique.append(token)
    return tuple(unique)


def rank_project_number_match(
    candidate: str,
    target: str,
    target_variants: frozenset[str] | set[str] | None = None,
) -> float:
    """
    Rank how well ``candidate`` matches ``target``; lower is better.

    Returns 0 when a variant of the candidate is the target itself (exact
    match, or the candidate is the target plus letter suffixes),
    ``100 + |len(variant) - len(target)|`` for the closest other shared
    variant, and ``inf`` when the two share no variant at all.
    """

    normalized_target = normalize_identifier(target)
    if not normalized_target:
        return math.inf
    if target_variants is None:
        target_variants = build_project_number_variants(target)

    best = math.inf
    for variant in build_project_number_variants(candidate):
        if variant not in target_variants:
            continue
        if variant == normalized_target:
            return 0.0
        best = min(best, 100.0 + abs(len(variant) - len(normalized_target)))
    return best
