"""
app/matching/identity_resolver.py

Map one IngestRow to zero, one or many registry projects.

Resolution is an ordered chain of pure matchers, each with the signature
``(row, index) -> MatchResult | None``. The first matcher that returns a
result wins:

1. job number, exact (normalized)
2. project number, exact or suffix-tolerant through variant sets
3. project name, exact after normalization
4. project code, exact
5. none

A tier that finds several projects at its best rank returns all of them; the
caller treats such a result as a duplicate and never writes it.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from app.domain.cost_report import IngestRow, MatchResult, MatchType
from app.matching.names import extract_code_tokens, normalize_name
from app.matching.registry_index import RegistryIndex
from app.matching.variants import (
    build_project_number_variants,
    normalize_identifier,
    rank_project_number_match,
    split_project_number_cell,
)

logger = logging.getLogger(__name__)

Matcher = Callable[[IngestRow, RegistryIndex], "MatchResult | None"]


# ---------------------------------------------------------------------------
# Matchers
# ---------------------------------------------------------------------------


def match_by_job_number(row: IngestRow, index: RegistryIndex) -> MatchResult | None:
    key = normalize_identifier(row.job_number)
    if not key:
        return None
    project_ids = index.by_job_number.get(key)
    if not project_ids:
        return None
    return MatchResult(match_type=MatchType.JOB, matched_project_ids=project_ids, score=0.0)


def match_by_project_number(row: IngestRow, index: RegistryIndex) -> MatchResult | None:
    """
    Rank every (row token, registry alias) pair sharing a variant.

    The best key per project is ``(rank, length gap)``; the gap between the
    raw token and the alias stands in for edit distance. All projects tied
    at the overall best key are returned.
    """

    best_by_project: dict[str, tuple[float, int]] = {}
    for token in split_project_number_cell(row.project_number):
        normalized_token = normalize_identifier(token)
        token_variants = build_project_number_variants(normalized_token)
        for entry in index.aliases_for_variants(token_variants):
            rank = rank_project_number_match(normalized_token, entry.alias, entry.variants)
            if math.isinf(rank):
                continue
            key = (rank, abs(len(normalized_token) - len(entry.alias)))
            current = best_by_project.get(entry.project_id)
            if current is None or key < current:
                best_by_project[entry.project_id] = key

    if not best_by_project:
        return None

    best_key = min(best_by_project.values())
    tied = frozenset(pid for pid, key in best_by_project.items() if key == best_key)
    return MatchResult(
        match_type=MatchType.PROJECT_NUMBER,
        matched_project_ids=tied,
        score=float(best_key[0] + best_key[1]),
    )


def match_by_name(row: IngestRow, index: RegistryIndex) -> MatchResult | None:
    key = normalize_name(row.project_name)
    if not key:
        return None
    project_ids = index.by_name.get(key)
    if not project_ids:
        return None
    return MatchResult(match_type=MatchType.NAME, matched_project_ids=project_ids, score=0.0)


def code_candidates(row: IngestRow) -> tuple[str, ...]:
    """
    Code-like tokens a row exposes: its identifiers and coded words in its name.
    """

    raw: list[str] = []
    if row.job_number:
        raw.append(row.job_number)
    raw.extend(split_project_number_cell(row.project_number))
    raw.extend(extract_code_tokens(row.project_name))

    candidates: list[str] = []
    for value in raw:
        normalized = normalize_identifier(value)
        if normalized and normalized not in candidates:
            candidates.append(normalized)
    return tuple(candidates)


def match_by_code(row: IngestRow, index: RegistryIndex) -> MatchResult | None:
    project_ids: set[str] = set()
    for candidate in code_candidates(row):
        project_ids.update(index.by_code.get(candidate, ()))
    if not project_ids:
        return None
    return MatchResult(
        match_type=MatchType.CODE,
        matched_project_ids=frozenset(project_ids),
        score=0.0,
    )


DEFAULT_MATCHERS: tuple[tuple[MatchType, Matcher], ...] = (
    (MatchType.JOB, match_by_job_number),
    (MatchType.PROJECT_NUMBER, match_by_project_number),
    (MatchType.NAME, match_by_name),
    (MatchType.CODE, match_by_code),
)


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IdentityResolver:
    index: RegistryIndex
    matchers: Sequence[tuple[MatchType, Matcher]] = DEFAULT_MATCHERS

    def resolve(self, row: IngestRow) -> MatchResult:
        for match_type, matcher in self.matchers:
            result = matcher(row, self.index)
            if result is None:
                continue
            if result.is_duplicate:
                logger.debug(
                    "Ambiguous match row=%s tier=%s candidates=%s",
                    row.row_index,
                    match_type.value,
                    sorted(result.matched_project_ids),
                )
            return result
        return MatchResult.unmatched()

    def resolve_all(self, rows: Iterable[IngestRow]) -> list[tuple[IngestRow, MatchResult]]:
        return [(row, self.resolve(row)) for row in rows]

    def evaluate_tiers(self, row: IngestRow) -> dict[MatchType, MatchResult | None]:
        """
        Run every matcher regardless of earlier hits. Used for diagnostics.
        """

        return {match_type: matcher(row, self.index) for match_type, matcher in self.matchers}
