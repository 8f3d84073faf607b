"""
app/matching/names.py

Project name cleaning and normalization for the name and code tiers.
"""

from __future__ import annotations

import re

# Month must be 01-12 so that trailing phase numbers are left alone.
_SEPARATED_DATE_SUFFIX = re.compile(r"\s+(0[1-9]|1[0-2])[.\-\s/](\d{1,2})[.\-\s/](\d{2,4})\s*$")
_COMPACT_DATE_SUFFIX = re.compile(r"\s+(0[1-9]|1[0-2])(\d{2})(\d{2,4})\s*$")
_PUNCTUATION = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")
_CODE_TOKEN = re.compile(r"^(?=.*[a-z])(?=.*\d)[a-z0-9]+(?:[-_/][a-z0-9]+)*$", re.IGNORECASE)


def clean_project_name(name: str | None) -> str:
    """
    Remove a trailing date stamp from a project name.

    Handles ``11 01 25``, ``11.01.25``, ``11/01/25``, ``11-01-25`` and the
    compact ``110125`` / ``11012025`` forms.
    """

    if not name:
        return ""
    cleaned = name.strip()
    cleaned = _SEPARATED_DATE_SUFFIX.sub("", cleaned)
    cleaned = _COMPACT_DATE_SUFFIX.sub("", cleaned)
    return _WHITESPACE.sub(" ", cleaned).strip()


def normalize_name(name: str | None) -> str:
    """
    Lower-case, strip punctuation and collapse whitespace.
    """

    if not name:
        return ""
    cleaned = clean_project_name(name).lower()
    cleaned = _PUNCTUATION.sub(" ", cleaned)
    return _WHITESPACE.sub(" ", cleaned).strip()


def extract_code_tokens(name: str | None) -> tuple[str, ...]:
    """
    Return tokens in a project name that look like project codes
    (letters and digits together, optionally dashed), e.g. ``SEA-3`` or ``P1001``.
    """

    if not name:
        return ()
    tokens: list[str] = []
    for raw in name.split():
        token = raw.strip("()[]{}:;,.'\"")
        if token and _CODE_TOKEN.match(token) and token not in tokens:
            tokens.append(token)
    return tuple(tokens)
