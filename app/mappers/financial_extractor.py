"""
app/mappers/financial_extractor.py

Map detected financial columns onto canonical snapshot fields.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from app.domain.cost_report import FinancialFigures
from app.mappers.schema_detector import normalize_header

# Ordered: the first alias present with a non-null value wins.
DEFAULT_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "budget": ("total budget", "budget", "hard cost budget"),
    "forecast": (
        "forecasted cost @ completion",
        "forecasted cost @ completion (eac)",
        "forecast",
        "eac",
    ),
    "actual": ("actual costs invoiced", "actual"),
    "committed": ("committed costs", "committed"),
    "spent": ("spent",),
    "variance": ("variance (over)/under", "variance"),
}


class FinancialExtractor:
    """
    Pick canonical budget / forecast / actual / committed / spent / variance
    values out of a row's raw header -> value pairs.
    """

    def __init__(self, *, aliases: Mapping[str, Sequence[str]] | None = None) -> None:
        source = aliases or DEFAULT_FIELD_ALIASES
        self._aliases: dict[str, tuple[str, ...]] = {
            canonical: tuple(normalize_header(alias) for alias in values)
            for canonical, values in source.items()
        }

    def extract(self, financials: Mapping[str, float | None]) -> FinancialFigures:
        lookup: dict[str, float | None] = {}
        for header, value in financials.items():
            key = normalize_header(header)
            if key and lookup.get(key) is None:
                lookup[key] = value

        resolved: dict[str, float | None] = {}
        for canonical, aliases in self._aliases.items():
            resolved[canonical] = next(
                (lookup[alias] for alias in aliases if lookup.get(alias) is not None),
                None,
            )
        return FinancialFigures(**resolved)
