"""
app/mappers/row_normalizer.py

Convert typed spreadsheet rows into canonical IngestRow objects.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Sequence

from app.domain.cost_report import Cell, EmptyCell, IngestRow, NumberCell, RowIssue, TextCell, cell_text
from app.mappers.schema_detector import ColumnMapping
from app.validators.numeric_parser import parse_numeric_value

logger = logging.getLogger(__name__)

NULL_IDENTITY_TOKENS: frozenset[str] = frozenset({"", "n/a", "-"})
BLANK_NUMERIC_TOKENS: frozenset[str] = frozenset({"-", "--", "n/a", "na"})

SKIP_BLANK = "blank"
SKIP_SECTION_HEADER = "section_header"
SKIP_MISSING_IDENTITY = "missing_identity"


@dataclass(frozen=True)
class RowNormalization:
    """
    Outcome of normalizing one data row.
    """

    row: IngestRow | None
    issues: tuple[RowIssue, ...] = ()
    skip_reason: str | None = None

    @property
    def skipped(self) -> bool:
        return self.row is None


def normalize_identity(cell: Cell) -> str | None:
    """
    Trimmed identity text, or None for blank / ``n/a`` / ``-``.
    """

    text = cell_text(cell)
    if text is None or text.lower() in NULL_IDENTITY_TOKENS:
        return None
    return text


class RowNormalizer:
    def __init__(self, *, section_header_pattern: str | None = r"^SDC\s+") -> None:
        self._section_header = (
            re.compile(section_header_pattern, re.IGNORECASE) if section_header_pattern else None
        )

    def normalize(
        self,
        cells: Sequence[Cell],
        row_index: int,
        mapping: ColumnMapping,
    ) -> RowNormalization:
        if all(cell_text(cell) is None for cell in cells):
            return RowNormalization(row=None, skip_reason=SKIP_BLANK)

        first_text = cell_text(cells[0]) if cells else None
        if self._section_header is not None and first_text and self._section_header.search(first_text):
            return RowNormalization(row=None, skip_reason=SKIP_SECTION_HEADER)

        job_number = normalize_identity(_cell_at(cells, mapping.job_number_col))
        if job_number is not None:
            job_number = job_number.lower()
        project_number = normalize_identity(_cell_at(cells, mapping.project_number_col))
        project_name = normalize_identity(_cell_at(cells, mapping.project_name_col))

        name_only_layout = mapping.job_number_col is None and mapping.project_number_col is None
        if job_number is None and project_number is None and not (name_only_layout and project_name):
            return RowNormalization(row=None, skip_reason=SKIP_MISSING_IDENTITY)

        financials: dict[str, float | None] = {}
        issues: list[RowIssue] = []
        for col, header in mapping.financial_cols.items():
            value, issue = self._parse_financial(_cell_at(cells, col), row_index, header)
            financials[header] = value
            if issue is not None:
                issues.append(issue)

        return RowNormalization(
            row=IngestRow(
                row_index=row_index,
                job_number=job_number,
                project_number=project_number,
                project_name=project_name,
                financials=financials,
            ),
            issues=tuple(issues),
        )

    @staticmethod
    def _parse_financial(
        cell: Cell,
        row_index: int,
        header: str,
    ) -> tuple[float | None, RowIssue | None]:
        if isinstance(cell, EmptyCell):
            return None, None
        if isinstance(cell, NumberCell):
            return parse_numeric_value(cell.value), None
        if isinstance(cell, TextCell):
            value = parse_numeric_value(cell.value)
            stripped = cell.value.strip()
            if value is None and stripped.lower() not in BLANK_NUMERIC_TOKENS:
                return None, RowIssue(
                    row_index=row_index,
                    message="Unparseable numeric value",
                    column=header,
                    value=stripped,
                )
            return value, None
        return None, None


def _cell_at(cells: Sequence[Cell], index: int | None) -> Cell:
    if index is None or index >= len(cells):
        return EmptyCell()
    return cells[index]
