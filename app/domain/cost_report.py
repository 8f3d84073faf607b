"""
app/domain/cost_report.py

Domain models used by the cost report ingestion flow.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Union


# ---------------------------------------------------------------------------
# Spreadsheet cells
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TextCell:
    value: str


@dataclass(frozen=True)
class NumberCell:
    value: float


@dataclass(frozen=True)
class EmptyCell:
    pass


Cell = Union[TextCell, NumberCell, EmptyCell]

EMPTY_CELL = EmptyCell()


def cell_text(cell: Cell) -> str | None:
    """
    Render a cell as trimmed text, or None when it carries nothing.
    """

    if isinstance(cell, TextCell):
        stripped = cell.value.strip()
        return stripped or None
    if isinstance(cell, NumberCell):
        if math.isfinite(cell.value) and float(cell.value).is_integer():
            return str(int(cell.value))
        return repr(cell.value)
    return None


# ---------------------------------------------------------------------------
# Registry snapshot
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProjectIdentity:
    """
    Read-only view of one registry project used for matching.
    """

    id: str
    code: str
    name: str
    job_number: str | None = None
    project_numbers: tuple[str, ...] = ()


@dataclass(frozen=True)
class ProjectRegistry:
    """
    Snapshot of the project registry taken once per ingestion run.
    """

    projects: tuple[ProjectIdentity, ...] = ()

    def __len__(self) -> int:
        return len(self.projects)


# ---------------------------------------------------------------------------
# Rows and matches
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IngestRow:
    """
    Canonical representation of one spreadsheet data row.
    """

    row_index: int
    job_number: str | None
    project_number: str | None
    project_name: str | None
    financials: dict[str, float | None] = field(default_factory=dict)


class MatchType(str, Enum):
    JOB = "job"
    PROJECT_NUMBER = "project_number"
    NAME = "name"
    CODE = "code"
    NONE = "none"


@dataclass(frozen=True)
class MatchResult:
    """
    Outcome of identity resolution for one row.

    ``score`` is 0 for an exact match, grows for weaker fuzzy matches and is
    infinite when nothing matched.
    """

    match_type: MatchType
    matched_project_ids: frozenset[str] = frozenset()
    score: float = math.inf

    def __post_init__(self) -> None:
        is_none = self.match_type is MatchType.NONE
        if is_none != (not self.matched_project_ids) or is_none != math.isinf(self.score):
            raise ValueError(
                "MatchResult requires match_type=none, empty ids and infinite score together."
            )

    @classmethod
    def unmatched(cls) -> MatchResult:
        return cls(match_type=MatchType.NONE)

    @property
    def is_matched(self) -> bool:
        return self.match_type is not MatchType.NONE

    @property
    def is_duplicate(self) -> bool:
        return len(self.matched_project_ids) > 1

    @property
    def project_id(self) -> str | None:
        """
        The single resolved project id, or None for unmatched/ambiguous rows.
        """

        if len(self.matched_project_ids) != 1:
            return None
        return next(iter(self.matched_project_ids))


@dataclass(frozen=True)
class RowIssue:
    """
    One row-level soft failure.
    """

    row_index: int
    message: str
    column: str | None = None
    value: str | None = None


# ---------------------------------------------------------------------------
# Result structures
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FinancialFigures:
    """
    Canonical snapshot fields extracted from the raw financial columns.
    """

    budget: float | None = None
    forecast: float | None = None
    actual: float | None = None
    committed: float | None = None
    spent: float | None = None
    variance: float | None = None

    def as_dict(self) -> dict[str, float | None]:
        return {
            "budget": self.budget,
            "forecast": self.forecast,
            "actual": self.actual,
            "committed": self.committed,
            "spent": self.spent,
            "variance": self.variance,
        }


@dataclass(frozen=True)
class ResolvedProject:
    """
    Financials for one singly-resolved project, aggregated across its rows.
    """

    project_id: str
    project_name: str
    job_number: str | None
    project_number: str | None
    match_type: MatchType
    financials: dict[str, float | None]
    row_indexes: tuple[int, ...] = ()
    job_numbers: tuple[str, ...] = ()
    project_numbers: tuple[str, ...] = ()
    match_types: tuple[MatchType, ...] = ()


@dataclass(frozen=True)
class UnmatchedRow:
    row_index: int
    job_number: str | None
    project_number: str | None
    project_name: str | None
    financials: dict[str, float | None]


@dataclass(frozen=True)
class DuplicateRow:
    """
    Row that resolved to several projects at the same best rank.
    """

    row_index: int
    job_number: str | None
    project_number: str | None
    project_name: str | None
    match_type: MatchType
    candidate_project_ids: tuple[str, ...]
    financials: dict[str, float | None]


@dataclass(frozen=True)
class IngestSummary:
    """
    End-of-run ingestion summary.
    """

    matched_by_job: int = 0
    matched_by_project_number: int = 0
    matched_by_name: int = 0
    matched_by_code: int = 0
    unmatched: int = 0
    duplicate_matches: int = 0
    financial_columns: tuple[str, ...] = ()
    total_rows: int = 0
    projects_updated: int = 0
    skipped_rows: int = 0
    total_projects_in_registry: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "matchedByJob": self.matched_by_job,
            "matchedByProjectNumber": self.matched_by_project_number,
            "matchedByName": self.matched_by_name,
            "matchedByCode": self.matched_by_code,
            "unmatched": self.unmatched,
            "duplicateMatches": self.duplicate_matches,
            "financialColumns": list(self.financial_columns),
            "totalRows": self.total_rows,
            "projectsUpdated": self.projects_updated,
            "skippedRows": self.skipped_rows,
            "totalProjectsInRegistry": self.total_projects_in_registry,
        }


@dataclass(frozen=True)
class IngestResult:
    """
    Complete ingestion result returned to callers.
    """

    summary: IngestSummary
    rows: list[ResolvedProject] = field(default_factory=list)
    unmatched_rows: list[UnmatchedRow] = field(default_factory=list)
    duplicate_rows: list[DuplicateRow] = field(default_factory=list)
    issues: list[RowIssue] = field(default_factory=list)
    dry_run: bool = False
    period_start: date | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "dryRun": self.dry_run,
            "periodStart": self.period_start.isoformat() if self.period_start else None,
            "summary": self.summary.to_dict(),
            "rows": [
                {
                    "projectId": row.project_id,
                    "projectName": row.project_name,
                    "jobNumber": row.job_number,
                    "projectNumber": row.project_number,
                    "matchType": row.match_type.value,
                    "financials": dict(row.financials),
                }
                for row in self.rows
            ],
            "unmatchedRows": [
                {
                    "jobNumber": row.job_number,
                    "projectNumber": row.project_number,
                    "projectName": row.project_name,
                    "financials": dict(row.financials),
                }
                for row in self.unmatched_rows
            ],
            "duplicateRows": [
                {
                    "rowIndex": row.row_index,
                    "jobNumber": row.job_number,
                    "projectNumber": row.project_number,
                    "projectName": row.project_name,
                    "matchType": row.match_type.value,
                    "candidateProjectIds": list(row.candidate_project_ids),
                    "financials": dict(row.financials),
                }
                for row in self.duplicate_rows
            ],
            "issues": [
                {
                    "rowIndex": issue.row_index,
                    "column": issue.column,
                    "message": issue.message,
                    "value": issue.value,
                }
                for issue in self.issues
            ],
        }
