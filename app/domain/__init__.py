"""
app/domain package marker.
"""

from app.domain.cost_report import (
    Cell,
    DuplicateRow,
    EmptyCell,
    FinancialFigures,
    IngestResult,
    IngestRow,
    IngestSummary,
    MatchResult,
    MatchType,
    NumberCell,
    ProjectIdentity,
    ProjectRegistry,
    ResolvedProject,
    RowIssue,
    TextCell,
    UnmatchedRow,
)

__all__ = [
    "Cell",
    "DuplicateRow",
    "EmptyCell",
    "FinancialFigures",
    "IngestResult",
    "IngestRow",
    "IngestSummary",
    "MatchResult",
    "MatchType",
    "NumberCell",
    "ProjectIdentity",
    "ProjectRegistry",
    "ResolvedProject",
    "RowIssue",
    "TextCell",
    "UnmatchedRow",
]
