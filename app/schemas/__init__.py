"""
app/schemas package marker.
"""

from app.schemas.cost_report_ingestion import (
    DuplicateRowResponse,
    IngestResultResponse,
    IngestSummaryResponse,
    ResolvedProjectResponse,
    RowIssueResponse,
    UnmatchedRowResponse,
)

__all__ = [
    "DuplicateRowResponse",
    "IngestResultResponse",
    "IngestSummaryResponse",
    "ResolvedProjectResponse",
    "RowIssueResponse",
    "UnmatchedRowResponse",
]
