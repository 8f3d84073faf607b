"""
app/schemas/cost_report_ingestion.py

Response schemas for cost report ingestion results.

Field names are snake_case in Python and serialize to camelCase with
``model_dump(by_alias=True)``.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.domain.cost_report import IngestResult


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class IngestSummaryResponse(_CamelModel):
    matched_by_job: int = Field(..., ge=0)
    matched_by_project_number: int = Field(..., ge=0)
    matched_by_name: int = Field(..., ge=0)
    matched_by_code: int = Field(..., ge=0)
    unmatched: int = Field(..., ge=0)
    duplicate_matches: int = Field(..., ge=0)
    financial_columns: list[str] = Field(default_factory=list)
    total_rows: int = Field(..., ge=0)
    projects_updated: int = Field(..., ge=0)
    skipped_rows: int = Field(0, ge=0)
    total_projects_in_registry: int = Field(0, ge=0)


class ResolvedProjectResponse(_CamelModel):
    project_id: str
    project_name: str
    job_number: str | None = None
    project_number: str | None = None
    match_type: str
    financials: dict[str, float | None] = Field(default_factory=dict)


class UnmatchedRowResponse(_CamelModel):
    job_number: str | None = None
    project_number: str | None = None
    project_name: str | None = None
    financials: dict[str, float | None] = Field(default_factory=dict)


class DuplicateRowResponse(_CamelModel):
    row_index: int = Field(..., ge=0)
    job_number: str | None = None
    project_number: str | None = None
    project_name: str | None = None
    match_type: str
    candidate_project_ids: list[str] = Field(default_factory=list)
    financials: dict[str, float | None] = Field(default_factory=dict)


class RowIssueResponse(_CamelModel):
    row_index: int = Field(..., ge=0)
    message: str
    column: str | None = None
    value: str | None = None


class IngestResultResponse(_CamelModel):
    """
    Serializable view of one ingestion run.
    """

    dry_run: bool = False
    period_start: date | None = None
    summary: IngestSummaryResponse
    rows: list[ResolvedProjectResponse] = Field(default_factory=list)
    unmatched_rows: list[UnmatchedRowResponse] = Field(default_factory=list)
    duplicate_rows: list[DuplicateRowResponse] = Field(default_factory=list)
    issues: list[RowIssueResponse] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: IngestResult) -> "IngestResultResponse":
        return cls.model_validate(result.to_dict())
