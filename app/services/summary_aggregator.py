"""
app/services/summary_aggregator.py

Partition resolved rows and tally the end-of-run summary.

Rows that resolve to exactly one project are grouped per project before
writing, so a project listed on several spreadsheet lines gets a single
snapshot with summed figures. Ambiguous rows are held back for review and
unmatched rows are reported as-is.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from app.domain.cost_report import (
    DuplicateRow,
    IngestRow,
    IngestSummary,
    MatchResult,
    MatchType,
    ProjectIdentity,
    ResolvedProject,
    UnmatchedRow,
)

MATCH_TYPE_PRIORITY: tuple[MatchType, ...] = (
    MatchType.JOB,
    MatchType.PROJECT_NUMBER,
    MatchType.NAME,
    MatchType.CODE,
)

Resolution = tuple[IngestRow, MatchResult]


@dataclass(frozen=True)
class ResolutionPartition:
    resolved: list[ResolvedProject] = field(default_factory=list)
    unmatched: list[UnmatchedRow] = field(default_factory=list)
    duplicates: list[DuplicateRow] = field(default_factory=list)


def _join_unique(values: Sequence[str | None]) -> tuple[str, ...]:
    seen: list[str] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return tuple(seen)


def _sum_financials(rows: Sequence[IngestRow]) -> dict[str, float | None]:
    totals: dict[str, float | None] = {}
    for row in rows:
        for header, value in row.financials.items():
            if header not in totals:
                totals[header] = None
            if value is None:
                continue
            current = totals[header]
            totals[header] = value if current is None else current + value
    return totals


def _strongest(match_types: Sequence[MatchType]) -> MatchType:
    for candidate in MATCH_TYPE_PRIORITY:
        if candidate in match_types:
            return candidate
    return MatchType.NONE


def partition_resolutions(
    resolutions: Sequence[Resolution],
    projects: Mapping[str, ProjectIdentity],
) -> ResolutionPartition:
    """
    Split resolved rows into per-project aggregates, unmatched rows and
    duplicate (ambiguous) rows, preserving first-seen order.
    """

    grouped: dict[str, list[Resolution]] = {}
    unmatched: list[UnmatchedRow] = []
    duplicates: list[DuplicateRow] = []

    for row, result in resolutions:
        if not result.is_matched:
            unmatched.append(
                UnmatchedRow(
                    row_index=row.row_index,
                    job_number=row.job_number,
                    project_number=row.project_number,
                    project_name=row.project_name,
                    financials=dict(row.financials),
                )
            )
            continue
        if result.is_duplicate:
            duplicates.append(
                DuplicateRow(
                    row_index=row.row_index,
                    job_number=row.job_number,
                    project_number=row.project_number,
                    project_name=row.project_name,
                    match_type=result.match_type,
                    candidate_project_ids=tuple(sorted(result.matched_project_ids)),
                    financials=dict(row.financials),
                )
            )
            continue
        grouped.setdefault(result.project_id, []).append((row, result))

    resolved: list[ResolvedProject] = []
    for project_id, members in grouped.items():
        rows = [row for row, _ in members]
        match_types = tuple(result.match_type for _, result in members)
        job_numbers = _join_unique([row.job_number for row in rows])
        project_numbers = _join_unique([row.project_number for row in rows])
        identity = projects.get(project_id)
        resolved.append(
            ResolvedProject(
                project_id=project_id,
                project_name=identity.name if identity else (rows[0].project_name or ""),
                job_number=", ".join(job_numbers) or None,
                project_number=", ".join(project_numbers) or None,
                match_type=_strongest(match_types),
                financials=_sum_financials(rows),
                row_indexes=tuple(row.row_index for row in rows),
                job_numbers=job_numbers,
                project_numbers=project_numbers,
                match_types=match_types,
            )
        )

    return ResolutionPartition(resolved=resolved, unmatched=unmatched, duplicates=duplicates)


class SummaryAggregator:
    """
    Tallies match statistics for one ingestion run.

    Ambiguous rows count only under ``duplicate_matches``; ``total_rows``
    covers every row that reached resolution (skipped rows are reported
    separately).
    """

    def aggregate(
        self,
        *,
        resolutions: Sequence[Resolution],
        financial_columns: Sequence[str],
        skipped_rows: int = 0,
        total_projects_in_registry: int = 0,
        projects_updated: int = 0,
    ) -> IngestSummary:
        matched: Counter[MatchType] = Counter()
        unmatched = 0
        duplicates = 0
        for _, result in resolutions:
            if not result.is_matched:
                unmatched += 1
            elif result.is_duplicate:
                duplicates += 1
            else:
                matched[result.match_type] += 1

        return IngestSummary(
            matched_by_job=matched[MatchType.JOB],
            matched_by_project_number=matched[MatchType.PROJECT_NUMBER],
            matched_by_name=matched[MatchType.NAME],
            matched_by_code=matched[MatchType.CODE],
            unmatched=unmatched,
            duplicate_matches=duplicates,
            financial_columns=tuple(financial_columns),
            total_rows=len(resolutions),
            projects_updated=projects_updated,
            skipped_rows=skipped_rows,
            total_projects_in_registry=total_projects_in_registry,
        )
