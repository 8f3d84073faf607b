"""
app/services/matching_diagnostics.py

Explain how each cost report row would match the registry.

For every row the diagnostics list the candidates each matcher tier finds,
independent of the first-match-wins order, together with the result the
resolver actually chooses and a confidence label:

    high    job number, or project number at score 0
    medium  suffix-tolerant project number, or normalized name
    low     project code
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from app.domain.cost_report import IngestRow, MatchResult, MatchType, ProjectIdentity, ProjectRegistry
from app.matching.identity_resolver import IdentityResolver
from app.matching.registry_index import RegistryIndex

CONFIDENCE_HIGH = "high"
CONFIDENCE_MEDIUM = "medium"
CONFIDENCE_LOW = "low"


@dataclass(frozen=True)
class CandidateMatch:
    project_id: str
    project_code: str
    project_name: str
    job_number: str | None
    match_type: MatchType
    score: float
    confidence: str


@dataclass(frozen=True)
class RowDiagnostic:
    row: IngestRow
    chosen: MatchResult
    confidence: str | None
    candidates: tuple[CandidateMatch, ...] = ()

    @property
    def is_unmatched(self) -> bool:
        return not self.chosen.is_matched

    @property
    def is_duplicate(self) -> bool:
        return self.chosen.is_duplicate


@dataclass(frozen=True)
class MatchingDiagnostics:
    total_rows: int
    total_projects: int
    rows: list[RowDiagnostic] = field(default_factory=list)

    @property
    def confidence_counts(self) -> dict[str, int]:
        counts = Counter(diag.confidence for diag in self.rows if not diag.is_duplicate)
        return {
            "highConfidenceMatches": counts[CONFIDENCE_HIGH],
            "mediumConfidenceMatches": counts[CONFIDENCE_MEDIUM],
            "lowConfidenceMatches": counts[CONFIDENCE_LOW],
            "duplicateMatches": sum(1 for diag in self.rows if diag.is_duplicate),
            "noMatches": sum(1 for diag in self.rows if diag.is_unmatched),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalRows": self.total_rows,
            "totalProjects": self.total_projects,
            "summary": self.confidence_counts,
            "diagnostics": [
                {
                    "rowIndex": diag.row.row_index,
                    "jobNumber": diag.row.job_number,
                    "projectNumber": diag.row.project_number,
                    "projectName": diag.row.project_name,
                    "matchType": diag.chosen.match_type.value,
                    "matchedProjectIds": sorted(diag.chosen.matched_project_ids),
                    "confidence": diag.confidence,
                    "candidates": [
                        {
                            "projectId": candidate.project_id,
                            "projectCode": candidate.project_code,
                            "projectName": candidate.project_name,
                            "matchType": candidate.match_type.value,
                            "score": candidate.score,
                            "confidence": candidate.confidence,
                        }
                        for candidate in diag.candidates
                    ],
                }
                for diag in self.rows
            ],
        }


def confidence_for(result: MatchResult) -> str | None:
    if not result.is_matched:
        return None
    if result.match_type is MatchType.JOB:
        return CONFIDENCE_HIGH
    if result.match_type is MatchType.PROJECT_NUMBER:
        return CONFIDENCE_HIGH if result.score == 0 else CONFIDENCE_MEDIUM
    if result.match_type is MatchType.NAME:
        return CONFIDENCE_MEDIUM
    return CONFIDENCE_LOW


class MatchingDiagnosticsService:
    def diagnose(
        self,
        rows: Sequence[IngestRow],
        registry: ProjectRegistry | Iterable[ProjectIdentity],
    ) -> MatchingDiagnostics:
        index = RegistryIndex.build(registry)
        resolver = IdentityResolver(index)

        diagnostics: list[RowDiagnostic] = []
        for row in rows:
            chosen = resolver.resolve(row)
            candidates: dict[tuple[str, MatchType], CandidateMatch] = {}
            for match_type, result in resolver.evaluate_tiers(row).items():
                if result is None:
                    continue
                for project_id in sorted(result.matched_project_ids):
                    project = index.projects[project_id]
                    candidates.setdefault(
                        (project_id, match_type),
                        CandidateMatch(
                            project_id=project_id,
                            project_code=project.code,
                            project_name=project.name,
                            job_number=project.job_number,
                            match_type=match_type,
                            score=result.score,
                            confidence=confidence_for(result) or CONFIDENCE_LOW,
                        ),
                    )
            diagnostics.append(
                RowDiagnostic(
                    row=row,
                    chosen=chosen,
                    confidence=confidence_for(chosen),
                    candidates=tuple(candidates.values()),
                )
            )

        return MatchingDiagnostics(
            total_rows=len(rows),
            total_projects=len(index),
            rows=diagnostics,
        )


def render_matching_report(diagnostics: MatchingDiagnostics) -> str:
    """
    Plain-text report listing the summary, unmatched rows and ambiguous rows.
    """

    counts = diagnostics.confidence_counts
    lines = [
        "=== Cost Report Matching Diagnostics ===",
        "",
        f"Total Rows: {diagnostics.total_rows}",
        f"Total Registry Projects: {diagnostics.total_projects}",
        "",
        "Summary:",
        f"  - High Confidence Matches: {counts['highConfidenceMatches']}",
        f"  - Medium Confidence Matches: {counts['mediumConfidenceMatches']}",
        f"  - Low Confidence Matches: {counts['lowConfidenceMatches']}",
        f"  - Duplicate Matches: {counts['duplicateMatches']}",
        f"  - No Matches: {counts['noMatches']}",
        "",
        "=== Unmatched Rows ===",
        "",
    ]
    for diag in diagnostics.rows:
        if not diag.is_unmatched:
            continue
        lines.extend(_describe_row(diag))
        lines.append("")

    lines.extend(["=== Duplicate Matches ===", ""])
    for diag in diagnostics.rows:
        if not diag.is_duplicate:
            continue
        lines.extend(_describe_row(diag))
        lines.append(f"  Tier: {diag.chosen.match_type.value}")
        for candidate in diag.candidates:
            if candidate.match_type is diag.chosen.match_type:
                lines.append(f"    - {candidate.project_code}: {candidate.project_name}")
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"


def _describe_row(diag: RowDiagnostic) -> list[str]:
    return [
        f"Row {diag.row.row_index}:",
        f"  Job Number: {diag.row.job_number or 'N/A'}",
        f"  Project Number: {diag.row.project_number or 'N/A'}",
        f"  Project Name: {diag.row.project_name or 'N/A'}",
    ]
