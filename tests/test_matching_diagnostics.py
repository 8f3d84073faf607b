"""
tests/test_matching_diagnostics.py

Per-row candidate listing and the plain-text matching report.
"""

from __future__ import annotations

from app.domain.cost_report import IngestRow, MatchResult, MatchType, ProjectIdentity, ProjectRegistry
from app.services.matching_diagnostics import (
    CONFIDENCE_HIGH,
    CONFIDENCE_LOW,
    CONFIDENCE_MEDIUM,
    MatchingDiagnosticsService,
    confidence_for,
    render_matching_report,
)

REGISTRY = ProjectRegistry(
    projects=(
        ProjectIdentity(
            id="p-1",
            code="QUI-001",
            name="Quincy Tower Fit-Out",
            job_number="25-8-131-quie6",
            project_numbers=("24-1-061",),
        ),
        ProjectIdentity(id="p-a", code="A", name="Alpha", project_numbers=("24-5-072-abc",)),
        ProjectIdentity(id="p-b", code="B", name="Beta", project_numbers=("24-5-072-xyz",)),
    )
)


def _row(index: int, job: str | None, number: str | None, name: str | None) -> IngestRow:
    return IngestRow(row_index=index, job_number=job, project_number=number, project_name=name)


ROWS = [
    _row(0, "25-8-131-quie6", "24-1-061", "Quincy Tower Fit-Out"),
    _row(1, None, "24-1-061-ige03", None),
    _row(2, None, None, "quincy tower fit out"),
    _row(3, None, "24-5-072", None),
    _row(4, "zzz", None, "Nowhere"),
]


class TestConfidence:
    def test_confidence_for(self) -> None:
        assert confidence_for(MatchResult.unmatched()) is None
        assert confidence_for(MatchResult(MatchType.JOB, frozenset({"p"}), 0.0)) == CONFIDENCE_HIGH
        assert confidence_for(MatchResult(MatchType.PROJECT_NUMBER, frozenset({"p"}), 0.0)) == CONFIDENCE_HIGH
        assert confidence_for(MatchResult(MatchType.PROJECT_NUMBER, frozenset({"p"}), 104.0)) == CONFIDENCE_MEDIUM
        assert confidence_for(MatchResult(MatchType.NAME, frozenset({"p"}), 0.0)) == CONFIDENCE_MEDIUM
        assert confidence_for(MatchResult(MatchType.CODE, frozenset({"p"}), 0.0)) == CONFIDENCE_LOW


class TestMatchingDiagnosticsService:
    def test_lists_candidates_from_every_tier(self) -> None:
        diagnostics = MatchingDiagnosticsService().diagnose(ROWS, REGISTRY)

        first = diagnostics.rows[0]
        assert first.chosen.match_type is MatchType.JOB
        assert {candidate.match_type for candidate in first.candidates} == {
            MatchType.JOB,
            MatchType.PROJECT_NUMBER,
            MatchType.NAME,
        }

    def test_summary_counts(self) -> None:
        diagnostics = MatchingDiagnosticsService().diagnose(ROWS, REGISTRY)

        assert diagnostics.total_rows == 5
        assert diagnostics.total_projects == 3
        assert diagnostics.rows[2].chosen.match_type is MatchType.NAME
        counts = diagnostics.confidence_counts
        assert counts["duplicateMatches"] == 1
        assert counts["noMatches"] == 1
        assert counts["highConfidenceMatches"] + counts["mediumConfidenceMatches"] == 3

    def test_to_dict_is_camel_case(self) -> None:
        payload = MatchingDiagnosticsService().diagnose(ROWS, REGISTRY).to_dict()

        assert payload["totalRows"] == 5
        assert payload["diagnostics"][3]["matchedProjectIds"] == ["p-a", "p-b"]
        assert payload["diagnostics"][4]["matchType"] == "none"


def test_render_matching_report() -> None:
    report = render_matching_report(MatchingDiagnosticsService().diagnose(ROWS, REGISTRY))

    assert report.startswith("=== Cost Report Matching Diagnostics ===\n")
    assert "Total Rows: 5" in report
    assert "  - Duplicate Matches: 1" in report

    unmatched_section = report.split("=== Unmatched Rows ===")[1].split("=== Duplicate Matches ===")[0]
    assert "Row 4:" in unmatched_section
    assert "  Job Number: zzz" in unmatched_section
    assert "  Project Number: N/A" in unmatched_section

    duplicate_section = report.split("=== Duplicate Matches ===")[1]
    assert "Row 3:" in duplicate_section
    assert "    - A: Alpha" in duplicate_section
    assert "    - B: Beta" in duplicate_section
