"""
tests/test_summary_aggregator.py

Per-project aggregation and summary tallies.
"""

from __future__ import annotations

from app.domain.cost_report import IngestRow, MatchResult, MatchType, ProjectIdentity
from app.services.summary_aggregator import SummaryAggregator, partition_resolutions


def _row(index: int, *, job: str | None, number: str | None, budget: float | None) -> IngestRow:
    return IngestRow(
        row_index=index,
        job_number=job,
        project_number=number,
        project_name=f"Row {index}",
        financials={"Total Budget": budget},
    )


def _match(match_type: MatchType, *ids: str) -> MatchResult:
    return MatchResult(match_type=match_type, matched_project_ids=frozenset(ids), score=0.0)


PROJECTS = {
    "p-1": ProjectIdentity(id="p-1", code="A", name="Alpha"),
    "p-2": ProjectIdentity(id="p-2", code="B", name="Beta"),
}

RESOLUTIONS = [
    (_row(0, job="10-1-100", number="24-1-061", budget=100.0), _match(MatchType.PROJECT_NUMBER, "p-1")),
    (_row(1, job="10-1-101", number="24-1-061-b", budget=50.0), _match(MatchType.JOB, "p-1")),
    (_row(2, job=None, number="24-1-062", budget=None), _match(MatchType.PROJECT_NUMBER, "p-2")),
    (_row(3, job=None, number="24-5-072", budget=10.0), _match(MatchType.PROJECT_NUMBER, "p-1", "p-2")),
    (_row(4, job="x", number="y", budget=1.0), MatchResult.unmatched()),
]


class TestPartitionResolutions:
    def test_rows_for_one_project_are_aggregated(self) -> None:
        partition = partition_resolutions(RESOLUTIONS, PROJECTS)

        alpha = partition.resolved[0]
        assert alpha.project_id == "p-1"
        assert alpha.project_name == "Alpha"
        assert alpha.financials == {"Total Budget": 150.0}
        assert alpha.match_type is MatchType.JOB
        assert alpha.job_number == "10-1-100, 10-1-101"
        assert alpha.project_number == "24-1-061, 24-1-061-b"
        assert alpha.row_indexes == (0, 1)

    def test_all_null_values_stay_null(self) -> None:
        partition = partition_resolutions(RESOLUTIONS, PROJECTS)

        beta = partition.resolved[1]
        assert beta.financials == {"Total Budget": None}

    def test_duplicates_and_unmatched_are_held_back(self) -> None:
        partition = partition_resolutions(RESOLUTIONS, PROJECTS)

        assert [project.project_id for project in partition.resolved] == ["p-1", "p-2"]
        assert [row.row_index for row in partition.duplicates] == [3]
        assert partition.duplicates[0].candidate_project_ids == ("p-1", "p-2")
        assert [row.row_index for row in partition.unmatched] == [4]


class TestSummaryAggregator:
    def test_counts(self) -> None:
        summary = SummaryAggregator().aggregate(
            resolutions=RESOLUTIONS,
            financial_columns=["Total Budget"],
            skipped_rows=2,
            total_projects_in_registry=2,
            projects_updated=2,
        )

        assert summary.matched_by_job == 1
        assert summary.matched_by_project_number == 2
        assert summary.matched_by_name == 0
        assert summary.matched_by_code == 0
        assert summary.duplicate_matches == 1
        assert summary.unmatched == 1
        assert summary.total_rows == 5
        assert summary.skipped_rows == 2
        assert summary.projects_updated == 2
        assert summary.to_dict()["financialColumns"] == ["Total Budget"]
