"""
tests/test_cost_report_ingestion_service.py

End-to-end ingestion of in-memory workbooks.
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from datetime import date

import pytest

from app.config import CostReportIngestionSettings
from app.domain.cost_report import MatchType, ProjectIdentity, ProjectRegistry
from app.errors import SchemaError, ValidationError
from app.repositories.financial_snapshot_repository import FinancialSnapshotRepository
from app.repositories.project_registry_repository import ProjectRegistryRepository
from app.services.cost_report_ingestion_service import (
    CostReportIngestionService,
    IngestOptions,
    infer_source_date,
    parse_period_start,
)

FILE_NAME = "Cost Report Summary 10.15.25.xlsx"


@pytest.fixture
def service(settings: CostReportIngestionSettings) -> CostReportIngestionService:
    return CostReportIngestionService(settings=settings)


def test_dry_run_matches_by_job_number(service, workbook_factory, sample_rows, sample_registry) -> None:
    result = service.ingest_buffer(
        workbook_factory(sample_rows),
        registry=sample_registry,
        options=IngestOptions(dry_run=True, source_file_name=FILE_NAME),
    )

    summary = result.summary
    assert result.dry_run is True
    assert summary.matched_by_job == 2
    assert summary.matched_by_project_number == 0
    assert summary.unmatched == 1
    assert summary.duplicate_matches == 0
    assert summary.total_rows == 3
    assert summary.projects_updated == 0
    assert summary.total_projects_in_registry == 2
    assert list(summary.financial_columns) == [
        "Total Budget",
        "Forecasted Cost @ Completion",
        "Variance (Over)/Under",
    ]

    by_id = {row.project_id: row for row in result.rows}
    assert by_id["p-1"].match_type is MatchType.JOB
    assert by_id["p-2"].financials == {
        "Total Budget": 2000.0,
        "Forecasted Cost @ Completion": -150.0,
        "Variance (Over)/Under": 2150.0,
    }
    assert [row.project_name for row in result.unmatched_rows] == ["Mystery Site"]


def test_write_mode_upserts_one_snapshot_per_project(
    service, workbook_factory, sample_rows, seeded_session
) -> None:
    registry = ProjectRegistryRepository(seeded_session).load_snapshot()
    buffer = workbook_factory(sample_rows)
    options = IngestOptions(period_start="2025-10-13", source_file_name=FILE_NAME)

    first = service.ingest_buffer(buffer, registry=registry, db=seeded_session, options=options)
    second = service.ingest_buffer(buffer, registry=registry, db=seeded_session, options=options)

    assert first.summary.projects_updated == 2
    assert second.summary.projects_updated == 2
    assert second.period_start == date(2025, 10, 13)

    repository = FinancialSnapshotRepository(seeded_session)
    assert repository.count_snapshots() == 2
    snapshot = repository.get_snapshot(project_id="p-1", period_start=date(2025, 10, 13))
    assert snapshot is not None
    assert snapshot.source_date == date(2025, 10, 15)
    assert snapshot.job_number == "25-8-131-quie6"


def test_rows_fall_back_to_project_number_aliases(service, workbook_factory, sample_registry) -> None:
    rows = [
        ["Job Number", "Project Number", "Project Name", "Total Budget"],
        [None, "24-1-061-ige03", "Tower", 10],
        [None, "24-1-062, 24-1-099", "Substation", 20],
    ]

    result = service.ingest_buffer(
        workbook_factory(rows),
        registry=sample_registry,
        options=IngestOptions(dry_run=True),
    )

    assert result.summary.matched_by_project_number == 2
    assert {row.project_id for row in result.rows} == {"p-1", "p-2"}


def test_ambiguous_project_number_is_reported_not_written(service, workbook_factory) -> None:
    registry = ProjectRegistry(
        projects=(
            ProjectIdentity(id="p-a", code="A", name="Alpha", project_numbers=("24-5-072-abc",)),
            ProjectIdentity(id="p-b", code="B", name="Beta", project_numbers=("24-5-072-xyz",)),
        )
    )
    rows = [
        ["Job Number", "Project Number", "Project Name", "Total Budget"],
        ["NOPE-1", "24-5-072", "Shared Base", 10],
    ]

    result = service.ingest_buffer(
        workbook_factory(rows),
        registry=registry,
        options=IngestOptions(dry_run=True),
    )

    assert result.rows == []
    assert result.summary.duplicate_matches == 1
    assert result.summary.matched_by_project_number == 0
    assert result.duplicate_rows[0].candidate_project_ids == ("p-a", "p-b")


def test_rows_without_identity_are_skipped(service, workbook_factory, sample_registry) -> None:
    rows = [
        ["Job Number", "Project Number", "Project Name", "Total Budget"],
        ["SDC North", None, None, None],
        ["n/a", "-", "Subtotal", 500],
        [None, None, None, None],
        ["25-8-131-QUIE6", None, "Tower", "TBD"],
    ]

    result = service.ingest_buffer(
        workbook_factory(rows),
        registry=sample_registry,
        options=IngestOptions(dry_run=True),
    )

    assert result.summary.total_rows == 1
    assert result.summary.skipped_rows == 3
    assert result.summary.matched_by_job == 1
    assert len(result.issues) == 1
    issue = result.issues[0]
    assert issue.column == "Total Budget"
    assert issue.value == "TBD"
    assert result.rows[0].financials == {"Total Budget": None}


def test_issue_list_is_capped(settings, workbook_factory, sample_registry) -> None:
    service = CostReportIngestionService(settings=replace(settings, max_row_issues=1))
    rows = [
        ["Job Number", "Project Number", "Project Name", "Total Budget"],
        ["25-8-131-QUIE6", None, "Tower", "TBD"],
        ["24-8-029-quie1si", None, "Substation", "pending"],
    ]

    result = service.ingest_buffer(
        workbook_factory(rows),
        registry=sample_registry,
        options=IngestOptions(dry_run=True),
    )

    assert [issue.value for issue in result.issues] == ["TBD"]


def test_custom_hints_override_defaults(service, workbook_factory, sample_registry) -> None:
    rows = [
        ["Ref", "Description", "Approved", "Notes"],
        ["25-8-131-QUIE6", "Tower", 10, "x"],
    ]

    result = service.ingest_buffer(
        workbook_factory(rows),
        registry=sample_registry,
        options=IngestOptions(
            dry_run=True,
            job_hints=("ref",),
            name_hints=("description",),
            financial_hints=("approved",),
        ),
    )

    assert result.summary.matched_by_job == 1
    assert list(result.summary.financial_columns) == ["Approved"]


def test_missing_identity_column_raises_schema_error(service, workbook_factory, sample_registry) -> None:
    rows = [["Budget", "Forecast", "Variance"], [1, 2, 3]]

    with pytest.raises(SchemaError) as exc_info:
        service.ingest_buffer(
            workbook_factory(rows),
            registry=sample_registry,
            options=IngestOptions(dry_run=True),
        )

    assert exc_info.value.errors[0].code == "missing_identity_column"


class TestValidation:
    def test_rejects_legacy_xls(self, service, workbook_factory, sample_rows, sample_registry) -> None:
        with pytest.raises(ValidationError) as exc_info:
            service.ingest_buffer(
                workbook_factory(sample_rows),
                registry=sample_registry,
                options=IngestOptions(dry_run=True, source_file_name="report.xls"),
            )

        assert exc_info.value.field == "file"

    def test_rejects_oversize_buffer(self, settings, workbook_factory, sample_rows, sample_registry) -> None:
        service = CostReportIngestionService(settings=replace(settings, max_file_bytes=10))

        with pytest.raises(ValidationError, match="limit"):
            service.ingest_buffer(
                workbook_factory(sample_rows),
                registry=sample_registry,
                options=IngestOptions(dry_run=True),
            )

    def test_rejects_empty_buffer(self, service) -> None:
        with pytest.raises(ValidationError, match="empty"):
            service.validate_upload(buffer=b"", file_name="report.xlsx")

    def test_rejects_invalid_period_start_even_in_dry_run(
        self, service, workbook_factory, sample_rows, sample_registry
    ) -> None:
        with pytest.raises(ValidationError) as exc_info:
            service.ingest_buffer(
                workbook_factory(sample_rows),
                registry=sample_registry,
                options=IngestOptions(dry_run=True, period_start="2025-13-40"),
            )

        assert exc_info.value.field == "periodStart"

    def test_write_mode_requires_period_start(
        self, service, workbook_factory, sample_rows, sample_registry, db_session
    ) -> None:
        with pytest.raises(ValidationError, match="periodStart is required"):
            service.ingest_buffer(
                workbook_factory(sample_rows),
                registry=sample_registry,
                db=db_session,
                options=IngestOptions(),
            )


class TestHelpers:
    def test_parse_period_start(self) -> None:
        assert parse_period_start(None) is None
        assert parse_period_start("  ") is None
        assert parse_period_start("2025-10-13") == date(2025, 10, 13)
        assert parse_period_start("2025-10-13T00:00:00Z") == date(2025, 10, 13)
        assert parse_period_start(date(2025, 1, 6)) == date(2025, 1, 6)

    def test_parse_period_start_reports_field(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            parse_period_start("yesterday", field="sourceDate")

        assert exc_info.value.field == "sourceDate"

    @pytest.mark.parametrize("value", ["2025-10-13garbage", "2025-10-13T25:00:00", "2025-10-1", "2025/10/13"])
    def test_parse_period_start_rejects_trailing_text(self, value: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            parse_period_start(value)

        assert exc_info.value.field == "periodStart"

    def test_parse_period_start_accepts_timestamps(self) -> None:
        assert parse_period_start("2025-10-13 08:30:00") == date(2025, 10, 13)
        assert parse_period_start("2025-10-13T23:59:59+02:00") == date(2025, 10, 13)

    def test_infer_source_date(self) -> None:
        assert infer_source_date(FILE_NAME) == date(2025, 10, 15)
        assert infer_source_date("/tmp/Cost Report 1.6.2026.xlsx") == date(2026, 1, 6)
        assert infer_source_date("report.xlsx") is None
        assert infer_source_date("report 13.40.25.xlsx") is None
        assert infer_source_date(None) is None


def test_run_milestones_are_logged_as_json_events(
    service, workbook_factory, sample_rows, sample_registry, caplog
) -> None:
    caplog.set_level(logging.INFO, logger="app.services.cost_report_ingestion_service")

    service.ingest_buffer(
        workbook_factory(sample_rows),
        registry=sample_registry,
        options=IngestOptions(dry_run=True, source_file_name=FILE_NAME),
    )

    events = [
        json.loads(record.getMessage())
        for record in caplog.records
        if record.name == "app.services.cost_report_ingestion_service"
    ]
    assert [event["event"] for event in events] == [
        "cost_report_ingest_started",
        "cost_report_columns_detected",
        "cost_report_rows_resolved",
    ]
    assert events[0]["source_date"] == "2025-10-15"
    assert events[2]["unmatched"] == 1


def test_write_mode_rejects_period_with_trailing_text(
    service, workbook_factory, sample_rows, seeded_session
) -> None:
    registry = ProjectRegistryRepository(seeded_session).load_snapshot()

    with pytest.raises(ValidationError) as exc_info:
        service.ingest_buffer(
            workbook_factory(sample_rows),
            registry=registry,
            db=seeded_session,
            options=IngestOptions(period_start="2025-10-13garbage", source_file_name=FILE_NAME),
        )

    assert exc_info.value.field == "periodStart"
    assert FinancialSnapshotRepository(seeded_session).count_snapshots() == 0
