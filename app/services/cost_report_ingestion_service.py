"""
app/services/cost_report_ingestion_service.py

Service layer for cost report ingestion.

Pipeline for one uploaded workbook:

    1. validate options and the raw buffer (extension, size, periodStart)
    2. read the cost report sheet into typed cells
    3. detect identity and financial columns
    4. normalize rows, recording soft issues and skipped rows
    5. resolve every row against an immutable registry index
    6. aggregate per project and upsert snapshots in one unit of work
    7. tally the summary

Matching performs no I/O; the only database work happens in step 6 and is
skipped entirely for dry runs.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from datetime import date, datetime
from functools import lru_cache
from typing import Iterable, Sequence

from sqlalchemy.orm import Session

from app.config import CostReportIngestionSettings, get_cost_report_ingestion_settings
from app.domain.cost_report import IngestResult, IngestRow, ProjectIdentity, ProjectRegistry, RowIssue
from app.errors import ValidationError
from app.logging_utils import log_event
from app.mappers.row_normalizer import RowNormalizer
from app.mappers.schema_detector import ColumnMapping, SchemaDetector
from app.matching.identity_resolver import IdentityResolver
from app.matching.registry_index import RegistryIndex
from app.readers.workbook_reader import WorkbookTable, read_workbook
from app.services.snapshot_writer import SnapshotWriter
from app.services.summary_aggregator import SummaryAggregator, partition_resolutions

logger = logging.getLogger(__name__)

_FILENAME_DATE_PATTERN = re.compile(r"(\d{1,2})\.(\d{1,2})\.(\d{2,4})")


@dataclass(frozen=True)
class IngestOptions:
    """
    Caller-supplied options for one ingestion run.

    Empty hint tuples fall back to the configured defaults. ``period_start``
    accepts a date or an ISO ``YYYY-MM-DD`` string.
    """

    job_hints: tuple[str, ...] = ()
    name_hints: tuple[str, ...] = ()
    financial_hints: tuple[str, ...] = ()
    period_start: date | str | None = None
    dry_run: bool = False
    source_file_name: str | None = None
    source_date: date | None = None


@dataclass(frozen=True)
class NormalizedRows:
    rows: list[IngestRow]
    issues: list[RowIssue]
    skipped: int


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def parse_period_start(value: date | str | None, *, field: str = "periodStart") -> date | None:
    """
    Parse a reporting period start; None stays None.

    Raises:
        ValidationError: the value is not a calendar date.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        if len(text) <= 10:
            return date.fromisoformat(text)
        if text[10] not in ("T", " "):
            raise ValueError(text)
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError as exc:
        raise ValidationError(
            f"Invalid {field} '{value}'. Expected YYYY-MM-DD.",
            field=field,
        ) from exc


def infer_source_date(file_name: str | None) -> date | None:
    """
    Infer a report date from names such as ``Cost Report Summary 10.15.25.xlsx``.
    """

    if not file_name:
        return None
    match = _FILENAME_DATE_PATTERN.search(os.path.basename(file_name))
    if match is None:
        return None
    month, day, year = (int(part) for part in match.groups())
    if year < 100:
        year += 2000
    try:
        return date(year, month, day)
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class CostReportIngestionService:
    """
    Coordinates workbook reading, schema detection, matching and persistence.
    """

    def __init__(
        self,
        *,
        settings: CostReportIngestionSettings | None = None,
        writer: SnapshotWriter | None = None,
        aggregator: SummaryAggregator | None = None,
    ) -> None:
        self._settings = settings or CostReportIngestionSettings()
        self._writer = writer or SnapshotWriter(period_length_days=self._settings.period_length_days)
        self._aggregator = aggregator or SummaryAggregator()
        self._normalizer = RowNormalizer(section_header_pattern=self._settings.section_header_pattern)

    def validate_upload(self, *, buffer: bytes, file_name: str | None) -> None:
        """
        Reject unsupported file types and oversize buffers before parsing.
        """

        if file_name:
            extension = os.path.splitext(file_name)[1].lower()
            if extension not in self._settings.allowed_extensions:
                raise ValidationError(
                    f"Unsupported file type '{extension or file_name}'. "
                    f"Allowed: {', '.join(self._settings.allowed_extensions)}.",
                    field="file",
                )
        if len(buffer) > self._settings.max_file_bytes:
            raise ValidationError(
                f"File is {len(buffer)} bytes; the limit is {self._settings.max_file_bytes} bytes.",
                field="file",
            )
        if not buffer:
            raise ValidationError("Uploaded file is empty.", field="file")

    def ingest_buffer(
        self,
        buffer: bytes,
        *,
        registry: ProjectRegistry | Iterable[ProjectIdentity],
        db: Session | None = None,
        options: IngestOptions | None = None,
    ) -> IngestResult:
        """
        Ingest one cost report workbook against a registry snapshot.

        Raises:
            ValidationError: bad options, file type, size or periodStart.
            WorkbookReadError: the buffer is not a readable workbook.
            SchemaError: no usable sheet or identity column.
            TransactionError: snapshot upserts failed and were rolled back.
        """

        options = options or IngestOptions()
        period_start = parse_period_start(options.period_start)
        if not options.dry_run and period_start is None:
            raise ValidationError("periodStart is required when dryRun is false.", field="periodStart")
        if not options.dry_run and db is None:
            raise ValidationError("A database session is required when dryRun is false.", field="db")
        self.validate_upload(buffer=buffer, file_name=options.source_file_name)

        source_date = options.source_date or infer_source_date(options.source_file_name)
        if not isinstance(registry, ProjectRegistry):
            registry = ProjectRegistry(projects=tuple(registry))

        log_event(
            logger,
            logging.INFO,
            "cost_report_ingest_started",
            file=options.source_file_name,
            bytes=len(buffer),
            dry_run=options.dry_run,
            period_start=period_start,
            source_date=source_date,
            registry_projects=len(registry),
        )

        mapping, normalized = self.extract_rows(buffer, options=options)

        index = RegistryIndex.build(registry)
        resolver = IdentityResolver(index)
        resolutions = resolver.resolve_all(normalized.rows)
        partition = partition_resolutions(resolutions, index.projects)
        log_event(
            logger,
            logging.INFO,
            "cost_report_rows_resolved",
            rows=len(resolutions),
            projects=len(partition.resolved),
            unmatched=len(partition.unmatched),
            duplicates=len(partition.duplicates),
            skipped=normalized.skipped,
        )

        projects_updated = self._writer.write(
            db,
            partition.resolved,
            period_start=period_start,
            source_file=options.source_file_name,
            source_date=source_date,
            dry_run=options.dry_run,
        )
        if not options.dry_run:
            log_event(
                logger,
                logging.INFO,
                "cost_report_snapshots_written",
                projects_updated=projects_updated,
                period_start=period_start,
            )

        summary = self._aggregator.aggregate(
            resolutions=resolutions,
            financial_columns=mapping.financial_columns,
            skipped_rows=normalized.skipped,
            total_projects_in_registry=len(registry),
            projects_updated=projects_updated,
        )
        return IngestResult(
            summary=summary,
            rows=partition.resolved,
            unmatched_rows=partition.unmatched,
            duplicate_rows=partition.duplicates,
            issues=normalized.issues,
            dry_run=options.dry_run,
            period_start=period_start,
        )

    def extract_rows(
        self,
        buffer: bytes,
        *,
        options: IngestOptions | None = None,
    ) -> tuple[ColumnMapping, NormalizedRows]:
        """
        Read, detect and normalize without matching or writing.
        """

        options = options or IngestOptions()
        table = read_workbook(
            buffer,
            preferred_sheet=self._settings.preferred_sheet,
            header_scan_rows=self._settings.header_scan_rows,
        )
        mapping = self._detector_for(options).detect(table.headers)
        log_event(
            logger,
            logging.INFO,
            "cost_report_columns_detected",
            sheet=table.sheet_name,
            header_row=table.header_row_index,
            job_column=_header_at(mapping, mapping.job_number_col),
            project_number_column=_header_at(mapping, mapping.project_number_col),
            name_column=_header_at(mapping, mapping.project_name_col),
            financial_columns=list(mapping.financial_columns),
        )
        return mapping, self._normalize_rows(table, mapping)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _detector_for(self, options: IngestOptions) -> SchemaDetector:
        return SchemaDetector(
            job_hints=options.job_hints or self._settings.job_hints,
            name_hints=options.name_hints or self._settings.name_hints,
            financial_hints=options.financial_hints or self._settings.financial_hints,
        )

    def _normalize_rows(self, table: WorkbookTable, mapping: ColumnMapping) -> NormalizedRows:
        rows: list[IngestRow] = []
        issues: list[RowIssue] = []
        skipped = 0
        for row_index, cells in enumerate(table.rows):
            outcome = self._normalizer.normalize(cells, row_index, mapping)
            for issue in outcome.issues:
                self._record_issue(issues, issue)
            if outcome.row is None:
                skipped += 1
                logger.debug("Row skipped row=%s reason=%s", row_index, outcome.skip_reason)
                continue
            rows.append(outcome.row)
        return NormalizedRows(rows=rows, issues=issues, skipped=skipped)

    def _record_issue(self, captured: list[RowIssue], issue: RowIssue) -> None:
        if self._settings.log_row_issues:
            logger.warning(
                "Cost report row issue row=%s column=%s message=%s value=%r",
                issue.row_index,
                issue.column,
                issue.message,
                issue.value,
            )
        if len(captured) < self._settings.max_row_issues:
            captured.append(issue)


def _header_at(mapping: ColumnMapping, index: int | None) -> str | None:
    if index is None:
        return None
    return mapping.headers[index]


@lru_cache(maxsize=1)
def get_cost_report_ingestion_service() -> CostReportIngestionService:
    """
    Return a cached service configured from environment settings.
    """

    return CostReportIngestionService(settings=get_cost_report_ingestion_settings())


def ingest_cost_report(
    buffer: bytes,
    *,
    registry: ProjectRegistry | Sequence[ProjectIdentity],
    db: Session | None = None,
    options: IngestOptions | None = None,
) -> IngestResult:
    """
    Convenience wrapper around the cached service.
    """

    return get_cost_report_ingestion_service().ingest_buffer(
        buffer,
        registry=registry,
        db=db,
        options=options,
    )
