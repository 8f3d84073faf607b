"""
app/services/snapshot_writer.py

Single unit of work that upserts one financial snapshot per resolved project.

Either every snapshot of a run is committed or none is: the first failing
upsert rolls the whole session back and surfaces as TransactionError.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Callable, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.cost_report import ResolvedProject
from app.errors import TransactionError, ValidationError
from app.mappers.financial_extractor import FinancialExtractor
from app.repositories.financial_snapshot_repository import FinancialSnapshotRepository

logger = logging.getLogger(__name__)


class SnapshotWriter:
    """
    Writes aggregated project financials keyed by ``(project_id, period_start)``.
    """

    def __init__(
        self,
        *,
        period_length_days: int = 7,
        extractor: FinancialExtractor | None = None,
        repository_factory: Callable[[Session], FinancialSnapshotRepository] = FinancialSnapshotRepository,
    ) -> None:
        self._period_length_days = max(1, period_length_days)
        self._extractor = extractor or FinancialExtractor()
        self._repository_factory = repository_factory

    def period_end_for(self, period_start: date) -> date:
        return period_start + timedelta(days=self._period_length_days - 1)

    def write(
        self,
        db: Session | None,
        projects: Sequence[ResolvedProject],
        *,
        period_start: date | None,
        source_file: str | None = None,
        source_date: date | None = None,
        dry_run: bool = False,
    ) -> int:
        """
        Upsert every project's snapshot and commit once.

        Returns the number of projects written; always 0 for dry runs, which
        touch no database state.

        Raises:
            ValidationError: write mode without ``period_start`` or session.
            TransactionError: any upsert failed; nothing was committed.
        """

        if dry_run:
            return 0
        if period_start is None:
            raise ValidationError("periodStart is required when dryRun is false.", field="periodStart")
        if db is None:
            raise ValidationError("A database session is required when dryRun is false.", field="db")
        if not projects:
            return 0

        repository = self._repository_factory(db)
        if not repository.supports_upsert():
            logger.error(
                "Snapshot upsert unsupported dialect=%s period_start=%s",
                repository.dialect_name,
                period_start,
            )
            raise TransactionError(
                f"Snapshot upsert is not supported on dialect '{repository.dialect_name}'; nothing was written.",
                period_start=period_start,
            )
        period_end = self.period_end_for(period_start)
        current: ResolvedProject | None = None
        try:
            for current in projects:
                figures = self._extractor.extract(current.financials)
                repository.upsert_snapshot(
                    project_id=current.project_id,
                    period_start=period_start,
                    period_end=period_end,
                    figures=figures.as_dict(),
                    raw_json=_raw_payload(current),
                    source_file=source_file,
                    source_date=source_date,
                    job_number=current.job_number,
                    project_number=current.project_number,
                    match_type=current.match_type.value,
                )
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            failing = current.project_id if current is not None else None
            logger.error(
                "Snapshot upsert failed project_id=%s period_start=%s error=%s",
                failing,
                period_start,
                exc,
            )
            raise TransactionError(
                f"Failed to write financial snapshot for project {failing}; all changes rolled back.",
                project_id=failing,
                period_start=period_start,
            ) from exc

        logger.info(
            "Financial snapshots committed projects=%s period_start=%s period_end=%s",
            len(projects),
            period_start,
            period_end,
        )
        return len(projects)


def _raw_payload(project: ResolvedProject) -> dict[str, object]:
    return {
        "financials": dict(project.financials),
        "rowIndexes": list(project.row_indexes),
        "jobNumbers": list(project.job_numbers),
        "projectNumbers": list(project.project_numbers),
        "matchTypes": [match_type.value for match_type in project.match_types],
    }
