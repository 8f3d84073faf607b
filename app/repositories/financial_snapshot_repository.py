"""
app/repositories/financial_snapshot_repository.py

Persistence layer for ProjectFinancials snapshots.

The caller controls commit/rollback; this repository never commits on its own.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from db.base import new_id
from db.models.project_financials import UPSERT_CONSTRAINT, UPSERT_KEY_COLUMNS, ProjectFinancials

SUPPORTED_DIALECTS: tuple[str, ...] = ("postgresql", "sqlite")

FINANCIAL_FIELDS: tuple[str, ...] = ("budget", "forecast", "actual", "committed", "spent", "variance")

_UPDATABLE_FIELDS: tuple[str, ...] = (
    *FINANCIAL_FIELDS,
    "period_end",
    "raw_json",
    "source_file",
    "source_date",
    "job_number",
    "project_number",
    "match_type",
)


class FinancialSnapshotRepository:
    """
    Repository for writing and querying ProjectFinancials rows.

    Upsert semantics: a snapshot whose ``(project_id, period_start)`` already
    exists is overwritten in place, so re-ingesting a corrected report for the
    same period never creates a duplicate.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    @property
    def dialect_name(self) -> str:
        return self._session.get_bind().dialect.name

    def supports_upsert(self) -> bool:
        return self.dialect_name in SUPPORTED_DIALECTS

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def upsert_snapshot(
        self,
        *,
        project_id: str,
        period_start: date,
        period_end: date | None,
        figures: dict[str, float | None],
        raw_json: dict[str, Any] | None = None,
        source_file: str | None = None,
        source_date: date | None = None,
        job_number: str | None = None,
        project_number: str | None = None,
        match_type: str | None = None,
    ) -> None:
        """
        Insert or overwrite the snapshot for one project and period.

        ``figures`` maps canonical field names (budget, forecast, ...) to
        floats; values are bound as two-place decimals.
        """

        values: dict[str, Any] = {
            "id": new_id(),
            "project_id": project_id,
            "period_start": period_start,
            "period_end": period_end,
            "raw_json": raw_json,
            "source_file": source_file,
            "source_date": source_date,
            "job_number": job_number,
            "project_number": project_number,
            "match_type": match_type,
            "updated_at": _now_utc(),
        }
        for field_name in FINANCIAL_FIELDS:
            values[field_name] = _to_decimal(figures.get(field_name))

        insert = self._insert_factory()
        stmt = insert(ProjectFinancials).values(**values)
        set_ = {name: stmt.excluded[name] for name in _UPDATABLE_FIELDS}
        set_["updated_at"] = values["updated_at"]

        if self.dialect_name == "postgresql":
            stmt = stmt.on_conflict_do_update(constraint=UPSERT_CONSTRAINT, set_=set_)
        else:
            stmt = stmt.on_conflict_do_update(index_elements=list(UPSERT_KEY_COLUMNS), set_=set_)
        self._session.execute(stmt)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_snapshots_for_period(self, period_start: date) -> list[ProjectFinancials]:
        stmt = (
            select(ProjectFinancials)
            .where(ProjectFinancials.period_start == period_start)
            .order_by(ProjectFinancials.project_id)
        )
        return list(self._session.scalars(stmt).all())

    def get_snapshot(self, *, project_id: str, period_start: date) -> ProjectFinancials | None:
        stmt = select(ProjectFinancials).where(
            ProjectFinancials.project_id == project_id,
            ProjectFinancials.period_start == period_start,
        )
        return self._session.scalars(stmt).one_or_none()

    def count_snapshots(self, period_start: date | None = None) -> int:
        stmt = select(func.count()).select_from(ProjectFinancials)
        if period_start is not None:
            stmt = stmt.where(ProjectFinancials.period_start == period_start)
        return int(self._session.scalar(stmt) or 0)

    def list_periods(self) -> list[date]:
        stmt = (
            select(ProjectFinancials.period_start)
            .distinct()
            .order_by(ProjectFinancials.period_start.desc())
        )
        return list(self._session.scalars(stmt).all())

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _insert_factory(self) -> Any:
        dialect = self.dialect_name
        if dialect == "postgresql":
            return postgresql.insert
        if dialect == "sqlite":
            return sqlite.insert
        raise RuntimeError(f"Snapshot upsert is not supported on dialect '{dialect}'.")


def _to_decimal(value: float | None) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(round(value, 2)))


def _now_utc() -> datetime:
    return datetime.now(tz=timezone.utc)
