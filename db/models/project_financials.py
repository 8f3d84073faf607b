"""
db/models/project_financials.py

Persisted financial snapshot: one row per project per reporting period.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import Date, ForeignKey, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, JSONType, TimestampMixin, new_id

if TYPE_CHECKING:
    from db.models.project import Project

UPSERT_CONSTRAINT = "uq_project_financials_project_period"
UPSERT_KEY_COLUMNS: tuple[str, ...] = ("project_id", "period_start")


class ProjectFinancials(Base, TimestampMixin):
    """
    Financial figures for one project and one reporting period.

    The unique constraint on ``(project_id, period_start)`` drives upsert
    semantics: re-ingesting a corrected report for the same period replaces
    the stored figures instead of inserting a duplicate.
    """

    __tablename__ = "project_financials"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    project_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date | None] = mapped_column(Date, nullable=True)

    budget: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    forecast: Mapped[Decimal | None] = mapped_column(
        Numeric(18, 2),
        nullable=True,
        comment="Forecasted cost at completion (EAC)",
    )
    actual: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    committed: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    spent: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    variance: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)

    raw_json: Mapped[dict[str, Any] | None] = mapped_column(
        JSONType,
        nullable=True,
        comment="All detected financial columns plus aggregation metadata",
    )
    source_file: Mapped[str | None] = mapped_column(String(255), nullable=True)
    source_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    job_number: Mapped[str | None] = mapped_column(String(500), nullable=True)
    project_number: Mapped[str | None] = mapped_column(String(500), nullable=True)
    match_type: Mapped[str | None] = mapped_column(
        String(32),
        nullable=True,
        comment="job, project_number, name, code",
    )

    project: Mapped["Project"] = relationship("Project", back_populates="financials")

    __table_args__ = (
        UniqueConstraint(*UPSERT_KEY_COLUMNS, name=UPSERT_CONSTRAINT),
        Index("ix_project_financials_period_start", "period_start"),
        Index("ix_project_financials_project_id", "project_id"),
    )
