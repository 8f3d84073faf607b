"""
db/models/project.py

Capital project registry: projects and their project-number aliases.

The ingestion engine only reads these tables, through a snapshot taken at
the start of each run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin, new_id

if TYPE_CHECKING:
    from db.models.project_financials import ProjectFinancials


class Project(Base, TimestampMixin):
    """
    One capital project.

    ``project_number`` is the legacy primary alias; additional aliases live in
    ``project_numbers`` and accumulate as upstream systems renumber a project.
    """

    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    job_number: Mapped[str | None] = mapped_column(
        String(120),
        nullable=True,
        comment="Internal job identifier, e.g. 25-8-131-quie6",
    )
    project_number: Mapped[str | None] = mapped_column(
        String(120),
        nullable=True,
        comment="Primary external project number",
    )
    region: Mapped[str | None] = mapped_column(String(80), nullable=True)

    # ── Relationships ──────────────────────────────────────────────────────────

    project_numbers: Mapped[list["ProjectNumber"]] = relationship(
        "ProjectNumber",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ProjectNumber.created_at",
    )
    financials: Mapped[list["ProjectFinancials"]] = relationship(
        "ProjectFinancials",
        back_populates="project",
        passive_deletes=True,
    )

    # ── Indexes ────────────────────────────────────────────────────────────────

    __table_args__ = (
        Index("ix_projects_job_number", "job_number"),
        Index("ix_projects_project_number", "project_number"),
    )

    def __repr__(self) -> str:
        return f"<Project id={self.id} code={self.code!r} name={self.name!r}>"


class ProjectNumber(Base, TimestampMixin):
    """
    Additional external project-number alias for a project.
    """

    __tablename__ = "project_numbers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    project_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    project_number: Mapped[str] = mapped_column(String(120), nullable=False)

    project: Mapped["Project"] = relationship("Project", back_populates="project_numbers")

    __table_args__ = (
        UniqueConstraint("project_id", "project_number", name="uq_project_numbers_project_number"),
        Index("ix_project_numbers_project_number", "project_number"),
    )
