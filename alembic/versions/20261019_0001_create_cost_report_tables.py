"""create projects, project_numbers and project_financials tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "projects",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("job_number", sa.String(length=120), nullable=True,
                  comment="Internal job identifier, e.g. 25-8-131-quie6"),
        sa.Column("project_number", sa.String(length=120), nullable=True,
                  comment="Primary external project number"),
        sa.Column("region", sa.String(length=80), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )
    op.create_index("ix_projects_job_number", "projects", ["job_number"], unique=False)
    op.create_index("ix_projects_project_number", "projects", ["project_number"], unique=False)

    op.create_table(
        "project_numbers",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("project_id", sa.String(length=36), nullable=False),
        sa.Column("project_number", sa.String(length=120), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "project_id",
            "project_number",
            name="uq_project_numbers_project_number",
        ),
    )
    op.create_index(
        "ix_project_numbers_project_number",
        "project_numbers",
        ["project_number"],
        unique=False,
    )

    op.create_table(
        "project_financials",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("project_id", sa.String(length=36), nullable=False),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=True),
        sa.Column("budget", sa.Numeric(18, 2), nullable=True),
        sa.Column("forecast", sa.Numeric(18, 2), nullable=True,
                  comment="Forecasted cost at completion (EAC)"),
        sa.Column("actual", sa.Numeric(18, 2), nullable=True),
        sa.Column("committed", sa.Numeric(18, 2), nullable=True),
        sa.Column("spent", sa.Numeric(18, 2), nullable=True),
        sa.Column("variance", sa.Numeric(18, 2), nullable=True),
        sa.Column(
            "raw_json",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=True,
            comment="All detected financial columns plus aggregation metadata",
        ),
        sa.Column("source_file", sa.String(length=255), nullable=True),
        sa.Column("source_date", sa.Date(), nullable=True),
        sa.Column("job_number", sa.String(length=500), nullable=True),
        sa.Column("project_number", sa.String(length=500), nullable=True),
        sa.Column("match_type", sa.String(length=32), nullable=True,
                  comment="job, project_number, name, code"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "project_id",
            "period_start",
            name="uq_project_financials_project_period",
        ),
    )
    op.create_index(
        "ix_project_financials_period_start",
        "project_financials",
        ["period_start"],
        unique=False,
    )
    op.create_index(
        "ix_project_financials_project_id",
        "project_financials",
        ["project_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_project_financials_project_id", table_name="project_financials")
    op.drop_index("ix_project_financials_period_start", table_name="project_financials")
    op.drop_table("project_financials")
    op.drop_index("ix_project_numbers_project_number", table_name="project_numbers")
    op.drop_table("project_numbers")
    op.drop_index("ix_projects_project_number", table_name="projects")
    op.drop_index("ix_projects_job_number", table_name="projects")
    op.drop_table("projects")
