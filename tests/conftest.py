"""
tests/conftest.py

Shared fixtures: in-memory workbooks built with openpyxl and an in-memory
SQLite session with the full schema created from model metadata.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from io import BytesIO
from typing import Any

import openpyxl
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

import db.models  # noqa: F401
from app.config import CostReportIngestionSettings
from app.domain.cost_report import ProjectIdentity, ProjectRegistry
from db.base import Base
from db.models import Project, ProjectNumber

COST_REPORT_HEADERS: list[str] = [
    "Job Number",
    "Project Number",
    "Project Name",
    "Total Budget",
    "Forecasted Cost @ Completion",
    "Variance (Over)/Under",
]

WorkbookFactory = Callable[..., bytes]


def build_workbook(
    rows: Sequence[Sequence[Any]],
    *,
    sheet_name: str = "Cost Rpt Summary",
    extra_sheets: dict[str, Sequence[Sequence[Any]]] | None = None,
    extra_first: bool = False,
) -> bytes:
    workbook = openpyxl.Workbook()
    main = workbook.active
    main.title = sheet_name
    for row in rows:
        main.append(list(row))

    for index, (name, sheet_rows) in enumerate((extra_sheets or {}).items()):
        sheet = workbook.create_sheet(title=name, index=index if extra_first else None)
        for row in sheet_rows:
            sheet.append(list(row))

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def workbook_factory() -> WorkbookFactory:
    return build_workbook


@pytest.fixture
def sample_rows() -> list[list[Any]]:
    return [
        COST_REPORT_HEADERS,
        ["25-8-131-QUIE6", "24-1-061-ige03", "Quincy Tower Fit-out", 1000, 900, 100],
        ["24-8-029-quie1si", "24-1-062", "Quincy Substation", "$2,000.00", "($150.00)", 2150],
        ["UNKNOWN-JOB", "UNKNOWN-PROJ", "Mystery Site", 5, 5, 0],
    ]


@pytest.fixture
def sample_registry() -> ProjectRegistry:
    return ProjectRegistry(
        projects=(
            ProjectIdentity(
                id="p-1",
                code="QUI-001",
                name="Quincy Tower Fit-Out",
                job_number="25-8-131-quie6",
                project_numbers=("24-1-061",),
            ),
            ProjectIdentity(
                id="p-2",
                code="QUI-002",
                name="Quincy Substation",
                job_number="24-8-029-quie1si",
                project_numbers=("24-1-062",),
            ),
        )
    )


@pytest.fixture
def settings() -> CostReportIngestionSettings:
    return CostReportIngestionSettings(log_row_issues=False)


@pytest.fixture
def db_session() -> Iterator[Session]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = Session(bind=engine, autoflush=False, expire_on_commit=False)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def seeded_session(db_session: Session, sample_registry: ProjectRegistry) -> Session:
    """
    Session whose projects table mirrors ``sample_registry``.
    """

    for identity in sample_registry.projects:
        project = Project(
            id=identity.id,
            code=identity.code,
            name=identity.name,
            job_number=identity.job_number,
            project_number=identity.project_numbers[0] if identity.project_numbers else None,
        )
        db_session.add(project)
    db_session.add(ProjectNumber(project_id="p-2", project_number="24-1-062-b"))
    db_session.commit()
    return db_session
