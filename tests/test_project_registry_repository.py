"""
tests/test_project_registry_repository.py

Loading the registry snapshot from the database.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from app.repositories.project_registry_repository import ProjectRegistryRepository
from db.models import Project, ProjectNumber


def test_load_snapshot_includes_alias_rows(seeded_session: Session) -> None:
    registry = ProjectRegistryRepository(seeded_session).load_snapshot()

    assert [project.code for project in registry.projects] == ["QUI-001", "QUI-002"]
    substation = next(project for project in registry.projects if project.id == "p-2")
    assert substation.job_number == "24-8-029-quie1si"
    assert substation.project_numbers == ("24-1-062", "24-1-062-b")


def test_aliases_are_trimmed_and_deduplicated(db_session: Session) -> None:
    project = Project(id="p-9", code="Z-9", name="Zed", job_number="  10-1-1  ", project_number="24-9-001")
    db_session.add(project)
    db_session.add_all(
        [
            ProjectNumber(project_id="p-9", project_number=" 24-9-001 "),
            ProjectNumber(project_id="p-9", project_number="24-9-002"),
        ]
    )
    db_session.commit()

    registry = ProjectRegistryRepository(db_session).load_snapshot()
    identity = next(project for project in registry.projects if project.id == "p-9")

    assert identity.job_number == "10-1-1"
    assert identity.project_numbers == ("24-9-001", "24-9-002")


def test_empty_registry(db_session: Session) -> None:
    assert len(ProjectRegistryRepository(db_session).load_snapshot()) == 0
