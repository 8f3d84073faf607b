"""
app/repositories/project_registry_repository.py

Read access to the project registry for matching.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.domain.cost_report import ProjectIdentity, ProjectRegistry
from db.models.project import Project


class ProjectRegistryRepository:
    """
    Loads the registry once per ingestion run as an immutable snapshot.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def load_snapshot(self) -> ProjectRegistry:
        """
        Return every project with all of its project-number aliases.

        The primary ``projects.project_number`` comes first, followed by the
        ``project_numbers`` rows in creation order.
        """

        stmt = select(Project).options(selectinload(Project.project_numbers)).order_by(Project.code)
        projects = self._session.execute(stmt).scalars().all()
        return ProjectRegistry(projects=tuple(_to_identity(project) for project in projects))


def _to_identity(project: Project) -> ProjectIdentity:
    aliases: list[str] = []
    candidates = [project.project_number, *(row.project_number for row in project.project_numbers)]
    for value in candidates:
        if value and value.strip() and value.strip() not in aliases:
            aliases.append(value.strip())
    return ProjectIdentity(
        id=str(project.id),
        code=project.code,
        name=project.name,
        job_number=project.job_number.strip() if project.job_number else None,
        project_numbers=tuple(aliases),
    )
