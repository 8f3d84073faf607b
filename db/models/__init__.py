"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.project import Project, ProjectNumber
from db.models.project_financials import ProjectFinancials

__all__ = [
    "Project",
    "ProjectNumber",
    "ProjectFinancials",
]
