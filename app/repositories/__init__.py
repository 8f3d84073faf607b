"""
app/repositories package marker.
"""

from app.repositories.financial_snapshot_repository import FinancialSnapshotRepository
from app.repositories.project_registry_repository import ProjectRegistryRepository

__all__ = [
    "FinancialSnapshotRepository",
    "ProjectRegistryRepository",
]
