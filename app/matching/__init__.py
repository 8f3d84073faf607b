"""
app/matching package marker.
"""

from app.matching.identity_resolver import IdentityResolver, code_candidates
from app.matching.names import clean_project_name, normalize_name
from app.matching.registry_index import ProjectNumberAlias, RegistryIndex
from app.matching.variants import (
    build_project_number_variants,
    normalize_identifier,
    rank_project_number_match,
    split_project_number_cell,
)

__all__ = [
    "IdentityResolver",
    "ProjectNumberAlias",
    "RegistryIndex",
    "build_project_number_variants",
    "clean_project_name",
    "code_candidates",
    "normalize_identifier",
    "normalize_name",
    "rank_project_number_match",
    "split_project_number_cell",
]
