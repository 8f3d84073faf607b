"""
app/matching/registry_index.py

Immutable lookup structure built once per ingestion run from the registry
snapshot. Every map is keyed by a normalized string so that per-row lookups
stay near O(1) instead of scanning the registry.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from app.domain.cost_report import ProjectIdentity, ProjectRegistry
from app.matching.names import normalize_name
from app.matching.variants import build_project_number_variants, normalize_identifier


@dataclass(frozen=True)
class ProjectNumberAlias:
    """
    One registry alias reachable from a variant string.
    """

    alias: str
    project_id: str
    variants: frozenset[str]


@dataclass(frozen=True)
class RegistryIndex:
    projects: Mapping[str, ProjectIdentity]
    by_job_number: Mapping[str, frozenset[str]]
    by_variant: Mapping[str, tuple[ProjectNumberAlias, ...]]
    by_name: Mapping[str, frozenset[str]]
    by_code: Mapping[str, frozenset[str]]

    @classmethod
    def build(cls, projects: ProjectRegistry | Iterable[ProjectIdentity]) -> RegistryIndex:
        if isinstance(projects, ProjectRegistry):
            projects = projects.projects

        by_id: dict[str, ProjectIdentity] = {}
        jobs: dict[str, set[str]] = defaultdict(set)
        variants: dict[str, dict[tuple[str, str], ProjectNumberAlias]] = defaultdict(dict)
        names: dict[str, set[str]] = defaultdict(set)
        codes: dict[str, set[str]] = defaultdict(set)

        for project in projects:
            by_id[project.id] = project

            job_key = normalize_identifier(project.job_number)
            if job_key:
                jobs[job_key].add(project.id)

            for raw_alias in project.project_numbers:
                alias = normalize_identifier(raw_alias)
                if not alias:
                    continue
                alias_variants = build_project_number_variants(alias)
                entry = ProjectNumberAlias(alias=alias, project_id=project.id, variants=alias_variants)
                for variant in alias_variants:
                    variants[variant][(alias, project.id)] = entry

            name_key = normalize_name(project.name)
            if name_key:
                names[name_key].add(project.id)

            code_key = normalize_identifier(project.code)
            if code_key:
                codes[code_key].add(project.id)

        return cls(
            projects=MappingProxyType(by_id),
            by_job_number=_freeze_sets(jobs),
            by_variant=MappingProxyType(
                {key: tuple(entries.values()) for key, entries in variants.items()}
            ),
            by_name=_freeze_sets(names),
            by_code=_freeze_sets(codes),
        )

    def __len__(self) -> int:
        return len(self.projects)

    def aliases_for_variants(self, variants: Iterable[str]) -> tuple[ProjectNumberAlias, ...]:
        """
        Collect every distinct alias sharing at least one of ``variants``.
        """

        seen: dict[tuple[str, str], ProjectNumberAlias] = {}
        for variant in variants:
            for entry in self.by_variant.get(variant, ()):
                seen.setdefault((entry.alias, entry.project_id), entry)
        return tuple(seen.values())


def _freeze_sets(values: dict[str, set[str]]) -> Mapping[str, frozenset[str]]:
    return MappingProxyType({key: frozenset(ids) for key, ids in values.items()})
