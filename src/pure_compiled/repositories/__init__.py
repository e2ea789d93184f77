"""Code repositories: models, discovery and selection."""

from __future__ import annotations

from pure_compiled.repositories.discovery import (
    DEFINITION_FILE_NAME,
    ENTRY_POINT_GROUP,
    RepositoryDiscovery,
    load_repository,
    resolve_extra_repository,
    select_repositories,
)
from pure_compiled.repositories.models import (
    CORE_REPOSITORY,
    CodeRepository,
    RepositoryDefinition,
    RepositorySet,
)

__all__: list[str] = [
    "CORE_REPOSITORY",
    "DEFINITION_FILE_NAME",
    "ENTRY_POINT_GROUP",
    "CodeRepository",
    "RepositoryDefinition",
    "RepositoryDiscovery",
    "RepositorySet",
    "load_repository",
    "resolve_extra_repository",
    "select_repositories",
]
