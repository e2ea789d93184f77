"""Repository discovery and selection.

Repositories come from three places, in this order:
1. The bundled ``platform`` repository shipped with this package
2. Packages advertising a ``pure_compiled.repositories`` entry point
3. Extra repository descriptors passed by the caller
"""

from __future__ import annotations

import importlib.resources
from collections.abc import Iterable
from importlib.metadata import entry_points
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError as PydanticValidationError

from pure_compiled.errors import RepositoryDefinitionError, UnknownRepositoryError
from pure_compiled.repositories.models import (
    CORE_REPOSITORY,
    CodeRepository,
    RepositoryDefinition,
    RepositorySet,
)

logger = structlog.get_logger(__name__)

# Entry point group for third-party repositories
ENTRY_POINT_GROUP = "pure_compiled.repositories"

# File name of a repository definition
DEFINITION_FILE_NAME = "definition.yaml"


def load_repository(definition_path: Path) -> CodeRepository:
    """Load a repository from its definition.yaml.

    Args:
        definition_path: Path to definition.yaml, or to the directory holding it.

    Returns:
        CodeRepository rooted at the definition's directory.

    Raises:
        RepositoryDefinitionError: If the file is missing or invalid.
    """
    if definition_path.is_dir():
        definition_path = definition_path / DEFINITION_FILE_NAME
    if not definition_path.is_file():
        raise RepositoryDefinitionError(
            f"Repository definition not found: {definition_path}",
        )

    try:
        with definition_path.open("r", encoding="utf-8") as f:
            raw: dict[str, Any] = yaml.safe_load(f) or {}
        definition = RepositoryDefinition.model_validate(raw)
    except (yaml.YAMLError, PydanticValidationError) as e:
        raise RepositoryDefinitionError(
            f"Invalid repository definition: {definition_path}",
            internal_details=str(e),
        ) from e

    return CodeRepository(
        name=definition.name,
        dependencies=frozenset(definition.dependencies),
        root=definition_path.parent,
    )


def resolve_extra_repository(descriptor: str) -> CodeRepository:
    """Resolve an extra repository descriptor.

    A descriptor of the form ``package:relative/definition.yaml`` is looked
    up as a package resource first. Anything else, or a resource that does
    not exist, is treated as a filesystem path.

    Raises:
        RepositoryDefinitionError: If the descriptor resolves to nothing.
    """
    resource = _find_resource(descriptor)
    if resource is not None:
        try:
            return load_repository(resource)
        except RepositoryDefinitionError as e:
            raise RepositoryDefinitionError(
                f'Error loading extra repository "{descriptor}" from resource {resource}',
                internal_details=e.user_message,
            ) from e

    try:
        return load_repository(Path(descriptor))
    except RepositoryDefinitionError as e:
        raise RepositoryDefinitionError(
            f'Error loading extra repository "{descriptor}"',
            internal_details=e.user_message,
        ) from e


def _find_resource(descriptor: str) -> Path | None:
    package, sep, resource_name = descriptor.partition(":")
    if not sep or not all(part.isidentifier() for part in package.split(".")):
        return None
    try:
        root = importlib.resources.files(package)
    except ModuleNotFoundError:
        return None
    candidate = root.joinpath(resource_name)
    if not candidate.is_file() and not candidate.is_dir():
        return None
    return _as_path(candidate, descriptor)


def _as_path(resource: Any, descriptor: str) -> Path:
    # Sources are read with Path.glob, so resources must live on a real filesystem
    if not isinstance(resource, Path):
        raise RepositoryDefinitionError(
            f'Repository resource "{descriptor}" is not on the filesystem',
        )
    return resource


def bundled_repositories() -> list[CodeRepository]:
    """Return the repositories shipped with this package."""
    root = importlib.resources.files("pure_compiled.repositories").joinpath(CORE_REPOSITORY)
    return [load_repository(_as_path(root, CORE_REPOSITORY))]


def entry_point_repositories(group: str = ENTRY_POINT_GROUP) -> list[CodeRepository]:
    """Load repositories advertised through entry points.

    Each entry point must resolve to a path (``str`` or ``Path``) of a
    definition.yaml or of the directory holding it.
    """
    repositories: list[CodeRepository] = []
    for entry_point in sorted(entry_points(group=group), key=lambda ep: ep.name):
        target = entry_point.load()
        if callable(target):
            target = target()
        logger.debug("repository_entry_point", name=entry_point.name, target=str(target))
        repositories.append(load_repository(Path(target)))
    return repositories


class RepositoryDiscovery:
    """Builds the RepositorySet for a run.

    Example:
        >>> discovery = RepositoryDiscovery()
        >>> repositories = discovery.discover(extra_repositories=["./my-repo"])
    """

    def __init__(
        self,
        *,
        include_bundled: bool = True,
        include_entry_points: bool = True,
    ) -> None:
        self.include_bundled = include_bundled
        self.include_entry_points = include_entry_points

    def discover(self, extra_repositories: Iterable[str] = ()) -> RepositorySet:
        repositories: list[CodeRepository] = []
        if self.include_bundled:
            repositories.extend(bundled_repositories())
        if self.include_entry_points:
            repositories.extend(entry_point_repositories())
        repositories.extend(resolve_extra_repository(d) for d in extra_repositories)
        return RepositorySet(repositories)


def select_repositories(
    all_repositories: RepositorySet,
    requested: Iterable[str] | None,
    excluded: Iterable[str] | None,
) -> tuple[str, ...]:
    """Compute the selection: (requested, or all if empty) minus excluded.

    Returns:
        Selected names sorted by name; this is the iteration order of every
        per-repository loop.

    Raises:
        UnknownRepositoryError: If a requested name is not a known repository.
    """
    requested_names = set(requested or ())
    if not requested_names:
        selected = set(all_repositories.names)
    else:
        missing = [name for name in requested_names if name not in all_repositories]
        if missing:
            raise UnknownRepositoryError(missing)
        selected = requested_names

    selected.difference_update(excluded or ())
    return tuple(sorted(selected))
