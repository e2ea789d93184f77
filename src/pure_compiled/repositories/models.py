"""Code repository models.

A code repository is a named directory of ``*.pure.yaml`` sources that may
depend on other repositories. RepositorySet is the immutable universe of
repositories known to a run.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from pure_compiled.errors import RepositoryDefinitionError

# Name of the bootstrap repository compiled in the core phase
CORE_REPOSITORY = "platform"

# Pattern for valid repository names
REPOSITORY_NAME_PATTERN = r"^[a-z][a-z0-9_-]*$"

# Glob for source files inside a repository root
SOURCE_GLOB = "**/*.pure.yaml"


class RepositoryDefinition(BaseModel):
    """Schema of a repository ``definition.yaml`` file.

    Example:
        >>> RepositoryDefinition.model_validate({"name": "core-ext", "dependencies": ["platform"]})
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., pattern=REPOSITORY_NAME_PATTERN, description="Repository name")
    dependencies: tuple[str, ...] = Field(
        default=(),
        description="Names of repositories this repository depends on",
    )


class CodeRepository(BaseModel):
    """A repository resolved to a directory on disk.

    Attributes:
        name: Repository name.
        dependencies: Direct dependency names.
        root: Directory holding the repository sources.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., pattern=REPOSITORY_NAME_PATTERN)
    dependencies: frozenset[str] = Field(default_factory=frozenset)
    root: Path

    @property
    def is_core(self) -> bool:
        return self.name == CORE_REPOSITORY

    def source_files(self) -> list[Path]:
        """Return the repository's source files in a stable order."""
        return sorted(self.root.glob(SOURCE_GLOB))


class RepositorySet:
    """Immutable set of code repositories keyed by name.

    Raises:
        RepositoryDefinitionError: On duplicate names or unknown dependencies.

    Example:
        >>> repos = RepositorySet([platform, demo])
        >>> repos.subset(["demo"]).names
        ('demo', 'platform')
    """

    def __init__(self, repositories: Iterable[CodeRepository]) -> None:
        by_name: dict[str, CodeRepository] = {}
        for repository in repositories:
            if repository.name in by_name:
                raise RepositoryDefinitionError(
                    f"Duplicate repository name: '{repository.name}'",
                    internal_details=f"{by_name[repository.name].root} and {repository.root}",
                )
            by_name[repository.name] = repository

        for repository in by_name.values():
            missing = sorted(repository.dependencies - by_name.keys())
            if missing:
                raise RepositoryDefinitionError(
                    f"Repository '{repository.name}' depends on unknown "
                    f"repositories: {', '.join(missing)}"
                )

        self._repositories = dict(sorted(by_name.items()))

    def __iter__(self) -> Iterator[CodeRepository]:
        return iter(self._repositories.values())

    def __len__(self) -> int:
        return len(self._repositories)

    def __contains__(self, name: object) -> bool:
        return name in self._repositories

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._repositories)

    def get(self, name: str) -> CodeRepository:
        return self._repositories[name]

    def subset(self, names: Iterable[str]) -> RepositorySet:
        """Return the named repositories plus their transitive dependencies."""
        included: set[str] = set()
        pending = list(names)
        while pending:
            name = pending.pop()
            if name in included:
                continue
            included.add(name)
            pending.extend(self._repositories[name].dependencies)
        return RepositorySet(self._repositories[name] for name in included)

    def visible_from(self, name: str) -> frozenset[str]:
        """Names a repository may reference: itself and its transitive dependencies."""
        return frozenset(self.subset([name]).names)

    def dependency_order(self) -> list[CodeRepository]:
        """Repositories ordered so each comes after its dependencies.

        Ties are broken by name. Raises RepositoryDefinitionError on cycles.
        """
        remaining = {name: set(repo.dependencies) for name, repo in self._repositories.items()}
        ordered: list[CodeRepository] = []
        while remaining:
            ready = sorted(name for name, deps in remaining.items() if not deps)
            if not ready:
                raise RepositoryDefinitionError(
                    "Circular repository dependencies: " + ", ".join(sorted(remaining))
                )
            for name in ready:
                ordered.append(self._repositories[name])
                del remaining[name]
            for deps in remaining.values():
                deps.difference_update(ready)
        return ordered
