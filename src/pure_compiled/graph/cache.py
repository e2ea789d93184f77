"""Persisted graph cache.

A cache file is a JSON snapshot of a READY graph together with a
fingerprint of every repository it was compiled from. Hydration fails
(and the caller rebuilds) whenever the snapshot is missing, unreadable,
from another format version, or stale.

The generation pipeline only ever reads the cache. ``write_graph_cache`` is
used by the separate ``cache build`` command.
"""

from __future__ import annotations

import hashlib
import os
import tempfile
import traceback
from pathlib import Path
from typing import Protocol

import structlog
from pydantic import BaseModel, ConfigDict, Field

from pure_compiled.graph.graph import Graph
from pure_compiled.graph.models import Element
from pure_compiled.repositories.models import CodeRepository, RepositorySet

logger = structlog.get_logger(__name__)

CACHE_FORMAT_VERSION = 1


class CacheState(BaseModel):
    """Why the last hydration attempt did not produce a graph.

    Attributes:
        reason: Short description of the miss.
        last_stack_trace: Formatted traceback when hydration raised.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    reason: str | None = Field(default=None, description="Short description of the miss")
    last_stack_trace: str | None = Field(default=None, description="Traceback of the failure")


class GraphSnapshot(BaseModel):
    """On-disk cache payload."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    format_version: int = Field(..., ge=1)
    repositories: dict[str, str] = Field(..., description="Repository name to fingerprint")
    elements: list[Element] = Field(default_factory=list)


class GraphCache(Protocol):
    """Source of pre-compiled graphs."""

    @property
    def state(self) -> CacheState | None: ...

    def hydrate(self, graph: Graph) -> bool:
        """Load cached elements into ``graph``; return True on success."""
        ...


def repository_fingerprint(repository: CodeRepository) -> str:
    """SHA-256 over the repository's source paths and contents."""
    digest = hashlib.sha256()
    digest.update(repository.name.encode("utf-8"))
    for path in repository.source_files():
        digest.update(path.relative_to(repository.root).as_posix().encode("utf-8"))
        digest.update(path.read_bytes())
    return digest.hexdigest()


def fingerprints(repositories: RepositorySet) -> dict[str, str]:
    return {repo.name: repository_fingerprint(repo) for repo in repositories}


class NoGraphCache:
    """Cache that never hits; used when no cache file is configured."""

    def __init__(self) -> None:
        self._state: CacheState | None = None

    @property
    def state(self) -> CacheState | None:
        return self._state

    def hydrate(self, graph: Graph) -> bool:
        self._state = CacheState(reason="no cache configured")
        return False


class FileGraphCache:
    """Read-only graph cache backed by a JSON snapshot file.

    Example:
        >>> cache = FileGraphCache(Path(".pure/graph-cache.json"))
        >>> if not cache.hydrate(graph):
        ...     print(cache.state.reason)
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._state: CacheState | None = None

    @property
    def state(self) -> CacheState | None:
        return self._state

    def hydrate(self, graph: Graph) -> bool:
        try:
            with self.path.open("rb") as f:
                payload = f.read()
        except FileNotFoundError:
            self._state = CacheState(reason=f"cache file not found: {self.path}")
            return False
        except OSError as e:
            logger.debug("graph_cache_read_failed", path=str(self.path), error=str(e))
            self._state = CacheState(
                reason=f"cache file could not be read: {e}",
                last_stack_trace=traceback.format_exc(),
            )
            return False

        try:
            snapshot = GraphSnapshot.model_validate_json(payload)
            if snapshot.format_version != CACHE_FORMAT_VERSION:
                self._state = CacheState(
                    reason=f"unsupported cache format version {snapshot.format_version}"
                )
                return False
            if snapshot.repositories != fingerprints(graph.repositories):
                self._state = CacheState(reason="cache is stale for the selected repositories")
                return False
            for element in snapshot.elements:
                graph.add(element)
        except Exception as e:
            logger.debug("graph_cache_hydration_failed", path=str(self.path), error=str(e))
            self._state = CacheState(
                reason=f"cache could not be loaded: {e}",
                last_stack_trace=traceback.format_exc(),
            )
            return False

        self._state = None
        return True


def write_graph_cache(graph: Graph, path: Path) -> Path:
    """Write a READY graph as a cache snapshot, replacing ``path`` atomically.

    Raises:
        ValueError: If the graph is not READY.
    """
    if not graph.is_ready:
        raise ValueError(f"Only a ready graph can be cached (state: {graph.state.value})")

    snapshot = GraphSnapshot(
        format_version=CACHE_FORMAT_VERSION,
        repositories=fingerprints(graph.repositories),
        elements=list(graph.elements()),
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(snapshot.model_dump_json(indent=2))
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return path
