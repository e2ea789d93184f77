"""Shared pytest fixtures for pure-compiled tests.

Provides structlog capture, a recording event sink, repository fixtures
written to ``tmp_path`` and a scriptable graph cache.
"""

from __future__ import annotations

import importlib
import sys
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
import structlog
import yaml
from click.testing import CliRunner

from pure_compiled.events import PipelineEvent, PipelineLog, Severity
from pure_compiled.graph.cache import CacheState
from pure_compiled.graph.graph import Graph
from pure_compiled.repositories.discovery import RepositoryDiscovery
from pure_compiled.repositories.models import RepositorySet

REPO_A_SOURCES = {
    "model/person.pure.yaml": {
        "package": "demo::a",
        "elements": [
            {
                "kind": "class",
                "name": "Person",
                "stereotypes": ["externalizable"],
                "extends": ["meta::pure::metamodel::type::Any"],
                "properties": [
                    {"name": "name", "type": "String"},
                    {"name": "nicknames", "type": "String", "multiplicity": "*"},
                    {"name": "favourite", "type": "demo::a::Color", "multiplicity": "0..1"},
                ],
            },
            {"kind": "enumeration", "name": "Color", "values": ["RED", "GREEN"]},
        ],
    },
}

REPO_B_SOURCES = {
    "staff.pure.yaml": {
        "package": "demo::b",
        "elements": [
            {
                "kind": "class",
                "name": "Employee",
                "extends": ["demo::a::Person"],
                "properties": [{"name": "employeeId", "type": "Integer"}],
            },
        ],
    },
}

RepositoryFactory = Callable[..., Path]


class RecordingSink:
    """Event sink that keeps every event."""

    def __init__(self) -> None:
        self.events: list[PipelineEvent] = []

    def emit(self, event: PipelineEvent) -> None:
        self.events.append(event)

    @property
    def messages(self) -> list[str]:
        return [event.message for event in self.events]

    def by_severity(self, severity: Severity) -> list[PipelineEvent]:
        return [event for event in self.events if event.severity is severity]

    def index_of(self, fragment: str) -> int:
        """Index of the first message containing ``fragment``."""
        for i, message in enumerate(self.messages):
            if fragment in message:
                return i
        raise AssertionError(f"No event containing {fragment!r} in {self.messages}")


class FakeGraphCache:
    """Graph cache returning a scripted outcome and counting calls."""

    def __init__(self, *, hit: bool = False, state: CacheState | None = None) -> None:
        self.hit = hit
        self._state = state
        self.calls = 0

    @property
    def state(self) -> CacheState | None:
        return self._state

    def hydrate(self, graph: Graph) -> bool:
        self.calls += 1
        return self.hit


@pytest.fixture(autouse=True)
def configure_structlog_for_tests() -> None:
    """Configure structlog to output to stdout for test capture."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        # No fixed file: each new logger writes to the current sys.stdout
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def pipeline_log(sink: RecordingSink) -> PipelineLog:
    return PipelineLog(sink)


@pytest.fixture
def make_repository(tmp_path: Path) -> RepositoryFactory:
    """Return a factory writing a repository under ``tmp_path/repos``.

    The factory takes a name, its dependencies and a mapping of relative
    source path to YAML content (a dict, or raw text), and returns the
    repository directory.
    """

    def factory(
        name: str,
        dependencies: list[str] | None = None,
        sources: dict[str, object] | None = None,
    ) -> Path:
        root = tmp_path / "repos" / name
        root.mkdir(parents=True, exist_ok=True)
        definition = {"name": name, "dependencies": dependencies or []}
        (root / "definition.yaml").write_text(yaml.safe_dump(definition))
        for relative, content in (sources or {}).items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            text = content if isinstance(content, str) else yaml.safe_dump(content)
            path.write_text(text)
        return root

    return factory


@pytest.fixture
def repo_a(make_repository: RepositoryFactory) -> Path:
    return make_repository("repo-a", ["platform"], REPO_A_SOURCES)


@pytest.fixture
def repo_b(make_repository: RepositoryFactory, repo_a: Path) -> Path:
    return make_repository("repo-b", ["repo-a"], REPO_B_SOURCES)


@pytest.fixture
def discovery() -> RepositoryDiscovery:
    """Discovery limited to the bundled platform and explicit extras."""
    return RepositoryDiscovery(include_entry_points=False)


@pytest.fixture
def demo_repositories(
    discovery: RepositoryDiscovery, repo_a: Path, repo_b: Path
) -> RepositorySet:
    """platform, repo-a and repo-b."""
    return discovery.discover([str(repo_a), str(repo_b)])


@pytest.fixture
def import_from(monkeypatch: pytest.MonkeyPatch) -> Generator[Callable[[Path], None], None, None]:
    """Put a classes directory on sys.path and forget generated modules afterwards."""
    roots: list[str] = []

    def add(classes_directory: Path) -> None:
        roots.append(str(classes_directory))
        monkeypatch.syspath_prepend(str(classes_directory))
        importlib.invalidate_caches()

    yield add

    for name, module in list(sys.modules.items()):
        origin = getattr(module, "__file__", None) or ""
        if any(origin.startswith(root) for root in roots):
            del sys.modules[name]


@pytest.fixture
def make_cache() -> Callable[..., FakeGraphCache]:
    """Return a factory for scripted graph caches."""
    return FakeGraphCache
