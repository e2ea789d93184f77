"""Unit tests for cache-or-rebuild graph initialization."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

import pytest

from pure_compiled.errors import RebuildCompilationError
from pure_compiled.events import PipelineLog, Severity
from pure_compiled.graph import CacheState, Graph, GraphCompiler, GraphState
from pure_compiled.initializer import RuntimeInitializer
from pure_compiled.repositories import RepositorySet

if TYPE_CHECKING:
    from conftest import FakeGraphCache, RecordingSink


class CountingCompiler(GraphCompiler):
    """GraphCompiler recording the phases it runs."""

    def __init__(self, *, fail_system: bool = False) -> None:
        super().__init__()
        self.phases: list[str] = []
        self.fail_system = fail_system

    def load_and_compile_core(self, graph: Graph) -> int:
        self.phases.append("core")
        return super().load_and_compile_core(graph)

    def load_and_compile_system(self, graph: Graph) -> int:
        self.phases.append("system")
        if self.fail_system:
            raise RebuildCompilationError("boom", source_id="/repo-a/model/person.pure.yaml")
        return super().load_and_compile_system(graph)


class TestRuntimeInitializer:
    """Tests for RuntimeInitializer."""

    def test_cache_hit_skips_rebuild(
        self,
        pipeline_log: PipelineLog,
        sink: RecordingSink,
        demo_repositories: RepositorySet,
        make_cache: Callable[..., FakeGraphCache],
    ) -> None:
        """A hydrated graph is READY without compiling anything."""
        cache = make_cache(hit=True)
        compiler = CountingCompiler()

        graph = RuntimeInitializer(pipeline_log, cache=cache, compiler=compiler).initialize(
            demo_repositories, ("repo-a",)
        )

        assert graph.state is GraphState.READY
        assert graph.history == [GraphState.NOT_LOADED, GraphState.CACHE_HIT, GraphState.READY]
        assert compiler.phases == []
        assert "    Initialized from cache" in sink.messages

    def test_cache_miss_rebuilds_exactly_once(
        self,
        pipeline_log: PipelineLog,
        sink: RecordingSink,
        demo_repositories: RepositorySet,
        make_cache: Callable[..., FakeGraphCache],
    ) -> None:
        """A miss is logged, then core and system are compiled once each."""
        cache = make_cache(hit=False, state=CacheState(reason="stale"))
        compiler = CountingCompiler()

        graph = RuntimeInitializer(pipeline_log, cache=cache, compiler=compiler).initialize(
            demo_repositories, ("repo-b",)
        )

        assert cache.calls == 1
        assert compiler.phases == ["core", "system"]
        assert graph.history == [
            GraphState.NOT_LOADED,
            GraphState.CACHE_MISS,
            GraphState.REBUILDING,
            GraphState.READY,
        ]
        assert "demo::b::Employee" in graph
        assert "    Initialization from caches failed - compiling from scratch" in sink.messages
        # No stack trace, so no warning
        assert sink.by_severity(Severity.WARNING) == []

    def test_cache_failure_trace_is_a_warning(
        self,
        pipeline_log: PipelineLog,
        sink: RecordingSink,
        demo_repositories: RepositorySet,
        make_cache: Callable[..., FakeGraphCache],
    ) -> None:
        """A recorded stack trace is reported as a warning before the rebuild."""
        cache = make_cache(
            hit=False,
            state=CacheState(reason="corrupt", last_stack_trace="Traceback: bad bytes"),
        )

        RuntimeInitializer(pipeline_log, cache=cache).initialize(demo_repositories, ("repo-a",))

        warnings = sink.by_severity(Severity.WARNING)
        assert len(warnings) == 1
        assert warnings[0].message == "    Cache initialization failure: Traceback: bad bytes"
        assert sink.index_of("Cache initialization failure") < sink.index_of(
            "compiling from scratch"
        )

    def test_graph_covers_selection_and_dependencies(
        self, pipeline_log: PipelineLog, demo_repositories: RepositorySet
    ) -> None:
        """Only the selection and its dependencies are compiled."""
        graph = RuntimeInitializer(pipeline_log).initialize(demo_repositories, ("repo-a",))

        assert graph.repositories.names == ("platform", "repo-a")
        assert "demo::a::Person" in graph
        assert "demo::b::Employee" not in graph

    def test_rebuild_failure_is_fatal(
        self,
        pipeline_log: PipelineLog,
        sink: RecordingSink,
        demo_repositories: RepositorySet,
        make_cache: Callable[..., FakeGraphCache],
    ) -> None:
        """A failing rebuild is logged and re-raised; the cache is not retried."""
        cache = make_cache(hit=False)
        compiler = CountingCompiler(fail_system=True)
        initializer = RuntimeInitializer(pipeline_log, cache=cache, compiler=compiler)

        with pytest.raises(RebuildCompilationError, match="boom"):
            initializer.initialize(demo_repositories, ("repo-a",))

        assert cache.calls == 1
        assert compiler.phases == ["core", "system"]
        errors = sink.by_severity(Severity.ERROR)
        assert len(errors) == 1
        assert isinstance(errors[0].error, RebuildCompilationError)
        assert errors[0].elapsed_seconds is not None

    def test_step_is_timed(
        self, pipeline_log: PipelineLog, sink: RecordingSink, demo_repositories: RepositorySet
    ) -> None:
        """Initialization emits Beginning and Finished events."""
        RuntimeInitializer(pipeline_log).initialize(demo_repositories, ("repo-a",))

        assert sink.messages[0] == "Beginning graph initialization"
        finished = sink.events[-1]
        assert finished.message.startswith("Finished graph initialization (")
        assert finished.elapsed_seconds is not None
