"""Graph initialization: cache hydration with full-rebuild fallback.

A cache miss is expected and non-fatal: it is logged and followed by exactly
one rebuild (core sources, then system sources). A rebuild failure is fatal.
"""

from __future__ import annotations

from pure_compiled.events import PipelineLog, duration_since
from pure_compiled.graph.cache import GraphCache, NoGraphCache
from pure_compiled.graph.compiler import GraphCompiler
from pure_compiled.graph.graph import Graph
from pure_compiled.graph.state import GraphEvent
from pure_compiled.repositories.models import RepositorySet

INITIALIZATION_STEP = "graph initialization"


class RuntimeInitializer:
    """Produce a READY graph for a repository selection.

    Args:
        log: Pipeline log receiving progress events.
        cache: Cache collaborator; defaults to a cache that never hits.
        compiler: Graph compiler used for the rebuild.

    Example:
        >>> initializer = RuntimeInitializer(PipelineLog(StructlogSink()))
        >>> graph = initializer.initialize(all_repositories, ("demo",))
        >>> graph.is_ready
        True
    """

    def __init__(
        self,
        log: PipelineLog,
        *,
        cache: GraphCache | None = None,
        compiler: GraphCompiler | None = None,
    ) -> None:
        self.log = log
        self.cache = cache if cache is not None else NoGraphCache()
        self.compiler = compiler or GraphCompiler(
            on_message=lambda message: log.info(f"    {message}", step=INITIALIZATION_STEP)
        )

    def initialize(self, all_repositories: RepositorySet, selected: tuple[str, ...]) -> Graph:
        """Return a READY graph of the selection and its dependencies.

        Raises:
            RebuildCompilationError: If the rebuild fails.
        """
        start = self.log.begin_step(INITIALIZATION_STEP)
        graph = Graph(all_repositories.subset(selected))
        try:
            if self.cache.hydrate(graph):
                graph.apply(GraphEvent.CACHE_LOADED)
                self.log.info("    Initialized from cache", step=INITIALIZATION_STEP)
            else:
                graph.apply(GraphEvent.CACHE_MISSED)
                self._report_cache_miss()
                self._rebuild(graph)
            graph.apply(GraphEvent.COMPLETED)
        except Exception as e:
            graph.apply(GraphEvent.FAILED)
            self.log.error(
                f"    Error initializing graph ({duration_since(start):.9f}s)",
                error=e,
                step=INITIALIZATION_STEP,
                elapsed_seconds=duration_since(start),
            )
            raise

        self.log.complete_step(INITIALIZATION_STEP, start)
        return graph

    def _report_cache_miss(self) -> None:
        state = self.cache.state
        if state is not None and state.last_stack_trace is not None:
            self.log.warning(
                f"    Cache initialization failure: {state.last_stack_trace}",
                step=INITIALIZATION_STEP,
            )
        self.log.info(
            "    Initialization from caches failed - compiling from scratch",
            step=INITIALIZATION_STEP,
        )

    def _rebuild(self, graph: Graph) -> None:
        graph.apply(GraphEvent.REBUILD_STARTED)
        graph.reset()
        self.compiler.load_and_compile_core(graph)
        self.compiler.load_and_compile_system(graph)
