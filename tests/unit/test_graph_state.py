"""Unit tests for the graph initialization state machine."""

from __future__ import annotations

import pytest

from pure_compiled.graph.graph import Graph, GraphFrozenError
from pure_compiled.graph.models import EnumerationElement
from pure_compiled.graph.state import GraphEvent, GraphState, InvalidTransitionError, transition
from pure_compiled.repositories.models import RepositorySet


def _enumeration(path: str = "demo::Color") -> EnumerationElement:
    return EnumerationElement(path=path, repository="demo", source_id="/demo/x", values=("A",))


class TestTransition:
    """Tests for the pure transition function."""

    @pytest.mark.parametrize(
        ("state", "event", "expected"),
        [
            (GraphState.NOT_LOADED, GraphEvent.CACHE_LOADED, GraphState.CACHE_HIT),
            (GraphState.NOT_LOADED, GraphEvent.CACHE_MISSED, GraphState.CACHE_MISS),
            (GraphState.CACHE_HIT, GraphEvent.COMPLETED, GraphState.READY),
            (GraphState.CACHE_MISS, GraphEvent.REBUILD_STARTED, GraphState.REBUILDING),
            (GraphState.REBUILDING, GraphEvent.COMPLETED, GraphState.READY),
            (GraphState.REBUILDING, GraphEvent.FAILED, GraphState.FAILED),
        ],
    )
    def test_allowed_transitions(
        self, state: GraphState, event: GraphEvent, expected: GraphState
    ) -> None:
        """Allowed events move to the expected state."""
        assert transition(state, event) is expected

    @pytest.mark.parametrize(
        ("state", "event"),
        [
            (GraphState.REBUILDING, GraphEvent.CACHE_LOADED),
            (GraphState.REBUILDING, GraphEvent.REBUILD_STARTED),
            (GraphState.CACHE_MISS, GraphEvent.COMPLETED),
            (GraphState.READY, GraphEvent.FAILED),
            (GraphState.FAILED, GraphEvent.CACHE_MISSED),
        ],
    )
    def test_disallowed_transitions(self, state: GraphState, event: GraphEvent) -> None:
        """A rebuild never returns to the cache and terminal states stay put."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            transition(state, event)
        assert exc_info.value.state is state
        assert exc_info.value.event is event


class TestGraph:
    """Tests for Graph mutability rules."""

    def test_history_records_states(self) -> None:
        """Every applied event is recorded in order."""
        graph = Graph(RepositorySet([]))
        graph.apply(GraphEvent.CACHE_MISSED)
        graph.apply(GraphEvent.REBUILD_STARTED)
        graph.apply(GraphEvent.COMPLETED)

        assert graph.is_ready
        assert graph.history == [
            GraphState.NOT_LOADED,
            GraphState.CACHE_MISS,
            GraphState.REBUILDING,
            GraphState.READY,
        ]

    def test_ready_graph_is_frozen(self) -> None:
        """Elements cannot be added once the graph is READY."""
        graph = Graph(RepositorySet([]))
        graph.add(_enumeration())
        graph.apply(GraphEvent.CACHE_LOADED)
        graph.apply(GraphEvent.COMPLETED)

        with pytest.raises(GraphFrozenError):
            graph.add(_enumeration("demo::Other"))
        with pytest.raises(GraphFrozenError):
            graph.reset()
        assert "demo::Color" in graph

    def test_duplicate_element_rejected(self) -> None:
        """The same path cannot be added twice."""
        graph = Graph(RepositorySet([]))
        graph.add(_enumeration())
        with pytest.raises(ValueError, match="Duplicate element"):
            graph.add(_enumeration())

    def test_reset_clears_elements_while_rebuilding(self) -> None:
        """A rebuild starts from an empty graph."""
        graph = Graph(RepositorySet([]))
        graph.add(_enumeration())
        graph.apply(GraphEvent.CACHE_MISSED)
        graph.apply(GraphEvent.REBUILD_STARTED)
        graph.reset()
        assert len(graph) == 0
