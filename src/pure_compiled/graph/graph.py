"""In-memory compiled graph."""

from __future__ import annotations

from collections.abc import Iterator

from pure_compiled.graph.models import ClassElement, EnumerationElement
from pure_compiled.graph.state import GraphEvent, GraphState, transition
from pure_compiled.repositories.models import RepositorySet

GraphElement = ClassElement | EnumerationElement


class GraphFrozenError(RuntimeError):
    """Raised when a graph is modified outside of loading."""


class Graph:
    """Compiled elements of a set of repositories.

    Elements may only be added while the graph is loading (from the cache or
    by rebuild). Once READY the graph is immutable.

    Attributes:
        repositories: Repositories compiled into this graph.
        state: Current initialization state.
        history: Every state the graph has been in, oldest first.
    """

    _LOADING_STATES = frozenset({GraphState.NOT_LOADED, GraphState.REBUILDING})

    def __init__(self, repositories: RepositorySet) -> None:
        self.repositories = repositories
        self.state = GraphState.NOT_LOADED
        self.history: list[GraphState] = [self.state]
        self._elements: dict[str, GraphElement] = {}

    def apply(self, event: GraphEvent) -> GraphState:
        self.state = transition(self.state, event)
        self.history.append(self.state)
        return self.state

    @property
    def is_ready(self) -> bool:
        return self.state is GraphState.READY

    def add(self, element: GraphElement) -> None:
        if self.state not in self._LOADING_STATES:
            raise GraphFrozenError(f"Cannot add elements to a graph in state '{self.state.value}'")
        if element.path in self._elements:
            raise ValueError(f"Duplicate element: {element.path}")
        self._elements[element.path] = element

    def reset(self) -> None:
        if self.state not in self._LOADING_STATES:
            raise GraphFrozenError(f"Cannot reset a graph in state '{self.state.value}'")
        self._elements.clear()

    def __contains__(self, path: object) -> bool:
        return path in self._elements

    def __len__(self) -> int:
        return len(self._elements)

    def get(self, path: str) -> GraphElement | None:
        return self._elements.get(path)

    def elements(self, repository: str | None = None) -> Iterator[GraphElement]:
        """Iterate elements sorted by path, optionally only one repository's."""
        for path in sorted(self._elements):
            element = self._elements[path]
            if repository is None or element.repository == repository:
                yield element
