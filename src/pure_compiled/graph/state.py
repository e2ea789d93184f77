"""Graph initialization state machine.

The transition function is pure: it maps a state and an event to the next
state and raises on anything the table does not allow. Once the graph is
rebuilding there is no edge back to the cache, so a run rebuilds at most
once.
"""

from __future__ import annotations

from enum import Enum


class GraphState(str, Enum):
    """Initialization state of a Graph."""

    NOT_LOADED = "not_loaded"
    CACHE_HIT = "cache_hit"
    CACHE_MISS = "cache_miss"
    REBUILDING = "rebuilding"
    READY = "ready"
    FAILED = "failed"


class GraphEvent(str, Enum):
    """Events driving graph initialization."""

    CACHE_LOADED = "cache_loaded"
    CACHE_MISSED = "cache_missed"
    REBUILD_STARTED = "rebuild_started"
    COMPLETED = "completed"
    FAILED = "failed"


class InvalidTransitionError(RuntimeError):
    """Raised when an event is not allowed in the current state."""

    def __init__(self, state: GraphState, event: GraphEvent) -> None:
        super().__init__(f"Event '{event.value}' is not allowed in state '{state.value}'")
        self.state = state
        self.event = event


_TRANSITIONS: dict[GraphState, dict[GraphEvent, GraphState]] = {
    GraphState.NOT_LOADED: {
        GraphEvent.CACHE_LOADED: GraphState.CACHE_HIT,
        GraphEvent.CACHE_MISSED: GraphState.CACHE_MISS,
        GraphEvent.FAILED: GraphState.FAILED,
    },
    GraphState.CACHE_HIT: {
        GraphEvent.COMPLETED: GraphState.READY,
        GraphEvent.FAILED: GraphState.FAILED,
    },
    GraphState.CACHE_MISS: {
        GraphEvent.REBUILD_STARTED: GraphState.REBUILDING,
        GraphEvent.FAILED: GraphState.FAILED,
    },
    GraphState.REBUILDING: {
        GraphEvent.COMPLETED: GraphState.READY,
        GraphEvent.FAILED: GraphState.FAILED,
    },
    GraphState.READY: {},
    GraphState.FAILED: {},
}


def transition(state: GraphState, event: GraphEvent) -> GraphState:
    """Return the state reached from ``state`` on ``event``.

    Raises:
        InvalidTransitionError: If the event is not allowed in ``state``.

    Example:
        >>> transition(GraphState.NOT_LOADED, GraphEvent.CACHE_MISSED)
        <GraphState.CACHE_MISS: 'cache_miss'>
    """
    try:
        return _TRANSITIONS[state][event]
    except KeyError:
        raise InvalidTransitionError(state, event) from None
