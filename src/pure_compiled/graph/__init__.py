"""Compiled graph: elements, state machine, compiler and cache."""

from __future__ import annotations

from pure_compiled.graph.cache import (
    CacheState,
    FileGraphCache,
    GraphCache,
    NoGraphCache,
    write_graph_cache,
)
from pure_compiled.graph.compiler import GraphCompiler
from pure_compiled.graph.graph import Graph, GraphElement, GraphFrozenError
from pure_compiled.graph.models import (
    CLASS_CLASSIFIER,
    ENUMERATION_CLASSIFIER,
    EXTERNALIZABLE_STEREOTYPE,
    ClassElement,
    EnumerationElement,
    PropertyDefinition,
)
from pure_compiled.graph.state import GraphEvent, GraphState, InvalidTransitionError, transition

__all__: list[str] = [
    "CLASS_CLASSIFIER",
    "ENUMERATION_CLASSIFIER",
    "EXTERNALIZABLE_STEREOTYPE",
    "CacheState",
    "ClassElement",
    "EnumerationElement",
    "FileGraphCache",
    "Graph",
    "GraphCache",
    "GraphCompiler",
    "GraphElement",
    "GraphEvent",
    "GraphFrozenError",
    "GraphState",
    "InvalidTransitionError",
    "NoGraphCache",
    "PropertyDefinition",
    "transition",
    "write_graph_cache",
]
