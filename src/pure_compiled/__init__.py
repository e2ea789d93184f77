"""pure-compiled: ahead-of-time artifacts for a compiled model graph.

This package provides:
- RuntimeInitializer: Cache-or-rebuild graph initialization
- serialize_metadata: Monolithic or modular distributed binary metadata
- CodeGenerator: Python source generation from the graph
- compile_and_write: Compilation of generated sources into importable modules
- generate_compiled_artifacts: The whole pipeline in one call
"""

from __future__ import annotations

__version__ = "0.1.0"

# Pipeline stages
from pure_compiled.compilation import PythonCompiler, compile_and_write

# Configuration
from pure_compiled.config import CACHE_ENV_VAR, GenerationConfig, GenerationType, OutputLayout

# Error types
from pure_compiled.errors import (
    CodeCompilationError,
    MetadataSerializationError,
    PipelineError,
    PureCompiledError,
    RebuildCompilationError,
    RepositoryDefinitionError,
    UnknownRepositoryError,
)

# Events
from pure_compiled.events import EventSink, PipelineEvent, PipelineLog, Severity, StructlogSink
from pure_compiled.generation import CodeGenerator, GenerationResult
from pure_compiled.graph import FileGraphCache, Graph, GraphState, write_graph_cache
from pure_compiled.initializer import RuntimeInitializer
from pure_compiled.orchestrator import GenerationSummary, generate_compiled_artifacts
from pure_compiled.plan import GenerationPlan, GenerationUnit, build_plan
from pure_compiled.repositories import RepositoryDiscovery, RepositorySet, select_repositories
from pure_compiled.serialization import read_unit, serialize_metadata

__all__ = [
    "__version__",
    # Pipeline
    "generate_compiled_artifacts",
    "GenerationSummary",
    "RuntimeInitializer",
    "serialize_metadata",
    "read_unit",
    "CodeGenerator",
    "GenerationResult",
    "PythonCompiler",
    "compile_and_write",
    "GenerationPlan",
    "GenerationUnit",
    "build_plan",
    # Graph
    "Graph",
    "GraphState",
    "FileGraphCache",
    "write_graph_cache",
    # Repositories
    "RepositoryDiscovery",
    "RepositorySet",
    "select_repositories",
    # Configuration
    "CACHE_ENV_VAR",
    "GenerationConfig",
    "GenerationType",
    "OutputLayout",
    # Events
    "EventSink",
    "PipelineEvent",
    "PipelineLog",
    "Severity",
    "StructlogSink",
    # Errors
    "PureCompiledError",
    "UnknownRepositoryError",
    "RepositoryDefinitionError",
    "RebuildCompilationError",
    "MetadataSerializationError",
    "CodeCompilationError",
    "PipelineError",
]
