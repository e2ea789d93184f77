"""Generation pipeline orchestration.

Runs the stages strictly in order:

    initialize graph -> (metadata) -> generate code -> (compile and write)

Any stage failure is logged with the elapsed time and re-raised as a single
PipelineError chained to the original exception.
"""

from __future__ import annotations

import time
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from pure_compiled.compilation.compiler import compile_and_write
from pure_compiled.config import GenerationConfig
from pure_compiled.errors import PipelineError
from pure_compiled.events import EventSink, PipelineLog, StructlogSink, duration_since
from pure_compiled.generation.generator import generate_code
from pure_compiled.generation.models import GenerationResult
from pure_compiled.graph.cache import FileGraphCache, GraphCache
from pure_compiled.initializer import RuntimeInitializer
from pure_compiled.plan import build_plan
from pure_compiled.repositories.discovery import RepositoryDiscovery, select_repositories
from pure_compiled.serialization.writer import serialize_metadata

PIPELINE_NAME = "compiled mode artifacts"


class GenerationSummary(BaseModel):
    """What a successful run produced.

    Attributes:
        selected_repositories: Selection in iteration order.
        metadata_units: Metadata unit directories written.
        generation: Generated sources.
        class_files: Compiled artifacts written (empty when compilation is skipped).
        duration_seconds: Total run time.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    selected_repositories: tuple[str, ...] = ()
    metadata_units: tuple[Path, ...] = ()
    generation: GenerationResult | None = None
    class_files: tuple[Path, ...] = ()
    duration_seconds: float = Field(default=0.0, ge=0)
    skipped: bool = False


def generate_compiled_artifacts(
    config: GenerationConfig,
    *,
    sink: EventSink | None = None,
    discovery: RepositoryDiscovery | None = None,
    cache: GraphCache | None = None,
) -> GenerationSummary:
    """Run the whole pipeline for ``config``.

    Args:
        config: Run configuration.
        sink: Event sink; defaults to structlog.
        discovery: Repository discovery; defaults to bundled + entry points.
        cache: Graph cache; defaults to ``config.cache_path`` when set.

    Returns:
        GenerationSummary of the run.

    Raises:
        PipelineError: If any stage fails; the cause is chained.

    Example:
        >>> summary = generate_compiled_artifacts(
        ...     GenerationConfig(
        ...         repositories=frozenset({"demo"}),
        ...         classes_directory=Path("build/classes"),
        ...         target_directory=Path("build"),
        ...     )
        ... )
    """
    log = PipelineLog(sink or StructlogSink())

    if config.skip:
        log.info(f"Skipping {PIPELINE_NAME} generation")
        return GenerationSummary(skipped=True)

    start = time.perf_counter()
    log.info(f"Generating {PIPELINE_NAME}")
    log.info(f"  Requested repositories: {sorted(config.repositories)}")
    log.info(f"  Excluded repositories: {sorted(config.excluded_repositories)}")
    log.info(f"  Extra repositories: {list(config.extra_repositories)}")
    log.info(f"  Generation type: {config.generation_type.value}")
    log.info(
        f"  Generate External API: '{config.add_external_api}' "
        f"in package '{config.external_api_package}'"
    )

    try:
        discovery = discovery or RepositoryDiscovery()
        all_repositories = discovery.discover(config.extra_repositories)
        log.info("  Found repositories: " + ", ".join(all_repositories.names))
        selected = select_repositories(
            all_repositories, config.repositories, config.excluded_repositories
        )
        log.info("  Selected repositories: " + ", ".join(selected))

        layout = config.layout
        _log_layout(log, config)

        if cache is None and config.cache_path is not None:
            cache = FileGraphCache(config.cache_path)
        graph = RuntimeInitializer(log, cache=cache).initialize(all_repositories, selected)

        plan = build_plan(config.generation_type, selected)
        metadata_units: list[Path] = []
        if layout.metadata_directory is not None:
            metadata_units = serialize_metadata(graph, plan, layout.metadata_directory, log)

        generation = generate_code(
            graph,
            plan,
            log,
            add_external_api=config.add_external_api,
            external_api_package=config.external_api_package,
            codegen_directory=layout.codegen_directory,
        )

        class_files: list[Path] = []
        if config.prevent_compilation:
            log.info("  Compilation: skipped")
        else:
            class_files = compile_and_write(generation, layout.classes_directory, log)

        total = log.complete_step(f"building {PIPELINE_NAME}", start)
    except Exception as e:
        elapsed = duration_since(start)
        log.error(f"    Error ({elapsed:.9f}s)", error=e, elapsed_seconds=elapsed)
        log.error(
            f"    FAILURE building {PIPELINE_NAME} ({elapsed:.9f}s)",
            elapsed_seconds=elapsed,
        )
        raise PipelineError(f"Error building {PIPELINE_NAME}", elapsed_seconds=elapsed) from e

    return GenerationSummary(
        selected_repositories=selected,
        metadata_units=tuple(metadata_units),
        generation=generation,
        class_files=tuple(class_files),
        duration_seconds=total,
    )


def _log_layout(log: PipelineLog, config: GenerationConfig) -> None:
    layout = config.layout
    if layout.metadata_directory is None:
        log.info(f"  Classes output directory: {layout.classes_directory}")
        log.info("  No metadata output")
    elif config.use_single_dir:
        log.info(f"  All in output directory: {layout.classes_directory}")
    else:
        log.info(f"  Classes output directory: {layout.classes_directory}")
        log.info(f"  Distributed metadata output directory: {layout.metadata_directory}")
    if layout.codegen_directory is not None:
        log.info(f"  Codegen output directory: {layout.codegen_directory}")
