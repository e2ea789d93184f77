"""pure-compiled cache commands - Manage the graph cache.

The generation pipeline only reads the cache; ``cache build`` is the one
place a cache snapshot is written.
"""

from __future__ import annotations

from pathlib import Path

import click

from pure_compiled.config import CACHE_ENV_VAR
from pure_compiled_cli.errors import to_cli_error
from pure_compiled_cli.output import success


@click.group("cache")
def cache() -> None:
    """Manage the graph cache used to skip rebuilds."""
    pass


@cache.command("build")
@click.option(
    "-o",
    "--output",
    "output_path",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar=CACHE_ENV_VAR,
    required=True,
    help=f"Cache file to write [env: {CACHE_ENV_VAR}]",
)
@click.option(
    "-r",
    "--repository",
    "repositories",
    multiple=True,
    help="Repository to include (repeatable) [default: all]",
)
@click.option(
    "-x",
    "--exclude",
    "excluded_repositories",
    multiple=True,
    help="Repository to leave out (repeatable)",
)
@click.option(
    "-e",
    "--extra-repository",
    "extra_repositories",
    multiple=True,
    help="Extra repository as 'package:path/definition.yaml' or a filesystem path",
)
def build(
    output_path: Path,
    repositories: tuple[str, ...],
    excluded_repositories: tuple[str, ...],
    extra_repositories: tuple[str, ...],
) -> None:
    """Compile the selected repositories from source and write a cache snapshot.

    Use the same repository options as the later ``generate`` runs; a cache
    built for a different selection is ignored.

    Examples:

        pure-compiled cache build -o .pure/graph-cache.json

        PURE_COMPILED_CACHE=.pure/graph-cache.json pure-compiled cache build -r my-models
    """
    from pure_compiled import (
        PipelineLog,
        RepositoryDiscovery,
        RuntimeInitializer,
        StructlogSink,
        select_repositories,
        write_graph_cache,
    )

    try:
        all_repositories = RepositoryDiscovery().discover(extra_repositories)
        selected = select_repositories(
            all_repositories, repositories, excluded_repositories
        )
        graph = RuntimeInitializer(PipelineLog(StructlogSink())).initialize(
            all_repositories, selected
        )
        write_graph_cache(graph, output_path)
    except Exception as e:
        raise to_cli_error(e) from e

    success(f"Cached {len(graph)} elements from {len(graph.repositories)} repositories")
    success(f"Wrote {output_path}")
