"""pure-compiled generate command - Build compiled artifacts."""

from __future__ import annotations

from pathlib import Path

import click

from pure_compiled.config import CACHE_ENV_VAR
from pure_compiled_cli.errors import to_cli_error
from pure_compiled_cli.output import info, success, warning


@click.command("generate")
@click.option(
    "-r",
    "--repository",
    "repositories",
    multiple=True,
    help="Repository to generate (repeatable) [default: all]",
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
@click.option(
    "-t",
    "--generation-type",
    type=click.Choice(["monolithic", "modular"]),
    default="modular",
    show_default=True,
    help="Single output unit, or one unit per repository",
)
@click.option(
    "--classes-dir",
    "classes_directory",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("build/classes"),
    show_default=True,
    help="Directory receiving compiled modules",
)
@click.option(
    "--target-dir",
    "target_directory",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("build"),
    show_default=True,
    help="Directory receiving metadata and generated sources",
)
@click.option(
    "--cache",
    "cache_path",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar=CACHE_ENV_VAR,
    default=None,
    help=f"Graph cache to initialize from [env: {CACHE_ENV_VAR}]",
)
@click.option("--skip", is_flag=True, default=False, help="Do nothing")
@click.option(
    "--external-api-package",
    default=None,
    help="Expose externalizable groups under this package",
)
@click.option(
    "--no-metadata",
    "no_metadata",
    is_flag=True,
    default=False,
    help="Do not write distributed metadata",
)
@click.option(
    "--single-dir",
    "use_single_dir",
    is_flag=True,
    default=False,
    help="Write metadata next to the compiled modules",
)
@click.option(
    "--generate-sources",
    is_flag=True,
    default=False,
    help="Also write generated Python sources",
)
@click.option(
    "--test",
    "generate_test",
    is_flag=True,
    default=False,
    help="Write generated sources to the test sources directory",
)
@click.option(
    "--no-compile",
    "prevent_compilation",
    is_flag=True,
    default=False,
    help="Generate sources but do not compile them",
)
def generate(
    repositories: tuple[str, ...],
    excluded_repositories: tuple[str, ...],
    extra_repositories: tuple[str, ...],
    generation_type: str,
    classes_directory: Path,
    target_directory: Path,
    cache_path: Path | None,
    skip: bool,
    external_api_package: str | None,
    no_metadata: bool,
    use_single_dir: bool,
    generate_sources: bool,
    generate_test: bool,
    prevent_compilation: bool,
) -> None:
    """Build distributed metadata, generated sources and compiled modules.

    Examples:

        pure-compiled generate

        pure-compiled generate -r my-models -t monolithic

        pure-compiled generate -e ./models --external-api-package org.example.api
    """
    # Import here to keep --help fast
    from pure_compiled import GenerationConfig, GenerationType, generate_compiled_artifacts

    if generate_test and not generate_sources:
        warning("--test has no effect without --generate-sources")

    try:
        config = GenerationConfig(
            repositories=frozenset(repositories),
            excluded_repositories=frozenset(excluded_repositories),
            extra_repositories=extra_repositories,
            generation_type=GenerationType(generation_type),
            skip=skip,
            add_external_api=external_api_package is not None,
            external_api_package=external_api_package or "",
            generate_metadata=not no_metadata,
            use_single_dir=use_single_dir,
            generate_sources=generate_sources,
            generate_test=generate_test,
            prevent_compilation=prevent_compilation,
            classes_directory=classes_directory,
            target_directory=target_directory,
            cache_path=cache_path,
        )
        summary = generate_compiled_artifacts(config)
    except Exception as e:
        raise to_cli_error(e) from e

    if summary.skipped:
        info("Skipped")
        return

    info(f"Repositories: {', '.join(summary.selected_repositories)}")
    for unit in summary.metadata_units:
        info(f"  metadata: {unit}")
    if summary.generation is not None:
        info(f"  generated modules: {summary.generation.module_count}")
    if prevent_compilation:
        info("  compilation: skipped")
    else:
        info(f"  compiled modules: {len(summary.class_files)} in {classes_directory}")
    success(f"Built compiled artifacts in {summary.duration_seconds:.3f}s")
