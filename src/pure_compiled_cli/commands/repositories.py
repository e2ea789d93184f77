"""pure-compiled repositories command - List discoverable repositories."""

from __future__ import annotations

import click

from pure_compiled_cli.errors import to_cli_error
from pure_compiled_cli.output import info, print_table


@click.command("repositories")
@click.option(
    "-e",
    "--extra-repository",
    "extra_repositories",
    multiple=True,
    help="Extra repository as 'package:path/definition.yaml' or a filesystem path",
)
def repositories(extra_repositories: tuple[str, ...]) -> None:
    """List repositories in dependency order.

    Examples:

        pure-compiled repositories

        pure-compiled repositories -e ./models
    """
    from pure_compiled import RepositoryDiscovery

    try:
        repository_set = RepositoryDiscovery().discover(extra_repositories)
        ordered = repository_set.dependency_order()
    except Exception as e:
        raise to_cli_error(e) from e

    rows = [
        [repo.name, ", ".join(sorted(repo.dependencies)) or "-", str(repo.root)]
        for repo in ordered
    ]
    print_table("Repositories", ["Name", "Dependencies", "Root"], rows)
    info(f"{len(rows)} repositories")
