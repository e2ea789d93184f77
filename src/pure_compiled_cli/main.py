"""CLI entry point for pure-compiled.

The main group loads subcommands lazily so that ``pure-compiled --help``
does not import the pipeline.
"""

from __future__ import annotations

import importlib
from typing import Any

import click
import rich_click as rclick

from pure_compiled_cli import __version__
from pure_compiled_cli.output import set_no_color

# Configure rich-click help formatting
rclick.rich_click.TEXT_MARKUP = "markdown"
rclick.rich_click.SHOW_ARGUMENTS = True
rclick.rich_click.GROUP_ARGUMENTS_OPTIONS = True


class LazyGroup(rclick.RichGroup):
    """Click group that imports a command only when it is looked up.

    Commands are imported when invoked, not at import time, so
    'pure-compiled --help' never loads the generation pipeline.

    Attributes:
        lazy_subcommands: Command name to ``module.attribute`` path.
    """

    def __init__(
        self,
        *args: Any,
        lazy_subcommands: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize LazyGroup.

        Args:
            *args: Positional arguments for parent class.
            lazy_subcommands: Mapping of command name to ``module.attribute`` path.
                Format: {"generate": "pure_compiled_cli.commands.generate.generate"}
            **kwargs: Keyword arguments for parent class.
        """
        super().__init__(*args, **kwargs)
        self.lazy_subcommands: dict[str, str] = lazy_subcommands or {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        """Return the names of all commands, registered or lazy.

        Args:
            ctx: Click context.

        Returns:
            Sorted list of command names.
        """
        commands = set(super().list_commands(ctx))
        commands.update(self.lazy_subcommands.keys())
        return sorted(commands)

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        """Return a registered command, importing it on first use.

        Args:
            ctx: Click context.
            cmd_name: Name of the command.

        Returns:
            The command, or None if the name is unknown.
        """
        cmd = super().get_command(ctx, cmd_name)  # type: ignore[arg-type]
        if cmd is not None:
            return cmd
        if cmd_name not in self.lazy_subcommands:
            return None

        module_name, attr_name = self.lazy_subcommands[cmd_name].rsplit(".", 1)
        mod = importlib.import_module(module_name)
        return getattr(mod, attr_name)  # type: ignore[no-any-return]


LAZY_COMMANDS = {
    "generate": "pure_compiled_cli.commands.generate.generate",
    "repositories": "pure_compiled_cli.commands.repositories.repositories",
    "cache": "pure_compiled_cli.commands.cache.cache",
}


@click.command(cls=LazyGroup, lazy_subcommands=LAZY_COMMANDS)
@click.version_option(version=__version__, prog_name="pure-compiled")
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable colored output.",
    is_eager=True,
    expose_value=False,
    callback=lambda ctx, param, value: set_no_color(value) if value else None,
)
def cli() -> None:
    """Pure Compiled - ahead-of-time artifacts for model repositories.

    Initialize the model graph, write distributed metadata, generate Python
    sources and compile them into importable modules.

    **Getting Started:**

    - `pure-compiled repositories` - List discoverable repositories
    - `pure-compiled generate` - Build compiled artifacts
    - `pure-compiled cache build` - Write a graph cache for faster runs
    """
    pass


if __name__ == "__main__":
    cli()
