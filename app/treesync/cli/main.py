"""Main CLI application entry point.

Defines the Typer application and global options.
"""

from typing import Annotated

import typer

from treesync import __version__
from treesync.cli.commands import config, inventory, plan, sync
from treesync.utils.formatting import configure_logging

# Create main Typer app
app = typer.Typer(
    name="treesync",
    help="One-way synchronization of directory trees.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"treesync version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
) -> None:
    """treesync - Make a target directory tree match a source tree.

    Compares both trees, computes the minimal ordered set of changes and
    applies them to the target.
    """
    configure_logging(verbose)

    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


# Register commands
app.command(name="inventory")(inventory.inventory)
app.command(name="plan")(plan.plan)
app.command(name="sync")(sync.sync)
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
