"""Plan command implementation.

Compares a source directory with a target directory and shows the
changes a sync would apply, without touching either side.
"""

import json
from pathlib import Path
from typing import Annotated

import typer

from treesync.cli.display import create_changes_table, print_changes_summary
from treesync.cli.types import OutputFormat, local_settings, open_location
from treesync.core.sync import plan as plan_changes
from treesync.locations import LocationError
from treesync.utils.formatting import console, print_error, print_success


def plan(
    ctx: typer.Context,
    source: Annotated[
        Path,
        typer.Argument(help="Source directory (desired state)."),
    ],
    target: Annotated[
        Path,
        typer.Argument(help="Target directory to reconcile."),
    ],
    exclude: Annotated[
        list[str] | None,
        typer.Option(
            "--exclude",
            "-e",
            help="Exclude pattern (repeatable, '!' re-includes).",
        ),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
) -> None:
    """Show the changes that would make TARGET match SOURCE.

    Examples:
        treesync plan ./docs /mnt/backup/docs
        treesync plan ./docs /mnt/backup/docs --format json
    """
    source_location = open_location(local_settings(source), "source")
    target_location = open_location(local_settings(target), "target")

    try:
        changes = plan_changes(source_location, target_location, exclude or [])
    except LocationError as e:
        print_error(f"Failed to list locations: {e}")
        raise typer.Exit(code=1) from e

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps(changes.to_dict()))
        return

    if changes.is_empty:
        print_success("Target is in sync with source.")
        return

    quiet = bool(ctx.obj and ctx.obj.get("quiet"))
    if not quiet:
        console.print(create_changes_table(changes))
    print_changes_summary(changes)
