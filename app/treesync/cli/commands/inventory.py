"""Inventory command implementation.

Lists the entries of a directory as the synchronization engine sees
them: normalized paths, inferred directories and exclusions applied.
"""

import json
from pathlib import Path
from typing import Annotated

import typer

from treesync.cli.display import create_inventory_table
from treesync.cli.types import OutputFormat, local_settings, open_location
from treesync.core.inventory import build_inventory
from treesync.locations import LocationError
from treesync.utils.formatting import console, print_error, print_info


def inventory(
    directory: Annotated[
        Path,
        typer.Argument(help="Directory to list."),
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
    """List the inventory of a directory.

    Examples:
        treesync inventory ./docs
        treesync inventory ./docs -e '*.log' -e '!keep.log'
        treesync inventory ./docs --format json
    """
    location = open_location(local_settings(directory), "directory")
    try:
        result = build_inventory(location, exclude or [])
    except LocationError as e:
        print_error(f"Failed to list {location.name}: {e}")
        raise typer.Exit(code=1) from e

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps(result.to_dict()))
        return

    if not result:
        print_info(f"{location.name} is empty.")
        return

    console.print(create_inventory_table(result))
    console.print(
        f"\n[dim]{len(result.file_paths)} file(s), "
        f"{len(result.directory_paths)} directory(ies)[/dim]"
    )
