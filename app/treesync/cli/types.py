"""Shared types and helpers for CLI commands.

This module provides common enums and location helpers used across
multiple CLI command modules.
"""

from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any

import typer

from treesync.locations import Location, LocationError, create_location
from treesync.utils.formatting import print_error


class OutputFormat(str, Enum):
    """Output format options for CLI commands."""

    TABLE = "table"
    JSON = "json"


def local_settings(directory: Path) -> dict[str, str]:
    """Build local location settings for a directory given on the command line."""
    return {"type": "local", "dir": str(directory)}


def open_location(settings: Mapping[str, Any], role: str) -> Location:
    """Create a location, turning construction errors into a CLI exit.

    Args:
        settings: Location settings.
        role: Role of the location in messages (e.g., "source").

    Returns:
        The configured Location.

    Raises:
        typer.Exit: If the location cannot be created or is unavailable.
    """
    try:
        location = create_location(settings)
    except LocationError as e:
        print_error(f"Invalid {role}: {e}")
        raise typer.Exit(code=1) from e

    if not location.is_available():
        print_error(f"The {role} {location.name} is not available.")
        raise typer.Exit(code=1)
    return location
