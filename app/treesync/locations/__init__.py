"""Synchronization locations.

This module exports the Location contract, its backends and the
factory that builds a backend from its settings.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from treesync.locations.base import (
    ConfigurationError,
    InvalidPathError,
    Location,
    LocationError,
    LocationIOError,
    NotFoundError,
    OperationResult,
    PathResolutionError,
)
from treesync.locations.local import LocalLocation
from treesync.locations.memory import MemoryLocation


class LocationType(str, Enum):
    """Available location backends."""

    LOCAL = "local"
    MEMORY = "memory"


def create_location(settings: Mapping[str, Any]) -> Location:
    """Create a location from its settings.

    The backend is selected by the ``type`` key (default "local"); the
    remaining keys are passed to the backend.

    Args:
        settings: Location settings (e.g., {"type": "local", "dir": "/data"}).

    Returns:
        A configured Location.

    Raises:
        ConfigurationError: If the type is unknown or settings are invalid.
        InvalidPathError: If a local root does not exist.
        PathResolutionError: If a relative local root cannot be resolved.
    """
    raw_type = settings.get("type", LocationType.LOCAL.value)
    try:
        location_type = LocationType(raw_type)
    except ValueError as e:
        msg = f"Unknown location type: {raw_type!r}"
        raise ConfigurationError(msg) from e

    if location_type == LocationType.MEMORY:
        return MemoryLocation(settings)
    return LocalLocation(settings)


__all__ = [
    "ConfigurationError",
    "InvalidPathError",
    "LocalLocation",
    "Location",
    "LocationError",
    "LocationIOError",
    "LocationType",
    "MemoryLocation",
    "NotFoundError",
    "OperationResult",
    "PathResolutionError",
    "create_location",
]
