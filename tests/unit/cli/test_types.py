"""Unit tests for shared CLI helpers."""

from pathlib import Path

import pytest
import typer
from treesync.cli.types import local_settings, open_location
from treesync.locations import LocalLocation, MemoryLocation


class TestOpenLocation:
    """Tests for open_location."""

    def test_opens_local_directory(self, source_dir: Path) -> None:
        """Command-line directories become local locations."""
        location = open_location(local_settings(source_dir), "source")

        assert isinstance(location, LocalLocation)
        assert location.root == source_dir

    def test_invalid_settings_exit(self, tmp_path: Path) -> None:
        """Construction errors end the command with code 1."""
        with pytest.raises(typer.Exit) as exc_info:
            open_location(local_settings(tmp_path / "missing"), "source")

        assert exc_info.value.exit_code == 1

    def test_unavailable_location_exit(self) -> None:
        """A location that reports itself unavailable is not used."""
        with pytest.raises(typer.Exit) as exc_info:
            open_location({"type": "memory", "root": "offline", "available": False}, "target")

        assert exc_info.value.exit_code == 1

    def test_available_memory_location(self) -> None:
        """Reachable backends are returned as created."""
        location = open_location({"type": "memory", "root": "online"}, "target")

        assert isinstance(location, MemoryLocation)
        assert location.is_available()
