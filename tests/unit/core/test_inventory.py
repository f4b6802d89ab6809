"""Unit tests for the inventory builder.

Tests path normalization, exclusion, directory inference and the lazy
hashing wiring of built inventories.
"""

import shutil
from collections.abc import Sequence
from pathlib import Path

import pytest
from treesync.core.inventory import InventoryBuilder, build_inventory, normalize_path
from treesync.locations.base import Location, LocationIOError, OperationResult
from treesync.locations.local import LocalLocation
from treesync.locations.memory import MemoryLocation
from treesync.models.entry import EntryKind, FileEntry
from treesync.utils.checksum import crc32_hex


class _ListingLocation(Location):
    """Read-only location returning a fixed raw listing."""

    def __init__(self, entries: list[FileEntry], *, reports_modes: bool = True) -> None:
        self._entries = entries
        self._reports_modes = reports_modes

    @property
    def name(self) -> str:
        return "listing"

    @property
    def reports_modes(self) -> bool:
        return self._reports_modes

    def list_tree(self, exclude: Sequence[str] = ()) -> list[FileEntry]:
        return list(self._entries)

    def read(self, path: str) -> bytes:
        return b""

    def write(self, path: str, content: bytes, mode: int | None = None) -> OperationResult:
        return OperationResult.fail("read-only")

    def set_mode(self, path: str, mode: int) -> OperationResult:
        return OperationResult.fail("read-only")

    def remove(self, path: str) -> OperationResult:
        return OperationResult.fail("read-only")

    def create_directory(self, path: str, mode: int | None = None) -> OperationResult:
        return OperationResult.fail("read-only")

    def remove_directory(self, path: str) -> OperationResult:
        return OperationResult.fail("read-only")

    def stat_mode(self, path: str) -> int | None:
        return None

    def stat_hash(self, path: str) -> str | None:
        return None


class TestNormalizePath:
    """Tests for normalize_path."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("a/b.txt", "a/b.txt"),
            ("a\\b.txt", "a/b.txt"),
            ("./a//b.txt", "a/b.txt"),
            ("/a/b/", "a/b"),
            (".", ""),
        ],
    )
    def test_normalize(self, raw: str, expected: str) -> None:
        """Separators, dots and edge slashes are normalized."""
        assert normalize_path(raw) == expected

    def test_strips_root_prefix(self) -> None:
        """An absolute path under the root becomes root-relative."""
        assert normalize_path("/srv/data/a/b.txt", "/srv/data") == "a/b.txt"
        assert normalize_path("/srv/data", "/srv/data/") == ""

    def test_root_prefix_needs_component_boundary(self) -> None:
        """A sibling directory sharing a prefix is not stripped."""
        assert normalize_path("/srv/database/x", "/srv/data") == "srv/database/x"


class TestInventoryBuilder:
    """Tests for InventoryBuilder.build."""

    def test_exclude_example(self, source_dir: Path, write_tree) -> None:
        """'*.log' with '!keep.log' keeps keep.log and drops app.log."""
        write_tree(source_dir, {"app.log": "a", "keep.log": "k", "main.py": "m"})

        location = LocalLocation({"dir": str(source_dir)})

        inventory = build_inventory(location, ["*.log", "!keep.log"])

        assert "keep.log" in inventory
        assert "app.log" not in inventory
        assert "main.py" in inventory

    def test_infers_missing_directories(self) -> None:
        """Ancestors of files are added as synthetic directories."""
        location = MemoryLocation(enumerates_directories=False)
        location.write("a/b/c.txt", b"x")

        inventory = build_inventory(location)

        assert inventory.directory_paths == {"a", "a/b"}
        assert inventory["a"].synthetic is True
        assert inventory["a/b"].kind == EntryKind.DIRECTORY

    def test_enumerated_directories_not_synthetic(self) -> None:
        """Directories the backend lists keep their metadata."""
        location = MemoryLocation()
        location.create_directory("a", 0o700)
        location.write("a/f.txt", b"x")

        inventory = build_inventory(location)

        assert inventory["a"].synthetic is False
        assert inventory["a"].mode == 0o700

    def test_excluded_file_does_not_create_directory(self) -> None:
        """A directory known only through excluded files is absent."""
        location = MemoryLocation(enumerates_directories=False)
        location.write("logs/app.log", b"x")

        inventory = build_inventory(location, ["*.log"])

        assert len(inventory) == 0

    def test_normalizes_backend_paths(self) -> None:
        """Backslashes and dot components from a backend are normalized."""
        location = _ListingLocation(
            [
                FileEntry("a\\f.txt", EntryKind.FILE),
                FileEntry("./b.txt", EntryKind.FILE),
            ]
        )

        inventory = build_inventory(location)

        assert set(inventory) == {"a", "a/f.txt", "b.txt"}

    def test_duplicate_entries_keep_first(self) -> None:
        """A path listed twice keeps its first entry."""
        location = _ListingLocation(
            [
                FileEntry("x", EntryKind.FILE, content_hash="00000001"),
                FileEntry("./x", EntryKind.DIRECTORY),
            ]
        )

        inventory = build_inventory(location)

        assert inventory["x"].is_file
        assert inventory["x"].content_hash == "00000001"

    def test_backend_filter_reapplied(self) -> None:
        """Files a backend forgot to filter are still excluded."""
        location = _ListingLocation([FileEntry("debug.log", EntryKind.FILE)])

        assert len(InventoryBuilder(["*.log"]).build(location)) == 0

    def test_lazy_hash_wired_to_location(self, source_dir: Path, write_tree) -> None:
        """Local inventories resolve hashes on demand through the location."""
        write_tree(source_dir, {"f.txt": "hello"})

        inventory = build_inventory(LocalLocation({"dir": str(source_dir)}))

        assert inventory["f.txt"].content_hash is None
        assert inventory.content_hash("f.txt") == crc32_hex(b"hello")
        assert inventory.reader is not None
        assert inventory.reader("f.txt") == b"hello"

    def test_modes_dropped_when_not_reported(self) -> None:
        """Locations without mode support never contribute modes."""
        location = _ListingLocation(
            [FileEntry("f.txt", EntryKind.FILE, mode=0o600)], reports_modes=False
        )

        assert build_inventory(location)["f.txt"].mode is None

    def test_listing_failure_propagates(self, source_dir: Path) -> None:
        """A location that cannot be listed yields no inventory."""
        location = LocalLocation({"dir": str(source_dir)})
        shutil.rmtree(source_dir)

        with pytest.raises(LocationIOError):
            build_inventory(location)

    def test_exclude_property(self) -> None:
        """The builder exposes its patterns."""
        assert InventoryBuilder(["*.log"]).exclude == ["*.log"]
