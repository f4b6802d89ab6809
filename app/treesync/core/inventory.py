"""Inventory builder.

Walks a location once and produces a normalized, immutable Inventory:
root-relative POSIX paths, exclude patterns honoured for files, and
synthetic directory entries inferred for every file ancestor the
backend did not enumerate.
"""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Sequence
from dataclasses import replace
from typing import TYPE_CHECKING

from treesync.core.exclude import ExcludeFilter
from treesync.models.entry import EntryKind, FileEntry, Inventory, ancestors

if TYPE_CHECKING:
    from treesync.locations.base import Location

logger = logging.getLogger(__name__)


def normalize_path(path: str, root: str = "") -> str:
    """Normalize a listed path to the root-relative POSIX convention.

    Converts backslashes, strips the root prefix if an absolute path
    slipped through, and removes "./", duplicate and edge separators.

    Args:
        path: Path as reported by a backend.
        root: Root of the location, stripped when it prefixes path.

    Returns:
        Root-relative POSIX path ("" for the root itself).
    """
    normalized = path.replace("\\", "/")
    root = root.replace("\\", "/").rstrip("/")
    if root and (normalized == root or normalized.startswith(root + "/")):
        normalized = normalized[len(root) :]

    normalized = posixpath.normpath("/" + normalized).lstrip("/")
    return "" if normalized == "." else normalized


class InventoryBuilder:
    """Builds inventories from locations.

    Example:
        >>> builder = InventoryBuilder(["*.log", "!keep.log"])
        >>> inventory = builder.build(LocalLocation({"dir": "/srv/data"}))
        >>> sorted(inventory.file_paths)
        ['keep.log', 'src/app.py']
    """

    def __init__(self, exclude: Sequence[str] = ()) -> None:
        """Initialize the builder.

        Args:
            exclude: Ordered exclude patterns applied to file entries.
        """
        self._exclude = list(exclude)
        self._rules = ExcludeFilter(self._exclude)

    @property
    def exclude(self) -> list[str]:
        """Exclude patterns passed to every location."""
        return list(self._exclude)

    def build(self, location: Location) -> Inventory:
        """Walk a location and return its inventory.

        Modes are dropped for locations that do not report them.

        Args:
            location: Location to snapshot.

        Returns:
            Inventory wired to the location for lazy hashing and reads.

        Raises:
            LocationIOError: If the location cannot be listed.
        """
        raw_entries = location.list_tree(self._exclude)
        root = getattr(location, "root", "")
        reports_modes = location.reports_modes
        entries: dict[str, FileEntry] = {}
        excluded = 0

        for raw in raw_entries:
            path = normalize_path(raw.relative_path, str(root))
            if not path:
                continue

            if raw.is_file and self._rules.is_excluded(path):
                excluded += 1
                continue

            entry = raw if path == raw.relative_path else replace(raw, relative_path=path)
            if not reports_modes and entry.mode is not None:
                entry = replace(entry, mode=None)
            existing = entries.get(path)
            if existing is not None:
                if existing.kind != entry.kind:
                    logger.warning(
                        "Conflicting entries for %s in %s (%s vs %s), keeping the first",
                        path,
                        location.name,
                        existing.kind.value,
                        entry.kind.value,
                    )
                continue
            entries[path] = entry

        if not location.enumerates_directories:
            logger.debug(
                "%s does not list directories, inferring them from file paths", location.name
            )
        inferred = self._infer_directories(entries)

        logger.debug(
            "Built inventory for %s: %d entries (%d inferred directories, %d excluded files)",
            location.name,
            len(entries),
            inferred,
            excluded,
        )

        return Inventory(
            (entries[p] for p in sorted(entries)),
            hash_resolver=location.stat_hash,
            reader=location.read,
            name=location.name,
        )

    @staticmethod
    def _infer_directories(entries: dict[str, FileEntry]) -> int:
        """Add synthetic directory entries for unlisted file ancestors.

        Args:
            entries: Entries keyed by path, extended in place.

        Returns:
            Number of directories added.
        """
        added = 0
        for path in [p for p, e in entries.items() if e.is_file]:
            for ancestor in ancestors(path):
                if ancestor in entries:
                    continue
                entries[ancestor] = FileEntry(ancestor, EntryKind.DIRECTORY, synthetic=True)
                added += 1
        return added


def build_inventory(location: Location, exclude: Sequence[str] = ()) -> Inventory:
    """Build the inventory of a location.

    Convenience wrapper around :class:`InventoryBuilder`.

    Args:
        location: Location to snapshot.
        exclude: Ordered exclude patterns ("!" prefix re-includes).

    Returns:
        The location's Inventory.
    """
    return InventoryBuilder(exclude).build(location)
