"""Inventory models for file tree snapshots.

This module defines the data structures describing one file or
directory under a location root, and the immutable inventory that
maps root-relative paths to those entries.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

MAX_MODE = 0o777


class EntryKind(str, Enum):
    """Kind of an inventory entry.

    Attributes:
        FILE: Regular file with content.
        DIRECTORY: Directory (explicitly listed or inferred from file paths).
    """

    FILE = "file"
    DIRECTORY = "directory"


def parent_path(path: str) -> str | None:
    """Return the parent of a root-relative POSIX path.

    Args:
        path: Root-relative path (e.g., "a/b/c.txt").

    Returns:
        Parent path ("a/b"), or None for entries directly under the root.
    """
    head, sep, _tail = path.rpartition("/")
    return head if sep else None


def path_depth(path: str) -> int:
    """Return the number of components in a root-relative path."""
    return path.count("/") + 1


def is_nested_under(path: str, ancestor: str) -> bool:
    """Check whether a path lies strictly below an ancestor directory.

    Args:
        path: Path to check.
        ancestor: Candidate ancestor directory path.

    Returns:
        True if path is a descendant of ancestor.
    """
    return path.startswith(ancestor + "/")


def ancestors(path: str) -> Iterator[str]:
    """Yield every ancestor directory of a path, nearest first."""
    parent = parent_path(path)
    while parent is not None:
        yield parent
        parent = parent_path(parent)


@dataclass(frozen=True, slots=True)
class FileEntry:
    """One file or directory under a location root.

    Attributes:
        relative_path: POSIX-style path relative to the root, unique key
            within an inventory.
        kind: Whether this entry is a file or a directory.
        content_hash: CRC32 checksum of the content (files only). None
            until resolved when the backend computes hashes lazily.
        mode: Permission bits (0 to 0o777), None if the backend cannot
            report them.
        synthetic: True for directories inferred from file paths rather
            than enumerated by the backend.
    """

    relative_path: str
    kind: EntryKind
    content_hash: str | None = None
    mode: int | None = None
    synthetic: bool = False

    def __post_init__(self) -> None:
        """Validate entry data after initialization."""
        if not self.relative_path:
            msg = "Entry path cannot be empty"
            raise ValueError(msg)
        if self.relative_path.startswith("/") or self.relative_path.endswith("/"):
            msg = f"Entry path must be root-relative without edge slashes: {self.relative_path!r}"
            raise ValueError(msg)
        if self.kind == EntryKind.DIRECTORY and self.content_hash is not None:
            msg = f"Directory entry cannot carry a content hash: {self.relative_path}"
            raise ValueError(msg)
        if self.mode is not None and not (0 <= self.mode <= MAX_MODE):
            msg = f"Mode must be between 0 and 0o777, got {oct(self.mode)}"
            raise ValueError(msg)

    @property
    def is_file(self) -> bool:
        """Check if this entry is a file."""
        return self.kind == EntryKind.FILE

    @property
    def is_dir(self) -> bool:
        """Check if this entry is a directory."""
        return self.kind == EntryKind.DIRECTORY

    @property
    def depth(self) -> int:
        """Number of path components (1 for entries directly under the root)."""
        return path_depth(self.relative_path)

    @property
    def parent(self) -> str | None:
        """Parent directory path, None at root level."""
        return parent_path(self.relative_path)

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, object] = {
            "path": self.relative_path,
            "kind": self.kind.value,
        }
        if self.content_hash is not None:
            result["hash"] = self.content_hash
        if self.mode is not None:
            result["mode"] = f"{self.mode:o}"
        if self.synthetic:
            result["synthetic"] = True
        return result


class Inventory(Mapping[str, FileEntry]):
    """Immutable snapshot of one location's tree.

    Maps root-relative paths to FileEntry objects. Content hashes of file
    entries may be resolved lazily through ``hash_resolver``; resolved
    values are memoised for the lifetime of the snapshot.

    Example:
        >>> inventory = Inventory([FileEntry("a", EntryKind.DIRECTORY)])
        >>> "a" in inventory
        True
    """

    def __init__(
        self,
        entries: Iterable[FileEntry] = (),
        *,
        hash_resolver: Callable[[str], str | None] | None = None,
        reader: Callable[[str], bytes] | None = None,
        name: str = "",
    ) -> None:
        """Initialize the inventory.

        Args:
            entries: Entries making up the snapshot. Paths must be unique.
            hash_resolver: Callable returning a file's hash on demand.
            reader: Callable returning a file's content on demand.
            name: Human-readable name of the originating location.

        Raises:
            ValueError: If two entries share the same path.
        """
        self._entries: dict[str, FileEntry] = {}
        for entry in entries:
            if entry.relative_path in self._entries:
                msg = f"Duplicate inventory path: {entry.relative_path}"
                raise ValueError(msg)
            self._entries[entry.relative_path] = entry
        self._hash_resolver = hash_resolver
        self._reader = reader
        self._hash_cache: dict[str, str | None] = {}
        self.name = name

    def __getitem__(self, path: str) -> FileEntry:
        return self._entries[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Inventory(name={self.name!r}, entries={len(self._entries)})"

    @property
    def reader(self) -> Callable[[str], bytes] | None:
        """Content reader of the originating location, if any."""
        return self._reader

    @property
    def file_paths(self) -> set[str]:
        """Paths of all file entries."""
        return {p for p, e in self._entries.items() if e.is_file}

    @property
    def directory_paths(self) -> set[str]:
        """Paths of all directory entries."""
        return {p for p, e in self._entries.items() if e.is_dir}

    def files(self) -> list[FileEntry]:
        """Return file entries sorted by path."""
        return [self._entries[p] for p in sorted(self.file_paths)]

    def directories(self) -> list[FileEntry]:
        """Return directory entries sorted by path."""
        return [self._entries[p] for p in sorted(self.directory_paths)]

    def content_hash(self, path: str) -> str | None:
        """Return the content hash of a file entry, resolving it if needed.

        Args:
            path: Root-relative path of a file entry.

        Returns:
            The hash, or None if it is unknown and cannot be resolved.

        Raises:
            KeyError: If the path is not in the inventory.
        """
        entry = self._entries[path]
        if entry.content_hash is not None:
            return entry.content_hash
        if path in self._hash_cache:
            return self._hash_cache[path]
        if self._hash_resolver is None:
            return None

        resolved = self._hash_resolver(path)
        logger.debug("Resolved hash for %s: %s", path, resolved)
        self._hash_cache[path] = resolved
        return resolved

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "summary": {
                "files": len(self.file_paths),
                "directories": len(self.directory_paths),
            },
            "entries": [self._entries[p].to_dict() for p in sorted(self._entries)],
        }

