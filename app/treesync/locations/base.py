"""Abstract base class for synchronization locations.

This module defines the Location capability contract that every
backend (local directory, remote store) implements, together with the
errors raised at construction and read time and the result type
returned by mutating operations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

from treesync.models.entry import FileEntry


class LocationError(Exception):
    """Base exception for location-related errors."""


class ConfigurationError(LocationError):
    """Raised when location settings are missing or malformed."""


class InvalidPathError(LocationError):
    """Raised when a configured absolute root does not exist."""


class PathResolutionError(LocationError):
    """Raised when a relative root cannot be resolved."""


class NotFoundError(LocationError):
    """Raised when reading a path that does not exist."""


class LocationIOError(LocationError):
    """Raised when the backend fails while reading or listing."""


@dataclass(frozen=True, slots=True)
class OperationResult:
    """Outcome of a mutating location operation.

    Backend failures are reported as data so callers can continue with
    independent operations. The result is truthy on success.

    Attributes:
        success: Whether the operation completed.
        error: Error message if the operation failed, None otherwise.
    """

    success: bool
    error: str | None = None

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(cls) -> OperationResult:
        """Create a successful result."""
        return cls(success=True)

    @classmethod
    def fail(cls, error: str) -> OperationResult:
        """Create a failed result with an error message."""
        return cls(success=False, error=error)


class Location(ABC):
    """Abstract base class for all synchronization endpoints.

    A location exposes a uniform set of capabilities over a tree of
    files addressed by root-relative POSIX paths. Mutating operations
    never raise for backend failures; they return an OperationResult.

    Example:
        >>> location = LocalLocation({"dir": "/srv/data"})
        >>> if location.is_available():
        ...     for entry in location.list_tree(["*.tmp"]):
        ...         print(entry.relative_path)
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return a human-readable identifier for this location."""

    @abstractmethod
    def list_tree(self, exclude: Sequence[str] = ()) -> list[FileEntry]:
        """List every directory and non-excluded file under the root.

        Args:
            exclude: Ordered exclude patterns ("!" prefix re-includes).

        Returns:
            FileEntry objects with root-relative POSIX paths.

        Raises:
            LocationIOError: If the tree cannot be listed completely.
        """

    @abstractmethod
    def read(self, path: str) -> bytes:
        """Read the full content of a file.

        Args:
            path: Root-relative path of the file.

        Returns:
            File content.

        Raises:
            NotFoundError: If the file does not exist.
            LocationIOError: If the backend fails to read it.
        """

    @abstractmethod
    def write(self, path: str, content: bytes, mode: int | None = None) -> OperationResult:
        """Write a file, creating intermediate directories.

        Either the full content lands or the operation reports failure.

        Args:
            path: Root-relative path of the file.
            content: Bytes to write.
            mode: Permission bits to apply, None for the backend default.
        """

    @abstractmethod
    def set_mode(self, path: str, mode: int) -> OperationResult:
        """Change the permission bits of a path."""

    @abstractmethod
    def remove(self, path: str) -> OperationResult:
        """Remove a file. Removing a missing path succeeds."""

    @abstractmethod
    def create_directory(self, path: str, mode: int | None = None) -> OperationResult:
        """Create a directory. Succeeds if it already exists."""

    @abstractmethod
    def remove_directory(self, path: str) -> OperationResult:
        """Remove a directory and everything below it."""

    @abstractmethod
    def stat_mode(self, path: str) -> int | None:
        """Return permission bits of a path, None if missing or unknown."""

    @abstractmethod
    def stat_hash(self, path: str) -> str | None:
        """Return the content checksum of a file, None if missing or unreadable."""

    @property
    def reports_modes(self) -> bool:
        """Check if this backend reports permission bits."""
        return True

    @property
    def enumerates_directories(self) -> bool:
        """Check if list_tree includes directory entries (including empty ones)."""
        return True

    def is_available(self) -> bool:
        """Check if this location can currently be used.

        Returns:
            True by default; backends with connectivity override this.
        """
        return True
