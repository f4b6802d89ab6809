"""In-process location modelling a remote object store.

Holds file contents and modes in dictionaries. It can be configured to
behave like stores that neither report permission bits nor list empty
directories, and to fail on selected paths.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from treesync.core.exclude import ExcludeFilter
from treesync.locations.base import (
    ConfigurationError,
    Location,
    LocationIOError,
    NotFoundError,
    OperationResult,
)
from treesync.models.entry import EntryKind, FileEntry, ancestors, is_nested_under
from treesync.utils.checksum import crc32_hex

logger = logging.getLogger(__name__)

_DEFAULT_FILE_MODE = 0o644
_DEFAULT_DIR_MODE = 0o755


class MemoryLocation(Location):
    """Location storing its tree in memory.

    Args:
        settings: Optional mapping; ``root`` names the store (string).
        reports_modes: If False, modes are neither stored nor reported.
        enumerates_directories: If False, list_tree only lists files and
            directories must be inferred from file paths.
        fail_on: Paths for which every operation fails (simulated backend
            errors).
        available: If False, the store reports itself as unreachable.

    Raises:
        ConfigurationError: If ``root`` is present but not a string.
    """

    def __init__(
        self,
        settings: Mapping[str, Any] | None = None,
        *,
        reports_modes: bool = True,
        enumerates_directories: bool = True,
        fail_on: Iterable[str] = (),
        available: bool = True,
    ) -> None:
        settings = settings or {}
        root = settings.get("root", "memory")
        if not isinstance(root, str) or not root:
            msg = f'The {type(self).__name__} "root" setting must be a non-empty string.'
            raise ConfigurationError(msg)

        self._root = root
        self._reports_modes = bool(settings.get("reports_modes", reports_modes))
        self._enumerates_directories = bool(
            settings.get("enumerates_directories", enumerates_directories)
        )
        self._available = bool(settings.get("available", available))
        self._fail_on: set[str] = set(fail_on)
        self._files: dict[str, bytes] = {}
        self._modes: dict[str, int] = {}
        self._dirs: dict[str, int] = {}
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return f"memory://{self._root}"

    @property
    def reports_modes(self) -> bool:
        return self._reports_modes

    @property
    def enumerates_directories(self) -> bool:
        return self._enumerates_directories

    def is_available(self) -> bool:
        return self._available

    def fail_on(self, *paths: str) -> None:
        """Make every operation on the given paths fail from now on."""
        self._fail_on.update(paths)

    @property
    def files(self) -> dict[str, bytes]:
        """Copy of stored file contents keyed by path."""
        with self._lock:
            return dict(self._files)

    @property
    def directory_paths(self) -> set[str]:
        """Paths of stored directories."""
        with self._lock:
            return set(self._dirs)

    # -------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------

    def list_tree(self, exclude: Sequence[str] = ()) -> list[FileEntry]:
        rules = ExcludeFilter(exclude)
        entries: list[FileEntry] = []

        with self._lock:
            if self._enumerates_directories:
                for path in sorted(self._dirs):
                    entries.append(
                        FileEntry(path, EntryKind.DIRECTORY, mode=self._reported(self._dirs[path]))
                    )
            for path in sorted(self._files):
                if rules.is_excluded(path):
                    continue
                entries.append(
                    FileEntry(
                        path,
                        EntryKind.FILE,
                        content_hash=crc32_hex(self._files[path]),
                        mode=self._reported(self._modes.get(path)),
                    )
                )

        return entries

    def read(self, path: str) -> bytes:
        if path in self._fail_on:
            msg = f"Simulated read failure: {path}"
            raise LocationIOError(msg)
        with self._lock:
            if path not in self._files:
                msg = f"File not found: {path}"
                raise NotFoundError(msg)
            return self._files[path]

    def stat_mode(self, path: str) -> int | None:
        with self._lock:
            if path in self._files:
                return self._reported(self._modes.get(path))
            if path in self._dirs:
                return self._reported(self._dirs[path])
        return None

    def stat_hash(self, path: str) -> str | None:
        if path in self._fail_on:
            return None
        with self._lock:
            content = self._files.get(path)
        return crc32_hex(content) if content is not None else None

    # -------------------------------------------------------------------
    # Mutating
    # -------------------------------------------------------------------

    def write(self, path: str, content: bytes, mode: int | None = None) -> OperationResult:
        if path in self._fail_on:
            return OperationResult.fail(f"Simulated write failure: {path}")

        with self._lock:
            if path in self._dirs:
                return OperationResult.fail(f"Is a directory: {path}")
            blocker = self._file_ancestor(path)
            if blocker is not None:
                return OperationResult.fail(f"Not a directory: {blocker}")

            self._add_ancestors(path)
            existing_mode = self._modes.get(path, _DEFAULT_FILE_MODE)
            self._files[path] = bytes(content)
            self._modes[path] = mode if mode is not None else existing_mode

        return OperationResult.ok()

    def set_mode(self, path: str, mode: int) -> OperationResult:
        if path in self._fail_on:
            return OperationResult.fail(f"Simulated chmod failure: {path}")

        with self._lock:
            if path in self._files:
                self._modes[path] = mode
            elif path in self._dirs:
                self._dirs[path] = mode
            else:
                return OperationResult.fail(f"No such file or directory: {path}")

        return OperationResult.ok()

    def remove(self, path: str) -> OperationResult:
        if path in self._fail_on:
            return OperationResult.fail(f"Simulated remove failure: {path}")

        with self._lock:
            if path in self._dirs:
                self._drop_tree(path)
            else:
                self._files.pop(path, None)
                self._modes.pop(path, None)

        return OperationResult.ok()

    def create_directory(self, path: str, mode: int | None = None) -> OperationResult:
        if path in self._fail_on:
            return OperationResult.fail(f"Simulated mkdir failure: {path}")

        with self._lock:
            if path in self._dirs:
                return OperationResult.ok()
            if path in self._files:
                return OperationResult.fail(f"File exists: {path}")
            blocker = self._file_ancestor(path)
            if blocker is not None:
                return OperationResult.fail(f"Not a directory: {blocker}")

            self._add_ancestors(path)
            self._dirs[path] = mode if mode is not None else _DEFAULT_DIR_MODE

        return OperationResult.ok()

    def remove_directory(self, path: str) -> OperationResult:
        if path in self._fail_on:
            return OperationResult.fail(f"Simulated rmdir failure: {path}")

        with self._lock:
            self._drop_tree(path)
            self._files.pop(path, None)
            self._modes.pop(path, None)

        return OperationResult.ok()

    # -------------------------------------------------------------------
    # Helpers (callers hold the lock)
    # -------------------------------------------------------------------

    def _reported(self, mode: int | None) -> int | None:
        return mode if self._reports_modes else None

    def _file_ancestor(self, path: str) -> str | None:
        for ancestor in ancestors(path):
            if ancestor in self._files:
                return ancestor
        return None

    def _add_ancestors(self, path: str) -> None:
        for ancestor in ancestors(path):
            self._dirs.setdefault(ancestor, _DEFAULT_DIR_MODE)

    def _drop_tree(self, path: str) -> None:
        self._dirs.pop(path, None)
        for nested in [p for p in self._dirs if is_nested_under(p, path)]:
            del self._dirs[nested]
        for nested in [p for p in self._files if is_nested_under(p, path)]:
            del self._files[nested]
            self._modes.pop(nested, None)
