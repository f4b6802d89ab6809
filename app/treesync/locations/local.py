"""Local directory location.

Exposes a directory on the local filesystem through the Location
contract. Writes are atomic (temporary file + os.replace) and every
mutating operation isolates OSError into an OperationResult.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import stat
from collections.abc import Mapping, Sequence
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

from treesync.core.exclude import ExcludeFilter
from treesync.locations.base import (
    ConfigurationError,
    InvalidPathError,
    Location,
    LocationIOError,
    NotFoundError,
    OperationResult,
    PathResolutionError,
)
from treesync.models.entry import EntryKind, FileEntry
from treesync.utils.checksum import crc32_file

logger = logging.getLogger(__name__)

_ABSOLUTE_PATH_RE = re.compile(r"^(?:/|\\|[A-Za-z]:\\|[A-Za-z]:/)")
_NEW_FILE_MODE = 0o644


class LocalLocation(Location):
    """Location backed by a directory on the local filesystem.

    Args:
        settings: Mapping with a ``dir`` key holding the root directory.
            Absolute roots must exist; relative roots are resolved against
            the current working directory.

    Raises:
        ConfigurationError: If ``dir`` is missing or not a string.
        InvalidPathError: If an absolute ``dir`` is not an existing directory.
        PathResolutionError: If a relative ``dir`` cannot be resolved.
    """

    def __init__(self, settings: Mapping[str, Any]) -> None:
        directory = settings.get("dir")
        if not isinstance(directory, str) or not directory:
            msg = f'The {type(self).__name__} does not define "dir" setting.'
            raise ConfigurationError(msg)

        if self.is_absolute_path(directory):
            root = Path(directory)
            if not root.is_dir():
                msg = f'The path "{directory}" does not exist.'
                raise InvalidPathError(msg)
        else:
            root = self._to_absolute_path(directory)

        self._root = root

    @staticmethod
    def is_absolute_path(path: str) -> bool:
        """Check if a path is absolute in POSIX or Windows notation."""
        return path.startswith(os.sep) or bool(_ABSOLUTE_PATH_RE.match(path))

    @staticmethod
    def _to_absolute_path(path: str) -> Path:
        """Resolve a relative root against the current working directory.

        Raises:
            PathResolutionError: If the path does not resolve to a directory.
        """
        try:
            resolved = (Path.cwd() / path).resolve(strict=True)
        except OSError as e:
            msg = f'The absolute path for "{path}" could not be determined.'
            raise PathResolutionError(msg) from e

        if not resolved.is_dir():
            msg = f'The absolute path for "{path}" is not a directory.'
            raise PathResolutionError(msg)
        return resolved

    @property
    def name(self) -> str:
        return str(self._root)

    @property
    def root(self) -> Path:
        """Absolute root directory of this location."""
        return self._root

    def real_path(self, path: str) -> Path:
        """Map a root-relative POSIX path to a native absolute path."""
        parts = [p for p in path.split("/") if p]
        return self._root.joinpath(*parts)

    # -------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------

    def list_tree(self, exclude: Sequence[str] = ()) -> list[FileEntry]:
        """List the tree below the root.

        Raises:
            LocationIOError: If the root or any directory below it cannot
                be read.
        """
        rules = ExcludeFilter(exclude)
        entries: list[FileEntry] = []

        def _on_error(error: OSError) -> None:
            msg = f"Cannot read directory {error.filename}: {error.strerror}"
            raise LocationIOError(msg) from error

        for dirpath, dirnames, filenames in os.walk(self._root, onerror=_on_error):
            base = Path(dirpath)
            rel_base = base.relative_to(self._root).as_posix()
            prefix = "" if rel_base == "." else f"{rel_base}/"

            kept_dirs: list[str] = []
            for dirname in sorted(dirnames):
                full = base / dirname
                if full.is_symlink():
                    logger.debug("Not following directory symlink: %s", full)
                    continue
                rel = prefix + dirname
                kept_dirs.append(dirname)
                entries.append(
                    FileEntry(rel, EntryKind.DIRECTORY, mode=self._mode_of(full))
                )
            dirnames[:] = kept_dirs

            for filename in sorted(filenames):
                rel = prefix + filename
                if rules.is_excluded(rel):
                    logger.debug("Excluded: %s", rel)
                    continue
                full = base / filename
                try:
                    st = full.stat()
                except OSError as e:
                    logger.warning("Cannot stat %s: %s", full, e)
                    continue
                if not stat.S_ISREG(st.st_mode):
                    logger.debug("Skipping non-regular file: %s", full)
                    continue
                entries.append(FileEntry(rel, EntryKind.FILE, mode=st.st_mode & 0o777))

        return entries

    def read(self, path: str) -> bytes:
        target = self.real_path(path)
        try:
            return target.read_bytes()
        except FileNotFoundError as e:
            msg = f"File not found: {path}"
            raise NotFoundError(msg) from e
        except OSError as e:
            msg = f"Failed to read {path}: {e}"
            raise LocationIOError(msg) from e

    def stat_mode(self, path: str) -> int | None:
        return self._mode_of(self.real_path(path))

    def stat_hash(self, path: str) -> str | None:
        try:
            return crc32_file(self.real_path(path))
        except OSError as e:
            logger.debug("Cannot hash %s: %s", path, e)
            return None

    # -------------------------------------------------------------------
    # Mutating
    # -------------------------------------------------------------------

    def write(self, path: str, content: bytes, mode: int | None = None) -> OperationResult:
        target = self.real_path(path)

        tmp_path: Path | None = None
        try:
            if mode is None:
                existing = self._mode_of(target)
                mode = existing if existing is not None else _NEW_FILE_MODE

            target.parent.mkdir(parents=True, exist_ok=True)
            with NamedTemporaryFile(
                mode="wb",
                dir=target.parent,
                prefix=".treesync-",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_path = Path(f.name)
                f.write(content)
            os.chmod(tmp_path, mode)
            os.replace(tmp_path, target)
        except OSError as e:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            logger.debug("Write failed for %s: %s", path, e)
            return OperationResult.fail(str(e))

        return OperationResult.ok()

    def set_mode(self, path: str, mode: int) -> OperationResult:
        try:
            os.chmod(self.real_path(path), mode)
        except OSError as e:
            return OperationResult.fail(str(e))
        return OperationResult.ok()

    def remove(self, path: str) -> OperationResult:
        return self._remove_path(self.real_path(path))

    def create_directory(self, path: str, mode: int | None = None) -> OperationResult:
        target = self.real_path(path)

        if target.is_dir():
            return OperationResult.ok()

        try:
            target.mkdir(parents=True)
            if mode is not None:
                os.chmod(target, mode)
        except OSError as e:
            return OperationResult.fail(str(e))
        return OperationResult.ok()

    def remove_directory(self, path: str) -> OperationResult:
        return self._remove_path(self.real_path(path))

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------

    @staticmethod
    def _mode_of(target: Path) -> int | None:
        try:
            return target.stat().st_mode & 0o777
        except OSError:
            return None

    @staticmethod
    def _remove_path(target: Path) -> OperationResult:
        """Remove a file, symlink or directory tree.

        Missing paths are treated as already removed.
        """
        try:
            if target.is_dir() and not target.is_symlink():
                shutil.rmtree(target)
            elif target.exists() or target.is_symlink():
                target.unlink()
        except OSError as e:
            return OperationResult.fail(str(e))
        return OperationResult.ok()
