"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from collections.abc import Callable, Mapping
from pathlib import Path

import pytest
from treesync.locations.memory import MemoryLocation

TreeWriter = Callable[[Path, Mapping[str, str | bytes]], Path]


@pytest.fixture
def write_tree() -> TreeWriter:
    """Return a helper that writes files (mode 0644) under a root directory.

    Keys ending in "/" create empty directories.
    """

    def _write(root: Path, files: Mapping[str, str | bytes]) -> Path:
        root.mkdir(parents=True, exist_ok=True)
        for rel, content in files.items():
            target = root / rel
            if rel.endswith("/"):
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            data = content.encode() if isinstance(content, str) else content
            target.write_bytes(data)
            target.chmod(0o644)
        return root

    return _write


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """Empty source directory."""
    path = tmp_path / "source"
    path.mkdir()
    return path


@pytest.fixture
def target_dir(tmp_path: Path) -> Path:
    """Empty target directory."""
    path = tmp_path / "target"
    path.mkdir()
    return path


@pytest.fixture
def memory_source() -> MemoryLocation:
    """Empty in-memory source location."""
    return MemoryLocation({"root": "source"})


@pytest.fixture
def memory_target() -> MemoryLocation:
    """Empty in-memory target location."""
    return MemoryLocation({"root": "target"})
