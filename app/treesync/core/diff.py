"""Diff engine for comparing two inventories.

This module provides the DiffEngine class that compares a source
inventory with a target inventory and produces the ordered ChangeSet
that makes the target match the source.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable

from treesync.models.change import (
    ChangeOp,
    ChangeSet,
    create_dir_op,
    create_file_op,
    remove_dir_op,
    remove_file_op,
    update_file_op,
    update_mode_op,
)
from treesync.models.entry import Inventory, path_depth

logger = logging.getLogger(__name__)


def _depth_key(path: str) -> tuple[int, str]:
    return (path_depth(path), path)


class DiffEngine:
    """Engine for computing the changes that reconcile two inventories.

    Changes are emitted in phase order: conflict removals, directory
    creation (parents first), file writes, file removal, directory
    removal (children first).

    Example:
        >>> engine = DiffEngine(source_inventory, target_inventory)
        >>> changes = engine.compute_changes()
        >>> if changes.is_empty:
        ...     print("Target matches source!")
    """

    def __init__(self, source: Inventory, target: Inventory) -> None:
        """Initialize the DiffEngine.

        Args:
            source: Inventory describing the desired state.
            target: Inventory describing the current target state.
        """
        self.source = source
        self.target = target

    def compute_changes(self) -> ChangeSet:
        """Compare the inventories and return the ordered change set.

        Returns:
            ChangeSet whose application makes the target match the source.
        """
        source_dirs = self.source.directory_paths
        source_files = self.source.file_paths
        target_dirs = self.target.directory_paths
        target_files = self.target.file_paths

        conflict_ops: list[ChangeOp] = []
        file_to_dir = source_dirs & target_files
        dir_to_file = source_files & target_dirs

        # A file on the target occupies the path of a source directory
        for path in sorted(file_to_dir, key=_depth_key):
            conflict_ops.append(
                remove_file_op(path, reason="File replaced by a directory", conflict=True)
            )
        # A directory on the target occupies the path of a source file
        for path in sorted(dir_to_file, key=_depth_key):
            conflict_ops.append(
                remove_dir_op(path, reason="Directory replaced by a file", conflict=True)
            )

        create_dir_ops = [
            create_dir_op(path, self.source[path].mode, reason="New directory")
            for path in sorted(source_dirs - target_dirs, key=_depth_key)
        ]

        write_ops: list[ChangeOp] = []
        for path in sorted(source_files):
            op = self._compare_file(path, occupied_by_dir=path in dir_to_file)
            if op is not None:
                write_ops.append(op)

        remove_file_ops = [
            remove_file_op(path, reason="File removed from source")
            for path in sorted(target_files - source_files - file_to_dir)
        ]

        removed_dirs = target_dirs - source_dirs - dir_to_file
        remove_dir_ops = [
            remove_dir_op(path, reason="Directory removed from source")
            for path in sorted(removed_dirs, key=_depth_key, reverse=True)
        ]

        ops = [*conflict_ops, *create_dir_ops, *write_ops, *remove_file_ops, *remove_dir_ops]
        logger.debug(
            "Computed %d change(s) between %s and %s", len(ops), self.source.name, self.target.name
        )
        return ChangeSet(ops)

    def _compare_file(self, path: str, *, occupied_by_dir: bool) -> ChangeOp | None:
        """Decide what to do with a single source file.

        Args:
            path: Path of a file entry in the source inventory.
            occupied_by_dir: True if the target holds a directory at path
                (already cleared by a conflict removal).

        Returns:
            The change to apply, or None if the target file already matches.
        """
        source_entry = self.source[path]
        loader = self._content_loader(path)

        if occupied_by_dir or path not in self.target:
            return create_file_op(path, source_entry.mode, loader, reason="New file")

        source_hash = self.source.content_hash(path)
        target_hash = self.target.content_hash(path)
        if source_hash is None or target_hash is None or source_hash != target_hash:
            return update_file_op(path, source_entry.mode, loader, reason="Content changed")

        target_mode = self.target[path].mode
        if source_entry.mode is None or target_mode is None:
            return None
        if source_entry.mode != target_mode:
            reason = f"Mode changed ({target_mode:o} -> {source_entry.mode:o})"
            return update_mode_op(path, source_entry.mode, reason=reason)

        return None

    def _content_loader(self, path: str) -> Callable[[], bytes] | None:
        reader = self.source.reader
        if reader is None:
            return None
        return functools.partial(reader, path)


def compute_changes(source: Inventory, target: Inventory) -> ChangeSet:
    """Compute the change set that makes target match source.

    Args:
        source: Inventory describing the desired state.
        target: Inventory describing the current target state.

    Returns:
        Ordered ChangeSet.
    """
    return DiffEngine(source, target).compute_changes()
