"""Data models for treesync.

This module exports the inventory, change and result structures used
throughout the application.
"""

from treesync.models.change import (
    ChangeOp,
    ChangePhase,
    ChangeSet,
    ChangeType,
    create_dir_op,
    create_file_op,
    remove_dir_op,
    remove_file_op,
    update_file_op,
    update_mode_op,
)
from treesync.models.entry import EntryKind, FileEntry, Inventory
from treesync.models.result import FailureKind, ResultStatus, SyncResult, SyncSummary

__all__ = [
    "ChangeOp",
    "ChangePhase",
    "ChangeSet",
    "ChangeType",
    "EntryKind",
    "FailureKind",
    "FileEntry",
    "Inventory",
    "ResultStatus",
    "SyncResult",
    "SyncSummary",
    "create_dir_op",
    "create_file_op",
    "remove_dir_op",
    "remove_file_op",
    "update_file_op",
    "update_mode_op",
]
