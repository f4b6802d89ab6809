"""Change models for tree reconciliation.

This module defines the individual reconciliation actions produced by
the diff engine and the ordered change set consumed by the executor.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum, IntEnum

from treesync.models.entry import path_depth

ContentLoader = Callable[[], bytes]


class ChangeType(str, Enum):
    """Type of reconciliation action.

    Attributes:
        CREATE_DIR: Create a directory missing on the target.
        REMOVE_DIR: Remove a directory absent from the source (recursive).
        CREATE_FILE: Write a file missing on the target.
        UPDATE_FILE: Overwrite a target file whose content differs.
        UPDATE_MODE: Change permission bits of an otherwise identical file.
        REMOVE_FILE: Remove a file absent from the source.
    """

    CREATE_DIR = "create_dir"
    REMOVE_DIR = "remove_dir"
    CREATE_FILE = "create_file"
    UPDATE_FILE = "update_file"
    UPDATE_MODE = "update_mode"
    REMOVE_FILE = "remove_file"


class ChangePhase(IntEnum):
    """Execution phase of a change, in the order phases must run.

    Attributes:
        CONFLICT: Removals clearing a path whose type changes.
        CREATE_DIRS: Directory creation, parents before children.
        WRITE_FILES: File creation, update and mode changes.
        REMOVE_FILES: File removal.
        REMOVE_DIRS: Directory removal, children before parents.
    """

    CONFLICT = 0
    CREATE_DIRS = 1
    WRITE_FILES = 2
    REMOVE_FILES = 3
    REMOVE_DIRS = 4


_DEFAULT_PHASES: dict[ChangeType, ChangePhase] = {
    ChangeType.CREATE_DIR: ChangePhase.CREATE_DIRS,
    ChangeType.CREATE_FILE: ChangePhase.WRITE_FILES,
    ChangeType.UPDATE_FILE: ChangePhase.WRITE_FILES,
    ChangeType.UPDATE_MODE: ChangePhase.WRITE_FILES,
    ChangeType.REMOVE_FILE: ChangePhase.REMOVE_FILES,
    ChangeType.REMOVE_DIR: ChangePhase.REMOVE_DIRS,
}


@dataclass(frozen=True, slots=True)
class ChangeOp:
    """A single reconciliation action against the target location.

    Produced by the diff engine and consumed exactly once by the executor.

    Attributes:
        change_type: What to do.
        path: Root-relative POSIX path the change applies to.
        mode: Permission bits to apply (create/update ops), None if unknown.
        phase: Execution phase; conflict removals run before everything else.
        reason: Human-readable explanation for the change.
        content_loader: Returns the source content for file writes.
    """

    change_type: ChangeType
    path: str
    mode: int | None = None
    phase: ChangePhase = field(default=ChangePhase.WRITE_FILES)
    reason: str | None = field(default=None, compare=False)
    content_loader: ContentLoader | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        """Validate change data after initialization."""
        if not self.path:
            msg = "Change path cannot be empty"
            raise ValueError(msg)

    @property
    def is_create(self) -> bool:
        """Check if this change creates a new path on the target."""
        return self.change_type in (ChangeType.CREATE_DIR, ChangeType.CREATE_FILE)

    @property
    def is_remove(self) -> bool:
        """Check if this change removes a path from the target."""
        return self.change_type in (ChangeType.REMOVE_DIR, ChangeType.REMOVE_FILE)

    @property
    def is_directory_op(self) -> bool:
        """Check if this change operates on a directory."""
        return self.change_type in (ChangeType.CREATE_DIR, ChangeType.REMOVE_DIR)

    @property
    def needs_content(self) -> bool:
        """Check if applying this change requires the source content."""
        return self.change_type in (ChangeType.CREATE_FILE, ChangeType.UPDATE_FILE)

    @property
    def depth(self) -> int:
        """Number of components in the change path."""
        return path_depth(self.path)

    def load_content(self) -> bytes:
        """Load the source content for a file write.

        Returns:
            The file content.

        Raises:
            ValueError: If the change carries no content loader.
        """
        if self.content_loader is None:
            msg = f"No content source for {self.change_type.value} {self.path}"
            raise ValueError(msg)
        return self.content_loader()

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, object] = {
            "type": self.change_type.value,
            "path": self.path,
            "phase": self.phase.name.lower(),
        }
        if self.mode is not None:
            result["mode"] = f"{self.mode:o}"
        if self.reason is not None:
            result["reason"] = self.reason
        return result


def _make_op(
    change_type: ChangeType,
    path: str,
    *,
    mode: int | None = None,
    reason: str | None = None,
    content_loader: ContentLoader | None = None,
    conflict: bool = False,
) -> ChangeOp:
    phase = ChangePhase.CONFLICT if conflict else _DEFAULT_PHASES[change_type]
    return ChangeOp(
        change_type=change_type,
        path=path,
        mode=mode,
        phase=phase,
        reason=reason,
        content_loader=content_loader,
    )


def create_dir_op(path: str, mode: int | None = None, reason: str | None = None) -> ChangeOp:
    """Create a CREATE_DIR change."""
    return _make_op(ChangeType.CREATE_DIR, path, mode=mode, reason=reason)


def remove_dir_op(path: str, reason: str | None = None, *, conflict: bool = False) -> ChangeOp:
    """Create a REMOVE_DIR change.

    Args:
        path: Directory to remove.
        reason: Optional explanation.
        conflict: If True, schedule in the leading conflict phase because a
            file must take the directory's place.

    Returns:
        ChangeOp configured for directory removal.
    """
    return _make_op(ChangeType.REMOVE_DIR, path, reason=reason, conflict=conflict)


def create_file_op(
    path: str,
    mode: int | None = None,
    content_loader: ContentLoader | None = None,
    reason: str | None = None,
) -> ChangeOp:
    """Create a CREATE_FILE change."""
    return _make_op(
        ChangeType.CREATE_FILE,
        path,
        mode=mode,
        reason=reason,
        content_loader=content_loader,
    )


def update_file_op(
    path: str,
    mode: int | None = None,
    content_loader: ContentLoader | None = None,
    reason: str | None = None,
) -> ChangeOp:
    """Create an UPDATE_FILE change."""
    return _make_op(
        ChangeType.UPDATE_FILE,
        path,
        mode=mode,
        reason=reason,
        content_loader=content_loader,
    )


def update_mode_op(path: str, mode: int, reason: str | None = None) -> ChangeOp:
    """Create an UPDATE_MODE change."""
    return _make_op(ChangeType.UPDATE_MODE, path, mode=mode, reason=reason)


def remove_file_op(path: str, reason: str | None = None, *, conflict: bool = False) -> ChangeOp:
    """Create a REMOVE_FILE change.

    Args:
        path: File to remove.
        reason: Optional explanation.
        conflict: If True, schedule in the leading conflict phase because a
            directory must take the file's place.

    Returns:
        ChangeOp configured for file removal.
    """
    return _make_op(ChangeType.REMOVE_FILE, path, reason=reason, conflict=conflict)


class ChangeSet(Sequence[ChangeOp]):
    """Ordered, immutable sequence of changes.

    The order is a correctness property: the executor applies changes
    exactly in this order without re-deriving it.
    """

    def __init__(self, ops: Sequence[ChangeOp] = ()) -> None:
        self._ops: tuple[ChangeOp, ...] = tuple(ops)

    def __getitem__(self, index: int) -> ChangeOp:  # type: ignore[override]
        return self._ops[index]

    def __len__(self) -> int:
        return len(self._ops)

    def __iter__(self) -> Iterator[ChangeOp]:
        return iter(self._ops)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ChangeSet):
            return self._ops == other._ops
        if isinstance(other, (list, tuple)):
            return list(self._ops) == list(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._ops)

    def __repr__(self) -> str:
        return f"ChangeSet({list(self._ops)!r})"

    @property
    def is_empty(self) -> bool:
        """Check if there is nothing to reconcile."""
        return not self._ops

    @property
    def ops(self) -> tuple[ChangeOp, ...]:
        """All changes in execution order."""
        return self._ops

    def count_type(self, change_type: ChangeType) -> int:
        """Count changes of a given type."""
        return sum(1 for op in self._ops if op.change_type == change_type)

    def by_phase(self) -> dict[ChangePhase, list[ChangeOp]]:
        """Group changes by execution phase, preserving order within each.

        Returns:
            Mapping from phase to its changes, in phase order, omitting
            empty phases.
        """
        grouped: dict[ChangePhase, list[ChangeOp]] = {}
        for op in self._ops:
            grouped.setdefault(op.phase, []).append(op)
        return {phase: grouped[phase] for phase in sorted(grouped)}

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {
            "in_sync": self.is_empty,
            "summary": {t.value: self.count_type(t) for t in ChangeType if self.count_type(t)},
            "changes": [op.to_dict() for op in self._ops],
        }
