"""Execution result models.

This module defines the per-change outcome recorded by the executor and
the aggregate summary returned by a synchronization run.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from treesync.models.change import ChangeOp, ChangeSet, ChangeType


class ResultStatus(str, Enum):
    """Outcome of a single change.

    Attributes:
        APPLIED: The change was applied (or would be, in dry-run mode).
        FAILED: The location reported a failure.
        SKIPPED: The change was not attempted because a precondition failed.
    """

    APPLIED = "applied"
    FAILED = "failed"
    SKIPPED = "skipped"


class FailureKind(str, Enum):
    """Classification of a failed or skipped change.

    Attributes:
        NOT_FOUND: Source content disappeared before it could be read.
        IO_ERROR: Backend failure while reading or writing.
        DEPENDENT_FAILURE: An ancestor directory change did not succeed.
    """

    NOT_FOUND = "not_found"
    IO_ERROR = "io_error"
    DEPENDENT_FAILURE = "dependent_failure"


@dataclass(frozen=True, slots=True)
class SyncResult:
    """Result of applying one change to the target location.

    Attributes:
        op: The change that was processed.
        status: Applied, failed or skipped.
        error: Error detail for failed or skipped changes.
        failure_kind: Classification of the failure, None when applied.
        dry_run: Whether this was a dry-run (target left untouched).
    """

    op: ChangeOp
    status: ResultStatus
    error: str | None = None
    failure_kind: FailureKind | None = None
    dry_run: bool = False

    @property
    def success(self) -> bool:
        """Check if the change was applied."""
        return self.status == ResultStatus.APPLIED

    @property
    def failed(self) -> bool:
        """Check if the change failed."""
        return self.status == ResultStatus.FAILED

    @property
    def skipped(self) -> bool:
        """Check if the change was skipped."""
        return self.status == ResultStatus.SKIPPED

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, object] = {
            **self.op.to_dict(),
            "status": self.status.value,
        }
        if self.error is not None:
            result["error"] = self.error
        if self.failure_kind is not None:
            result["failure_kind"] = self.failure_kind.value
        if self.dry_run:
            result["dry_run"] = True
        return result


def applied_result(op: ChangeOp, *, dry_run: bool = False) -> SyncResult:
    """Create a result for a successfully applied change."""
    return SyncResult(op=op, status=ResultStatus.APPLIED, dry_run=dry_run)


def failed_result(op: ChangeOp, error: str, kind: FailureKind = FailureKind.IO_ERROR) -> SyncResult:
    """Create a result for a change the location could not apply."""
    return SyncResult(op=op, status=ResultStatus.FAILED, error=error, failure_kind=kind)


def skipped_result(op: ChangeOp, blocked_by: str) -> SyncResult:
    """Create a result for a change skipped because an ancestor failed.

    Args:
        op: The change that was not attempted.
        blocked_by: Path of the failed ancestor directory change.

    Returns:
        SyncResult with SKIPPED status and DEPENDENT_FAILURE kind.
    """
    return SyncResult(
        op=op,
        status=ResultStatus.SKIPPED,
        error=f"Skipped: prerequisite change for {blocked_by} did not succeed",
        failure_kind=FailureKind.DEPENDENT_FAILURE,
    )


_CREATED = (ChangeType.CREATE_DIR, ChangeType.CREATE_FILE)
_REMOVED = (ChangeType.REMOVE_DIR, ChangeType.REMOVE_FILE)


@dataclass(frozen=True, slots=True)
class SyncSummary:
    """Aggregate outcome of a synchronization run.

    Counts only include applied changes, except ``failed`` and ``skipped``.

    Attributes:
        created: Directories and files created.
        updated: Files whose content was replaced.
        removed: Directories and files removed.
        mode_changed: Files whose permission bits were changed.
        failed: Changes the target rejected.
        skipped: Changes not attempted due to a failed ancestor.
        results: Per-change results in execution order.
        change_set: The change set that was executed.
        dry_run: Whether the run left the target untouched.
    """

    created: int = 0
    updated: int = 0
    removed: int = 0
    mode_changed: int = 0
    failed: int = 0
    skipped: int = 0
    results: tuple[SyncResult, ...] = field(default=())
    change_set: ChangeSet = field(default_factory=ChangeSet)
    dry_run: bool = False

    @classmethod
    def from_results(
        cls,
        results: Iterable[SyncResult],
        change_set: ChangeSet | None = None,
        *,
        dry_run: bool = False,
    ) -> SyncSummary:
        """Aggregate per-change results into a summary.

        Args:
            results: Results produced by the executor.
            change_set: The executed change set.
            dry_run: Whether this was a dry run.

        Returns:
            SyncSummary with counts derived from the results.
        """
        collected = tuple(results)
        counts = dict.fromkeys(
            ("created", "updated", "removed", "mode_changed", "failed", "skipped"), 0
        )

        for result in collected:
            if result.failed:
                counts["failed"] += 1
                continue
            if result.skipped:
                counts["skipped"] += 1
                continue

            change_type = result.op.change_type
            if change_type in _CREATED:
                counts["created"] += 1
            elif change_type in _REMOVED:
                counts["removed"] += 1
            elif change_type == ChangeType.UPDATE_FILE:
                counts["updated"] += 1
            elif change_type == ChangeType.UPDATE_MODE:
                counts["mode_changed"] += 1

        return cls(
            **counts,
            results=collected,
            change_set=change_set if change_set is not None else ChangeSet(),
            dry_run=dry_run,
        )

    @property
    def applied(self) -> int:
        """Number of changes applied."""
        return self.created + self.updated + self.removed + self.mode_changed

    @property
    def total(self) -> int:
        """Number of changes processed."""
        return len(self.results)

    @property
    def is_clean(self) -> bool:
        """Check if every change was applied."""
        return self.failed == 0 and self.skipped == 0

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {
            "dry_run": self.dry_run,
            "summary": {
                "created": self.created,
                "updated": self.updated,
                "removed": self.removed,
                "mode_changed": self.mode_changed,
                "failed": self.failed,
                "skipped": self.skipped,
                "total": self.total,
            },
            "results": [r.to_dict() for r in self.results],
        }
