"""Change set execution.

Applies an ordered ChangeSet to a target location. Each change is
dispatched to the matching Location capability; failures are recorded
per change and never abort the run. Changes nested under a directory
whose creation (or conflict removal) did not succeed are skipped.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from itertools import groupby

from treesync.locations.base import Location, LocationIOError, NotFoundError, OperationResult
from treesync.models.change import ChangeOp, ChangePhase, ChangeSet, ChangeType
from treesync.models.entry import is_nested_under
from treesync.models.result import (
    FailureKind,
    SyncResult,
    applied_result,
    failed_result,
    skipped_result,
)

logger = logging.getLogger(__name__)

# Phases whose changes may touch each other's ancestors run level by level
_LEVELED_PHASES = (ChangePhase.CREATE_DIRS, ChangePhase.REMOVE_DIRS)


class Executor:
    """Applies change sets to a target location.

    Example:
        >>> executor = Executor(target, max_workers=4)
        >>> results = executor.execute(changes)
        >>> failed = [r for r in results if r.failed]
    """

    def __init__(self, target: Location, *, dry_run: bool = False, max_workers: int = 1) -> None:
        """Initialize the Executor.

        Args:
            target: Location the changes are applied to.
            dry_run: If True, report what would be done without touching
                the target.
            max_workers: Number of concurrent workers; 1 runs sequentially.

        Raises:
            ValueError: If max_workers is less than 1.
        """
        if max_workers < 1:
            msg = f"max_workers must be at least 1, got {max_workers}"
            raise ValueError(msg)
        self._target = target
        self._dry_run = dry_run
        self._max_workers = max_workers
        self._handlers: dict[ChangeType, Callable[[ChangeOp], SyncResult]] = {
            ChangeType.CREATE_DIR: self._create_dir,
            ChangeType.REMOVE_DIR: self._remove_dir,
            ChangeType.CREATE_FILE: self._write_file,
            ChangeType.UPDATE_FILE: self._write_file,
            ChangeType.UPDATE_MODE: self._update_mode,
            ChangeType.REMOVE_FILE: self._remove_file,
        }

    @property
    def dry_run(self) -> bool:
        """Whether the executor leaves the target untouched."""
        return self._dry_run

    @property
    def max_workers(self) -> int:
        """Number of concurrent workers."""
        return self._max_workers

    def execute(self, change_set: ChangeSet) -> list[SyncResult]:
        """Apply every change and return one result per change.

        Args:
            change_set: Ordered changes produced by the diff engine.

        Returns:
            SyncResult objects in change-set order.
        """
        blocked: set[str] = set()

        if self._max_workers == 1:
            results = [self._run(op, blocked) for op in change_set]
        else:
            results = self._execute_batched(change_set, blocked)

        logger.debug(
            "Executed %d change(s) against %s (%d failed, %d skipped)",
            len(results),
            self._target.name,
            sum(1 for r in results if r.failed),
            sum(1 for r in results if r.skipped),
        )
        return results

    def _execute_batched(self, change_set: ChangeSet, blocked: set[str]) -> list[SyncResult]:
        """Apply changes concurrently, one batch at a time.

        Batches never contain two changes on the same ancestor chain, so
        the outcome matches sequential execution.
        """
        indexed = list(enumerate(change_set))
        results: dict[int, SyncResult] = {}

        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            for batch in _batches(indexed):
                pending: list[tuple[int, ChangeOp]] = []
                for index, op in batch:
                    blocker = _find_blocker(op.path, blocked)
                    if blocker is not None:
                        results[index] = self._skip(op, blocker, blocked)
                    else:
                        pending.append((index, op))

                outcomes = pool.map(lambda item: self._apply(item[1]), pending)
                for (index, op), result in zip(pending, outcomes, strict=True):
                    self._record(op, result, blocked)
                    results[index] = result

        return [results[index] for index in range(len(indexed))]

    def _run(self, op: ChangeOp, blocked: set[str]) -> SyncResult:
        blocker = _find_blocker(op.path, blocked)
        if blocker is not None:
            return self._skip(op, blocker, blocked)

        result = self._apply(op)
        self._record(op, result, blocked)
        return result

    def _skip(self, op: ChangeOp, blocker: str, blocked: set[str]) -> SyncResult:
        logger.debug("Skipping %s %s: %s did not succeed", op.change_type.value, op.path, blocker)
        if op.change_type == ChangeType.CREATE_DIR:
            blocked.add(op.path)
        return skipped_result(op, blocker)

    def _record(self, op: ChangeOp, result: SyncResult, blocked: set[str]) -> None:
        if not result.failed:
            return
        logger.warning("Failed to %s %s: %s", op.change_type.value, op.path, result.error)
        if op.change_type == ChangeType.CREATE_DIR or op.phase == ChangePhase.CONFLICT:
            blocked.add(op.path)

    def _apply(self, op: ChangeOp) -> SyncResult:
        if self._dry_run:
            logger.debug("Dry-run: would %s %s", op.change_type.value, op.path)
            return applied_result(op, dry_run=True)

        logger.debug("Applying %s %s", op.change_type.value, op.path)
        return self._handlers[op.change_type](op)

    # -------------------------------------------------------------------
    # Per-type handlers
    # -------------------------------------------------------------------

    def _create_dir(self, op: ChangeOp) -> SyncResult:
        return _from_operation(op, self._target.create_directory(op.path, op.mode))

    def _remove_dir(self, op: ChangeOp) -> SyncResult:
        return _from_operation(op, self._target.remove_directory(op.path))

    def _remove_file(self, op: ChangeOp) -> SyncResult:
        return _from_operation(op, self._target.remove(op.path))

    def _update_mode(self, op: ChangeOp) -> SyncResult:
        if op.mode is None:
            return failed_result(op, f"No mode to apply to {op.path}")
        return _from_operation(op, self._target.set_mode(op.path, op.mode))

    def _write_file(self, op: ChangeOp) -> SyncResult:
        try:
            content = op.load_content()
        except NotFoundError as e:
            return failed_result(op, str(e), FailureKind.NOT_FOUND)
        except (LocationIOError, OSError, ValueError) as e:
            return failed_result(op, str(e), FailureKind.IO_ERROR)

        return _from_operation(op, self._target.write(op.path, content, op.mode))


def _from_operation(op: ChangeOp, outcome: OperationResult) -> SyncResult:
    if outcome:
        return applied_result(op)
    return failed_result(op, outcome.error or f"{op.change_type.value} failed for {op.path}")


def _find_blocker(path: str, blocked: set[str]) -> str | None:
    """Return the blocked path that path equals or is nested under, if any."""
    for candidate in blocked:
        if path == candidate or is_nested_under(path, candidate):
            return candidate
    return None


def _batches(
    indexed: Iterable[tuple[int, ChangeOp]],
) -> Iterable[list[tuple[int, ChangeOp]]]:
    """Split changes into batches that are safe to run concurrently.

    Conflict removals run one at a time. Directory phases are split by
    depth level. File phases run as a single batch since their parent
    directories already exist.
    """
    for phase, phase_items in groupby(indexed, key=lambda item: item[1].phase):
        items = list(phase_items)
        if phase == ChangePhase.CONFLICT:
            for item in items:
                yield [item]
        elif phase in _LEVELED_PHASES:
            for _depth, level in groupby(items, key=lambda item: item[1].depth):
                yield list(level)
        else:
            yield items
