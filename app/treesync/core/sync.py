"""Synchronization orchestration.

Ties the pipeline together: snapshot both locations, compute the change
set, execute it against the target and summarise the outcome. These
functions are shared between the `plan` and `sync` CLI commands.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from treesync.core.diff import compute_changes
from treesync.core.executor import Executor
from treesync.core.inventory import InventoryBuilder
from treesync.models.result import SyncSummary

if TYPE_CHECKING:
    from treesync.locations.base import Location
    from treesync.models.change import ChangeSet
    from treesync.models.entry import Inventory

logger = logging.getLogger(__name__)


def build_inventories(
    source: Location,
    target: Location,
    exclude_patterns: Sequence[str] = (),
    *,
    parallel: bool = False,
) -> tuple[Inventory, Inventory]:
    """Snapshot source and target with the same exclude patterns.

    Args:
        source: Location holding the desired state.
        target: Location to reconcile.
        exclude_patterns: Ordered exclude patterns applied to both sides.
        parallel: If True, walk both locations concurrently.

    Returns:
        Tuple of (source inventory, target inventory).
    """
    builder = InventoryBuilder(exclude_patterns)

    if not parallel:
        return builder.build(source), builder.build(target)

    with ThreadPoolExecutor(max_workers=2) as pool:
        source_future = pool.submit(builder.build, source)
        target_future = pool.submit(builder.build, target)
        return source_future.result(), target_future.result()


def plan(
    source: Location,
    target: Location,
    exclude_patterns: Sequence[str] = (),
    *,
    parallel_scan: bool = False,
) -> ChangeSet:
    """Compute the changes that would make target match source.

    Args:
        source: Location holding the desired state.
        target: Location to reconcile.
        exclude_patterns: Ordered exclude patterns applied to both sides.
        parallel_scan: If True, walk both locations concurrently.

    Returns:
        Ordered ChangeSet (empty if the target already matches).

    Raises:
        LocationIOError: If either location cannot be listed. No changes
            are computed from a partial listing.
    """
    source_inventory, target_inventory = build_inventories(
        source, target, exclude_patterns, parallel=parallel_scan
    )
    return compute_changes(source_inventory, target_inventory)


def execute_plan(
    target: Location,
    change_set: ChangeSet,
    *,
    dry_run: bool = False,
    max_workers: int = 1,
) -> SyncSummary:
    """Apply a planned change set to the target.

    Args:
        target: Location to reconcile.
        change_set: Changes computed by :func:`plan`.
        dry_run: If True, report the changes without applying them.
        max_workers: Number of concurrent workers for execution.

    Returns:
        SyncSummary with per-change results and counts.
    """
    if change_set.is_empty:
        return SyncSummary(change_set=change_set, dry_run=dry_run)

    executor = Executor(target, dry_run=dry_run, max_workers=max_workers)
    results = executor.execute(change_set)
    return SyncSummary.from_results(results, change_set, dry_run=dry_run)


def synchronize(
    source: Location,
    target: Location,
    exclude_patterns: Sequence[str] = (),
    *,
    dry_run: bool = False,
    max_workers: int = 1,
    parallel_scan: bool = False,
) -> SyncSummary:
    """Make target match source.

    Partial failures are reported in the summary and never raised.

    Args:
        source: Location holding the desired state.
        target: Location to reconcile.
        exclude_patterns: Ordered exclude patterns applied to both sides.
        dry_run: If True, compute and report changes without applying them.
        max_workers: Number of concurrent workers for execution.
        parallel_scan: If True, walk both locations concurrently.

    Returns:
        SyncSummary with per-change results and counts.

    Raises:
        LocationIOError: If either location cannot be listed. The target
            is left untouched.
    """
    logger.info("Synchronizing %s -> %s", source.name, target.name)

    change_set = plan(source, target, exclude_patterns, parallel_scan=parallel_scan)
    if change_set.is_empty:
        logger.info("Target %s already matches %s", target.name, source.name)
        return SyncSummary(change_set=change_set, dry_run=dry_run)

    summary = execute_plan(target, change_set, dry_run=dry_run, max_workers=max_workers)

    logger.info(
        "Synchronized %s -> %s: %d applied, %d failed, %d skipped",
        source.name,
        target.name,
        summary.applied,
        summary.failed,
        summary.skipped,
    )
    return summary
