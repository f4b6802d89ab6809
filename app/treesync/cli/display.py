"""Shared Rich display functions for inventories, changes and results.

Provides reusable table builders and summary printers for displaying
inventories, planned changes and execution results across CLI commands
(inventory, plan, sync).
"""

from rich.table import Table

from treesync.models.change import ChangeOp, ChangeSet, ChangeType
from treesync.models.entry import Inventory
from treesync.models.result import SyncResult, SyncSummary
from treesync.utils.formatting import console, format_mode, print_success

# Label and style per change type
_CHANGE_STYLES: dict[ChangeType, tuple[str, str]] = {
    ChangeType.CREATE_DIR: ("+mkdir", "added"),
    ChangeType.CREATE_FILE: ("+file", "added"),
    ChangeType.UPDATE_FILE: ("~file", "changed"),
    ChangeType.UPDATE_MODE: ("~mode", "changed"),
    ChangeType.REMOVE_FILE: ("-file", "removed"),
    ChangeType.REMOVE_DIR: ("-rmdir", "removed"),
}


def _styled_change(op: ChangeOp) -> tuple[str, str]:
    label, style = _CHANGE_STYLES[op.change_type]
    return f"[{style}]{label}[/{style}]", f"[{style}]{op.path}[/{style}]"


def create_inventory_table(inventory: Inventory) -> Table:
    """Create a Rich table listing inventory entries.

    Args:
        inventory: Inventory to display.

    Returns:
        Rich Table with Kind, Path, Mode and Hash columns.
    """
    table = Table(
        title=f"Inventory of {inventory.name}" if inventory.name else "Inventory",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Kind", width=5, justify="center")
    table.add_column("Path", no_wrap=True)
    table.add_column("Mode", style="muted", justify="right")
    table.add_column("Hash", style="muted")

    for entry in inventory.values():
        if entry.is_dir:
            kind = "[entry.dir]dir[/entry.dir]"
            path = f"[entry.dir]{entry.relative_path}/[/entry.dir]"
        else:
            kind = "[entry.file]file[/entry.file]"
            path = f"[entry.file]{entry.relative_path}[/entry.file]"
        table.add_row(kind, path, format_mode(entry.mode), entry.content_hash or "")

    return table


def create_changes_table(changes: ChangeSet, dry_run: bool = False) -> Table:
    """Create a Rich table displaying planned changes in execution order.

    Args:
        changes: Change set to display.
        dry_run: Whether this is a dry-run (changes table title).

    Returns:
        Rich Table configured for change display.
    """
    title = "Planned Changes (Dry Run)" if dry_run else "Planned Changes"

    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Change", width=8, justify="center")
    table.add_column("Path", no_wrap=True)
    table.add_column("Mode", style="muted", justify="right")
    table.add_column("Reason")

    for op in changes:
        label, path = _styled_change(op)
        table.add_row(label, path, format_mode(op.mode), f"[muted]{op.reason or ''}[/muted]")

    return table


def create_results_table(results: list[SyncResult] | tuple[SyncResult, ...]) -> Table:
    """Create a Rich table displaying execution results.

    Applied changes show "OK", failed ones "FAIL" and skipped ones "SKIP",
    each with the error message if any.

    Args:
        results: Results to display.

    Returns:
        Rich Table configured for results display.
    """
    table = Table(
        title="Results",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", width=6, justify="center")
    table.add_column("Change", width=8)
    table.add_column("Path", no_wrap=True)
    table.add_column("Message")

    for result in results:
        if result.success:
            status = "[success]OK[/success]"
        elif result.skipped:
            status = "[warning]SKIP[/warning]"
        else:
            status = "[error]FAIL[/error]"

        label, path = _styled_change(result.op)
        table.add_row(status, label, path, f"[muted]{result.error or ''}[/muted]")

    return table


def print_changes_summary(changes: ChangeSet) -> None:
    """Print a one-line summary of planned changes.

    Produces no output for an empty change set.

    Args:
        changes: Planned changes.
    """
    create_count = sum(1 for op in changes if op.is_create)
    update_count = changes.count_type(ChangeType.UPDATE_FILE)
    mode_count = changes.count_type(ChangeType.UPDATE_MODE)
    remove_count = sum(1 for op in changes if op.is_remove)

    parts: list[str] = []
    if create_count:
        parts.append(f"[added]{create_count} to create[/added]")
    if update_count:
        parts.append(f"[changed]{update_count} to update[/changed]")
    if mode_count:
        parts.append(f"[changed]{mode_count} mode change(s)[/changed]")
    if remove_count:
        parts.append(f"[removed]{remove_count} to remove[/removed]")

    if parts:
        summary = ", ".join(parts)
        console.print(f"\nSummary: {summary}")


def print_sync_summary(summary: SyncSummary) -> None:
    """Print the outcome of a synchronization run.

    Shows a success message when every change was applied, or the counts
    of applied, failed and skipped changes otherwise.

    Args:
        summary: Summary returned by synchronize().
    """
    if summary.is_clean:
        verb = "would be applied" if summary.dry_run else "applied"
        print_success(f"All {summary.applied} change(s) {verb}.")
        return

    console.print(
        f"\n[success]{summary.applied} applied[/success], "
        f"[error]{summary.failed} failed[/error], "
        f"[warning]{summary.skipped} skipped[/warning]"
    )
