"""Sync command implementation.

Runs a one-way synchronization: snapshot both sides, show the planned
changes, confirm, execute them against the target and report the
per-change outcome. Source and target come either from the command
line or from a named profile in the config file.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Annotated

import typer

from treesync.cli.display import (
    create_changes_table,
    create_results_table,
    print_changes_summary,
    print_sync_summary,
)
from treesync.cli.types import OutputFormat, local_settings, open_location
from treesync.core.config import ConfigError, load_config
from treesync.core.sync import execute_plan, plan
from treesync.locations import LocationError
from treesync.utils.formatting import console, print_error, print_info, print_success

logger = logging.getLogger(__name__)


@dataclass
class _SyncRequest:
    """Source, target and options resolved from arguments and profile."""

    source: dict[str, str]
    target: dict[str, str]
    exclude: list[str] = field(default_factory=list)
    max_workers: int = 1


def _resolve_request(
    source: Path | None,
    target: Path | None,
    profile: str | None,
    exclude: list[str],
    workers: int | None,
) -> _SyncRequest:
    """Combine positional arguments, profile and options.

    Command-line exclude patterns are appended to the profile's, so they
    take precedence. Positional directories override the profile's.

    Raises:
        typer.Exit: If the profile cannot be loaded or locations are missing.
    """
    if profile is not None:
        try:
            sync_profile = load_config().get_profile(profile)
        except ConfigError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e

        request = _SyncRequest(
            source=local_settings(source) if source else sync_profile.source_settings(),
            target=local_settings(target) if target else sync_profile.target_settings(),
            exclude=[*sync_profile.exclude, *exclude],
            max_workers=workers or sync_profile.max_workers,
        )
        logger.debug("Using profile %s", profile)
        return request

    if source is None or target is None:
        print_error("Provide SOURCE and TARGET, or select a profile with --profile.")
        raise typer.Exit(code=1)

    return _SyncRequest(
        source=local_settings(source),
        target=local_settings(target),
        exclude=list(exclude),
        max_workers=workers or 1,
    )


def sync(
    ctx: typer.Context,
    source: Annotated[
        Path | None,
        typer.Argument(help="Source directory (desired state)."),
    ] = None,
    target: Annotated[
        Path | None,
        typer.Argument(help="Target directory to reconcile."),
    ] = None,
    profile: Annotated[
        str | None,
        typer.Option(
            "--profile",
            "-p",
            help="Named profile from the config file.",
        ),
    ] = None,
    exclude: Annotated[
        list[str] | None,
        typer.Option(
            "--exclude",
            "-e",
            help="Exclude pattern (repeatable, '!' re-includes).",
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be changed."),
    ] = False,
    workers: Annotated[
        int | None,
        typer.Option(
            "--workers",
            "-w",
            min=1,
            max=64,
            help="Concurrent workers for applying changes.",
        ),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
) -> None:
    """Make TARGET match SOURCE.

    Exits with code 1 if any change failed or was skipped.

    Examples:
        treesync sync ./docs /mnt/backup/docs
        treesync sync ./docs /mnt/backup/docs --dry-run
        treesync sync --profile docs --yes --workers 4
    """
    json_output = output_format == OutputFormat.JSON
    if json_output and not (yes or dry_run):
        print_error("--format json requires --yes or --dry-run.")
        raise typer.Exit(code=1)

    request = _resolve_request(source, target, profile, exclude or [], workers)
    source_location = open_location(request.source, "source")
    target_location = open_location(request.target, "target")

    try:
        changes = plan(source_location, target_location, request.exclude)
    except LocationError as e:
        print_error(f"Failed to list locations: {e}")
        raise typer.Exit(code=1) from e

    if changes.is_empty:
        if json_output:
            summary = execute_plan(target_location, changes, dry_run=dry_run)
            console.print_json(json.dumps(summary.to_dict()))
        else:
            print_success("Target is already in sync with source.")
        return

    quiet = bool(ctx.obj and ctx.obj.get("quiet"))
    if not json_output:
        if not quiet:
            console.print(create_changes_table(changes, dry_run=dry_run))
        print_changes_summary(changes)

    if not dry_run and not yes:
        confirmed = typer.confirm(f"\nApply {len(changes)} change(s) to {target_location.name}?")
        if not confirmed:
            print_info("Aborted.")
            return

    summary = execute_plan(
        target_location, changes, dry_run=dry_run, max_workers=request.max_workers
    )

    if json_output:
        console.print_json(json.dumps(summary.to_dict()))
    else:
        if not quiet and not dry_run:
            console.print(create_results_table(summary.results))
        print_sync_summary(summary)

    if not summary.is_clean:
        raise typer.Exit(code=1)
