"""Config profile management commands.

Provides commands to create the config file, list the defined sync
profiles and add new ones.
"""

import json
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.table import Table

from treesync.cli.types import OutputFormat, local_settings
from treesync.core.config import (
    ConfigError,
    ConfigNotFoundError,
    LocationSettings,
    SyncConfig,
    SyncProfile,
    load_config,
    save_config,
)
from treesync.core.paths import get_config_path
from treesync.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Manage sync profiles.",
    no_args_is_help=True,
)


def _load_or_exit() -> SyncConfig:
    try:
        return load_config()
    except ConfigNotFoundError as e:
        print_error(str(e))
        print_info("Run 'treesync config init' to create one.")
        raise typer.Exit(code=1) from e
    except ConfigError as e:
        print_error(f"Failed to load config: {e}")
        raise typer.Exit(code=1) from e


def _save_or_exit(config: SyncConfig) -> Path:
    try:
        return save_config(config)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


def _describe_location(settings: LocationSettings) -> str:
    if settings.dir is not None:
        return settings.dir
    return f"{settings.type.value}://{settings.root or ''}"


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing config file."),
    ] = False,
) -> None:
    """Create an empty config file."""
    config_path = get_config_path()
    if config_path.exists() and not force:
        print_error(f"Config already exists: {config_path}")
        print_info("Use --force to overwrite.")
        raise typer.Exit(code=1)

    saved = _save_or_exit(SyncConfig())
    print_success(f"Config created: {saved}")


@app.command()
def show(
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
    """List the defined sync profiles."""
    config = _load_or_exit()

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps(config.model_dump(mode="json")))
        return

    if not config.profiles:
        print_info("No profiles defined. Add one with 'treesync config add'.")
        return

    table = Table(
        title="Sync Profiles",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Profile", no_wrap=True)
    table.add_column("Source")
    table.add_column("Target")
    table.add_column("Exclude", style="muted")
    table.add_column("Workers", justify="right")

    for name in sorted(config.profiles):
        profile = config.profiles[name]
        table.add_row(
            f"[bold]{name}[/bold]",
            _describe_location(profile.source),
            _describe_location(profile.target),
            ", ".join(profile.exclude) or "-",
            str(profile.max_workers),
        )

    console.print(table)


@app.command()
def add(
    name: Annotated[str, typer.Argument(help="Profile name.")],
    source: Annotated[Path, typer.Argument(help="Source directory.")],
    target: Annotated[Path, typer.Argument(help="Target directory.")],
    exclude: Annotated[
        list[str] | None,
        typer.Option(
            "--exclude",
            "-e",
            help="Exclude pattern (repeatable, '!' re-includes).",
        ),
    ] = None,
    workers: Annotated[
        int,
        typer.Option("--workers", "-w", min=1, max=64, help="Concurrent workers."),
    ] = 1,
    force: Annotated[
        bool,
        typer.Option("--force", help="Replace an existing profile."),
    ] = False,
) -> None:
    """Add a sync profile.

    Relative directories are stored as absolute paths.
    """
    try:
        config = load_config()
    except ConfigNotFoundError:
        config = SyncConfig()
    except ConfigError as e:
        print_error(f"Failed to load config: {e}")
        raise typer.Exit(code=1) from e

    if name in config.profiles and not force:
        print_error(f"Profile '{name}' already exists. Use --force to replace it.")
        raise typer.Exit(code=1)

    try:
        profile = SyncProfile.model_validate(
            {
                "source": local_settings(source.absolute()),
                "target": local_settings(target.absolute()),
                "exclude": exclude or [],
                "max_workers": workers,
            }
        )
    except ValidationError as e:
        print_error(f"Invalid profile: {e}")
        raise typer.Exit(code=1) from e

    config.profiles[name] = profile
    saved = _save_or_exit(config)
    print_success(f"Profile '{name}' saved to {saved}")
