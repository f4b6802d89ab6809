"""CLI package for treesync.

This package contains the Typer application and all subcommands.
"""

from treesync.cli.main import app

__all__ = ["app"]
