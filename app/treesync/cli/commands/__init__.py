"""CLI commands for treesync.

This package contains all subcommand implementations.
"""

from treesync.cli.commands import config, inventory, plan, sync

__all__ = ["config", "inventory", "plan", "sync"]
