"""Core synchronization pipeline: exclusion, inventory, diff, execution."""
