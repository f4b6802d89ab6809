"""treesync - One-way synchronization of directory trees."""

__version__ = "0.1.0"
