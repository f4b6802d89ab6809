"""Utility modules for treesync.

This module exports commonly used utility functions.
"""

from treesync.utils.checksum import crc32_file, crc32_hex
from treesync.utils.formatting import (
    configure_logging,
    console,
    err_console,
    format_mode,
    print_error,
    print_info,
    print_success,
    print_warning,
)

__all__ = [
    "configure_logging",
    "console",
    "crc32_file",
    "crc32_hex",
    "err_console",
    "format_mode",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
]
