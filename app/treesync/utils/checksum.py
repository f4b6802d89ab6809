"""Content checksum helpers.

Checksums are CRC32 rendered as 8 lowercase hex digits. They are used
for change detection only, never for integrity or security.
"""

import zlib
from pathlib import Path

_CHUNK_SIZE = 1024 * 1024


def crc32_hex(data: bytes) -> str:
    """Return the CRC32 checksum of data as 8 lowercase hex digits."""
    return f"{zlib.crc32(data) & 0xFFFFFFFF:08x}"


def crc32_file(path: Path) -> str:
    """Return the CRC32 checksum of a file's content.

    Reads the file in chunks so large files are not loaded into memory.

    Args:
        path: File to checksum.

    Returns:
        Checksum as 8 lowercase hex digits.

    Raises:
        OSError: If the file cannot be read.
    """
    checksum = 0
    with open(path, "rb") as f:
        while chunk := f.read(_CHUNK_SIZE):
            checksum = zlib.crc32(chunk, checksum)
    return f"{checksum & 0xFFFFFFFF:08x}"
