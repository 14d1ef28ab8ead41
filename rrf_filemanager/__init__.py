"""
RepRapFirmware SD card file management

Async client for the rr_* file endpoints of the firmware's HTTP interface:
listing (paginated and recursive), file information, upload with CRC32
verification, download, mkdir, move and delete.
"""

from .checksum import crc32_hex
from .client import RRFFileManager
from .exceptions import (
    DirectoryNotFoundError,
    DriveNotMountedError,
    OperationFailedError,
    RemoteFileNotFoundError,
    RRFError,
)
from .types import ErrorResponse, FileEntry, FileInfo, FileList, FileType
from .utils import TIME_FORMAT, format_timestamp, parse_timestamp

__all__ = [
    "RRFFileManager",
    # Types
    "ErrorResponse",
    "FileEntry",
    "FileInfo",
    "FileList",
    "FileType",
    # Errors
    "RRFError",
    "RemoteFileNotFoundError",
    "DirectoryNotFoundError",
    "DriveNotMountedError",
    "OperationFailedError",
    # Helpers
    "crc32_hex",
    "TIME_FORMAT",
    "format_timestamp",
    "parse_timestamp",
]
