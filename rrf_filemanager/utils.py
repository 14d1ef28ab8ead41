"""
Helpers shared by the models and the client: firmware timestamps, entry
ordering and remote path joining.
"""

import re
from datetime import datetime
from typing import TYPE_CHECKING, Iterable, Optional

if TYPE_CHECKING:
    from .types import FileEntry

# The firmware neither sends nor expects a timezone designator
TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"

_DRIVE_ROOT = re.compile(r"(\d+:)?/?")


def parse_timestamp(value: str) -> datetime:
    """
    Parse a firmware timestamp as local time of this process.

    The returned datetime is timezone aware and carries the local offset,
    since the firmware clock is set from the local time of connecting clients.
    """
    return datetime.strptime(value, TIME_FORMAT).astimezone()


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """Format `moment` (default: now) as local time without timezone"""
    if moment is None:
        moment = datetime.now()
    elif moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.strftime(TIME_FORMAT)


def sort_entries(entries: Iterable["FileEntry"]) -> list["FileEntry"]:
    """
    Order entries directories first, then by name within each kind.

    Directories being contiguous and first is what lets the recursive
    listing stop scanning at the first file.
    """
    return sorted(entries, key=lambda entry: (not entry.is_dir, entry.name))


def join_path(directory: str, name: str) -> str:
    """Join a remote directory and an entry name with a single slash"""
    return f"{directory.rstrip('/')}/{name}"


def is_drive_root(path: str) -> bool:
    """Whether `path` names the root of a drive, such as `0:/` or `/`"""
    return _DRIVE_ROOT.fullmatch(path) is not None
