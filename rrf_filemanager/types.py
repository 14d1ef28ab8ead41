"""
Pydantic models for the JSON envelopes returned by the firmware.
"""

import threading
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator
from pydantic.alias_generators import to_camel

from .utils import join_path, parse_timestamp


def _local_timestamp(value: Any) -> Any:
    if isinstance(value, str):
        return parse_timestamp(value)
    return value


class FileType(str, Enum):
    """Entry type codes used in rr_filelist"""

    DIRECTORY = "d"
    FILE = "f"


class ErrorResponse(BaseModel):
    """Envelope of rr_mkdir, rr_move, rr_delete and rr_upload"""

    err: int = 0


class FileEntry(BaseModel):
    """One element of the files array of rr_filelist"""

    type: FileType
    name: str
    size: int = Field(default=0, ge=0)
    date: Optional[datetime] = None  # local time, see parse_timestamp

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, value: Any) -> Any:
        return _local_timestamp(value)

    @property
    def is_dir(self) -> bool:
        return self.type == FileType.DIRECTORY

    @property
    def is_file(self) -> bool:
        return self.type == FileType.FILE


class FileList(BaseModel):
    """
    One directory's entries as returned by rr_filelist, plus the listings of
    its subdirectories when fetched recursively.

    `next` is the offset of the following page while pages are being
    assembled. A listing handed out by the client always has it reset to 0.
    """

    dir: str = ""
    files: List[FileEntry] = Field(default_factory=list)
    next: int = 0
    err: int = 0
    subdirs: List["FileList"] = Field(default_factory=list)

    _index: Optional[dict[str, bool]] = PrivateAttr(default=None)
    _index_lock: threading.Lock = PrivateAttr(default_factory=threading.Lock)

    def path_of(self, entry: FileEntry) -> str:
        """Full remote path of one of this listing's entries"""
        return join_path(self.dir, entry.name)

    @property
    def directories(self) -> List[FileEntry]:
        return [entry for entry in self.files if entry.is_dir]

    @property
    def regular_files(self) -> List[FileEntry]:
        return [entry for entry in self.files if entry.is_file]

    def contains(self, path: str) -> bool:
        """
        Check whether `path` exists in this listing tree.

        The lookup table is built on first use and kept for the lifetime of
        the listing. Changes made to the tree afterwards are not reflected.
        """
        return self._get_index().get(path, False)

    def _get_index(self) -> dict[str, bool]:
        if self._index is None:
            with self._index_lock:
                if self._index is None:
                    self._index = self._build_index()
        return self._index

    def _build_index(self) -> dict[str, bool]:
        index: dict[str, bool] = {}

        for subdir in self.subdirs:
            index.update(subdir._get_index())
            index[subdir.dir] = True

        # Directories are marked too so shallow listings report them
        for entry in self.files:
            index[self.path_of(entry)] = True

        index[self.dir] = True
        return index


class FileInfo(BaseModel):
    """
    Response of rr_fileinfo. Besides size and modification time the firmware
    reports metadata parsed from G-code job files, passed through untouched.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    err: int = 0
    size: int = Field(default=0, ge=0)
    last_modified: Optional[datetime] = None

    # Job file metadata, lengths in mm and times in seconds
    height: Optional[float] = None
    first_layer_height: Optional[float] = None
    layer_height: Optional[float] = None
    print_time: Optional[int] = None
    simulated_time: Optional[int] = None
    filament: List[float] = Field(default_factory=list)
    generated_by: Optional[str] = None

    @field_validator("last_modified", mode="before")
    @classmethod
    def parse_last_modified(cls, value: Any) -> Any:
        return _local_timestamp(value)
