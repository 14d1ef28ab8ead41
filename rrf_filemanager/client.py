"""
RepRapFirmware file manager client

Talks to the rr_* endpoints of the firmware's HTTP interface to manage the
contents of the SD card.
"""

import logging
import time
from datetime import timedelta
from pathlib import Path
from typing import Literal, Mapping, Optional, Union

import aiofiles
import httpx
from aiofiles import os as aioos

from .checksum import UploadContent, prepare_upload
from .config import settings
from .exceptions import (
    DirectoryNotFoundError,
    DriveNotMountedError,
    OperationFailedError,
    RemoteFileNotFoundError,
)
from .logger import logger
from .types import ErrorResponse, FileInfo, FileList
from .utils import format_timestamp, is_drive_root, sort_entries

ParamsT = Mapping[str, Union[str, int]]

ERR_DRIVE_NOT_MOUNTED = 1
ERR_DIRECTORY_NOT_EXIST = 2

_REDACTED_PARAMS = {"password"}


def _format_headers(response: httpx.Response) -> str:
    return "\n".join(f"{key}: {value}" for key, value in response.headers.items())


def _printable_body(response: httpx.Response) -> str:
    content_type = response.headers.get("content-type", "")
    if content_type.startswith("text/") or "json" in content_type:
        return f"Content-Type: {content_type}\n\n{response.text}"
    try:
        text = response.content.decode("utf-8")
    except UnicodeDecodeError:
        return f"Content-Type: {content_type or 'unknown'} (binary data)"
    if "\x00" in text:
        return f"Content-Type: {content_type or 'unknown'} (binary data)"
    return f"Content-Type: {content_type or 'unknown'}\n\n{text}"


class RRFFileManager:
    """
    Client for the SD card of a machine running RepRapFirmware.

    Every method performs its requests one after another and raises on the
    first failure. There are no retries and no timeouts besides the one of
    the underlying HTTP client; wrap calls in `asyncio.timeout` to bound a
    whole operation, including recursive ones.
    """

    def __init__(
        self,
        host: str,
        port: int = 80,
        *,
        timeout: float = 30.0,
        debug: bool = False,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if "://" in host:
            self._base_url = host
        else:
            self._base_url = f"http://{host}:{port}"

        if not self._base_url.endswith("/"):
            self._base_url += "/"

        self._debug = debug
        if debug:
            logger.setLevel(logging.DEBUG)
        self._owns_client = client is None
        # The firmware cannot serve compressed responses
        self._client = client or httpx.AsyncClient(
            timeout=timeout, headers={"Accept-Encoding": "identity"}
        )

    @classmethod
    def from_settings(cls, **overrides) -> "RRFFileManager":
        """Create a client from the loaded settings, `overrides` taking precedence"""
        options = {
            "host": settings.host,
            "port": settings.port,
            "timeout": settings.timeout_seconds,
            "debug": settings.debug,
        }
        options.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**options)

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> "RRFFileManager":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self):
        """Close the HTTP client if it was created by this instance"""
        if self._owns_client:
            await self._client.aclose()

    async def _send_request(
        self,
        method: Literal["GET", "POST"],
        endpoint: str,
        params: ParamsT,
        content: Optional[bytes] = None,
    ) -> tuple[bytes, timedelta]:
        """
        Perform a single request and return the response body together with
        the time it took, connection setup included.
        """
        url = self._base_url + endpoint
        headers = (
            {"Content-Type": "application/octet-stream"} if content is not None else None
        )

        if self._debug:
            shown = {
                k: ("***" if k in _REDACTED_PARAMS else v) for k, v in params.items()
            }
            logger.debug(f"Doing {method} request to {url} with {shown}")

        start = time.monotonic()
        response = await self._client.request(
            method, url, params=params, content=content, headers=headers
        )
        duration = timedelta(seconds=time.monotonic() - start)

        if self._debug:
            logger.debug(
                f"Received response {response.status_code} after {duration}\n"
                f"{_format_headers(response)}\n{_printable_body(response)}"
            )

        response.raise_for_status()
        return response.content, duration

    def _check_error(self, action: str, body: bytes):
        response = ErrorResponse.model_validate_json(body)
        if response.err != 0:
            raise OperationFailedError(action, response.err)

    async def connect(self, password: str = ""):
        """Log in; also sets the machine clock to the local time of this process"""
        await self._send_request(
            "GET", "rr_connect", {"password": password, "time": format_timestamp()}
        )
        logger.debug(f"Connected to {self._base_url}")

    async def file_info(self, path: str) -> FileInfo:
        """Get size, modification time and job metadata of a file"""
        body, _ = await self._send_request("GET", "rr_fileinfo", {"name": path})
        info = FileInfo.model_validate_json(body)
        if info.err != 0:
            raise RemoteFileNotFoundError(path)
        return info

    async def file_list(self, path: str, recursive: bool = False) -> FileList:
        """
        List all files and directories in `path`.

        With `recursive` the listings of all subdirectories are fetched as well
        and attached to `subdirs`, giving the full tree below `path`.
        """
        listing = await self._get_full_file_list(path)
        if recursive:
            for entry in listing.files:
                if not entry.is_dir:
                    # Directories come first so there is nothing left to descend into
                    break
                subdir = await self.file_list(listing.path_of(entry), recursive=True)
                listing.subdirs.append(subdir)
        return listing

    async def _get_full_file_list(self, path: str) -> FileList:
        """Fetch all pages of a single directory and sort the combined entries"""
        listing = await self._get_file_list_page(path, 0)
        page = listing

        while page.next > 0:
            first = page.next
            page = await self._get_file_list_page(path, first)
            listing.files.extend(page.files)
            if 0 < page.next <= first:
                raise OperationFailedError(
                    f"List directory {path} (offset {page.next} after {first})"
                )

        if not listing.dir:
            listing.dir = path
        listing.files = sort_entries(listing.files)
        listing.next = 0
        listing.subdirs = []
        return listing

    async def _get_file_list_page(self, path: str, first: int) -> FileList:
        body, _ = await self._send_request(
            "GET", "rr_filelist", {"dir": path, "first": first}
        )
        page = FileList.model_validate_json(body)

        if page.err == ERR_DIRECTORY_NOT_EXIST:
            raise DirectoryNotFoundError(path)
        if page.err == ERR_DRIVE_NOT_MOUNTED:
            raise DriveNotMountedError(path)
        if page.err != 0:
            raise OperationFailedError(f"List directory {path}", page.err)
        return page

    async def download(self, path: str) -> tuple[bytes, timedelta]:
        """Download a file, also returning how long it took"""
        return await self._send_request("GET", "rr_download", {"name": path})

    async def download_to(
        self, path: str, local_path: Union[str, Path]
    ) -> tuple[int, timedelta]:
        """Download a file into `local_path`, returning its size and the transfer time"""
        data, duration = await self.download(path)

        target = Path(local_path)
        await aioos.makedirs(target.parent, exist_ok=True)
        async with aiofiles.open(target, "wb") as f:
            await f.write(data)
        return len(data), duration

    async def mkdir(self, path: str):
        """Create a new directory"""
        body, _ = await self._send_request("GET", "rr_mkdir", {"dir": path})
        self._check_error(f"Mkdir {path}", body)

    async def move(self, oldpath: str, newpath: str):
        """Rename or move a file or directory on the same SD card"""
        body, _ = await self._send_request(
            "GET", "rr_move", {"old": oldpath, "new": newpath}
        )
        self._check_error(f"Rename {oldpath} to {newpath}", body)

    async def move_overwrite(self, oldpath: str, newpath: str):
        """Move a file, deleting whatever exists at `newpath` first"""
        try:
            await self.file_info(newpath)
        except RemoteFileNotFoundError:
            pass
        else:
            logger.info(f"Overwriting {newpath} with {oldpath}")
            await self.delete(newpath)

        await self.move(oldpath, newpath)

    async def delete(self, path: str):
        """Delete a file or an empty directory"""
        body, _ = await self._send_request("GET", "rr_delete", {"name": path})
        self._check_error(f"Delete {path}", body)

    async def delete_recursive(self, path: str):
        """Delete a directory together with everything below it"""
        listing = await self.file_list(path, recursive=True)
        logger.info(f"Deleting {path} recursively")
        await self._delete_tree(listing)

    async def _delete_tree(self, listing: FileList):
        # A directory can only be removed once it is empty
        for subdir in listing.subdirs:
            await self._delete_tree(subdir)
        for entry in listing.regular_files:
            await self.delete(listing.path_of(entry))
        # The root of a drive cannot be removed, only emptied
        if not is_drive_root(listing.dir):
            await self.delete(listing.dir)

    async def upload(self, path: str, content: UploadContent) -> timedelta:
        """
        Upload `content` to `path`, returning the transfer time.

        The payload is read completely first to compute the CRC32 the firmware
        checks the received file against.
        """
        data, checksum = await prepare_upload(content)
        params = {"name": path, "time": format_timestamp(), "crc32": checksum}

        body, duration = await self._send_request(
            "POST", "rr_upload", params, content=data
        )
        self._check_error(f"Uploading file to {path}", body)
        logger.debug(f"Uploaded {len(data)} bytes to {path} in {duration}")
        return duration
