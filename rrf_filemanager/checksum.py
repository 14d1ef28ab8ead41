"""
Upload integrity helpers.

The firmware verifies an upload against the CRC32 passed in the query
string, so the payload has to be read completely before the request starts.
"""

import asyncio
import zlib
from pathlib import Path
from typing import BinaryIO, Union

import aiofiles

UploadContent = Union[bytes, bytearray, memoryview, BinaryIO, Path]


def crc32_hex(data: bytes) -> str:
    """CRC32 (IEEE polynomial) of `data` as 8 hex digits, big-endian"""
    checksum = zlib.crc32(data) & 0xFFFFFFFF
    return checksum.to_bytes(4, "big").hex()


async def read_payload(content: UploadContent) -> bytes:
    """
    Buffer an upload payload in memory.

    Accepts raw bytes, a binary file object or a local path. Read errors are
    raised from here, before any request is made.
    """
    if isinstance(content, (bytes, bytearray, memoryview)):
        return bytes(content)

    if isinstance(content, Path):
        async with aiofiles.open(content, "rb") as f:
            return await f.read()

    # Streams may be backed by slow storage, keep the event loop free
    data = await asyncio.to_thread(content.read)
    if not isinstance(data, (bytes, bytearray)):
        raise TypeError(
            f"Upload content must be binary, got {type(data).__name__} from read()"
        )
    return bytes(data)


async def prepare_upload(content: UploadContent) -> tuple[bytes, str]:
    """Buffer `content` and compute its checksum, returning both"""
    data = await read_payload(content)
    return data, crc32_hex(data)
