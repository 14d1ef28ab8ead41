"""
Tests for the upload checksum helpers
"""

import io
import re
import threading
import zlib

import pytest

from rrf_filemanager.checksum import crc32_hex, prepare_upload, read_payload


def test_crc32_check_value():
    """The standard CRC-32 check value of "123456789" is 0xCBF43926"""
    assert crc32_hex(b"123456789") == "cbf43926"


def test_crc32_empty_payload():
    assert crc32_hex(b"") == "00000000"


def test_crc32_is_zero_padded_big_endian():
    data = b"G28\nG1 X10 Y10\n"
    expected = zlib.crc32(data).to_bytes(4, "big").hex()

    assert crc32_hex(data) == expected
    assert int(crc32_hex(data), 16) == zlib.crc32(data)


@pytest.mark.parametrize(
    "payload", [b"", b"\x00", b"M110 N0\n", bytes(range(256)) * 64]
)
def test_crc32_format_and_determinism(payload):
    first = crc32_hex(payload)

    assert re.fullmatch(r"[0-9a-f]{8}", first)
    assert crc32_hex(payload) == first


@pytest.mark.asyncio
async def test_read_payload_from_bytes_like():
    assert await read_payload(b"abc") == b"abc"
    assert await read_payload(bytearray(b"abc")) == b"abc"
    assert await read_payload(memoryview(b"abc")) == b"abc"


@pytest.mark.asyncio
async def test_read_payload_from_file_object():
    stream = io.BytesIO(b"G28\n")

    assert await read_payload(stream) == b"G28\n"


@pytest.mark.asyncio
async def test_read_payload_from_path(tmp_path):
    source = tmp_path / "cube.gcode"
    source.write_bytes(b"G28\nG1 Z5\n")

    assert await read_payload(source) == b"G28\nG1 Z5\n"


@pytest.mark.asyncio
async def test_read_payload_rejects_text_streams():
    with pytest.raises(TypeError):
        await read_payload(io.StringIO("G28\n"))


@pytest.mark.asyncio
async def test_prepare_upload_keeps_payload_unchanged():
    payload = bytes(range(256)) * 4

    data, checksum = await prepare_upload(io.BytesIO(payload))

    assert data == payload
    assert len(data) == len(payload)
    assert checksum == crc32_hex(payload)


class ThreadRecordingStream(io.BytesIO):
    def __init__(self, payload: bytes):
        super().__init__(payload)
        self.read_threads = []

    def read(self, size=-1):
        self.read_threads.append(threading.get_ident())
        return super().read(size)


@pytest.mark.asyncio
async def test_read_payload_reads_streams_off_the_event_loop():
    """A blocking read() of a caller supplied stream runs in a worker thread"""
    stream = ThreadRecordingStream(b"G28\nG1 X10\n")

    assert await read_payload(stream) == b"G28\nG1 X10\n"
    assert stream.read_threads
    assert threading.get_ident() not in stream.read_threads
