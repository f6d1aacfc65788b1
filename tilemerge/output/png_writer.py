# tilemerge/output/png_writer.py
from __future__ import annotations

import os
import struct
import zlib
from pathlib import Path
from typing import BinaryIO

import numpy as np

from tilemerge.core.pixels import PIXEL_DTYPE, PixelBuffer

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
# zero-length IEND with its fixed CRC
PNG_FOOTER = b"\x00\x00\x00\x00IEND\xae\x42\x60\x82"

DEFAULT_LEVEL = 9
DEFAULT_IDAT_SIZE = 16 * 1024 * 1024


class IdatWriter:
    """Write-only sink that cuts the compressed stream into IDAT chunks.

    Bytes collect in one reusable buffer of ``approx_size``; a chunk is
    emitted each time the buffer is full and more data arrives, and once
    more on ``close()``, so large writes are split across chunks. The CRC
    runs alongside the writes and is reseeded with the tag after every chunk.
    """

    TAG = b"IDAT"

    def __init__(self, base: BinaryIO, approx_size: int = DEFAULT_IDAT_SIZE):
        if approx_size <= 0:
            raise ValueError(f"IDAT size must be positive, got {approx_size}")
        self._base = base
        self._approx_size = int(approx_size)
        self._buf = bytearray()
        self._crc = zlib.crc32(self.TAG)
        self.chunks_written = 0

    def write(self, data: bytes) -> int:
        view = memoryview(data)
        written = len(view)
        while view:
            room = self._approx_size - len(self._buf)
            if room == 0:
                self.flush()
                continue
            piece = view[:room]
            self._crc = zlib.crc32(piece, self._crc)
            self._buf += piece
            view = view[room:]
        return written

    def flush(self) -> None:
        if not self._buf:
            return
        self._base.write(struct.pack(">I", len(self._buf)))
        self._base.write(self.TAG)
        self._base.write(self._buf)
        self._base.write(struct.pack(">I", self._crc))
        self.chunks_written += 1
        del self._buf[:]
        self._crc = zlib.crc32(self.TAG)

    def close(self) -> None:
        self.flush()

    def __enter__(self) -> "IdatWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        # a failed encode must not emit a half chunk
        if exc_type is None:
            self.close()


def _ihdr(width: int, height: int) -> bytes:
    data = struct.pack(">IIBBBBB", width, height, 8, 6, 0, 0, 0)
    body = b"IHDR" + data
    return struct.pack(">I", len(data)) + body + struct.pack(">I", zlib.crc32(body))


def write_png(
    buffer: PixelBuffer,
    dest: BinaryIO,
    level: int = DEFAULT_LEVEL,
    idat_size: int = DEFAULT_IDAT_SIZE,
) -> int:
    """Stream ``buffer`` to ``dest`` as an 8-bit RGBA PNG. Returns the number of IDAT chunks.

    Rows go through zlib one at a time with filter type 0, swapped from the
    buffer's 0xAARRGGBB words to 0xAABBGGRR so the little-endian bytes come
    out as R, G, B, A. Only one row and one IDAT chunk are held at a time.
    """
    dest.write(PNG_SIGNATURE)
    dest.write(_ihdr(buffer.width, buffer.height))

    rows = buffer.rows()
    line = np.empty(buffer.width, dtype=PIXEL_DTYPE)
    swap = np.empty(buffer.width, dtype=PIXEL_DTYPE)
    compressor = zlib.compressobj(level)
    with IdatWriter(dest, idat_size) as sink:
        for row in rows:
            np.bitwise_and(row, 0xFF00FF00, out=line)
            np.bitwise_and(row, 0x00FF00FF, out=swap)
            # rotate red and blue past each other; uint32 shifts drop the overflow
            line |= (swap >> 16) | (swap << 16)
            sink.write(compressor.compress(b"\x00"))
            sink.write(compressor.compress(line.tobytes()))
        sink.write(compressor.flush())
    dest.write(PNG_FOOTER)
    return sink.chunks_written


def save_png(
    buffer: PixelBuffer,
    path,
    level: int = DEFAULT_LEVEL,
    idat_size: int = DEFAULT_IDAT_SIZE,
) -> Path:
    """Write ``buffer`` to ``path`` through a sibling ``.tmp`` file renamed into place on success."""
    path = Path(path)
    tmp = path.with_name(path.name + ".tmp")
    try:
        with tmp.open("wb") as fh:
            chunks = write_png(buffer, fh, level=level, idat_size=idat_size)
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
    print(f"[PNG] {path.name}: {chunks} IDAT chunk(s), {path.stat().st_size} bytes", flush=True)
    return path
