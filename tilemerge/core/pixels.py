from __future__ import annotations
from typing import Tuple

import numpy as np
from PIL import Image

from .rect import Point, Rect, clip_to

# One packed 0xAARRGGBB word per pixel, little-endian in memory (B, G, R, A bytes).
PIXEL_DTYPE = np.dtype("<u4")
TRANSPARENT = 0


class InvalidDimensionsError(ValueError):
    """Raised when a buffer is requested with a non-positive width or height."""


class PixelBuffer:
    """Owned row-major block of packed 32bpp ARGB pixels.

    ``bits`` is a flat array of ``width * height`` words; the pixel at (x, y)
    lives at ``y * width + x``. The buffer is never resized; only ``copy_rect``
    and ``fill`` write to it.
    """

    def __init__(self, width: int, height: int):
        width, height = int(width), int(height)
        if width <= 0 or height <= 0:
            raise InvalidDimensionsError(f"invalid buffer size {width}x{height}")
        self.width = width
        self.height = height
        self.bits: np.ndarray | None = np.zeros(width * height, dtype=PIXEL_DTYPE)

    @classmethod
    def from_source(cls, source, width: int, height: int) -> "PixelBuffer":
        """Resample ``source`` (a Pillow image or another buffer) to exactly ``width`` x ``height``.

        Bicubic filtering clamps samples at the image edge, so neighbouring
        cells do not pick up dark or wrapped seams.
        """
        if isinstance(source, PixelBuffer):
            source = source.to_image()
        img = source if source.mode == "RGBA" else source.convert("RGBA")
        if img.size != (width, height):
            img = img.resize((width, height), Image.BICUBIC)
        buf = cls(width, height)
        buf.bits[:] = np.frombuffer(img.tobytes("raw", "BGRA"), dtype=PIXEL_DTYPE)
        return buf

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    @property
    def nbytes(self) -> int:
        return self.width * self.height * PIXEL_DTYPE.itemsize

    @property
    def closed(self) -> bool:
        return self.bits is None

    def rows(self) -> np.ndarray:
        """2-D (height, width) view over ``bits``; writes go through to the buffer."""
        return self.bits.reshape(self.height, self.width)

    def copy_rect(self, dst: "PixelBuffer", rect: Rect) -> None:
        """Copy the top-left ``rect`` w x h block of this buffer into ``dst`` at (rect x, rect y).

        No clipping is done here; use ``copy_to`` when the block may overhang.
        """
        x, y, w, h = rect
        dst.rows()[y:y + h, x:x + w] = self.rows()[:h, :w]

    def copy_to(self, dst: "PixelBuffer", at: Point) -> None:
        self.copy_rect(dst, clip_to(self.size, dst.size, at))

    def copy_from(self, source, rect: Rect) -> None:
        """Resample ``source`` to the rect size and place it at the rect origin."""
        x, y, w, h = rect
        with PixelBuffer.from_source(source, w, h) as cell:
            cell.copy_to(self, (x, y))

    def fill(self, color: int, rect: Rect) -> None:
        x, y, w, h = rect
        offset = y * self.width + x
        if w == self.width:
            # full-width rows are contiguous
            self.bits[offset:offset + w * h] = color
        else:
            for _ in range(h):
                self.bits[offset:offset + w] = color
                offset += self.width

    def to_image(self) -> Image.Image:
        return Image.frombytes("RGBA", self.size, self.bits.tobytes(), "raw", "BGRA")

    def close(self) -> None:
        self.bits = None

    def __enter__(self) -> "PixelBuffer":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"PixelBuffer({self.width}x{self.height})"
