import numpy as np
import pytest

from tilemerge.core.pixels import PixelBuffer


class Closable:
    """Stand-in tile value that counts close() calls."""

    def __init__(self, width=4, height=4):
        self.width = width
        self.height = height
        self.closed = 0

    def close(self):
        self.closed += 1


@pytest.fixture
def closable():
    return Closable


@pytest.fixture
def noise_buffer():
    def make(w, h, seed=0):
        buf = PixelBuffer(w, h)
        rng = np.random.default_rng(seed)
        buf.bits[:] = rng.integers(0, 2 ** 32, size=w * h, dtype=np.uint32)
        return buf
    return make
