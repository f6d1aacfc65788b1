from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from tilemerge.output.png_writer import DEFAULT_IDAT_SIZE, DEFAULT_LEVEL, save_png

from .grid import TileGrid
from .pixels import TRANSPARENT, PixelBuffer
from .rect import Rect


@dataclass(frozen=True)
class GridLayout:
    left: int
    top: int
    cols: int
    rows: int
    unit: int

    @classmethod
    def of(cls, grid: TileGrid) -> "GridLayout":
        (left, top), (right, bottom) = grid.bounding_box()
        return cls(left, top, right - left + 1, bottom - top + 1, grid.unit_size())

    @property
    def width(self) -> int:
        return self.cols * self.unit

    @property
    def height(self) -> int:
        return self.rows * self.unit

    def cell_rect(self, x: int, y: int) -> Rect:
        return ((x - self.left) * self.unit, (y - self.top) * self.unit, self.unit, self.unit)

    def cells(self):
        """Grid coordinates in row-major order."""
        for y in range(self.top, self.top + self.rows):
            for x in range(self.left, self.left + self.cols):
                yield x, y


def output_name(group: str, layout: GridLayout) -> str:
    return f"Merged_{group}_{layout.cols}x{layout.rows}@{layout.width}x{layout.height}.png"


class Compositor:
    """Lays a group's tiles out cell by cell into one buffer and writes it as PNG."""

    def __init__(self, level: int = DEFAULT_LEVEL, idat_size: int = DEFAULT_IDAT_SIZE, verbose: bool = True):
        self.level = level
        self.idat_size = idat_size
        self.verbose = verbose

    def compose(self, grid: TileGrid, layout: Optional[GridLayout] = None) -> PixelBuffer:
        """Build the merged buffer. Holes without a fallback stay transparent.

        The grid is left untouched; the caller owns the returned buffer.
        """
        layout = layout or GridLayout.of(grid)
        out = PixelBuffer(layout.width, layout.height)
        try:
            for x, y in layout.cells():
                rect = layout.cell_rect(x, y)
                tile = grid.get(x, y)
                if self.verbose:
                    print(f"[Compositor] {x},{y}:{rect}", flush=True)
                if tile is None:
                    out.fill(TRANSPARENT, rect)
                else:
                    out.copy_from(tile.value, rect)
        except BaseException:
            out.close()
            raise
        return out

    def merge(self, group: str, grid: TileGrid, output_dir) -> Optional[Path]:
        """Compose ``grid``, release its tiles and save the result under ``output_dir``.

        Returns the written path, or None for a group with no tiles.
        """
        try:
            if grid.is_empty:
                return None
            print(f"[Compositor] {group}", flush=True)
            layout = GridLayout.of(grid)
            merged = self.compose(grid, layout)
        finally:
            grid.dispose()
        with merged:
            path = Path(output_dir) / output_name(group, layout)
            return save_png(merged, path, level=self.level, idat_size=self.idat_size)
