from __future__ import annotations
from typing import Dict, Optional, Tuple

from .handle import RefCountedHandle
from .rect import Point


class EmptyGridError(ValueError):
    """Raised when a bounding box is requested from a grid with no entries."""


class TileGrid:
    """Tiles of one group keyed by integer grid coordinate, plus a fallback tile.

    Every handle held by the grid stands for one ownership share that the grid
    gives back in ``dispose()``.
    """

    def __init__(self):
        self._entries: Dict[Point, RefCountedHandle] = {}
        self._fallback: Optional[RefCountedHandle] = None

    @property
    def fallback(self) -> Optional[RefCountedHandle]:
        return self._fallback

    @property
    def is_empty(self) -> bool:
        return not self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def set(self, x: int, y: int, handle: Optional[RefCountedHandle]) -> None:
        """Store ``handle`` at (x, y), taking over one share the caller already increased.

        A handle that was stored at (x, y) before is dropped without being
        released, and ``None`` removes the entry the same way; releasing those
        shares is up to the caller.
        """
        if handle is None:
            self._entries.pop((x, y), None)
        else:
            self._entries[(x, y)] = handle

    def get(self, x: int, y: int) -> Optional[RefCountedHandle]:
        return self._entries.get((x, y), self._fallback)

    def entry(self, x: int, y: int) -> Optional[RefCountedHandle]:
        """The tile stored at (x, y) itself, ignoring the fallback."""
        return self._entries.get((x, y))

    def set_fallback(self, handle: Optional[RefCountedHandle]) -> None:
        """Release the current fallback and retain ``handle`` in its place."""
        if self._fallback is not None:
            self._fallback.decrease()
        if handle is not None:
            handle.increase()
        self._fallback = handle

    def bounding_box(self) -> Tuple[Point, Point]:
        if not self._entries:
            raise EmptyGridError("grid has no tiles")
        xs = [x for x, _ in self._entries]
        ys = [y for _, y in self._entries]
        return (min(xs), min(ys)), (max(xs), max(ys))

    def unit_size(self) -> int:
        """Largest tile side among the entries; used as the width and height of every cell."""
        if not self._entries:
            raise EmptyGridError("grid has no tiles")
        return max(max(h.value.width, h.value.height) for h in self._entries.values())

    def dispose(self) -> None:
        if self._fallback is not None:
            self._fallback.decrease()
        for handle in self._entries.values():
            handle.decrease()
        self._fallback = None
        self._entries.clear()
