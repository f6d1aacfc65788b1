from __future__ import annotations
from typing import Tuple

Rect = Tuple[int, int, int, int]  # x, y, w, h
Point = Tuple[int, int]


def clip_to(size: Tuple[int, int], dst_size: Tuple[int, int], at: Point) -> Rect:
    """Place a ``size`` block at ``at`` inside ``dst_size``, trimming what overhangs."""
    w, h = size
    dw, dh = dst_size
    x, y = at
    return (x, y, min(w, dw - x), min(h, dh - y))
