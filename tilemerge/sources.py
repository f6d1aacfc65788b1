from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional

from PIL import Image

from tilemerge.core.grid import TileGrid
from tilemerge.core.handle import RefCountedHandle
from tilemerge.core.rect import Point

PRIMARY = "primary"
FALLBACK = "fallback"


@dataclass(frozen=True)
class MapDefinition:
    """How tile file names of one game export map onto groups and coordinates."""
    main: re.Pattern[str]
    fallback: Optional[re.Pattern[str]]
    pattern: str
    flip_xy: bool = False
    neg_x: bool = False
    neg_y: bool = False


@dataclass(frozen=True)
class Placement:
    group: str
    coord: Point
    role: str


MAP_DEFINITIONS: Dict[str, MapDefinition] = {
    "ui-map": MapDefinition(
        main=re.compile(r"^UI_(?P<name>Map.+)_(?P<x>-?[0-9]+)_(?P<y>-?[0-9]+)\.png$", re.S),
        fallback=re.compile(r"^UI_(?P<name>Map.+)_None\.png$", re.S),
        pattern="UI_Map*.png",
        flip_xy=True,
        neg_x=True,
        neg_y=True,
    ),
    "terrain": MapDefinition(
        main=re.compile(r"^BigWorldTerrain_(?P<x>-?[0-9]+)_(?P<y>-?[0-9]+)\.bin_(?P<name>.+)\.png$", re.S),
        fallback=None,
        pattern="BigWorldTerrain_*.png",
        neg_y=True,
    ),
}


def classify(definition: MapDefinition, filename: str) -> List[Placement]:
    """Every role ``filename`` plays; empty when it matches neither pattern."""
    out: List[Placement] = []
    if definition.fallback is not None:
        m = definition.fallback.match(filename)
        if m:
            out.append(Placement(m.group("name"), (0, 0), FALLBACK))
    m = definition.main.match(filename)
    if m:
        x, y = int(m.group("x")), int(m.group("y"))
        if definition.flip_xy:
            x, y = y, x
        if definition.neg_x:
            x = -x
        if definition.neg_y:
            y = -y
        out.append(Placement(m.group("name"), (x, y), PRIMARY))
    return out


def _open_rgba(path: Path) -> Image.Image:
    with Image.open(path) as im:
        return im.convert("RGBA")


def collect_groups(
    definition: MapDefinition,
    input_dir,
    opener: Callable[[Path], Image.Image] = _open_rgba,
) -> Dict[str, TileGrid]:
    """Load every matching file under ``input_dir`` into per-group grids.

    Each file is opened once; its handle gets one share per grid slot it
    fills, so a file that is both a tile and a fallback is closed only after
    both grids are disposed.
    """
    groups: Dict[str, TileGrid] = {}
    for path in sorted(Path(input_dir).glob(definition.pattern)):
        if not path.is_file():
            continue
        placements = classify(definition, path.name)
        if not placements:
            continue
        try:
            image = opener(path)
        except OSError as e:
            print(f"[TileMerge] skipping {path}: {e}", flush=True)
            continue
        print(f"[TileMerge] {path}", flush=True)
        handle = RefCountedHandle(image)
        for p in placements:
            grid = groups.setdefault(p.group, TileGrid())
            if p.role == FALLBACK:
                grid.set_fallback(handle)
            else:
                x, y = p.coord
                replaced = grid.entry(x, y)
                handle.increase()
                grid.set(x, y, handle)
                if replaced is not None:
                    print(f"[TileMerge] {p.group} {x},{y}: replacing earlier tile", flush=True)
                    replaced.decrease()
    return groups
