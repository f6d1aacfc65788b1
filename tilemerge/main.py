from __future__ import annotations
import sys
from pathlib import Path
from typing import Optional

from tilemerge.config import parse_args
from tilemerge.core.compositor import Compositor
from tilemerge.sources import MAP_DEFINITIONS, collect_groups


def main(argv: Optional[list[str]] = None) -> int:
    cfg = parse_args(argv)
    definition = MAP_DEFINITIONS[cfg.mode]
    output_dir = Path(cfg.output_dir).expanduser()
    output_dir.mkdir(parents=True, exist_ok=True)

    groups = collect_groups(definition, Path(cfg.input_dir).expanduser())
    if not groups:
        print(f"[TileMerge] no {definition.pattern} tiles in {cfg.input_dir}", flush=True)
        return 0

    comp = Compositor(level=cfg.level, idat_size=cfg.idat_size, verbose=not cfg.quiet)
    pending = list(groups.items())
    try:
        while pending:
            name, grid = pending.pop(0)
            path = comp.merge(name, grid, output_dir)
            if path is not None:
                print(f"[TileMerge] {path}", flush=True)
    finally:
        # a failed merge still has to release tiles shared with later groups
        for _, grid in pending:
            grid.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main())
