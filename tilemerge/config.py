from __future__ import annotations
import argparse
from dataclasses import dataclass
from typing import Callable

from tilemerge.output.png_writer import DEFAULT_IDAT_SIZE, DEFAULT_LEVEL
from tilemerge.sources import MAP_DEFINITIONS

# menu numbers accepted at the interactive mode prompt
_MODE_MENU = {"1": "ui-map", "2": "terrain"}


@dataclass
class Config:
    # Source
    mode: str
    input_dir: str

    # Output
    output_dir: str
    level: int = DEFAULT_LEVEL
    idat_size: int = DEFAULT_IDAT_SIZE

    # Misc
    quiet: bool = False


def _positive_int(value: str) -> int:
    n = int(value)
    if n <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return n


def _clean_path(value: str) -> str:
    return value.strip().strip('"')


def parse_args(argv: list[str] | None = None, prompt: Callable[[str], str] = input) -> Config:
    """Build the run configuration; anything not given on the command line is asked for on stdin."""
    p = argparse.ArgumentParser("tilemerge", description="Merge grid-keyed tile images into one PNG per map.")

    src = p.add_argument_group("Source")
    src.add_argument("--mode", choices=sorted(MAP_DEFINITIONS), default=None,
                     help="File naming scheme of the tiles")
    src.add_argument("--input", dest="input_dir", type=str, default=None, help="Directory holding the tiles")

    out = p.add_argument_group("Output")
    out.add_argument("--output", dest="output_dir", type=str, default=None, help="Directory for merged PNGs")
    out.add_argument("--level", type=int, choices=range(0, 10), default=DEFAULT_LEVEL, metavar="0-9",
                     help="zlib compression level (9 = smallest)")
    out.add_argument("--idat-size", type=_positive_int, default=DEFAULT_IDAT_SIZE,
                     help="Approximate bytes per IDAT chunk")

    misc = p.add_argument_group("Misc")
    misc.add_argument("--quiet", action="store_true", help="Do not log every grid cell")

    args = p.parse_args(argv)

    mode = args.mode
    if mode is None:
        answer = prompt("Mode: [1 (UI_Map) / 2 (BigWorldTerrain)]\n").strip()
        mode = _MODE_MENU.get(answer, answer)
        if mode not in MAP_DEFINITIONS:
            p.error(f"unknown mode {answer!r}")
    input_dir = args.input_dir if args.input_dir is not None else prompt("Input Directory:\n")
    output_dir = args.output_dir if args.output_dir is not None else prompt("Output Directory:\n")

    return Config(
        mode=mode,
        input_dir=_clean_path(input_dir),
        output_dir=_clean_path(output_dir),
        level=args.level,
        idat_size=args.idat_size,
        quiet=args.quiet,
    )
