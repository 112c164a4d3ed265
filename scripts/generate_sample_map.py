"""Write synthetic occupancy maps into data/maps for trying the extractor."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Callable, Sequence

import numpy as np
from PIL import Image

REPO_ROOT = Path(__file__).resolve().parents[1]

FREE_VALUE = 254
OCCUPIED_VALUE = 0
UNKNOWN_VALUE = 205


def corridor_map(size: int) -> np.ndarray:
    canvas = np.full((size, size), OCCUPIED_VALUE, dtype=np.uint8)
    mid = size // 2
    canvas[mid - 3 : mid + 4, 4 : size - 4] = FREE_VALUE
    return canvas


def t_junction_map(size: int) -> np.ndarray:
    canvas = np.full((size, size), OCCUPIED_VALUE, dtype=np.uint8)
    mid = size // 2
    canvas[6:13, 4 : size - 4] = FREE_VALUE
    canvas[6 : size - 4, mid - 3 : mid + 4] = FREE_VALUE
    return canvas


def ring_map(size: int) -> np.ndarray:
    rows, cols = np.mgrid[0:size, 0:size]
    centre = (size - 1) / 2.0
    radius = np.hypot(rows - centre, cols - centre)
    outer = size * 0.42
    inner = size * 0.25
    canvas = np.full((size, size), OCCUPIED_VALUE, dtype=np.uint8)
    canvas[(radius <= outer) & (radius >= inner)] = FREE_VALUE
    return canvas


def office_map(size: int) -> np.ndarray:
    """Two rooms on either side of a corridor, plus an unexplored corner."""

    canvas = np.full((size, size), OCCUPIED_VALUE, dtype=np.uint8)
    mid = size // 2
    canvas[mid - 3 : mid + 4, 4 : size - 4] = FREE_VALUE

    room = size // 4
    canvas[6 : 6 + room, 8 : 8 + room] = FREE_VALUE
    canvas[6 + room : mid - 3, 8 + room // 2 - 2 : 8 + room // 2 + 3] = FREE_VALUE

    lower = size - 6 - room
    canvas[lower : lower + room, size - 8 - room : size - 8] = FREE_VALUE
    door = size - 8 - room // 2
    canvas[mid + 4 : lower, door - 2 : door + 3] = FREE_VALUE

    canvas[: size // 5, size - size // 5 :] = UNKNOWN_VALUE
    return canvas


MAP_BUILDERS: dict[str, Callable[[int], np.ndarray]] = {
    "corridor": corridor_map,
    "t_junction": t_junction_map,
    "ring": ring_map,
    "office": office_map,
}


def write_maps(names: Sequence[str], output_dir: Path, size: int) -> list[Path]:
    output_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for name in names:
        builder = MAP_BUILDERS.get(name)
        if builder is None:
            raise ValueError(f"Unknown map '{name}'. Choose from {sorted(MAP_BUILDERS)}.")
        destination = output_dir / f"map_{name}.png"
        Image.fromarray(builder(size)).save(destination)
        written.append(destination)
    return written


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate synthetic greyscale occupancy maps.")
    parser.add_argument(
        "-o",
        "--output-dir",
        type=Path,
        default=REPO_ROOT / "data" / "maps",
        help="Destination directory (default: data/maps).",
    )
    parser.add_argument(
        "--size",
        type=int,
        default=64,
        help="Edge length of each square map in pixels (default: 64).",
    )
    parser.add_argument(
        "names",
        nargs="*",
        default=list(MAP_BUILDERS),
        help=f"Maps to generate (default: all of {', '.join(MAP_BUILDERS)}).",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    if args.size < 32:
        raise SystemExit("--size must be at least 32.")
    written = write_maps(args.names, args.output_dir, args.size)
    print(f"Wrote {len(written)} map(s) into {args.output_dir}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
