"""Batch topology extraction over every map in the data directory.

Run ``python -m controllers.pipeline --help`` for the available options.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from loguru import logger

from controllers.data_paths import DataPaths
from controllers.settings import TopologySettings, load_settings
from controllers.topology import TopologyRunResult, extract_map_topology
from models.errors import TopologyError
from models.graph_simplify import SimplifyConfig


@dataclass(slots=True)
class BatchOptions:
    """Thresholds and limits shared by every map of one batch run."""

    config: SimplifyConfig
    free_threshold: int
    occupied_threshold: int
    negate: bool = False
    preview_scale: int = 1
    limit: int | None = None

    @classmethod
    def from_settings(cls, settings: TopologySettings) -> BatchOptions:
        return cls(
            config=settings.simplify_config(),
            free_threshold=settings.free_threshold,
            occupied_threshold=settings.occupied_threshold,
        )


def process_map_directory(paths: DataPaths, options: BatchOptions) -> list[TopologyRunResult]:
    """Extract every map under ``paths.maps_dir``; stops at the first failure."""

    map_paths = paths.list_maps()
    if options.limit is not None:
        map_paths = map_paths[: options.limit]

    results: list[TopologyRunResult] = []
    total = len(map_paths)
    for idx, map_path in enumerate(map_paths, start=1):
        result = extract_map_topology(
            map_path,
            data_paths=paths,
            config=options.config,
            free_threshold=options.free_threshold,
            occupied_threshold=options.occupied_threshold,
            negate=options.negate,
            preview_scale=options.preview_scale,
        )
        logger.info("[{}/{}] {} -> {}", idx, total, map_path.name, result.graph_json_path.name)
        results.append(result)
    return results


def configure_logging(*, debug: bool = False) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if debug else "INFO")


def _cli(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Extract topology graphs from every occupancy map under <data-dir>/maps."
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a config.toml with a [topology] section (default: project config.toml).",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Root data directory (default: data_dir from config.toml or TOPOMAP_DATA_DIR).",
    )
    parser.add_argument(
        "--min-spur-length",
        type=float,
        default=None,
        help="Prune dead-end edges shorter than this many pixels (0 disables).",
    )
    parser.add_argument(
        "--merge-radius",
        type=float,
        default=None,
        help="Merge nodes closer than this many pixels (0 disables).",
    )
    parser.add_argument(
        "--free-threshold",
        type=int,
        default=None,
        help="Grey value at or above which a map pixel counts as free (default: 250).",
    )
    parser.add_argument(
        "--occupied-threshold",
        type=int,
        default=None,
        help="Grey value at or below which a map pixel counts as occupied (default: 50).",
    )
    parser.add_argument(
        "--negate",
        action="store_true",
        help="Invert map intensities before classifying cells.",
    )
    parser.add_argument(
        "--preview-scale",
        type=int,
        default=1,
        help="Upscaling factor for preview PNGs (default: 1).",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Only process the first N maps.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    args = parser.parse_args(argv)

    configure_logging(debug=args.debug)

    try:
        settings = load_settings(args.config)
        options = BatchOptions.from_settings(settings)
        options.config = SimplifyConfig(
            min_spur_length=(
                settings.min_spur_length if args.min_spur_length is None else args.min_spur_length
            ),
            merge_radius=settings.merge_radius if args.merge_radius is None else args.merge_radius,
        )
    except TopologyError as exc:
        parser.error(str(exc))

    if args.free_threshold is not None:
        options.free_threshold = args.free_threshold
    if args.occupied_threshold is not None:
        options.occupied_threshold = args.occupied_threshold
    options.negate = args.negate
    options.preview_scale = max(1, args.preview_scale)
    options.limit = args.limit

    paths = DataPaths.from_data_dir(args.data_dir or settings.data_dir)
    if not paths.maps_dir.exists():
        parser.error(f"{paths.maps_dir} does not exist.")
    paths.ensure_directories()

    if not paths.list_maps():
        logger.warning("No PNG/PGM maps found under {}", paths.maps_dir)
        return 0

    try:
        results = process_map_directory(paths, options)
    except (TopologyError, OSError) as exc:
        logger.error("Extraction failed: {}", exc)
        return 1

    logger.info("Processed {} map(s). Graphs written to {}.", len(results), paths.graph_dir)
    return 0


__all__ = [
    "BatchOptions",
    "configure_logging",
    "process_map_directory",
]


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(_cli())
