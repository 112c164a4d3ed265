"""End-to-end topology extraction: occupancy bitmap -> simplified graph.

Every call owns its own buffers and returns fresh results, so concurrent
calls never share state and a timed-out call can simply be discarded.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from loguru import logger

from .errors import InvalidInput
from .graph_simplify import SimplifyConfig, simplify_graph
from .occupancy import OccupancyBitmap
from .skeleton_graph import build_topology_graph
from .thinning import ThinningStats, zhang_suen_thinning_with_stats
from .topology_graph import TopologyGraph


@dataclass(frozen=True, slots=True)
class TopologyArtifacts:
    """Intermediate and final products of one extraction call."""

    free_mask: np.ndarray
    skeleton: np.ndarray
    raw_graph: TopologyGraph
    graph: TopologyGraph
    thinning: ThinningStats


def extract_topology(
    bitmap: OccupancyBitmap | np.ndarray,
    config: SimplifyConfig | None = None,
    *,
    max_thinning_passes: int | None = None,
) -> TopologyGraph:
    """Return the simplified topology graph of the bitmap's free space."""

    return extract_topology_artifacts(
        bitmap,
        config,
        max_thinning_passes=max_thinning_passes,
    ).graph


def extract_topology_artifacts(
    bitmap: OccupancyBitmap | np.ndarray,
    config: SimplifyConfig | None = None,
    *,
    max_thinning_passes: int | None = None,
) -> TopologyArtifacts:
    """Run thinning, graph building and simplification, keeping every stage.

    Args:
        bitmap: Occupancy bitmap, or a boolean array where ``True`` is free.
        config: Spur/merge thresholds; defaults disable both steps.
        max_thinning_passes: Optional cap on Zhang-Suen passes.

    Returns:
        TopologyArtifacts with the free mask, the skeleton, the raw graph and
        the simplified graph.

    Raises:
        InvalidInput: If the bitmap is zero-sized or malformed.
        MalformedSkeleton: If edge tracing stalls.
        ConfigurationError: If a threshold is out of range.
    """

    cfg = config or SimplifyConfig()
    occupancy = _coerce_bitmap(bitmap)
    free_mask = occupancy.free_space_mask()
    logger.debug("Occupancy {}x{}: {}", occupancy.width, occupancy.height, occupancy.counts())

    skeleton, stats = zhang_suen_thinning_with_stats(free_mask, max_passes=max_thinning_passes)
    logger.debug(
        "Thinning converged={} after {} pass(es), {} pixel(s) removed",
        stats.converged,
        stats.passes,
        stats.removed,
    )

    raw_graph = build_topology_graph(skeleton)
    graph = simplify_graph(raw_graph, cfg)
    return TopologyArtifacts(
        free_mask=free_mask,
        skeleton=skeleton,
        raw_graph=raw_graph,
        graph=graph,
        thinning=stats,
    )


def _coerce_bitmap(bitmap: OccupancyBitmap | np.ndarray) -> OccupancyBitmap:
    if isinstance(bitmap, OccupancyBitmap):
        return bitmap
    if isinstance(bitmap, np.ndarray) and bitmap.dtype == bool:
        return OccupancyBitmap.from_free_mask(bitmap)
    raise InvalidInput(
        f"Expected an OccupancyBitmap or a boolean free-space mask, got {type(bitmap).__name__}."
    )


__all__ = [
    "TopologyArtifacts",
    "extract_topology",
    "extract_topology_artifacts",
]
