from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

import numpy as np
from loguru import logger
from skimage.measure import label

from .errors import MalformedSkeleton
from .thinning import RIM_OFFSETS, as_binary_mask
from .topology_graph import NodeKind, Point, TopologyGraph, WorkingGraph

# Scan order N, NE, E, SE, S, SW, W, NW; also the tie-break order while tracing.
SCAN_OFFSETS: tuple[tuple[int, int], ...] = RIM_OFFSETS
_SCAN_RANK = {offset: index for index, offset in enumerate(SCAN_OFFSETS)}

Pixel = tuple[int, int]  # (row, col)


class PixelClass(str, Enum):
    ENDPOINT = "endpoint"
    JUNCTION = "junction"
    PASS_THROUGH = "pass_through"
    ISOLATED = "isolated"


_NODE_KIND = {
    PixelClass.ENDPOINT: NodeKind.ENDPOINT,
    PixelClass.JUNCTION: NodeKind.JUNCTION,
    PixelClass.ISOLATED: NodeKind.ISOLATED,
}


@dataclass(frozen=True, slots=True)
class SkeletonComponent:
    """One 8-connected piece of the skeleton and its first pixel in scan order."""

    label: int
    seed: Pixel
    pixel_count: int


def build_topology_graph(skeleton: np.ndarray) -> TopologyGraph:
    """Turn a 1-pixel-wide skeleton into a raw topology graph.

    Steps:
      1) Classify foreground pixels by reduced 8-neighbour count.
      2) Create a node for every endpoint, junction and isolated pixel
         (ids in row-major order).
      3) From every node, walk each unwalked neighbour chain to the next node.
      4) Give every component without nodes a ring node plus one self-loop.
    """

    mask = as_binary_mask(skeleton)
    neighbor_map = _neighbor_map(mask)
    working = WorkingGraph()
    if not neighbor_map:
        return working.freeze()
    labeled, count = label(mask, connectivity=2, return_num=True)
    components = _components_from_labels(labeled, count)

    node_at: dict[Pixel, int] = {}
    for pixel in sorted(neighbor_map):
        pixel_class = _classify(len(neighbor_map[pixel]))
        if pixel_class is PixelClass.PASS_THROUGH:
            continue
        node_at[pixel] = working.add_node(*_to_xy(pixel), kind=_NODE_KIND[pixel_class])

    tracer = _EdgeTracer(neighbor_map, node_at)
    for pixel, node_id in sorted(node_at.items(), key=lambda item: item[1]):
        for neighbor in neighbor_map[pixel]:
            if tracer.walked(pixel, neighbor):
                continue
            path = tracer.trace(pixel, neighbor)
            working.add_edge(node_id, node_at[path[-1]], [_to_xy(p) for p in path])

    for anchor in _ring_anchors(labeled, components, node_at):
        ring_id = working.add_node(*_to_xy(anchor), kind=NodeKind.RING)
        node_at[anchor] = ring_id
        path = tracer.trace(anchor, neighbor_map[anchor][0])
        if path[-1] != anchor:
            raise MalformedSkeleton(f"Ring walk from {_to_xy(anchor)} did not close on itself.")
        working.add_edge(ring_id, ring_id, [_to_xy(p) for p in path])
        logger.debug("Ring component anchored at {} spans {} pixel(s)", _to_xy(anchor), len(path) - 1)

    leftovers = set(neighbor_map) - set(node_at) - tracer.visited
    if leftovers:
        first = _to_xy(min(leftovers))
        raise MalformedSkeleton(
            f"{len(leftovers)} pass-through pixel(s) were never reached, first at {first}."
        )

    graph = working.freeze()
    logger.debug("Raw skeleton graph: {} node(s), {} edge(s)", graph.node_count, graph.edge_count)
    return graph


def classify_skeleton_pixels(skeleton: np.ndarray) -> dict[Pixel, PixelClass]:
    """Return the class of every foreground pixel keyed by ``(row, col)``."""

    neighbor_map = _neighbor_map(as_binary_mask(skeleton))
    return {pixel: _classify(len(neighbors)) for pixel, neighbors in neighbor_map.items()}


def skeleton_components(skeleton: np.ndarray) -> list[SkeletonComponent]:
    labeled, count = label(as_binary_mask(skeleton), connectivity=2, return_num=True)
    return _components_from_labels(labeled, count)


def _components_from_labels(labeled: np.ndarray, count: int) -> list[SkeletonComponent]:
    if count == 0:
        return []
    sizes = np.bincount(labeled.ravel(), minlength=count + 1)
    seeds: dict[int, Pixel] = {}
    for row, col in np.argwhere(labeled > 0):
        component = int(labeled[row, col])
        if component not in seeds:
            seeds[component] = (int(row), int(col))
            if len(seeds) == count:
                break
    components = [
        SkeletonComponent(label=component, seed=seeds[component], pixel_count=int(sizes[component]))
        for component in range(1, count + 1)
    ]
    for index, component in enumerate(components, start=1):
        logger.debug(
            "Seed point #{}: {}, {} pixel(s) connected",
            index,
            _to_xy(component.seed),
            component.pixel_count,
        )
    return components


def reduced_neighbors(mask: np.ndarray, row: int, col: int) -> list[Pixel]:
    """Foreground neighbours of ``(row, col)`` in scan order.

    A diagonal neighbour is dropped when either orthogonal pixel flanking it
    is foreground; the diagonal is then reachable through that pixel and would
    otherwise turn the corners of thin L and T shapes into junctions.
    """

    height, width = mask.shape
    neighbors: list[Pixel] = []
    for d_row, d_col in SCAN_OFFSETS:
        nr, nc = row + d_row, col + d_col
        if not (0 <= nr < height and 0 <= nc < width) or not mask[nr, nc]:
            continue
        if d_row != 0 and d_col != 0 and (mask[row, nc] or mask[nr, col]):
            continue
        neighbors.append((nr, nc))
    return neighbors


class _EdgeTracer:
    """Walks pass-through chains, remembering walked steps and visited pixels."""

    def __init__(self, neighbor_map: dict[Pixel, list[Pixel]], node_at: dict[Pixel, int]) -> None:
        self._neighbors = neighbor_map
        self._nodes = node_at
        self._walked: set[tuple[Pixel, Pixel]] = set()
        self.visited: set[Pixel] = set()

    def walked(self, a: Pixel, b: Pixel) -> bool:
        return _step_key(a, b) in self._walked

    def trace(self, origin: Pixel, first: Pixel) -> list[Pixel]:
        path = [origin, first]
        self._walked.add(_step_key(origin, first))
        prev, curr = origin, first
        while curr not in self._nodes:
            self.visited.add(curr)
            candidates = [
                neighbor
                for neighbor in self._neighbors[curr]
                if neighbor != prev
                and _step_key(curr, neighbor) not in self._walked
                and (neighbor in self._nodes or neighbor not in self.visited)
            ]
            if not candidates:
                raise MalformedSkeleton(
                    f"Tracing from {_to_xy(origin)} stalled at pass-through pixel {_to_xy(curr)}."
                )
            if len(candidates) > 1:
                logger.debug(
                    "Ambiguous continuation at {}: {} candidate(s)", _to_xy(curr), len(candidates)
                )
            nxt = _pick_continuation(prev, curr, candidates)
            self._walked.add(_step_key(curr, nxt))
            path.append(nxt)
            prev, curr = curr, nxt
        return path


def _pick_continuation(prev: Pixel, curr: Pixel, candidates: list[Pixel]) -> Pixel:
    """Prefer the smallest turn from the incoming heading, then scan order.

    On the reduced neighbourhood a pass-through pixel offers a single
    candidate, so this ranking only applies to hand-built neighbour maps.
    """

    heading = (curr[0] - prev[0], curr[1] - prev[1])

    def rank(candidate: Pixel) -> tuple[float, int]:
        step = (candidate[0] - curr[0], candidate[1] - curr[1])
        cross = heading[0] * step[1] - heading[1] * step[0]
        dot = heading[0] * step[0] + heading[1] * step[1]
        turn = abs(math.atan2(cross, dot))
        return round(turn, 9), _SCAN_RANK[step]

    return min(candidates, key=rank)


def _ring_anchors(
    labeled: np.ndarray,
    components: list[SkeletonComponent],
    node_at: dict[Pixel, int],
) -> list[Pixel]:
    """Anchor pixel (smallest ``(x, y)``) of every component without nodes."""

    with_nodes = {int(labeled[row, col]) for row, col in node_at}
    anchors: list[Pixel] = []
    for component in components:
        if component.label in with_nodes:
            continue
        coords = np.argwhere(labeled == component.label)
        row, col = min(((int(r), int(c)) for r, c in coords), key=lambda rc: (rc[1], rc[0]))
        anchors.append((row, col))
    return anchors


def _neighbor_map(mask: np.ndarray) -> dict[Pixel, list[Pixel]]:
    return {
        (int(row), int(col)): reduced_neighbors(mask, int(row), int(col))
        for row, col in np.argwhere(mask)
    }


def _classify(count: int) -> PixelClass:
    if count == 0:
        return PixelClass.ISOLATED
    if count == 1:
        return PixelClass.ENDPOINT
    if count == 2:
        return PixelClass.PASS_THROUGH
    return PixelClass.JUNCTION


def _step_key(a: Pixel, b: Pixel) -> tuple[Pixel, Pixel]:
    return (a, b) if a <= b else (b, a)


def _to_xy(pixel: Pixel) -> Point:
    return float(pixel[1]), float(pixel[0])


__all__ = [
    "PixelClass",
    "SCAN_OFFSETS",
    "SkeletonComponent",
    "build_topology_graph",
    "classify_skeleton_pixels",
    "reduced_neighbors",
    "skeleton_components",
]
