"""Spur pruning and node merging on topology graphs.

Both steps work on a :class:`WorkingGraph` copy and hand back a fresh frozen
graph; the input graph is never touched.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace

from loguru import logger

from .errors import ConfigurationError
from .topology_graph import GraphEdge, TopologyGraph, WorkingGraph


@dataclass(frozen=True, slots=True)
class SimplifyConfig:
    """Thresholds in pixels; a value of zero disables the matching step."""

    min_spur_length: float = 0.0
    merge_radius: float = 0.0

    def __post_init__(self) -> None:
        for name in ("min_spur_length", "merge_radius"):
            value = getattr(self, name)
            try:
                number = float(value)
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(f"{name} must be a number, got {value!r}.") from exc
            if not math.isfinite(number) or number < 0:
                raise ConfigurationError(f"{name} must be a finite non-negative distance, got {value!r}.")
            object.__setattr__(self, name, number)

    @property
    def prunes_spurs(self) -> bool:
        return self.min_spur_length > 0

    @property
    def merges_nodes(self) -> bool:
        return self.merge_radius > 0


def simplify_graph(graph: TopologyGraph, config: SimplifyConfig | None = None) -> TopologyGraph:
    """Prune spurs and merge near-coincident nodes until neither changes anything."""

    cfg = config or SimplifyConfig()
    working = WorkingGraph.from_graph(graph)
    rounds = 0
    while True:
        changed = False
        if cfg.prunes_spurs:
            changed |= prune_spurs_inplace(working, cfg.min_spur_length)
        if cfg.merges_nodes:
            changed |= merge_nearby_nodes_inplace(working, cfg.merge_radius)
        rounds += 1
        if not changed:
            break
    result = working.freeze()
    logger.debug(
        "Simplified graph in {} round(s): {} -> {} node(s), {} -> {} edge(s)",
        rounds,
        graph.node_count,
        result.node_count,
        graph.edge_count,
        result.edge_count,
    )
    return result


def prune_spurs(graph: TopologyGraph, min_spur_length: float) -> TopologyGraph:
    cfg = SimplifyConfig(min_spur_length=min_spur_length)
    working = WorkingGraph.from_graph(graph)
    if cfg.prunes_spurs:
        prune_spurs_inplace(working, cfg.min_spur_length)
    return working.freeze()


def merge_nearby_nodes(graph: TopologyGraph, merge_radius: float) -> TopologyGraph:
    cfg = SimplifyConfig(merge_radius=merge_radius)
    working = WorkingGraph.from_graph(graph)
    if cfg.merges_nodes:
        merge_nearby_nodes_inplace(working, cfg.merge_radius)
    return working.freeze()


def prune_spurs_inplace(working: WorkingGraph, threshold: float) -> bool:
    """Remove dead-end edges shorter than ``threshold``, shortest first.

    After each removal the node on the other side is spliced out when it is
    left with exactly two distinct edges. Every step removes at least one
    edge, so the loop terminates.
    """

    removed = False
    while True:
        spur = _shortest_spur(working, threshold)
        if spur is None:
            return removed
        edge, leaf = spur
        anchor = edge.other(leaf)
        working.remove_node(leaf)
        removed = True
        logger.debug("Pruned spur edge {} (length {:.2f}) at node {}", edge.id, edge.length, leaf)
        if working.degree(anchor) == 2:
            spliced = working.splice(anchor)
            if spliced is not None:
                logger.debug("Collapsed node {} into edge {}", anchor, spliced.id)


def merge_nearby_nodes_inplace(working: WorkingGraph, radius: float) -> bool:
    """Union nodes closer than ``radius`` into one node at their centroid.

    The merged node keeps the smallest member id. Edges between members of
    one group become flagged self-loops and are kept.
    """

    node_ids = sorted(working.nodes)
    parent = {node_id: node_id for node_id in node_ids}

    def find(node_id: int) -> int:
        while parent[node_id] != node_id:
            parent[node_id] = parent[parent[node_id]]
            node_id = parent[node_id]
        return node_id

    def union(a: int, b: int) -> None:
        root_a = find(a)
        root_b = find(b)
        if root_a == root_b:
            return
        # The smaller id stays the root so the merged node keeps it.
        if root_a < root_b:
            parent[root_b] = root_a
        else:
            parent[root_a] = root_b

    for index, a in enumerate(node_ids):
        node_a = working.nodes[a]
        for b in node_ids[index + 1 :]:
            node_b = working.nodes[b]
            if math.hypot(node_a.x - node_b.x, node_a.y - node_b.y) <= radius:
                union(a, b)

    groups: dict[int, list[int]] = {}
    for node_id in node_ids:
        groups.setdefault(find(node_id), []).append(node_id)

    merged_roots = [root for root, members in groups.items() if len(members) > 1]
    if not merged_roots:
        return False

    for root in merged_roots:
        members = groups[root]
        member_set = set(members)
        centroid_x = sum(working.nodes[m].x for m in members) / len(members)
        centroid_y = sum(working.nodes[m].y for m in members) / len(members)
        for member in members:
            if member == root:
                continue
            for edge_id in working.incident_edges(member):
                edge = working.edges[edge_id]
                u = root if edge.node_a in member_set else edge.node_a
                v = root if edge.node_b in member_set else edge.node_b
                working.repoint_edge(edge_id, u, v)
            working.remove_node(member)
        working.nodes[root] = replace(working.nodes[root], x=centroid_x, y=centroid_y)
        logger.debug("Merged nodes {} into node {} at ({:.2f}, {:.2f})", members, root, centroid_x, centroid_y)

    for root in merged_roots:
        if root in working.nodes and working.degree(root) == 2:
            working.splice(root)
    return True


def _shortest_spur(working: WorkingGraph, threshold: float) -> tuple[GraphEdge, int] | None:
    for edge in sorted(working.edges.values(), key=lambda item: (item.length, item.id)):
        if edge.length >= threshold:
            return None
        if edge.loop:
            continue
        leaves = [node_id for node_id in edge.endpoints if working.degree(node_id) == 1]
        if leaves:
            return edge, max(leaves)
    return None


__all__ = [
    "SimplifyConfig",
    "merge_nearby_nodes",
    "merge_nearby_nodes_inplace",
    "prune_spurs",
    "prune_spurs_inplace",
    "simplify_graph",
]
