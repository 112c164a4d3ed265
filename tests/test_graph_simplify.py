from __future__ import annotations

import numpy as np
import pytest

from models.errors import ConfigurationError
from models.graph_simplify import SimplifyConfig, merge_nearby_nodes, prune_spurs, simplify_graph
from models.skeleton_graph import build_topology_graph
from models.topology_graph import NodeKind


def _segment(length: int):
    return build_topology_graph(np.ones((1, length + 1), dtype=bool))


def test_short_stub_is_pruned_and_junction_collapses(stub_bar_skeleton):
    raw = build_topology_graph(stub_bar_skeleton)
    assert raw.node_count == 4
    assert raw.edge_count == 3

    graph = simplify_graph(raw, SimplifyConfig(min_spur_length=5))

    assert sorted(graph.nodes) == [0, 2]
    assert all(node.kind is NodeKind.ENDPOINT for node in graph.nodes.values())
    (edge,) = graph.edges.values()
    assert edge.id == 3
    assert edge.length == pytest.approx(12.0)
    assert edge.polyline[0] == (1.0, 1.0)
    assert edge.polyline[-1] == (13.0, 1.0)
    assert len(edge.polyline) == 13


def test_zero_thresholds_leave_graph_unchanged(t_skeleton):
    raw = build_topology_graph(t_skeleton)

    assert simplify_graph(raw).to_payload() == raw.to_payload()
    assert simplify_graph(raw, SimplifyConfig(0, 0)).to_payload() == raw.to_payload()


def test_pruning_never_adds_edges(t_skeleton):
    raw = build_topology_graph(t_skeleton)

    counts = [prune_spurs(raw, threshold).edge_count for threshold in (0, 1, 3.5, 4.5, 10)]

    assert counts == [3, 3, 1, 1, 0]
    assert counts == sorted(counts, reverse=True)


def test_pruning_shortest_spur_splices_the_junction(t_skeleton):
    graph = prune_spurs(build_topology_graph(t_skeleton), 3.5)

    assert sorted(graph.nodes) == [2, 3]
    (edge,) = graph.edges.values()
    assert edge.endpoints == (2, 3)
    assert edge.length == pytest.approx(7.0)


def test_short_segment_collapses_to_isolated_node():
    graph = prune_spurs(_segment(3), 5)

    (node,) = graph.nodes.values()
    assert node.id == 0
    assert node.kind is NodeKind.ISOLATED
    assert graph.edge_count == 0


def test_merge_turns_inner_edges_into_loops(t_skeleton):
    graph = merge_nearby_nodes(build_topology_graph(t_skeleton), 3.5)

    assert sorted(graph.nodes) == [0, 3]
    merged = graph.node(0)
    assert (merged.x, merged.y) == pytest.approx((4.0, 1.0))
    assert merged.kind is NodeKind.JUNCTION
    assert merged.degree == 5
    assert [edge.id for edge in graph.loop_edges()] == [0, 1]
    assert graph.edge(2).endpoints == (0, 3)


def test_merging_both_ends_of_a_segment_leaves_a_ring_node():
    graph = merge_nearby_nodes(_segment(2), 2)

    (node,) = graph.nodes.values()
    assert (node.x, node.y) == pytest.approx((1.0, 0.0))
    assert node.kind is NodeKind.RING
    (edge,) = graph.edges.values()
    assert edge.loop


def test_simplify_does_not_touch_the_input(stub_bar_skeleton):
    raw = build_topology_graph(stub_bar_skeleton)
    before = raw.to_payload()

    simplify_graph(raw, SimplifyConfig(min_spur_length=5, merge_radius=1))

    assert raw.to_payload() == before


def test_simplify_is_idempotent(stub_bar_skeleton):
    config = SimplifyConfig(min_spur_length=5, merge_radius=1.5)
    once = simplify_graph(build_topology_graph(stub_bar_skeleton), config)

    assert simplify_graph(once, config).to_payload() == once.to_payload()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"min_spur_length": -1},
        {"merge_radius": -0.5},
        {"merge_radius": float("nan")},
        {"min_spur_length": float("inf")},
        {"min_spur_length": "long"},
    ],
)
def test_invalid_thresholds_are_rejected(kwargs):
    with pytest.raises(ConfigurationError):
        SimplifyConfig(**kwargs)


def test_config_flags():
    assert not SimplifyConfig().prunes_spurs
    assert not SimplifyConfig().merges_nodes
    config = SimplifyConfig(min_spur_length=2, merge_radius=1)
    assert config.prunes_spurs
    assert config.merges_nodes
    assert isinstance(config.min_spur_length, float)
