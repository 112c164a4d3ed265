from __future__ import annotations

import math

import numpy as np
import pytest

from models.errors import InvalidInput, MalformedSkeleton
from models.skeleton_graph import (
    PixelClass,
    _EdgeTracer,
    _pick_continuation,
    build_topology_graph,
    classify_skeleton_pixels,
    reduced_neighbors,
    skeleton_components,
)
from models.topology_graph import NodeKind


def test_straight_line_has_two_endpoints_and_one_edge():
    graph = build_topology_graph(np.ones((1, 20), dtype=bool))

    assert [(node.x, node.y, node.kind) for node in graph.nodes.values()] == [
        (0.0, 0.0, NodeKind.ENDPOINT),
        (19.0, 0.0, NodeKind.ENDPOINT),
    ]
    (edge,) = graph.edges.values()
    assert (edge.node_a, edge.node_b) == (0, 1)
    assert edge.length == pytest.approx(19.0)
    assert len(edge.polyline) == 20
    assert not edge.loop


def test_t_shape_has_single_junction(t_skeleton):
    graph = build_topology_graph(t_skeleton)

    junctions = graph.nodes_of_kind(NodeKind.JUNCTION)
    assert len(junctions) == 1
    junction = junctions[0]
    assert (junction.x, junction.y) == (4.0, 1.0)
    assert junction.degree == 3
    assert len(graph.nodes_of_kind(NodeKind.ENDPOINT)) == 3
    assert graph.edge_count == 3
    assert sorted(edge.length for edge in graph.edges.values()) == [3.0, 3.0, 4.0]


def test_node_ids_follow_row_major_order(t_skeleton):
    graph = build_topology_graph(t_skeleton)

    positions = [(graph.node(node_id).y, graph.node(node_id).x) for node_id in sorted(graph.nodes)]
    assert positions == [(1.0, 1.0), (1.0, 4.0), (1.0, 7.0), (5.0, 4.0)]


def test_edge_polylines_start_and_end_at_their_nodes(t_skeleton):
    graph = build_topology_graph(t_skeleton)

    for edge in graph.edges.values():
        start = graph.node(edge.node_a)
        end = graph.node(edge.node_b)
        assert edge.polyline[0] == (start.x, start.y)
        assert edge.polyline[-1] == (end.x, end.y)


def test_ring_becomes_single_self_loop(ring_skeleton):
    graph = build_topology_graph(ring_skeleton)

    (node,) = graph.nodes.values()
    assert node.kind is NodeKind.RING
    assert (node.x, node.y) == (1.0, 1.0)
    assert node.degree == 2
    (edge,) = graph.edges.values()
    assert edge.loop
    assert edge.node_a == edge.node_b == node.id
    assert edge.length == pytest.approx(24.0)
    assert edge.polyline[0] == edge.polyline[-1] == (1.0, 1.0)
    assert edge.polyline[1] == (2.0, 1.0)


def test_isolated_pixel_becomes_isolated_node():
    mask = np.zeros((3, 3), dtype=bool)
    mask[1, 1] = True

    graph = build_topology_graph(mask)

    (node,) = graph.nodes.values()
    assert node.kind is NodeKind.ISOLATED
    assert graph.edge_count == 0


def test_empty_skeleton_gives_empty_graph():
    graph = build_topology_graph(np.zeros((4, 4), dtype=bool))
    assert graph.node_count == 0
    assert graph.edge_count == 0


def test_diagonal_line_keeps_diagonal_steps():
    mask = np.eye(3, dtype=bool)

    assert reduced_neighbors(mask, 1, 1) == [(2, 2), (0, 0)]
    graph = build_topology_graph(mask)
    (edge,) = graph.edges.values()
    assert edge.length == pytest.approx(2 * math.sqrt(2))


def test_diagonal_is_dropped_next_to_orthogonal_neighbour(t_skeleton):
    assert reduced_neighbors(t_skeleton, 1, 3) == [(1, 4), (1, 2)]
    assert reduced_neighbors(t_skeleton, 2, 4) == [(1, 4), (3, 4)]


def test_classification_of_t_pixels(t_skeleton):
    classes = classify_skeleton_pixels(t_skeleton)

    assert classes[(1, 4)] is PixelClass.JUNCTION
    assert classes[(1, 1)] is PixelClass.ENDPOINT
    assert classes[(5, 4)] is PixelClass.ENDPOINT
    assert classes[(1, 3)] is PixelClass.PASS_THROUGH
    assert classes[(3, 4)] is PixelClass.PASS_THROUGH
    assert len(classes) == int(t_skeleton.sum())


def test_components_report_scan_order_seeds(t_skeleton):
    mask = t_skeleton.copy()
    mask[6, 8] = True

    components = skeleton_components(mask)

    assert [(c.seed, c.pixel_count) for c in components] == [((1, 1), 11), ((6, 8), 1)]


def test_disconnected_pieces_stay_separate(t_skeleton, ring_skeleton):
    combined = np.zeros((9, 20), dtype=bool)
    combined[:7, :9] = t_skeleton
    combined[:, 11:] = ring_skeleton

    graph = build_topology_graph(combined)

    assert len(graph.components()) == 2
    assert len(graph.loop_edges()) == 1
    ring_node = graph.nodes_of_kind(NodeKind.RING)[0]
    assert ring_node.id == max(graph.nodes)


def test_tracer_stalls_on_dangling_pass_through():
    mask = np.ones((1, 5), dtype=bool)
    neighbor_map = {(0, col): reduced_neighbors(mask, 0, col) for col in range(5)}
    tracer = _EdgeTracer(neighbor_map, {(0, 0): 0})

    with pytest.raises(MalformedSkeleton):
        tracer.trace((0, 0), (0, 1))


def test_non_2d_skeleton_is_invalid():
    with pytest.raises(InvalidInput):
        build_topology_graph(np.ones((2, 2, 2), dtype=bool))


def test_continuation_prefers_straight_ahead():
    # Heading east from (1, 0) to (1, 1).
    assert _pick_continuation((1, 0), (1, 1), [(0, 2), (1, 2)]) == (1, 2)


def test_continuation_breaks_equal_turns_by_scan_order():
    assert _pick_continuation((1, 0), (1, 1), [(2, 2), (0, 2)]) == (0, 2)
    assert _pick_continuation((0, 1), (1, 1), [(2, 0), (2, 2)]) == (2, 2)


def test_ring_anchor_uses_components_from_one_labelling(ring_skeleton):
    mask = np.zeros((9, 12), dtype=bool)
    mask[:, :9] = ring_skeleton
    mask[4, 11] = True

    graph = build_topology_graph(mask)

    assert [(node.kind, node.x, node.y) for node in graph.nodes.values()] == [
        (NodeKind.ISOLATED, 11.0, 4.0),
        (NodeKind.RING, 1.0, 1.0),
    ]
