from __future__ import annotations

import json
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Sequence

from .errors import GraphInvariantError

Point = tuple[float, float]


class NodeKind(str, Enum):
    ENDPOINT = "endpoint"
    JUNCTION = "junction"
    RING = "ring"
    ISOLATED = "isolated"


def kind_for_degree(degree: int) -> NodeKind:
    """Map a node degree onto its kind.

    Pass-through nodes are always spliced out of the graph, so a degree of two
    can only come from a single self-loop.
    """

    if degree == 0:
        return NodeKind.ISOLATED
    if degree == 1:
        return NodeKind.ENDPOINT
    if degree == 2:
        return NodeKind.RING
    return NodeKind.JUNCTION


def polyline_length(points: Sequence[Point]) -> float:
    total = 0.0
    for a, b in zip(points, points[1:]):
        total += math.hypot(b[0] - a[0], b[1] - a[1])
    return total


@dataclass(frozen=True, slots=True)
class GraphNode:
    """Branch or end point of navigable space, in (x, y) pixel coordinates."""

    id: int
    x: float
    y: float
    degree: int = 0
    kind: NodeKind = NodeKind.ISOLATED

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "x": float(self.x),
            "y": float(self.y),
            "kind": self.kind.value,
            "degree": self.degree,
        }


@dataclass(frozen=True, slots=True)
class GraphEdge:
    """Path between two nodes; ``loop`` marks a deliberate self-loop."""

    id: int
    node_a: int
    node_b: int
    polyline: tuple[Point, ...]
    length: float
    loop: bool = False

    @property
    def endpoints(self) -> tuple[int, int]:
        return self.node_a, self.node_b

    def other(self, node_id: int) -> int:
        if node_id == self.node_a:
            return self.node_b
        if node_id == self.node_b:
            return self.node_a
        raise ValueError(f"Node {node_id} is not incident to edge {self.id}.")

    def polyline_from(self, node_id: int) -> tuple[Point, ...]:
        """Return the polyline oriented to start at ``node_id``."""

        if node_id == self.node_a:
            return self.polyline
        if node_id == self.node_b:
            return tuple(reversed(self.polyline))
        raise ValueError(f"Node {node_id} is not incident to edge {self.id}.")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "node_a": self.node_a,
            "node_b": self.node_b,
            "length": float(self.length),
            "loop": self.loop,
            "polyline": [[_plain(x), _plain(y)] for x, y in self.polyline],
        }


@dataclass(frozen=True, slots=True)
class TopologyGraph:
    """Immutable node/edge graph of navigable space handed to consumers.

    Construction validates the structure: every edge must reference existing
    nodes, only flagged loop edges may share both endpoints, and every node's
    cached degree must match its incident edges (a self-loop counts twice).
    """

    nodes: Mapping[int, GraphNode]
    edges: Mapping[int, GraphEdge]
    _adjacency: Mapping[int, frozenset[tuple[int, int]]] = field(
        init=False, repr=False, compare=False
    )

    # Compared by value; the mapping proxies are not hashable.
    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        nodes = dict(self.nodes)
        edges = dict(self.edges)
        adjacency: dict[int, set[tuple[int, int]]] = {node_id: set() for node_id in nodes}
        degrees = {node_id: 0 for node_id in nodes}

        for node_id, node in nodes.items():
            if node.id != node_id:
                raise GraphInvariantError(f"Node keyed {node_id} carries id {node.id}.")
        for edge_id, edge in edges.items():
            if edge.id != edge_id:
                raise GraphInvariantError(f"Edge keyed {edge_id} carries id {edge.id}.")
            for endpoint in edge.endpoints:
                if endpoint not in nodes:
                    raise GraphInvariantError(
                        f"Edge {edge_id} references missing node {endpoint}."
                    )
            is_self = edge.node_a == edge.node_b
            if is_self != edge.loop:
                raise GraphInvariantError(
                    f"Edge {edge_id} loop flag ({edge.loop}) disagrees with its endpoints "
                    f"{edge.node_a}/{edge.node_b}."
                )
            if len(edge.polyline) < 2:
                raise GraphInvariantError(f"Edge {edge_id} needs at least two polyline points.")
            adjacency[edge.node_a].add((edge_id, edge.node_b))
            adjacency[edge.node_b].add((edge_id, edge.node_a))
            degrees[edge.node_a] += 1
            degrees[edge.node_b] += 1

        for node_id, node in nodes.items():
            if node.degree != degrees[node_id]:
                raise GraphInvariantError(
                    f"Node {node_id} reports degree {node.degree} but has {degrees[node_id]}."
                )

        object.__setattr__(self, "nodes", MappingProxyType(nodes))
        object.__setattr__(self, "edges", MappingProxyType(edges))
        object.__setattr__(
            self,
            "_adjacency",
            MappingProxyType({node_id: frozenset(pairs) for node_id, pairs in adjacency.items()}),
        )

    @classmethod
    def empty(cls) -> TopologyGraph:
        return cls(nodes={}, edges={})

    @classmethod
    def from_parts(cls, nodes: Iterable[GraphNode], edges: Iterable[GraphEdge]) -> TopologyGraph:
        return cls(
            nodes={node.id: node for node in nodes},
            edges={edge.id: edge for edge in edges},
        )

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    def node(self, node_id: int) -> GraphNode:
        return self.nodes[node_id]

    def edge(self, edge_id: int) -> GraphEdge:
        return self.edges[edge_id]

    def neighbors(self, node_id: int) -> frozenset[tuple[int, int]]:
        """Return ``{(edge_id, other_node_id)}`` for every edge touching ``node_id``."""

        return self._adjacency[node_id]

    def degree(self, node_id: int) -> int:
        return self.nodes[node_id].degree

    def nodes_of_kind(self, kind: NodeKind) -> list[GraphNode]:
        return [self.nodes[node_id] for node_id in sorted(self.nodes) if self.nodes[node_id].kind == kind]

    def loop_edges(self) -> list[GraphEdge]:
        return [self.edges[edge_id] for edge_id in sorted(self.edges) if self.edges[edge_id].loop]

    def components(self) -> list[set[int]]:
        components: list[set[int]] = []
        visited: set[int] = set()
        for node_id in sorted(self.nodes):
            if node_id in visited:
                continue
            stack = [node_id]
            component: set[int] = set()
            while stack:
                current = stack.pop()
                if current in visited:
                    continue
                visited.add(current)
                component.add(current)
                for _, neighbor in self._adjacency[current]:
                    if neighbor not in visited:
                        stack.append(neighbor)
            components.append(component)
        return components

    def to_payload(self) -> dict[str, list[dict[str, Any]]]:
        node_items = [self.nodes[node_id].to_dict() for node_id in sorted(self.nodes)]
        edge_items = [self.edges[edge_id].to_dict() for edge_id in sorted(self.edges)]
        return {"nodes": node_items, "edges": edge_items}

    def to_json(self, *, indent: int = 2) -> str:
        return json.dumps(self.to_payload(), indent=indent)

    def save(self, output_path: Path) -> Path:
        output_path.write_text(self.to_json())
        return output_path

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> TopologyGraph:
        nodes = [
            GraphNode(
                id=int(item["id"]),
                x=float(item["x"]),
                y=float(item["y"]),
                degree=int(item.get("degree", 0)),
                kind=NodeKind(item["kind"]),
            )
            for item in payload.get("nodes", [])
        ]
        edges = [
            GraphEdge(
                id=int(item["id"]),
                node_a=int(item["node_a"]),
                node_b=int(item["node_b"]),
                polyline=tuple((float(x), float(y)) for x, y in item["polyline"]),
                length=float(item["length"]),
                loop=bool(item.get("loop", int(item["node_a"]) == int(item["node_b"]))),
            )
            for item in payload.get("edges", [])
        ]
        return cls.from_parts(nodes, edges)


@dataclass(slots=True)
class WorkingGraph:
    """Mutable draft graph used while building and simplifying.

    Node kinds and degrees stored here are provisional; :meth:`freeze`
    recomputes both from the final edge set.
    """

    nodes: dict[int, GraphNode] = field(default_factory=dict)
    edges: dict[int, GraphEdge] = field(default_factory=dict)
    adjacency: dict[int, dict[int, list[int]]] = field(default_factory=dict)  # neighbor -> edge_ids
    next_node_id: int = 0
    next_edge_id: int = 0

    @classmethod
    def from_graph(cls, graph: TopologyGraph) -> WorkingGraph:
        working = cls(
            next_node_id=max(graph.nodes, default=-1) + 1,
            next_edge_id=max(graph.edges, default=-1) + 1,
        )
        for node_id in sorted(graph.nodes):
            working.nodes[node_id] = graph.nodes[node_id]
            working.adjacency[node_id] = {}
        for edge_id in sorted(graph.edges):
            working._link(graph.edges[edge_id])
        return working

    def add_node(self, x: float, y: float, kind: NodeKind = NodeKind.ISOLATED) -> int:
        node_id = self.next_node_id
        self.next_node_id += 1
        self.nodes[node_id] = GraphNode(id=node_id, x=x, y=y, kind=kind)
        self.adjacency[node_id] = {}
        return node_id

    def add_edge(self, u: int, v: int, points: Sequence[Point]) -> GraphEdge:
        if u not in self.nodes or v not in self.nodes:
            raise GraphInvariantError(f"Cannot connect unknown nodes {u} and {v}.")
        polyline = tuple(points)
        edge = GraphEdge(
            id=self.next_edge_id,
            node_a=u,
            node_b=v,
            polyline=polyline,
            length=polyline_length(polyline),
            loop=u == v,
        )
        self.next_edge_id += 1
        self._link(edge)
        return edge

    def remove_edge(self, edge_id: int) -> GraphEdge | None:
        edge = self.edges.pop(edge_id, None)
        if edge is None:
            return None
        for node_id, neighbor_id in ((edge.node_a, edge.node_b), (edge.node_b, edge.node_a)):
            neighbors = self.adjacency.get(node_id)
            if neighbors is None:
                continue
            edge_ids = neighbors.get(neighbor_id)
            if edge_ids and edge_id in edge_ids:
                edge_ids.remove(edge_id)
                if not edge_ids:
                    neighbors.pop(neighbor_id, None)
        return edge

    def remove_node(self, node_id: int) -> None:
        for edge_id in self.incident_edges(node_id):
            self.remove_edge(edge_id)
        self.nodes.pop(node_id, None)
        self.adjacency.pop(node_id, None)

    def incident_edges(self, node_id: int) -> list[int]:
        edge_ids: set[int] = set()
        for ids in self.adjacency.get(node_id, {}).values():
            edge_ids.update(ids)
        return sorted(edge_ids)

    def degree(self, node_id: int) -> int:
        total = 0
        for neighbor_id, edge_ids in self.adjacency.get(node_id, {}).items():
            total += len(edge_ids) * (2 if neighbor_id == node_id else 1)
        return total

    def repoint_edge(self, edge_id: int, u: int, v: int) -> GraphEdge:
        """Move an edge onto new endpoints, keeping its id, polyline and length."""

        edge = self.remove_edge(edge_id)
        if edge is None:
            raise KeyError(edge_id)
        moved = replace(edge, node_a=u, node_b=v, loop=u == v)
        self._link(moved)
        return moved

    def splice(self, node_id: int) -> GraphEdge | None:
        """Replace a pass-through node and its two distinct edges by one edge.

        Returns the new edge, or ``None`` when the node is not a pass-through
        node (degree other than two, or its only edge is a self-loop).
        """

        edge_ids = self.incident_edges(node_id)
        if len(edge_ids) != 2 or self.degree(node_id) != 2:
            return None
        first, second = (self.edges[edge_id] for edge_id in edge_ids)
        head = tuple(reversed(first.polyline_from(node_id)))
        tail = second.polyline_from(node_id)
        start = first.other(node_id)
        end = second.other(node_id)
        self.remove_node(node_id)
        return self.add_edge(start, end, head + tail[1:])

    def freeze(self) -> TopologyGraph:
        nodes = []
        for node_id in sorted(self.nodes):
            node = self.nodes[node_id]
            degree = self.degree(node_id)
            nodes.append(
                GraphNode(id=node_id, x=node.x, y=node.y, degree=degree, kind=kind_for_degree(degree))
            )
        return TopologyGraph.from_parts(nodes, (self.edges[edge_id] for edge_id in sorted(self.edges)))

    def _link(self, edge: GraphEdge) -> None:
        self.edges[edge.id] = edge
        self.adjacency.setdefault(edge.node_a, {}).setdefault(edge.node_b, []).append(edge.id)
        if edge.node_a != edge.node_b:
            self.adjacency.setdefault(edge.node_b, {}).setdefault(edge.node_a, []).append(edge.id)


def _plain(value: float) -> int | float:
    as_float = float(value)
    return int(as_float) if as_float.is_integer() else as_float


__all__ = [
    "GraphEdge",
    "GraphNode",
    "NodeKind",
    "Point",
    "TopologyGraph",
    "WorkingGraph",
    "kind_for_degree",
    "polyline_length",
]
