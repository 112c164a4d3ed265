"""Model layer for occupancy-map topology extraction."""

from .errors import (
    ConfigurationError,
    GraphInvariantError,
    InvalidInput,
    MalformedSkeleton,
    TopologyError,
)
from .extraction import TopologyArtifacts, extract_topology, extract_topology_artifacts
from .graph_render import render_graph_overlay, render_skeleton_overlay, render_topology_preview
from .graph_simplify import (
    SimplifyConfig,
    merge_nearby_nodes,
    prune_spurs,
    simplify_graph,
)
from .occupancy import CellState, OccupancyBitmap
from .skeleton_graph import (
    PixelClass,
    build_topology_graph,
    classify_skeleton_pixels,
    skeleton_components,
)
from .thinning import ThinningStats, thinning_pass, zhang_suen_thinning
from .topology_graph import GraphEdge, GraphNode, NodeKind, TopologyGraph

__all__ = [
    "CellState",
    "OccupancyBitmap",
    "ThinningStats",
    "thinning_pass",
    "zhang_suen_thinning",
    "PixelClass",
    "build_topology_graph",
    "classify_skeleton_pixels",
    "skeleton_components",
    "SimplifyConfig",
    "simplify_graph",
    "prune_spurs",
    "merge_nearby_nodes",
    "GraphNode",
    "GraphEdge",
    "NodeKind",
    "TopologyGraph",
    "TopologyArtifacts",
    "extract_topology",
    "extract_topology_artifacts",
    "render_graph_overlay",
    "render_skeleton_overlay",
    "render_topology_preview",
    "TopologyError",
    "InvalidInput",
    "MalformedSkeleton",
    "ConfigurationError",
    "GraphInvariantError",
]
