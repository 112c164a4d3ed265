from __future__ import annotations

import numpy as np
from PIL import Image, ImageDraw

from .topology_graph import NodeKind, TopologyGraph

DEFAULT_EDGE_COLOR = (255, 255, 0)
DEFAULT_LOOP_COLOR = (255, 140, 0)
KIND_COLORS: dict[NodeKind, tuple[int, int, int]] = {
    NodeKind.ENDPOINT: (255, 210, 64),
    NodeKind.JUNCTION: (64, 196, 255),
    NodeKind.RING: (220, 64, 220),
    NodeKind.ISOLATED: (160, 160, 160),
}


def render_graph_overlay(
    graph: TopologyGraph,
    base_image: Image.Image,
    *,
    edge_color: tuple[int, int, int] = DEFAULT_EDGE_COLOR,
    loop_color: tuple[int, int, int] = DEFAULT_LOOP_COLOR,
    node_radius: int = 2,
    edge_width: int = 1,
    annotate_nodes: bool = False,
    label_color: tuple[int, int, int] = (255, 255, 255),
) -> Image.Image:
    """Draw edge polylines and kind-coloured nodes onto a copy of ``base_image``."""

    overlay = base_image.convert("RGB")
    draw = ImageDraw.Draw(overlay)

    for edge in graph.edges.values():
        color = loop_color if edge.loop else edge_color
        draw.line(list(edge.polyline), fill=color, width=edge_width)

    if node_radius > 0 or annotate_nodes:
        for node in graph.nodes.values():
            if node_radius > 0:
                bbox = [
                    (node.x - node_radius, node.y - node_radius),
                    (node.x + node_radius, node.y + node_radius),
                ]
                draw.ellipse(bbox, fill=KIND_COLORS[node.kind])
            if annotate_nodes:
                position = (node.x + node_radius + 2, node.y - node_radius - 10)
                draw.text(position, str(node.id), fill=label_color)

    return overlay


def render_skeleton_overlay(free_mask: np.ndarray, skeleton: np.ndarray) -> Image.Image:
    """Grey free space with the skeleton pixels painted red on black."""

    height, width = free_mask.shape
    canvas = np.zeros((height, width, 3), dtype=np.uint8)
    canvas[free_mask.astype(bool)] = (90, 90, 90)
    canvas[skeleton.astype(bool)] = (255, 64, 64)
    return Image.fromarray(canvas)


def render_topology_preview(
    free_mask: np.ndarray,
    skeleton: np.ndarray,
    graph: TopologyGraph,
    *,
    scale: int = 1,
    annotate_nodes: bool = False,
) -> Image.Image:
    """Skeleton overlay with the graph drawn on top, optionally upscaled.

    Upscaling happens before drawing so small maps stay readable; node and
    edge coordinates are scaled to pixel centres.
    """

    base = render_skeleton_overlay(free_mask, skeleton)
    if scale <= 1:
        return render_graph_overlay(graph, base, annotate_nodes=annotate_nodes)
    base = base.resize((base.width * scale, base.height * scale), Image.Resampling.NEAREST)
    overlay = base.copy()
    draw = ImageDraw.Draw(overlay)
    offset = scale / 2

    def project(point: tuple[float, float]) -> tuple[float, float]:
        return point[0] * scale + offset, point[1] * scale + offset

    for edge in graph.edges.values():
        color = DEFAULT_LOOP_COLOR if edge.loop else DEFAULT_EDGE_COLOR
        draw.line([project(p) for p in edge.polyline], fill=color, width=max(1, scale // 3))
    radius = max(2, scale // 2)
    for node in graph.nodes.values():
        cx, cy = project((node.x, node.y))
        draw.ellipse([(cx - radius, cy - radius), (cx + radius, cy + radius)], fill=KIND_COLORS[node.kind])
        if annotate_nodes:
            draw.text((cx + radius + 2, cy - radius - 10), str(node.id), fill=(255, 255, 255))
    return overlay


__all__ = [
    "KIND_COLORS",
    "render_graph_overlay",
    "render_skeleton_overlay",
    "render_topology_preview",
]
