"""Controller helpers that run topology extraction on map files."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from loguru import logger
from PIL import Image

from controllers.data_paths import DataPaths
from models.errors import InvalidInput
from models.extraction import TopologyArtifacts, extract_topology_artifacts
from models.graph_render import render_topology_preview
from models.graph_simplify import SimplifyConfig
from models.occupancy import DEFAULT_FREE_THRESHOLD, DEFAULT_OCCUPIED_THRESHOLD, OccupancyBitmap
from models.topology_graph import NodeKind, TopologyGraph
from models.utils import canonical_map_name, load_grayscale, mask_to_image, prefixed_name, save_png

MANIFEST_VERSION = 1


@dataclass(slots=True)
class TopologyRunResult:
    """Artifacts and metadata emitted by one map extraction."""

    map_name: str
    graph: TopologyGraph
    raw_graph: TopologyGraph
    skeleton_path: Path
    graph_json_path: Path
    manifest_path: Path
    preview_path: Path
    preview_image: Image.Image
    status_message: str


def extract_map_topology(
    map_source: Image.Image | str | Path,
    *,
    map_name: str | None = None,
    data_paths: DataPaths | None = None,
    config: SimplifyConfig | None = None,
    free_threshold: int = DEFAULT_FREE_THRESHOLD,
    occupied_threshold: int = DEFAULT_OCCUPIED_THRESHOLD,
    negate: bool = False,
    preview_scale: int = 1,
) -> TopologyRunResult:
    """Load a map image, extract its topology graph and persist every artifact.

    Args:
        map_source: Pillow image or path to a greyscale occupancy map.
        map_name: Optional override for artifact filenames. Defaults to the
            source stem, or a timestamp for in-memory images.
        data_paths: Output folders; defaults to the configured data dir.
        config: Spur/merge thresholds passed to the simplifier.
        free_threshold: Grey value at or above which a pixel is free.
        occupied_threshold: Grey value at or below which a pixel is occupied.
        negate: Invert intensities before classification.
        preview_scale: Upscaling factor for the preview PNG.

    Returns:
        TopologyRunResult with the graphs, artifact paths and a status line.
    """

    paths = data_paths or DataPaths.from_data_dir()
    paths.ensure_directories()
    cfg = config or SimplifyConfig()

    name = map_name.strip() if map_name and map_name.strip() else _derive_map_name(map_source)
    image = load_grayscale(map_source)
    bitmap = OccupancyBitmap.from_image(
        image,
        free_threshold=free_threshold,
        occupied_threshold=occupied_threshold,
        negate=negate,
    )
    artifacts = extract_topology_artifacts(bitmap, cfg)

    skeleton_path = save_png(
        mask_to_image(artifacts.skeleton),
        paths.skeleton_dir / prefixed_name("skeleton", name, ".png"),
        mode="L",
    )
    graph_json_path = artifacts.graph.save(paths.graph_dir / prefixed_name("graph", name, ".json"))
    manifest_path = _write_manifest(
        graph_json_path,
        name,
        map_source,
        skeleton_path,
        artifacts,
        cfg,
        free_threshold=free_threshold,
        occupied_threshold=occupied_threshold,
        negate=negate,
    )
    preview = render_topology_preview(
        artifacts.free_mask,
        artifacts.skeleton,
        artifacts.graph,
        scale=preview_scale,
        annotate_nodes=preview_scale > 1,
    )
    preview_path = save_png(preview, paths.preview_dir / prefixed_name("preview", name, ".png"))

    message = (
        f"Saved graph to {graph_json_path.name}: "
        f"{artifacts.graph.node_count} nodes / {artifacts.graph.edge_count} edges "
        f"(raw {artifacts.raw_graph.node_count} / {artifacts.raw_graph.edge_count})"
    )
    logger.info("{}: {}", name, message)

    return TopologyRunResult(
        map_name=name,
        graph=artifacts.graph,
        raw_graph=artifacts.raw_graph,
        skeleton_path=skeleton_path,
        graph_json_path=graph_json_path,
        manifest_path=manifest_path,
        preview_path=preview_path,
        preview_image=preview,
        status_message=message,
    )


def resolve_map_path(filename: str | Path, maps_dir: Path) -> Path:
    path = Path(filename)
    if not path.is_absolute():
        path = maps_dir / path.name
    if not path.exists():
        raise InvalidInput(f"Could not find map file {path}")
    return path


def graph_summary(graph: TopologyGraph) -> dict[str, int]:
    summary = {
        "nodes": graph.node_count,
        "edges": graph.edge_count,
        "components": len(graph.components()),
        "loops": len(graph.loop_edges()),
    }
    for kind in NodeKind:
        summary[kind.value] = len(graph.nodes_of_kind(kind))
    return summary


def _write_manifest(
    graph_json_path: Path,
    map_name: str,
    map_source: Image.Image | str | Path,
    skeleton_path: Path,
    artifacts: TopologyArtifacts,
    config: SimplifyConfig,
    *,
    free_threshold: int,
    occupied_threshold: int,
    negate: bool,
) -> Path:
    manifest = {
        "graph_json": str(graph_json_path),
        "manifest_version": MANIFEST_VERSION,
        "map_name": map_name,
        "map_source": None if isinstance(map_source, Image.Image) else str(map_source),
        "skeleton_png": str(skeleton_path),
        "width": int(artifacts.free_mask.shape[1]),
        "height": int(artifacts.free_mask.shape[0]),
        "free_threshold": free_threshold,
        "occupied_threshold": occupied_threshold,
        "negate": negate,
        "min_spur_length": config.min_spur_length,
        "merge_radius": config.merge_radius,
        "thinning_passes": artifacts.thinning.passes,
        "raw_node_count": artifacts.raw_graph.node_count,
        "raw_edge_count": artifacts.raw_graph.edge_count,
        "summary": graph_summary(artifacts.graph),
    }
    manifest_path = graph_json_path.with_suffix(".meta.json")
    manifest_path.write_text(json.dumps(manifest, indent=2))
    return manifest_path


def _derive_map_name(map_source: Image.Image | str | Path) -> str:
    if isinstance(map_source, Image.Image):
        return datetime.now().strftime("%Y%m%d-%H%M%S")
    return canonical_map_name(map_source)


__all__ = [
    "TopologyRunResult",
    "extract_map_topology",
    "graph_summary",
    "resolve_map_path",
]
