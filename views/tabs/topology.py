from __future__ import annotations

from pathlib import Path

import gradio as gr

from controllers.data_paths import DataPaths
from controllers.settings import TopologySettings
from controllers.topology import extract_map_topology, graph_summary, resolve_map_path
from models.errors import TopologyError
from models.graph_simplify import SimplifyConfig
from views.components.file_select import map_selector


def render(*, data_paths: DataPaths, settings: TopologySettings) -> None:
    """Upload or reuse an occupancy map and inspect its topology graph."""

    gr.Markdown(
        "Upload a **greyscale occupancy map** (white = free, black = occupied, grey = "
        "unknown) or pick one from `data/maps`. Unknown cells are treated as blocked."
    )

    upload_input = gr.File(label="Upload map", file_types=["image"], file_count="single")
    with gr.Row():
        existing_selector, _ = map_selector(data_paths)

    gr.Markdown("### Extraction Settings")
    spur_input = gr.Slider(
        minimum=0,
        maximum=50,
        value=settings.min_spur_length,
        step=0.5,
        label="Min spur length (px) - prune shorter dead ends",
    )
    merge_input = gr.Slider(
        minimum=0,
        maximum=20,
        value=settings.merge_radius,
        step=0.5,
        label="Merge radius (px) - fuse nodes closer than this",
    )
    with gr.Row():
        free_input = gr.Slider(
            minimum=1, maximum=255, value=settings.free_threshold, step=1, label="Free threshold"
        )
        occupied_input = gr.Slider(
            minimum=0, maximum=254, value=settings.occupied_threshold, step=1, label="Occupied threshold"
        )
    negate_input = gr.Checkbox(label="Negate intensities", value=False)
    scale_input = gr.Slider(minimum=1, maximum=8, value=4, step=1, label="Preview scale")

    run_button = gr.Button("Extract topology", variant="primary")

    preview_output = gr.Image(label="Skeleton + Graph", type="pil")
    summary_output = gr.JSON(label="Summary")
    status_output = gr.Markdown("")

    run_button.click(
        fn=lambda *values: _handle_extraction(data_paths, *values),
        inputs=[
            existing_selector,
            upload_input,
            spur_input,
            merge_input,
            free_input,
            occupied_input,
            negate_input,
            scale_input,
        ],
        outputs=[preview_output, summary_output, status_output],
        show_progress=True,
    )


def _handle_extraction(
    data_paths: DataPaths,
    selected_filename: str | None,
    uploaded_file: str | None,
    min_spur_length: float,
    merge_radius: float,
    free_threshold: float,
    occupied_threshold: float,
    negate: bool,
    preview_scale: float,
):
    if uploaded_file:
        source = Path(uploaded_file)
    elif selected_filename:
        source = selected_filename
    else:
        raise gr.Error("Upload a map or choose an existing filename first.")

    try:
        if not isinstance(source, Path):
            source = resolve_map_path(source, data_paths.maps_dir)
        result = extract_map_topology(
            source,
            data_paths=data_paths,
            config=SimplifyConfig(min_spur_length=min_spur_length, merge_radius=merge_radius),
            free_threshold=int(free_threshold),
            occupied_threshold=int(occupied_threshold),
            negate=bool(negate),
            preview_scale=int(preview_scale),
        )
    except TopologyError as exc:
        raise gr.Error(str(exc)) from exc

    summary = {**graph_summary(result.graph), "graph_json": str(result.graph_json_path)}
    return result.preview_image, summary, result.status_message


__all__ = ["render"]
