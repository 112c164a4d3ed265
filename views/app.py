from __future__ import annotations

import os

import gradio as gr

from controllers.data_paths import DataPaths
from controllers.pipeline import configure_logging
from controllers.settings import load_settings
from views.tabs import topology


def main() -> None:
    configure_logging(debug=bool(os.getenv("TOPOMAP_DEBUG")))
    settings = load_settings()
    paths = DataPaths.from_data_dir(settings.data_dir)
    paths.ensure_directories()

    with gr.Blocks() as demo:
        with gr.Tabs():
            with gr.Tab("Extract Topology"):
                topology.render(data_paths=paths, settings=settings)

    demo.launch(
        server_name=os.getenv("GRADIO_SERVER_NAME", "0.0.0.0"),
        server_port=int(os.getenv("GRADIO_SERVER_PORT", "7860")),
    )


if __name__ == "__main__":
    main()
