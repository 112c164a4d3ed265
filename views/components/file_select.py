from __future__ import annotations

import gradio as gr

from controllers.data_paths import DataPaths


def map_selector(
    data_paths: DataPaths,
    *,
    label: str = "Or pick an existing map",
    refresh_label: str = "Refresh map list",
) -> tuple[gr.Dropdown, gr.Button]:
    """Render a dropdown of map filenames under ``maps_dir`` plus a refresh button."""

    def _choices() -> list[str]:
        return [path.name for path in data_paths.list_maps()]

    choices = _choices()
    dropdown = gr.Dropdown(
        label=label,
        choices=choices,
        value=choices[0] if choices else None,
        allow_custom_value=True,
    )
    refresh_button = gr.Button(refresh_label)

    def _refresh(current_value: str | None):
        fresh = _choices()
        value = current_value if current_value in fresh else (fresh[0] if fresh else None)
        return gr.update(choices=fresh, value=value)

    refresh_button.click(fn=_refresh, inputs=[dropdown], outputs=[dropdown])
    return dropdown, refresh_button


__all__ = ["map_selector"]
