"""Shared filesystem layout helpers for the CLI and the Gradio UI."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from controllers.settings import load_data_dir
from models.utils import is_map_file


@dataclass(slots=True)
class DataPaths:
    """Canonical directories for input maps and every extraction artifact."""

    maps_dir: Path = Path("data/maps")
    skeleton_dir: Path = Path("data/skeletons")
    graph_dir: Path = Path("data/graphs")
    preview_dir: Path = Path("data/previews")

    def ensure_directories(self) -> None:
        self.maps_dir.mkdir(parents=True, exist_ok=True)
        self.skeleton_dir.mkdir(parents=True, exist_ok=True)
        self.graph_dir.mkdir(parents=True, exist_ok=True)
        self.preview_dir.mkdir(parents=True, exist_ok=True)

    def list_maps(self) -> list[Path]:
        if not self.maps_dir.exists():
            return []
        return sorted(path for path in self.maps_dir.iterdir() if is_map_file(path))

    @classmethod
    def from_data_dir(cls, data_dir: Path | None = None) -> DataPaths:
        base = data_dir or load_data_dir()
        base = base.expanduser().resolve()
        return cls(
            maps_dir=base / "maps",
            skeleton_dir=base / "skeletons",
            graph_dir=base / "graphs",
            preview_dir=base / "previews",
        )


__all__ = ["DataPaths"]
