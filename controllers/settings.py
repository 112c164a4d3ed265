"""Load topology extraction defaults from config.toml."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

import tomllib

from models.errors import ConfigurationError
from models.graph_simplify import SimplifyConfig
from models.occupancy import DEFAULT_FREE_THRESHOLD, DEFAULT_OCCUPIED_THRESHOLD

CONFIG_FILENAME = "config.toml"
CONFIG_SECTION = "topology"
DATA_DIR_ENV = "TOPOMAP_DATA_DIR"
DEFAULT_DATA_DIR = "data"


@dataclass(frozen=True, slots=True)
class TopologySettings:
    """Resolved settings: data directory plus extraction thresholds."""

    data_dir: Path
    min_spur_length: float = 0.0
    merge_radius: float = 0.0
    free_threshold: int = DEFAULT_FREE_THRESHOLD
    occupied_threshold: int = DEFAULT_OCCUPIED_THRESHOLD

    def simplify_config(self) -> SimplifyConfig:
        return SimplifyConfig(
            min_spur_length=self.min_spur_length,
            merge_radius=self.merge_radius,
        )


def load_settings(config_path: Path | None = None) -> TopologySettings:
    """Read ``[topology]`` from config.toml; missing file or keys use defaults.

    ``TOPOMAP_DATA_DIR`` overrides ``data_dir`` from the file.
    """

    path = (config_path or _project_root() / CONFIG_FILENAME).expanduser().resolve()
    section = _read_config_section(path.as_posix())

    env_dir = os.environ.get(DATA_DIR_ENV)
    raw_dir = env_dir if env_dir else section.get("data_dir", DEFAULT_DATA_DIR)
    if not isinstance(raw_dir, str) or not raw_dir.strip():
        raise ConfigurationError(f"data_dir in {path} must be a non-empty string.")

    settings = TopologySettings(
        data_dir=_resolve_path(raw_dir, path.parent),
        min_spur_length=_number(section, "min_spur_length", 0.0, path),
        merge_radius=_number(section, "merge_radius", 0.0, path),
        free_threshold=int(_number(section, "free_threshold", DEFAULT_FREE_THRESHOLD, path)),
        occupied_threshold=int(
            _number(section, "occupied_threshold", DEFAULT_OCCUPIED_THRESHOLD, path)
        ),
    )
    # Fail on bad thresholds here rather than at the first extraction.
    settings.simplify_config()
    return settings


def load_data_dir() -> Path:
    """Return the canonical data directory resolved from config.toml."""

    return load_settings().data_dir


@lru_cache(maxsize=8)
def _read_config_section(path_str: str) -> dict[str, Any]:
    config_path = Path(path_str)
    if not config_path.is_file():
        return {}

    with config_path.open("rb") as handle:
        try:
            config = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigurationError(f"{config_path} is not valid TOML: {exc}") from exc

    section = config.get(CONFIG_SECTION)
    if isinstance(section, dict):
        return dict(section)
    return {}


def _number(section: dict[str, Any], key: str, default: float, path: Path) -> float:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{key} in {path} must be a number, got {value!r}.")
    return float(value)


def _resolve_path(raw_path: str, base: Path) -> Path:
    path = Path(raw_path).expanduser()
    if path.is_absolute():
        return path.resolve()
    return (base / path).resolve()


def _project_root() -> Path:
    return Path(__file__).resolve().parents[1]


__all__ = ["TopologySettings", "load_data_dir", "load_settings"]
