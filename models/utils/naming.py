"""Shared helpers to keep artifact filenames consistent across pipeline stages."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

# Canonical prefixes for each stage. "map" and "occupancy" name the same input
# so either term produces identical filenames.
STAGE_PREFIXES: dict[str, str] = {
    "map": "map_",
    "occupancy": "map_",
    "skeleton": "skeleton_",
    "graph": "graph_",
    "preview": "preview_",
}

MAP_SUFFIXES: tuple[str, ...] = (".png", ".pgm")


def known_prefixes() -> tuple[str, ...]:
    return tuple(dict.fromkeys(STAGE_PREFIXES.values()))


def strip_prefix(value: str, *, extra: Iterable[str] | None = None) -> str:
    """Remove a known stage prefix from ``value`` (first match only)."""

    prefixes = list(known_prefixes())
    if extra:
        prefixes.extend(extra)
    for prefix in prefixes:
        if value.startswith(prefix) and len(value) > len(prefix):
            return value[len(prefix) :]
    return value


def prefixed_name(stage: str, base: str, suffix: str) -> str:
    """Return the complete filename for ``stage`` without doubling prefixes."""

    try:
        prefix = STAGE_PREFIXES[stage.strip().lower()]
    except KeyError as exc:  # pragma: no cover - developer errors
        raise KeyError(f"Unknown stage '{stage}'") from exc
    return f"{prefix}{strip_prefix(base)}{suffix}"


def canonical_map_name(path: Path | str) -> str:
    """Best-effort logical map name derived from a file path."""

    stem = Path(path).stem
    cleaned = strip_prefix(stem)
    return cleaned or stem


def is_map_file(path: Path) -> bool:
    return path.is_file() and path.suffix.lower() in MAP_SUFFIXES


__all__ = [
    "MAP_SUFFIXES",
    "STAGE_PREFIXES",
    "canonical_map_name",
    "is_map_file",
    "known_prefixes",
    "prefixed_name",
    "strip_prefix",
]
