"""Lightweight shared helpers for the models layer."""

from .image_io import load_grayscale, mask_to_image, save_png
from .naming import (
    MAP_SUFFIXES,
    STAGE_PREFIXES,
    canonical_map_name,
    is_map_file,
    known_prefixes,
    prefixed_name,
    strip_prefix,
)

__all__ = [
    "MAP_SUFFIXES",
    "STAGE_PREFIXES",
    "canonical_map_name",
    "is_map_file",
    "known_prefixes",
    "prefixed_name",
    "strip_prefix",
    "load_grayscale",
    "mask_to_image",
    "save_png",
]
