"""Thin wrappers around Pillow loading and saving for map artifacts."""

from __future__ import annotations

from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from ..errors import InvalidInput


def load_grayscale(source: Image.Image | str | Path) -> Image.Image:
    """Return ``source`` as a fully loaded mode "L" image.

    Missing files and undecodable data are reported as :class:`InvalidInput`.
    """

    if isinstance(source, Image.Image):
        return source.convert("L")
    path = Path(source)
    try:
        with Image.open(path) as src:
            image = src.convert("L")
            image.load()
            return image
    except FileNotFoundError as exc:
        raise InvalidInput(f"Map source {path} was not found.") from exc
    except UnidentifiedImageError as exc:
        raise InvalidInput(f"{path} is not a valid image file.") from exc


def mask_to_image(mask: np.ndarray) -> Image.Image:
    """Convert a boolean mask into a black/white Pillow image."""

    return Image.fromarray(np.asarray(mask, dtype=bool).astype(np.uint8) * 255)


def save_png(image: Image.Image, destination: Path, *, mode: str | None = None) -> Path:
    """Persist ``image`` as PNG at ``destination``, creating parent folders."""

    destination = destination.expanduser()
    destination.parent.mkdir(parents=True, exist_ok=True)
    target = image.convert(mode) if mode is not None else image
    target.save(destination, format="PNG")
    return destination


__all__ = ["load_grayscale", "mask_to_image", "save_png"]
