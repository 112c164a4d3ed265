"""Occupancy bitmap input and its conversion into a free-space mask."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path

import numpy as np
from PIL import Image

from .errors import ConfigurationError, InvalidInput


class CellState(IntEnum):
    FREE = 0
    OCCUPIED = 1
    UNKNOWN = 2


DEFAULT_FREE_THRESHOLD = 250
DEFAULT_OCCUPIED_THRESHOLD = 50


@dataclass(frozen=True, slots=True)
class OccupancyBitmap:
    """Read-only raster of :class:`CellState` values indexed as ``cells[y, x]``."""

    cells: np.ndarray

    def __post_init__(self) -> None:
        cells = np.asarray(self.cells)
        if cells.ndim != 2:
            raise InvalidInput(f"Occupancy bitmap must be 2D, got {cells.ndim} dimension(s).")
        height, width = cells.shape
        if height == 0 or width == 0:
            raise InvalidInput(f"Occupancy bitmap has zero size ({width}x{height}).")
        if cells.dtype == bool or not np.issubdtype(cells.dtype, np.integer):
            raise InvalidInput(f"Occupancy cells must be integer states, got dtype {cells.dtype}.")
        valid = np.isin(cells, [state.value for state in CellState])
        if not valid.all():
            bad = sorted({int(value) for value in np.unique(cells[~valid])})
            raise InvalidInput(f"Unknown cell state value(s) {bad}.")
        frozen = cells.astype(np.uint8, copy=True)
        frozen.setflags(write=False)
        object.__setattr__(self, "cells", frozen)

    @property
    def width(self) -> int:
        return int(self.cells.shape[1])

    @property
    def height(self) -> int:
        return int(self.cells.shape[0])

    def free_space_mask(self) -> np.ndarray:
        """Return traversable cells as a boolean mask; unknown counts as blocked."""

        return self.cells == CellState.FREE

    def counts(self) -> dict[str, int]:
        return {
            state.name.lower(): int(np.count_nonzero(self.cells == state))
            for state in CellState
        }

    @classmethod
    def from_free_mask(cls, mask: np.ndarray) -> OccupancyBitmap:
        """Build a bitmap with no unknown cells from a boolean (or 0/1) free mask."""

        mask_arr = np.asarray(mask)
        if mask_arr.ndim != 2:
            raise InvalidInput(f"Free-space mask must be 2D, got {mask_arr.ndim} dimension(s).")
        cells = np.where(mask_arr.astype(bool), CellState.FREE, CellState.OCCUPIED)
        return cls(cells.astype(np.uint8))

    @classmethod
    def from_image(
        cls,
        source: Image.Image | str | Path,
        *,
        free_threshold: int = DEFAULT_FREE_THRESHOLD,
        occupied_threshold: int = DEFAULT_OCCUPIED_THRESHOLD,
        negate: bool = False,
    ) -> OccupancyBitmap:
        """Classify a greyscale map image (bright = free, dark = occupied).

        Pixels at or above ``free_threshold`` are free, pixels at or below
        ``occupied_threshold`` are occupied and everything in between is
        unknown, matching the usual map_server PGM convention.
        """

        _validate_thresholds(free_threshold, occupied_threshold)
        if not isinstance(source, Image.Image):
            with Image.open(source) as opened:
                source = opened.convert("L")
        if source.mode != "L":
            source = source.convert("L")
        gray = np.asarray(source, dtype=np.uint8)
        if negate:
            gray = 255 - gray
        cells = np.full(gray.shape, CellState.UNKNOWN, dtype=np.uint8)
        cells[gray >= free_threshold] = CellState.FREE
        cells[gray <= occupied_threshold] = CellState.OCCUPIED
        return cls(cells)


def _validate_thresholds(free_threshold: int, occupied_threshold: int) -> None:
    for name, value in (("free_threshold", free_threshold), ("occupied_threshold", occupied_threshold)):
        if not 0 <= int(value) <= 255:
            raise ConfigurationError(f"{name} must lie in 0..255, got {value}.")
    if occupied_threshold >= free_threshold:
        raise ConfigurationError(
            f"occupied_threshold ({occupied_threshold}) must be below free_threshold ({free_threshold})."
        )


__all__ = [
    "CellState",
    "OccupancyBitmap",
    "DEFAULT_FREE_THRESHOLD",
    "DEFAULT_OCCUPIED_THRESHOLD",
]
