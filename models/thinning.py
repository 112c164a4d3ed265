"""Zhang-Suen thinning of a binary free-space mask.

Each sub-iteration evaluates the removal test for every pixel against one
snapshot of the grid and only then clears the collected pixels, so the result
does not depend on scan order. The test is written as whole-array numpy
expressions over eight shifted neighbour planes instead of a per-pixel loop.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from loguru import logger
from skimage.measure import label

from .errors import ConfigurationError, InvalidInput

# n1..n8 as (d_row, d_col), clockwise from north.
RIM_OFFSETS: tuple[tuple[int, int], ...] = (
    (-1, 0),
    (-1, 1),
    (0, 1),
    (1, 1),
    (1, 0),
    (1, -1),
    (0, -1),
    (-1, -1),
)


@dataclass(frozen=True, slots=True)
class ThinningStats:
    """How many passes ran and how many pixels they removed in total."""

    passes: int
    removed: int
    converged: bool


def zhang_suen_thinning(mask: np.ndarray, *, max_passes: int | None = None) -> np.ndarray:
    """Thin ``mask`` (true = foreground) to a 1-pixel-wide skeleton."""

    skeleton, _ = zhang_suen_thinning_with_stats(mask, max_passes=max_passes)
    return skeleton


def zhang_suen_thinning_with_stats(
    mask: np.ndarray,
    *,
    max_passes: int | None = None,
) -> tuple[np.ndarray, ThinningStats]:
    if max_passes is not None and max_passes <= 0:
        raise ConfigurationError(f"max_passes must be positive, got {max_passes}.")
    source = as_binary_mask(mask)
    current = source.copy()

    passes = 0
    removed = 0
    changed = bool(current.any())
    while changed:
        if max_passes is not None and passes >= max_passes:
            logger.warning("Thinning stopped after {} passes before reaching a fixed point", passes)
            removed -= restore_vanished_components(source, current)
            return current, ThinningStats(passes=passes, removed=removed, converged=False)
        changed = False
        for step in (1, 2):
            deletions = thinning_pass(current, step)
            count = int(np.count_nonzero(deletions))
            if count:
                current &= ~deletions
                removed += count
                changed = True
        passes += 1
        logger.debug("Thinning pass {} done, {} pixel(s) removed so far", passes, removed)

    removed -= restore_vanished_components(source, current)
    return current, ThinningStats(passes=passes, removed=removed, converged=True)


def thinning_pass(mask: np.ndarray, step: int) -> np.ndarray:
    """Return the pixels that sub-iteration ``step`` (1 or 2) would delete.

    ``mask`` itself is left untouched; callers apply the returned deletions
    once the whole grid has been evaluated.
    """

    if step not in (1, 2):
        raise ValueError(f"Zhang-Suen sub-iteration must be 1 or 2, got {step}.")
    mask = as_binary_mask(mask)
    n1, n2, n3, n4, n5, n6, n7, n8 = _neighbor_planes(mask)
    ring = (n1, n2, n3, n4, n5, n6, n7, n8)

    count_b = np.zeros(mask.shape, dtype=np.uint8)
    for plane in ring:
        count_b += plane
    transitions_a = np.zeros(mask.shape, dtype=np.uint8)
    for current, following in zip(ring, ring[1:] + ring[:1]):
        transitions_a += (current == 0) & (following == 1)

    if step == 1:
        first = (n1 & n3 & n5) == 0
        second = (n3 & n5 & n7) == 0
    else:
        first = (n1 & n3 & n7) == 0
        second = (n1 & n5 & n7) == 0

    return (
        mask
        & (count_b >= 2)
        & (count_b <= 6)
        & (transitions_a == 1)
        & first
        & second
    )


def restore_vanished_components(source: np.ndarray, skeleton: np.ndarray) -> int:
    """Put back one pixel for every component of ``source`` that thinning erased.

    Zhang-Suen deletes isolated 2x2 blocks entirely. The restored pixel is the
    component's smallest ``(x, y)`` pixel. ``skeleton`` is updated in place and
    the number of restored pixels is returned.
    """

    labeled, count = label(source, connectivity=2, return_num=True)
    if count == 0:
        return 0
    kept = np.zeros(count + 1, dtype=bool)
    kept[np.unique(labeled[skeleton])] = True
    restored = 0
    for component in range(1, count + 1):
        if kept[component]:
            continue
        rows, cols = np.nonzero(labeled == component)
        first = np.lexsort((rows, cols))[0]
        skeleton[rows[first], cols[first]] = True
        restored += 1
        logger.debug(
            "Restored vanished component at ({}, {})", int(cols[first]), int(rows[first])
        )
    return restored


def as_binary_mask(mask: np.ndarray) -> np.ndarray:
    """Validate a 2D grid and return it as a boolean array."""

    arr = np.asarray(mask)
    if arr.ndim != 2:
        raise InvalidInput(f"Expected a 2D mask, got {arr.ndim} dimension(s).")
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise InvalidInput(f"Mask has zero size ({arr.shape[1]}x{arr.shape[0]}).")
    return arr.astype(bool, copy=False)


def _neighbor_planes(mask: np.ndarray) -> list[np.ndarray]:
    height, width = mask.shape
    padded = np.pad(mask.astype(np.uint8), 1, mode="constant", constant_values=0)
    return [
        padded[1 + d_row : 1 + d_row + height, 1 + d_col : 1 + d_col + width]
        for d_row, d_col in RIM_OFFSETS
    ]


__all__ = [
    "RIM_OFFSETS",
    "ThinningStats",
    "as_binary_mask",
    "restore_vanished_components",
    "thinning_pass",
    "zhang_suen_thinning",
    "zhang_suen_thinning_with_stats",
]
