from __future__ import annotations

import numpy as np
import pytest


@pytest.fixture
def t_skeleton() -> np.ndarray:
    """1-px T: bar on row 1 (cols 1..7), stem down col 4 to row 5."""
    mask = np.zeros((7, 9), dtype=bool)
    mask[1, 1:8] = True
    mask[1:6, 4] = True
    return mask


@pytest.fixture
def ring_skeleton() -> np.ndarray:
    """1-px square ring through rows/cols 1..7."""
    mask = np.zeros((9, 9), dtype=bool)
    mask[1, 1:8] = True
    mask[7, 1:8] = True
    mask[1:8, 1] = True
    mask[1:8, 7] = True
    return mask


@pytest.fixture
def stub_bar_skeleton() -> np.ndarray:
    """Bar on row 1 (cols 1..13) with a 2-px stub hanging from col 7."""
    mask = np.zeros((6, 15), dtype=bool)
    mask[1, 1:14] = True
    mask[2:4, 7] = True
    return mask


@pytest.fixture
def thick_corridor() -> np.ndarray:
    """3-px tall free corridor; thins to row 2, cols 2..8."""
    mask = np.zeros((5, 12), dtype=bool)
    mask[1:4, 1:11] = True
    return mask


@pytest.fixture
def thick_annulus() -> np.ndarray:
    mask = np.zeros((17, 17), dtype=bool)
    mask[1:16, 1:16] = True
    mask[6:11, 6:11] = False
    return mask


@pytest.fixture
def thick_t() -> np.ndarray:
    """3-px T region; thins to row 2 (cols 2..13) plus col 8 (rows 3..8)."""
    mask = np.zeros((12, 17), dtype=bool)
    mask[1:4, 1:16] = True
    mask[4:11, 7:10] = True
    return mask
