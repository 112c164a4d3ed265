from __future__ import annotations

import numpy as np
import pytest
from skimage.measure import euler_number, label

from models.errors import ConfigurationError, InvalidInput
from models.thinning import (
    restore_vanished_components,
    thinning_pass,
    zhang_suen_thinning,
    zhang_suen_thinning_with_stats,
)


def test_full_square_thins_to_center_pixel():
    skeleton = zhang_suen_thinning(np.ones((3, 3), dtype=bool))

    expected = np.zeros((3, 3), dtype=bool)
    expected[1, 1] = True
    np.testing.assert_array_equal(skeleton, expected)


def test_first_subiteration_deletions_are_evaluated_on_one_snapshot():
    mask = np.ones((3, 3), dtype=bool)
    before = mask.copy()

    deletions = thinning_pass(mask, 1)

    expected = np.array(
        [
            [True, False, True],
            [False, False, True],
            [True, True, True],
        ]
    )
    np.testing.assert_array_equal(deletions, expected)
    np.testing.assert_array_equal(mask, before)


def test_thick_corridor_becomes_center_line(thick_corridor):
    skeleton, stats = zhang_suen_thinning_with_stats(thick_corridor)

    expected = np.zeros_like(thick_corridor)
    expected[2, 2:9] = True
    np.testing.assert_array_equal(skeleton, expected)
    assert stats.passes == 2
    assert stats.removed == 23
    assert stats.converged


def test_thin_shapes_are_fixed_points(t_skeleton, ring_skeleton):
    for shape in (t_skeleton, ring_skeleton, np.ones((1, 20), dtype=bool)):
        np.testing.assert_array_equal(zhang_suen_thinning(shape), shape)


def test_thinning_is_idempotent(thick_corridor, thick_annulus):
    for mask in (thick_corridor, thick_annulus):
        once = zhang_suen_thinning(mask)
        np.testing.assert_array_equal(zhang_suen_thinning(once), once)


def test_annulus_keeps_one_component_and_one_hole(thick_annulus):
    skeleton = zhang_suen_thinning(thick_annulus)

    assert skeleton.sum() < thick_annulus.sum()
    assert skeleton[~thick_annulus].sum() == 0
    _, count = label(skeleton, connectivity=2, return_num=True)
    assert count == 1
    assert euler_number(skeleton, connectivity=2) == euler_number(thick_annulus, connectivity=2)


def test_empty_mask_returns_empty_skeleton():
    skeleton, stats = zhang_suen_thinning_with_stats(np.zeros((4, 5), dtype=bool))

    assert not skeleton.any()
    assert stats.passes == 0
    assert stats.converged


def test_isolated_pixel_survives():
    mask = np.zeros((5, 5), dtype=bool)
    mask[2, 3] = True

    np.testing.assert_array_equal(zhang_suen_thinning(mask), mask)


def test_input_is_not_modified(thick_corridor):
    before = thick_corridor.copy()
    zhang_suen_thinning(thick_corridor)
    np.testing.assert_array_equal(thick_corridor, before)


def test_pass_cap_reports_unconverged_result(thick_corridor):
    _, stats = zhang_suen_thinning_with_stats(thick_corridor, max_passes=1)

    assert stats.passes == 1
    assert not stats.converged


@pytest.mark.parametrize("max_passes", [0, -3])
def test_non_positive_pass_cap_is_rejected(max_passes):
    with pytest.raises(ConfigurationError):
        zhang_suen_thinning(np.ones((3, 3), dtype=bool), max_passes=max_passes)


@pytest.mark.parametrize("shape", [(0, 4), (4, 0), (0, 0)])
def test_zero_sized_mask_is_invalid(shape):
    with pytest.raises(InvalidInput):
        zhang_suen_thinning(np.zeros(shape, dtype=bool))


def test_non_2d_mask_is_invalid():
    with pytest.raises(InvalidInput):
        zhang_suen_thinning(np.ones((2, 2, 2), dtype=bool))


def test_unknown_subiteration_is_rejected():
    with pytest.raises(ValueError):
        thinning_pass(np.ones((3, 3), dtype=bool), 3)


def test_two_by_two_room_keeps_one_pixel():
    mask = np.zeros((4, 4), dtype=bool)
    mask[1:3, 1:3] = True

    skeleton, stats = zhang_suen_thinning_with_stats(mask)

    expected = np.zeros_like(mask)
    expected[1, 1] = True
    np.testing.assert_array_equal(skeleton, expected)
    assert stats.removed == 3


def test_each_vanished_component_gets_its_smallest_xy_pixel():
    source = np.zeros((6, 8), dtype=bool)
    source[1:3, 4:6] = True
    source[3:5, 1:3] = True
    skeleton = np.zeros_like(source)

    restored = restore_vanished_components(source, skeleton)

    assert restored == 2
    assert sorted(map(tuple, np.argwhere(skeleton))) == [(1, 4), (3, 1)]


def test_component_count_matches_free_space(thick_t, thick_annulus):
    room = np.zeros((4, 4), dtype=bool)
    room[1:3, 1:3] = True
    for mask in (room, thick_t, thick_annulus):
        _, expected = label(mask, connectivity=2, return_num=True)
        _, count = label(zhang_suen_thinning(mask), connectivity=2, return_num=True)
        assert count == expected


def test_thick_t_becomes_one_pixel_t(thick_t):
    expected = np.zeros_like(thick_t)
    expected[2, 2:14] = True
    expected[3:9, 8] = True

    np.testing.assert_array_equal(zhang_suen_thinning(thick_t), expected)
