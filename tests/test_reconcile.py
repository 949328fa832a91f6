"""Tests for fallback, exclusivity and overlap resolution."""

import numpy as np
import pytest

from floodshape.models import Region
from floodshape.reconcile import (
    allowed_columns,
    apply_fallback,
    exclusivity_pass,
    reconcile_regions,
    resolve_overlap,
)


def _region(shape, *cells) -> Region:
    mask = np.zeros(shape, dtype=bool)
    for y, x in cells:
        mask[y, x] = True
    return Region.from_mask(mask)


def _assert_valid_pair(dark: Region, bright: Region) -> None:
    assert not dark.is_empty
    assert not bright.is_empty
    assert not (dark.mask & bright.mask).any()
    assert dark.pixel_count == int(dark.mask.sum())
    assert bright.pixel_count == int(bright.mask.sum())


def test_allowed_columns_even_width():
    dark_cols, bright_cols = allowed_columns(4)
    assert dark_cols.tolist() == [True, True, False, False]
    assert bright_cols.tolist() == [False, False, True, True]


def test_allowed_columns_odd_width_shares_middle():
    dark_cols, bright_cols = allowed_columns(5)
    assert dark_cols.tolist() == [True, True, True, False, False]
    assert bright_cols.tolist() == [False, False, True, True, True]


def test_disjoint_regions_in_wrong_halves_are_unchanged():
    dark = _region((10, 10), (8, 8), (8, 9), (9, 8), (9, 9))
    bright = _region((10, 10), *[(y, x) for y in range(3) for x in range(3)])
    out_dark, out_bright = reconcile_regions(dark, bright)
    assert out_dark.mask.tolist() == dark.mask.tolist()
    assert out_bright.mask.tolist() == bright.mask.tolist()
    _assert_valid_pair(out_dark, out_bright)


def test_both_empty_split_the_full_image():
    out_dark, out_bright = reconcile_regions(Region.empty((4, 4)), Region.empty((4, 4)))
    _assert_valid_pair(out_dark, out_bright)
    assert out_dark.bounding_box == (0, 0, 2, 4)
    assert out_bright.bounding_box == (2, 0, 2, 4)


def test_both_empty_odd_width_middle_column_goes_to_dark():
    out_dark, out_bright = reconcile_regions(Region.empty((3, 5)), Region.empty((3, 5)))
    _assert_valid_pair(out_dark, out_bright)
    assert out_dark.pixel_count == 9
    assert out_bright.pixel_count == 6


def test_fallback_clones_without_sharing_masks():
    bright = _region((3, 3), (0, 0), (0, 1))
    dark, same_bright = apply_fallback(Region.empty((3, 3)), bright)
    assert dark.pixel_count == 2
    assert dark.mask is not bright.mask
    assert same_bright is bright


def test_clone_spanning_both_halves_is_split_by_columns():
    bright = _region((2, 4), (0, 0), (0, 1), (0, 2), (0, 3))
    out_dark, out_bright = reconcile_regions(Region.empty((2, 4)), bright)
    _assert_valid_pair(out_dark, out_bright)
    assert out_dark.bounding_box == (0, 0, 2, 1)
    assert out_bright.bounding_box == (2, 0, 2, 1)


def test_identical_sets_split_in_raster_order():
    bright = _region((2, 4), (0, 0), (0, 1))
    out_dark, out_bright = reconcile_regions(Region.empty((2, 4)), bright)
    _assert_valid_pair(out_dark, out_bright)
    assert out_dark.mask[0, 0]
    assert out_bright.mask[0, 1]


def test_single_shared_pixel_stays_dark():
    bright = _region((3, 3), (0, 0))
    out_dark, out_bright = reconcile_regions(Region.empty((3, 3)), bright)
    _assert_valid_pair(out_dark, out_bright)
    assert out_dark.pixel_count == 1
    assert out_dark.mask[0, 0]
    assert out_bright.pixel_count == 8


def test_two_pixel_image_always_yields_two_regions():
    out_dark, out_bright = reconcile_regions(Region.empty((2, 1)), Region.empty((2, 1)))
    _assert_valid_pair(out_dark, out_bright)
    assert out_dark.mask[0, 0]
    assert out_bright.mask[1, 0]


def test_exclusivity_keeps_side_when_constraint_empties_it():
    dark = _region((2, 4), (0, 3))
    bright = _region((2, 4), (1, 0))
    out_dark, out_bright = exclusivity_pass(dark, bright)
    assert out_dark is dark
    assert out_bright is bright


def test_exclusivity_trims_regions_to_their_half():
    dark = _region((1, 4), (0, 0), (0, 1), (0, 2))
    bright = _region((1, 4), (0, 3))
    out_dark, out_bright = exclusivity_pass(dark, bright)
    assert out_dark.mask.tolist() == [[True, True, False, False]]
    assert out_bright.mask.tolist() == [[False, False, False, True]]


def test_overlap_bright_gives_up_shared_pixels():
    dark = _region((1, 4), (0, 0), (0, 1))
    bright = _region((1, 4), (0, 0), (0, 1), (0, 2), (0, 3))
    out_dark, out_bright = resolve_overlap(dark, bright)
    assert out_dark is dark
    assert out_bright.mask.tolist() == [[False, False, True, True]]


def test_overlap_dark_gives_up_when_bright_is_inside_it():
    dark = _region((1, 4), (0, 0), (0, 1), (0, 2), (0, 3))
    bright = _region((1, 4), (0, 0), (0, 1))
    out_dark, out_bright = resolve_overlap(dark, bright)
    assert out_dark.mask.tolist() == [[False, False, True, True]]
    assert out_bright is bright


@pytest.mark.parametrize("dark_cells, bright_cells", [
    ([], []),
    ([], [(0, 0)]),
    ([(2, 2)], []),
    ([], [(0, 0), (0, 1), (1, 0), (1, 1)]),
    ([(0, 3), (1, 3)], [(0, 3), (1, 3), (2, 3)]),
    ([(0, 0)], [(2, 3)]),
])
def test_reconciled_pair_is_always_valid(dark_cells, bright_cells):
    shape = (3, 4)
    dark = _region(shape, *dark_cells)
    bright = _region(shape, *bright_cells)
    _assert_valid_pair(*reconcile_regions(dark, bright))
