"""Tests for the shape classifier."""

import numpy as np
import pytest

from floodshape.models import Region
from floodshape.shapes import SHAPE_LABELS, classify, classify_dimensions, shape_ratios


@pytest.mark.parametrize("pixel_count, width, height, expected", [
    (4, 2, 2, "square"),
    (9, 3, 3, "square"),
    (8, 4, 2, "rectangle"),
    (78, 10, 10, "circle"),
    (65, 10, 10, "ellipse"),
    (50, 10, 10, "parallelogram"),
    (35, 10, 10, "trapezium"),
    (25, 10, 10, "triangle"),
    (10, 10, 10, "crescent"),
    (10, 10, 1, "triangle"),
    (1, 10, 10, "crescent"),
])
def test_classify_dimensions(pixel_count, width, height, expected):
    assert classify_dimensions(pixel_count, width, height) == expected


def test_rules_are_checked_in_order():
    # Fill 0.95 and aspect 1.1 satisfies every rule; the first one wins.
    assert classify_dimensions(105, 10, 11) == "square"
    # Fill 0.95 and aspect 3.5 is too elongated for rectangle and ellipse.
    assert classify_dimensions(120, 21, 6) == "parallelogram"


def test_empty_region_is_none():
    assert classify(Region.empty((3, 3))) == "none"
    assert classify_dimensions(0, 0, 0) == "none"


def test_shape_ratios():
    fill, aspect = shape_ratios(6, 2, 4)
    assert fill == pytest.approx(0.75)
    assert aspect == pytest.approx(2.0)


def test_classify_region():
    mask = np.zeros((5, 5), dtype=bool)
    mask[1:3, 1:4] = True
    region = Region.from_mask(mask)
    assert classify(region) == "rectangle"
    assert classify(region) in SHAPE_LABELS
