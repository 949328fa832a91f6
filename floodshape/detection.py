"""Two-pass adaptive thresholding of dark and bright regions."""

import logging
import math
from typing import List

import numpy as np

from floodshape.clustering import largest_component
from floodshape.models import Detection, Histogram, PassResult, SegmentationParams
from floodshape.shades import build_masks, build_shade_set, select_seeds

logger = logging.getLogger(__name__)


def run_pass(
    samples: np.ndarray,
    dark_seeds: List[int],
    bright_seeds: List[int],
    radius: int,
    max_sample: int,
    max_pixels: int,
) -> PassResult:
    """Build shade sets and masks for one radius and pick the largest component of each."""
    dark_values = build_shade_set(dark_seeds, radius, max_sample)
    bright_values = build_shade_set(bright_seeds, radius, max_sample)
    dark_mask, bright_mask = build_masks(samples, dark_values, bright_values, max_sample)
    return PassResult(
        radius=radius,
        dark_values=dark_values,
        bright_values=bright_values,
        dark_mask=dark_mask,
        bright_mask=bright_mask,
        dark=largest_component(dark_mask, max_pixels),
        bright=largest_component(bright_mask, max_pixels),
    )


def detect_regions(
    samples: np.ndarray,
    histogram: Histogram,
    params: SegmentationParams,
) -> Detection:
    """Find the largest dark and bright components, widening the shade band once if needed.

    Pass 1 uses ``params.initial_radius``. If either component falls below
    ``min_area_ratio`` of the image, both masks are rebuilt from scratch with
    ``params.escalated_radius``; a non-empty pass-2 component replaces the
    pass-1 one for its side. There is never a third pass.

    Args:
        samples: Clamped intensities, shape (height, width).
        histogram: Histogram of ``samples``.
        params: Segmentation constants.

    Returns:
        Detection holding every pass and the selected component per side.
    """
    image_area = samples.size
    # count > ratio * area  <=>  count > floor(ratio * area) for integer counts
    max_pixels = int(math.floor(params.max_area_ratio * image_area))
    min_pixels = params.min_area_ratio * image_area
    max_sample = histogram.max_sample

    dark_seeds, bright_seeds = select_seeds(histogram, params.seed_count)

    first = run_pass(samples, dark_seeds, bright_seeds, params.initial_radius, max_sample, max_pixels)
    passes = [first]
    dark, dark_values = first.dark, first.dark_values
    bright, bright_values = first.bright, first.bright_values

    if dark.pixel_count < min_pixels or bright.pixel_count < min_pixels:
        logger.debug(
            f"Escalating radius {params.initial_radius} -> {params.escalated_radius} "
            f"(dark={dark.pixel_count}, bright={bright.pixel_count}, floor={min_pixels:.1f})"
        )
        second = run_pass(
            samples, dark_seeds, bright_seeds, params.escalated_radius, max_sample, max_pixels
        )
        passes.append(second)
        if not second.dark.is_empty:
            dark, dark_values = second.dark, second.dark_values
        if not second.bright.is_empty:
            bright, bright_values = second.bright, second.bright_values

    return Detection(
        passes=passes,
        dark=dark,
        bright=bright,
        dark_values=dark_values,
        bright_values=bright_values,
    )
