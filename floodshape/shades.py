"""Shade-set selection and dark/bright mask construction."""

from typing import FrozenSet, Iterable, List, Tuple

import numpy as np

from floodshape.models import Histogram


def select_seeds(histogram: Histogram, seed_count: int = 3) -> Tuple[List[int], List[int]]:
    """Pick the darkest and brightest present intensities.

    Scans the non-zero present values inward from both ends, the dark side
    claiming first, until each side holds ``seed_count`` values or the two
    scans meet. A value never seeds both sides.

    Returns:
        (dark_seeds ascending, bright_seeds descending)
    """
    present = histogram.present_values()
    dark: List[int] = []
    bright: List[int] = []
    lo, hi = 0, len(present) - 1
    while lo <= hi and (len(dark) < seed_count or len(bright) < seed_count):
        if len(dark) < seed_count:
            dark.append(int(present[lo]))
            lo += 1
        if lo <= hi and len(bright) < seed_count:
            bright.append(int(present[hi]))
            hi -= 1
    return dark, bright


def build_shade_set(seeds: Iterable[int], radius: int, max_sample: int) -> FrozenSet[int]:
    """Expand each seed by +-radius, keeping values in [1, max_sample]."""
    values = set()
    for seed in seeds:
        for v in range(seed - radius, seed + radius + 1):
            if 0 < v <= max_sample:
                values.add(v)
    return frozenset(values)


def _membership_table(values: FrozenSet[int], max_sample: int) -> np.ndarray:
    table = np.zeros(max_sample + 1, dtype=bool)
    if values:
        table[np.fromiter(values, dtype=np.int64, count=len(values))] = True
    return table


def build_masks(
    samples: np.ndarray,
    dark_values: FrozenSet[int],
    bright_values: FrozenSet[int],
    max_sample: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """Classify every pixel as dark candidate, bright candidate, or neither.

    Pixels whose intensity sits in both shade sets are ambiguous and land in
    neither mask, so the two masks never share a pixel.

    Returns:
        (dark_mask, bright_mask) as fresh boolean arrays shaped like samples.
    """
    in_dark = _membership_table(dark_values, max_sample)[samples]
    in_bright = _membership_table(bright_values, max_sample)[samples]
    return in_dark & ~in_bright, in_bright & ~in_dark
