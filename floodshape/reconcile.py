"""Fallback and spatial-exclusivity rules for the dark/bright region pair.

After detection either side may be empty. The reconciler makes sure every
image ends up with one non-empty dark region and one non-empty bright region
that share no pixel:

1. Fallback: an empty side clones the other side's region; if both are
   empty, both become the full image.
2. Exclusivity pass (exactly once): dark may only keep pixels that are not
   strictly in the right half, bright only pixels not strictly in the left
   half, and a pixel kept for dark is never kept for bright. A side whose
   constrained pixel set is non-empty is replaced by it.
3. Overlap resolution: only the fallback paths can still overlap here.
   Dark keeps precedence; bright gives up shared pixels unless it lies
   entirely inside dark, in which case dark gives them up. Identical sets are
   split in raster order.
"""

import dataclasses
from typing import Tuple

import numpy as np

from floodshape.clustering import largest_component
from floodshape.models import Region


def apply_fallback(dark: Region, bright: Region) -> Tuple[Region, Region]:
    """Fill empty sides so both regions carry pixels."""
    if dark.is_empty and bright.is_empty:
        full = Region.from_mask(np.ones(dark.mask.shape, dtype=bool))
        return full, dataclasses.replace(full, mask=full.mask.copy())
    if dark.is_empty:
        return dataclasses.replace(bright, mask=bright.mask.copy()), bright
    if bright.is_empty:
        return dark, dataclasses.replace(dark, mask=dark.mask.copy())
    return dark, bright


def allowed_columns(width: int) -> Tuple[np.ndarray, np.ndarray]:
    """Columns where dark and bright pixels may be counted.

    Dark excludes columns strictly right of the vertical midline, bright
    excludes columns strictly left of it; on odd widths the middle column is
    allowed for both and goes to dark.
    """
    xs = np.arange(width)
    return 2 * xs <= width - 1, 2 * xs >= width - 1


def exclusivity_pass(dark: Region, bright: Region) -> Tuple[Region, Region]:
    """Confine dark to the left half and bright to the right half where possible."""
    width = dark.mask.shape[1]
    dark_cols, bright_cols = allowed_columns(width)

    dark_constrained = dark.mask & dark_cols[np.newaxis, :]
    bright_constrained = bright.mask & bright_cols[np.newaxis, :] & ~dark_constrained

    if dark_constrained.any():
        dark = Region.from_mask(dark_constrained)
    if bright_constrained.any():
        bright = Region.from_mask(bright_constrained)
    return dark, bright


def resolve_overlap(dark: Region, bright: Region) -> Tuple[Region, Region]:
    """Remove any pixel still claimed by both regions without emptying either."""
    shared = dark.mask & bright.mask
    if not shared.any():
        return dark, bright

    bright_only = bright.mask & ~dark.mask
    if bright_only.any():
        return dark, Region.from_mask(bright_only)

    dark_only = dark.mask & ~bright.mask
    if dark_only.any():
        return Region.from_mask(dark_only), bright

    # Identical pixel sets: split them in raster order.
    flat = np.flatnonzero(shared)
    if flat.size >= 2:
        half = (flat.size + 1) // 2
        dark_mask = np.zeros(shared.size, dtype=bool)
        dark_mask[flat[:half]] = True
        bright_mask = np.zeros(shared.size, dtype=bool)
        bright_mask[flat[half:]] = True
        return (
            Region.from_mask(dark_mask.reshape(shared.shape)),
            Region.from_mask(bright_mask.reshape(shared.shape)),
        )

    # A single shared pixel: dark keeps it, bright takes the largest remaining component.
    return dark, largest_component(~dark.mask)


def reconcile_regions(dark: Region, bright: Region) -> Tuple[Region, Region]:
    """Turn the detected components into the final non-overlapping, non-empty pair.

    Requires an image of at least two pixels.
    """
    dark, bright = apply_fallback(dark, bright)
    dark, bright = exclusivity_pass(dark, bright)
    return resolve_overlap(dark, bright)
