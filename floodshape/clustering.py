"""Connected-component search over dark/bright masks."""

from typing import Optional

import cv2
import numpy as np

from floodshape.models import Region


def largest_component(mask: np.ndarray, max_pixels: Optional[int] = None) -> Region:
    """Find the largest 4-connected region of a boolean mask.

    Args:
        mask: Boolean mask (True = member).
        max_pixels: Components with more pixels than this are discarded, as if
            they had size 0. None disables the cap.

    Returns:
        The surviving component with the highest pixel count (lowest label on
        ties, i.e. first reached in raster order), or an empty Region.
    """
    if not mask.any():
        return Region.empty(mask.shape)

    num_labels, labels, stats, _ = cv2.connectedComponentsWithStats(
        mask.astype(np.uint8), connectivity=4
    )
    areas = stats[1:num_labels, cv2.CC_STAT_AREA].astype(np.int64)
    if max_pixels is not None:
        areas = np.where(areas > max_pixels, 0, areas)
    if areas.size == 0 or int(areas.max()) <= 0:
        return Region.empty(mask.shape)

    best = int(np.argmax(areas)) + 1  # skip label 0 (background)
    x = int(stats[best, cv2.CC_STAT_LEFT])
    y = int(stats[best, cv2.CC_STAT_TOP])
    w = int(stats[best, cv2.CC_STAT_WIDTH])
    h = int(stats[best, cv2.CC_STAT_HEIGHT])
    return Region(
        mask=labels == best,
        pixel_count=int(stats[best, cv2.CC_STAT_AREA]),
        min_x=x,
        max_x=x + w - 1,
        min_y=y,
        max_y=y + h - 1,
    )
