"""Intensity sampling and histogram construction."""

import numpy as np

from floodshape.models import DecodedRaster, Histogram


def sample_raster(raster: DecodedRaster) -> np.ndarray:
    """Reduce a raster to one clamped integer intensity per pixel.

    Three or more bands are averaged over the first three (truncated), one or
    two bands read band 0. Float samples are truncated toward zero and NaN
    reads as 0. Values are clamped to [0, max_sample] after averaging.

    Returns:
        int64 array of shape (height, width).
    """
    pixels = raster.pixels
    if pixels.ndim == 3 and pixels.shape[2] >= 3:
        bands = [_as_int(pixels[:, :, b]) for b in range(3)]
        # Negative sums clamp to 0 below, so floor division is safe here.
        raw = (bands[0] + bands[1] + bands[2]) // 3
    elif pixels.ndim == 3:
        raw = _as_int(pixels[:, :, 0])
    else:
        raw = _as_int(pixels)
    return np.clip(raw, 0, raster.max_sample)


def _as_int(band: np.ndarray) -> np.ndarray:
    if np.issubdtype(band.dtype, np.floating):
        band = np.nan_to_num(band, nan=0.0, posinf=2.0**62, neginf=-2.0**62)
        return np.trunc(np.clip(band, -2.0**62, 2.0**62)).astype(np.int64)
    return band.astype(np.int64)


def build_histogram(samples: np.ndarray, max_sample: int) -> Histogram:
    """Count every intensity once and accumulate the non-zero sum/count.

    RAW 0 stays in the counts but is left out of the sum and count, since it
    marks "no signal" in this sensor domain.
    """
    counts = np.bincount(samples.ravel(), minlength=max_sample + 1)
    nonzero_count = int(counts[1:].sum())
    nonzero_sum = int(np.dot(counts[1:].astype(np.int64), np.arange(1, max_sample + 1, dtype=np.int64)))
    return Histogram(counts=counts, nonzero_sum=nonzero_sum, nonzero_count=nonzero_count)
