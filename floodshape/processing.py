"""Core per-image processing pipeline."""

import logging

from floodshape.detection import detect_regions
from floodshape.errors import RasterDecodeError
from floodshape.image_io import load_raster
from floodshape.labels import FloodLabels
from floodshape.metadata import infer_polarization, infer_season, strip_extension
from floodshape.models import (
    DecodedRaster,
    Detection,
    Histogram,
    ImageAnalysis,
    ImageJob,
    ImageRecord,
    JobOutcome,
    JobStatus,
    RegionStats,
    SegmentationParams,
    SkipRecord,
)
from floodshape.reconcile import reconcile_regions
from floodshape.sampling import build_histogram, sample_raster
from floodshape.shapes import classify

logger = logging.getLogger(__name__)

NO_LABEL_REASON = "No matching FLOODING label in S1list/S2list"
TOO_SMALL_REASON = "Raster too small (needs at least 2 pixels for a dark and a bright region)"


def pick_dominant_side(
    histogram: Histogram,
    detection: Detection,
    dark: RegionStats,
    bright: RegionStats,
) -> str:
    """Side whose shade set holds the most frequent non-zero intensity.

    Falls back to the larger region (dark on ties) when the mode is in
    neither shade set, in both, or the image has no non-zero pixel.
    """
    mode = histogram.mode()
    if mode is not None:
        in_dark = mode in detection.dark_values
        in_bright = mode in detection.bright_values
        if in_dark and not in_bright:
            return "dark"
        if in_bright and not in_dark:
            return "bright"
    return "dark" if dark.pixel_count >= bright.pixel_count else "bright"


def analyze_raster(raster: DecodedRaster, params: SegmentationParams) -> ImageAnalysis:
    """Run the segmentation core on one decoded raster.

    Args:
        raster: Decoded image with at least two pixels.
        params: Segmentation constants.

    Returns:
        ImageAnalysis with the histogram, reconciled regions and shape labels.
    """
    samples = sample_raster(raster)
    histogram = build_histogram(samples, raster.max_sample)

    detection = detect_regions(samples, histogram, params)
    dark, bright = reconcile_regions(detection.dark, detection.bright)

    dark_stats = RegionStats.from_region(dark, classify(dark))
    bright_stats = RegionStats.from_region(bright, classify(bright))
    side = pick_dominant_side(histogram, detection, dark_stats, bright_stats)

    return ImageAnalysis(
        histogram=histogram,
        dark=dark,
        bright=bright,
        dark_stats=dark_stats,
        bright_stats=bright_stats,
        dominant_side=side,
        dominant_shape=dark_stats.shape if side == "dark" else bright_stats.shape,
        escalated=detection.escalated,
    )


def _skipped(job: ImageJob, reason: str) -> JobOutcome:
    logger.debug(f"Skipping {job.folder_name}/{job.image_name}: {reason}")
    return JobOutcome(
        job=job,
        status=JobStatus.SKIPPED,
        skip=SkipRecord(image_name=job.image_name, folder_name=job.folder_name, reason=reason),
    )


def process_job(job: ImageJob, labels: FloodLabels, params: SegmentationParams) -> JobOutcome:
    """Process a single image into an ImageRecord or a SkipRecord.

    Missing labels and undecodable rasters are skips; anything else raised
    here is a worker fault for the scheduler to contain.
    """
    flooding = labels.lookup(strip_extension(job.image_name))
    if flooding is None:
        return _skipped(job, NO_LABEL_REASON)

    try:
        raster = load_raster(job.path)
    except RasterDecodeError as exc:
        return _skipped(job, str(exc))

    if raster.width * raster.height < 2:
        return _skipped(job, TOO_SMALL_REASON)

    analysis = analyze_raster(raster, params)
    record = ImageRecord(
        image_name=job.image_name,
        folder_name=job.folder_name,
        polarization=infer_polarization(job.image_name),
        flooding=flooding,
        season=infer_season(job.image_name),
        raw_mean=analysis.histogram.mean,
        dark=analysis.dark_stats,
        bright=analysis.bright_stats,
        dominant_side=analysis.dominant_side,
        dominant_shape=analysis.dominant_shape,
        histogram=analysis.histogram.as_sparse(),
    )
    return JobOutcome(job=job, status=JobStatus.COMPLETED, record=record)
