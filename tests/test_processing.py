"""Tests for the per-image pipeline."""

import math

import numpy as np
import pytest

from floodshape.labels import load_flood_labels
from floodshape.image_io import gather_jobs
from floodshape.models import Detection, JobStatus, Region, SegmentationParams
from floodshape.processing import (
    NO_LABEL_REASON,
    TOO_SMALL_REASON,
    analyze_raster,
    pick_dominant_side,
    process_job,
)
from floodshape.sampling import build_histogram
from conftest import make_raster, make_stats


def test_analyze_example(example_raster):
    analysis = analyze_raster(example_raster, SegmentationParams())

    dark = analysis.dark_stats
    assert (dark.pixel_count, dark.width, dark.height) == (4, 2, 2)
    assert dark.diameter == pytest.approx(math.sqrt(8))
    assert dark.shape == "square"
    assert dark.bounding_box == (8, 8, 2, 2)

    bright = analysis.bright_stats
    assert (bright.pixel_count, bright.width, bright.height) == (9, 3, 3)
    assert bright.shape == "square"
    assert bright.bounding_box == (0, 0, 3, 3)

    assert not (analysis.dark.mask & analysis.bright.mask).any()
    assert analysis.dominant_side == "bright"
    assert analysis.dominant_shape == "square"
    assert analysis.escalated
    assert analysis.histogram.as_sparse() == {0: 87, 1: 4, 255: 9}


def test_analyze_two_pixel_image():
    analysis = analyze_raster(make_raster(np.array([[0, 0]], dtype=np.uint8)), SegmentationParams())
    assert analysis.dark_stats.pixel_count == 1
    assert analysis.bright_stats.pixel_count == 1
    assert analysis.dominant_side == "dark"


def _detection(dark_values, bright_values) -> Detection:
    empty = Region.empty((1, 1))
    return Detection(
        passes=[],
        dark=empty,
        bright=empty,
        dark_values=frozenset(dark_values),
        bright_values=frozenset(bright_values),
    )


def test_dominant_side_follows_mode():
    hist = build_histogram(np.array([[5, 5, 5, 9]], dtype=np.int64), 255)
    small, large = make_stats(pixel_count=1), make_stats(pixel_count=50)
    assert pick_dominant_side(hist, _detection({5}, {9}), small, large) == "dark"
    assert pick_dominant_side(hist, _detection({9}, {5}), large, small) == "bright"


def test_dominant_side_falls_back_to_larger_region():
    hist = build_histogram(np.array([[5, 5, 5, 9]], dtype=np.int64), 255)
    small, large = make_stats(pixel_count=1), make_stats(pixel_count=50)
    assert pick_dominant_side(hist, _detection({1}, {9}), small, large) == "bright"
    assert pick_dominant_side(hist, _detection({5}, {5}), large, small) == "dark"
    assert pick_dominant_side(hist, _detection({1}, {9}), large, large) == "dark"


def test_process_job_outcomes(dataset_root):
    labels = load_flood_labels(dataset_root)
    jobs = {job.image_name: job for job in gather_jobs(dataset_root)}
    params = SegmentationParams()

    outcome = process_job(jobs["S1A_flood_20190115_VV.tif"], labels, params)
    assert outcome.status == JobStatus.COMPLETED
    record = outcome.record
    assert record.flooding is True
    assert record.folder_name == "1"
    assert record.polarization == "VV"
    assert record.season == "Winter"
    assert record.raw_mean == pytest.approx((4 + 9 * 255) / 13)
    assert record.dominant_shape == "square"
    assert record.histogram == {0: 87, 1: 4, 255: 9}

    dry = process_job(jobs["S1B_dry_20190410_VV.tif"], labels, params).record
    assert dry.flooding is False
    assert dry.season == "Spring"
    assert dry.dark.shape == "rectangle"
    assert dry.dominant_side == "dark"


def test_process_job_skips(dataset_root):
    labels = load_flood_labels(dataset_root)
    jobs = {job.image_name: job for job in gather_jobs(dataset_root)}
    params = SegmentationParams()

    unlabeled = process_job(jobs["unlabeled_20190101.tif"], labels, params)
    assert unlabeled.status == JobStatus.SKIPPED
    assert unlabeled.skip.reason == NO_LABEL_REASON
    assert unlabeled.skip.folder_name == "ROOT"

    corrupt = process_job(jobs["S1B_dry_20190410_VV_corrupt.tif"], labels, params)
    assert corrupt.status == JobStatus.SKIPPED
    assert "Failed to read image" in corrupt.skip.reason

    tiny = process_job(jobs["S1B_tiny_20191020_VV.tif"], labels, params)
    assert tiny.status == JobStatus.SKIPPED
    assert tiny.skip.reason == TOO_SMALL_REASON
