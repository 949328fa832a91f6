"""Tests for intensity sampling and histograms."""

import numpy as np
import pytest

from floodshape.sampling import build_histogram, sample_raster
from conftest import make_raster


def test_single_band_passes_through(example_raster):
    samples = sample_raster(example_raster)
    assert samples.shape == (10, 10)
    assert samples.dtype == np.int64
    assert samples[0, 0] == 255
    assert samples[9, 9] == 1


def test_three_bands_average_is_truncated():
    pixels = np.array([[[1, 2, 2], [255, 255, 254]]], dtype=np.uint8)
    samples = sample_raster(make_raster(pixels))
    assert samples.tolist() == [[1, 254]]


def test_extra_bands_are_ignored():
    pixels = np.array([[[3, 3, 3, 250]]], dtype=np.uint8)
    assert sample_raster(make_raster(pixels)).tolist() == [[3]]


def test_two_bands_read_first_band():
    pixels = np.array([[[10, 99], [20, 99]]], dtype=np.uint16)
    raster = make_raster(pixels)
    assert raster.max_sample == 65535
    assert sample_raster(raster).tolist() == [[10, 20]]


def test_float_samples_truncate_and_clamp():
    pixels = np.array([[1.9, -0.5], [np.nan, 300.7]], dtype=np.float32)
    samples = sample_raster(make_raster(pixels))
    assert samples.tolist() == [[1, 0], [0, 300]]


def test_values_clamped_to_max_sample():
    pixels = np.array([[-5, 70000]], dtype=np.int32)
    samples = sample_raster(make_raster(pixels))
    assert samples.tolist() == [[0, 65535]]


def test_histogram_of_example(example_raster):
    hist = build_histogram(sample_raster(example_raster), example_raster.max_sample)
    assert hist.max_sample == 255
    assert hist.total == 100
    assert hist.as_sparse() == {0: 87, 1: 4, 255: 9}
    assert hist.nonzero_count == 13
    assert hist.nonzero_sum == 4 * 1 + 9 * 255
    assert hist.mean == pytest.approx(176.846, abs=1e-3)
    assert hist.mode() == 255
    assert hist.present_values().tolist() == [1, 255]


def test_histogram_without_signal():
    hist = build_histogram(np.zeros((3, 3), dtype=np.int64), 255)
    assert hist.mean == 0.0
    assert hist.mode() is None
    assert hist.present_values().size == 0
    assert hist.as_sparse() == {0: 9}


def test_mode_prefers_lowest_value_on_ties():
    samples = np.array([[4, 4, 9, 9, 0, 0, 0]], dtype=np.int64)
    assert build_histogram(samples, 255).mode() == 4
