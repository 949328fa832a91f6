"""Shared test fixtures."""

import json
import math
from pathlib import Path
from typing import Dict, Optional

import cv2
import numpy as np
import pytest

from floodshape.models import DecodedRaster, ImageRecord, RegionStats


def make_raster(pixels: np.ndarray) -> DecodedRaster:
    return DecodedRaster(pixels=pixels, eight_bit=pixels.dtype.itemsize == 1)


def example_pixels() -> np.ndarray:
    """10x10 image: 3x3 block of 255 top-left, 2x2 block of 1 bottom-right, 0 elsewhere."""
    pixels = np.zeros((10, 10), dtype=np.uint8)
    pixels[0:3, 0:3] = 255
    pixels[8:10, 8:10] = 1
    return pixels


def striped_pixels() -> np.ndarray:
    """12x12 image with a dark band on the left and a bright band on the right."""
    pixels = np.zeros((12, 12), dtype=np.uint8)
    pixels[2:10, 0:3] = 5
    pixels[3:7, 9:12] = 240
    return pixels


LABELS = {
    "1": {
        "FLOODING": True,
        "count": 2,
        "0": {"filename": "S1A_flood_20190115_VV", "date": "2019-01-15"},
        "1": {"filename": "S1A_flood_20190716_VH", "date": "2019-07-16"},
    },
    "2": {
        "FLOODING": False,
        "0": {"filename": "S1B_dry_20190410_VV", "date": "2019-04-10"},
        "1": {"filename": "S1B_tiny_20191020_VV"},
    },
}


def write_tif(path: Path, pixels: np.ndarray) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    assert cv2.imwrite(str(path), pixels)
    return path


@pytest.fixture
def example_raster() -> DecodedRaster:
    return make_raster(example_pixels())


@pytest.fixture
def dataset_root(tmp_path: Path) -> Path:
    """A small SEN12FLOOD-style folder: label list, two numeric subfolders, root images."""
    root = tmp_path / "dataset"
    root.mkdir()
    (root / "S1list.json").write_text(json.dumps(LABELS), encoding="utf-8")

    write_tif(root / "1" / "S1A_flood_20190115_VV.tif", example_pixels())
    write_tif(root / "1" / "S1A_flood_20190716_VH.tif", striped_pixels())
    write_tif(root / "2" / "S1B_dry_20190410_VV.tif", striped_pixels()[::-1, ::-1].copy())
    write_tif(root / "2" / "S1B_tiny_20191020_VV.tif", np.array([[7]], dtype=np.uint8))
    (root / "2" / "S1B_dry_20190410_VV_corrupt.tif").write_bytes(b"not a tiff at all")
    write_tif(root / "unlabeled_20190101.tif", example_pixels())
    (root / "notes.txt").write_text("ignored", encoding="utf-8")
    return root


def make_stats(shape: str = "square", pixel_count: int = 4, width: int = 2, height: int = 2) -> RegionStats:
    return RegionStats(
        pixel_count=pixel_count,
        width=width,
        height=height,
        diameter=math.hypot(width, height),
        shape=shape,
        bounding_box=(0, 0, width, height),
    )


def make_record(
    name: str = "img.tif",
    flooding: bool = True,
    raw_mean: float = 100.0,
    season: str = "Winter",
    polarization: str = "VV",
    dark_shape: str = "square",
    bright_shape: str = "square",
    histogram: Optional[Dict[int, int]] = None,
) -> ImageRecord:
    return ImageRecord(
        image_name=name,
        folder_name="1",
        polarization=polarization,
        flooding=flooding,
        season=season,
        raw_mean=raw_mean,
        dark=make_stats(dark_shape),
        bright=make_stats(bright_shape, pixel_count=9, width=3, height=3),
        dominant_side="bright",
        dominant_shape=bright_shape,
        histogram=histogram if histogram is not None else {0: 10, 1: 4, 255: 9},
    )
