"""Image discovery and decoding for flood shape extraction."""

import logging
import os
import re
from pathlib import Path
from typing import List

import cv2
import numpy as np
from PIL import Image

from floodshape.config import ROOT_FOLDER_NAME, SUPPORTED_EXTS
from floodshape.errors import RasterDecodeError
from floodshape.models import DecodedRaster, ImageJob

logger = logging.getLogger(__name__)

_NUMERIC_FOLDER = re.compile(r"[0-9]+")


def iter_images(images_dir: Path) -> List[Path]:
    """List supported image files directly inside a folder, sorted by name.

    Uses os.scandir() for fast scanning of large directories.

    Raises:
        OSError: If the folder cannot be listed.
    """
    paths = []
    with os.scandir(images_dir) as entries:
        for entry in entries:
            if entry.is_file() and Path(entry.name).suffix.lower() in SUPPORTED_EXTS:
                paths.append(Path(entry.path))
    return sorted(paths, key=lambda p: p.name)


def _numeric_subfolders(root_dir: Path) -> List[Path]:
    with os.scandir(root_dir) as entries:
        folders = [
            Path(entry.path)
            for entry in entries
            if entry.is_dir() and _NUMERIC_FOLDER.fullmatch(entry.name)
        ]
    return sorted(folders, key=lambda p: (int(p.name), p.name))


def gather_jobs(root_dir: Path) -> List[ImageJob]:
    """Build the static job list: numeric subfolders first, then the root itself.

    Args:
        root_dir: Dataset root (e.g. a SEN12FLOOD extraction folder).

    Returns:
        Jobs with consecutive indices in submission order.

    Raises:
        OSError: If the root folder itself cannot be listed (fatal for the run).
    """
    jobs: List[ImageJob] = []

    def add_folder(folder: Path, folder_name: str) -> None:
        for path in iter_images(folder):
            jobs.append(ImageJob(index=len(jobs), path=path, folder_name=folder_name))

    for folder in _numeric_subfolders(root_dir):
        try:
            add_folder(folder, folder.name)
        except OSError as exc:
            logger.warning(f"Could not list folder {folder}: {exc}")

    add_folder(root_dir, ROOT_FOLDER_NAME)
    return jobs


def _load_with_pil(path: Path) -> np.ndarray:
    try:
        with Image.open(path) as img:
            return np.array(img)
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise RasterDecodeError(
            f"Failed to read image (TIFF decoding error: {exc}). Consider external pre-conversion."
        ) from exc


def load_raster(path: Path) -> DecodedRaster:
    """Decode an image file into its raw pixel buffer.

    OpenCV is tried first (keeps 16-bit and multi-band data untouched), PIL
    second for the TIFF flavours OpenCV refuses.

    Raises:
        RasterDecodeError: If neither reader can decode the file, or the
            decoded buffer is empty or has an unsupported layout.
    """
    try:
        pixels = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    except cv2.error as exc:
        logger.debug(f"OpenCV could not decode {path.name}: {exc}")
        pixels = None

    if pixels is None:
        pixels = _load_with_pil(path)

    if pixels.ndim not in (2, 3):
        raise RasterDecodeError(
            f"Unsupported image layout ({pixels.ndim} dimensions). Consider external pre-conversion."
        )
    if pixels.size == 0:
        raise RasterDecodeError("Empty raster (no pixels).")

    return DecodedRaster(pixels=pixels, eight_bit=pixels.dtype.itemsize == 1)
