"""Configuration and constants for flood shape extraction."""

import json
import logging
import os
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Dict, Optional

from floodshape.errors import ConfigError
from floodshape.models import SegmentationParams

logger = logging.getLogger(__name__)

SUPPORTED_EXTS = (".tif", ".tiff")

# Label lists shipped with SEN12FLOOD-style datasets, looked up in the root folder.
LABEL_FILES = ("S1list.json", "S2list.json")

IMAGES_CSV = "Images_All.csv"
SUMMARY_CSV = "Summary_All.csv"
SKIPPED_CSV = "Skipped.csv"

ROOT_FOLDER_NAME = "ROOT"

DEFAULT_MAX_WORKERS = 8


def default_worker_count() -> int:
    """Fixed pool size, capped at the number of available cores."""
    return max(1, min(DEFAULT_MAX_WORKERS, os.cpu_count() or 1))


def load_params(params_file: Optional[Path] = None) -> SegmentationParams:
    """Load segmentation parameters from JSON; fallback to defaults.

    Args:
        params_file: Optional path to a JSON object whose keys are a subset of
            the SegmentationParams fields.

    Returns:
        SegmentationParams with file values merged over the defaults.

    Raises:
        ConfigError: If the file is not a JSON object, has unknown keys, or
            holds values that would break the segmentation.
    """
    if params_file is None:
        return SegmentationParams()

    if not params_file.exists():
        logger.info(f"Params file {params_file} not found, using defaults")
        return SegmentationParams()

    try:
        with params_file.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in params file {params_file}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a JSON object in {params_file}")
    return params_from_mapping(data)


def params_from_mapping(data: Dict[str, Any]) -> SegmentationParams:
    """Merge a mapping over the default parameters and validate the result."""
    known = {f.name for f in fields(SegmentationParams)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown parameter(s): {', '.join(unknown)}")

    merged = asdict(SegmentationParams())
    merged.update(data)
    try:
        params = SegmentationParams(
            seed_count=int(merged["seed_count"]),
            initial_radius=int(merged["initial_radius"]),
            escalated_radius=int(merged["escalated_radius"]),
            max_area_ratio=float(merged["max_area_ratio"]),
            min_area_ratio=float(merged["min_area_ratio"]),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid parameter value: {exc}") from exc

    validate_params(params)
    return params


def validate_params(params: SegmentationParams) -> None:
    if params.seed_count < 1:
        raise ConfigError(f"seed_count must be >= 1, got {params.seed_count}")
    if params.initial_radius < 0:
        raise ConfigError(f"initial_radius must be >= 0, got {params.initial_radius}")
    if params.escalated_radius < params.initial_radius:
        raise ConfigError(
            f"escalated_radius ({params.escalated_radius}) must be >= "
            f"initial_radius ({params.initial_radius})"
        )
    if not (0.0 < params.max_area_ratio <= 1.0):
        raise ConfigError(f"max_area_ratio must be in (0, 1], got {params.max_area_ratio}")
    if not (0.0 <= params.min_area_ratio <= params.max_area_ratio):
        raise ConfigError(
            f"min_area_ratio must be in [0, max_area_ratio], got {params.min_area_ratio}"
        )
