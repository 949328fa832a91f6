"""Data models for flood shape extraction."""

import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class SegmentationParams:
    """Tunable constants of the two-pass dark/bright segmentation."""
    seed_count: int = 3
    initial_radius: int = 1
    escalated_radius: int = 2
    max_area_ratio: float = 0.40  # components larger than this share of the image are discarded
    min_area_ratio: float = 0.05  # a component smaller than this share triggers escalation


@dataclass
class DecodedRaster:
    """Decoded pixel buffer of one image, as returned by the image reader."""
    pixels: np.ndarray  # (height, width) or (height, width, bands)
    eight_bit: bool

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def bands(self) -> int:
        return 1 if self.pixels.ndim == 2 else int(self.pixels.shape[2])

    @property
    def max_sample(self) -> int:
        return 255 if self.eight_bit else 65535


@dataclass
class Histogram:
    """Intensity histogram plus the running sum/count of non-zero pixels."""
    counts: np.ndarray  # counts[v] = number of pixels with intensity v
    nonzero_sum: int
    nonzero_count: int

    @property
    def max_sample(self) -> int:
        return len(self.counts) - 1

    @property
    def total(self) -> int:
        return int(self.counts.sum())

    @property
    def mean(self) -> float:
        """Mean intensity over non-zero pixels (0.0 when there are none)."""
        if self.nonzero_count <= 0:
            return 0.0
        return self.nonzero_sum / self.nonzero_count

    def present_values(self) -> np.ndarray:
        """Non-zero intensities that occur at least once, ascending."""
        return np.flatnonzero(self.counts[1:]) + 1

    def mode(self) -> Optional[int]:
        """Most frequent non-zero intensity; lowest value wins ties."""
        if self.nonzero_count <= 0:
            return None
        return int(np.argmax(self.counts[1:])) + 1

    def as_sparse(self) -> Dict[int, int]:
        """Histogram as {intensity: count}, omitting zero counts."""
        present = np.flatnonzero(self.counts)
        return {int(v): int(self.counts[v]) for v in present}


@dataclass
class Region:
    """A set of pixels and its bounding box; empty when pixel_count is 0."""
    mask: np.ndarray = field(repr=False)
    pixel_count: int = 0
    min_x: int = 0
    max_x: int = -1
    min_y: int = 0
    max_y: int = -1

    @classmethod
    def from_mask(cls, mask: np.ndarray) -> "Region":
        ys, xs = np.nonzero(mask)
        if len(xs) == 0:
            return cls.empty(mask.shape)
        return cls(
            mask=mask,
            pixel_count=int(len(xs)),
            min_x=int(xs.min()),
            max_x=int(xs.max()),
            min_y=int(ys.min()),
            max_y=int(ys.max()),
        )

    @classmethod
    def empty(cls, shape: Tuple[int, int]) -> "Region":
        return cls(mask=np.zeros(shape, dtype=bool))

    @property
    def is_empty(self) -> bool:
        return self.pixel_count <= 0

    @property
    def width(self) -> int:
        return 0 if self.is_empty else self.max_x - self.min_x + 1

    @property
    def height(self) -> int:
        return 0 if self.is_empty else self.max_y - self.min_y + 1

    @property
    def diameter(self) -> float:
        return math.hypot(self.width, self.height)

    @property
    def bounding_box(self) -> Tuple[int, int, int, int]:
        """Bounding box as (x, y, width, height)."""
        if self.is_empty:
            return (0, 0, 0, 0)
        return (self.min_x, self.min_y, self.width, self.height)


@dataclass(frozen=True)
class RegionStats:
    """Geometry and shape label of a reconciled region, detached from its mask."""
    pixel_count: int
    width: int
    height: int
    diameter: float
    shape: str
    bounding_box: Tuple[int, int, int, int]

    @classmethod
    def from_region(cls, region: Region, shape: str) -> "RegionStats":
        return cls(
            pixel_count=region.pixel_count,
            width=region.width,
            height=region.height,
            diameter=region.diameter,
            shape=shape,
            bounding_box=region.bounding_box,
        )


@dataclass
class PassResult:
    """Shade sets, masks and selected components of one thresholding pass."""
    radius: int
    dark_values: FrozenSet[int]
    bright_values: FrozenSet[int]
    dark_mask: np.ndarray = field(repr=False)
    bright_mask: np.ndarray = field(repr=False)
    dark: Region
    bright: Region


@dataclass
class Detection:
    """Outcome of the (at most two) thresholding passes for one image.

    Per side, ``dark``/``bright`` is the component from the last pass that
    produced a non-empty one, and ``*_values`` the shade set it came from.
    """
    passes: List[PassResult]
    dark: Region
    bright: Region
    dark_values: FrozenSet[int]
    bright_values: FrozenSet[int]

    @property
    def escalated(self) -> bool:
        return len(self.passes) > 1


@dataclass
class ImageAnalysis:
    """Everything the segmentation core derives from a single raster."""
    histogram: Histogram
    dark: Region
    bright: Region
    dark_stats: RegionStats
    bright_stats: RegionStats
    dominant_side: str
    dominant_shape: str
    escalated: bool


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ImageJob:
    """One discovered image file, in submission order."""
    index: int
    path: Path
    folder_name: str

    @property
    def image_name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class ImageRecord:
    """Per-image output row."""
    image_name: str
    folder_name: str
    polarization: str
    flooding: bool
    season: str
    raw_mean: float
    dark: RegionStats
    bright: RegionStats
    dominant_side: str
    dominant_shape: str
    histogram: Dict[int, int]


@dataclass(frozen=True)
class SkipRecord:
    """An image that could not produce an ImageRecord, and why."""
    image_name: str
    folder_name: str
    reason: str


@dataclass
class JobOutcome:
    """Result slot of one job."""
    job: ImageJob
    status: JobStatus = JobStatus.PENDING
    record: Optional[ImageRecord] = None
    skip: Optional[SkipRecord] = None
    error: Optional[str] = None


@dataclass
class BatchResult:
    """Aggregated outcome of a run, in submission order."""
    total_jobs: int
    records: List[ImageRecord]
    skips: List[SkipRecord]
    failures: List[JobOutcome]

    @property
    def processed(self) -> int:
        return len(self.records)
