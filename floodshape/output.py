"""CSV output for flood shape extraction runs."""

import csv
import logging
from pathlib import Path
from typing import Iterable, List, Sequence

from floodshape.models import ImageRecord, RegionStats, SkipRecord
from floodshape.summary import build_summary_rows

logger = logging.getLogger(__name__)

IMAGE_COLUMNS = [
    "image_name",
    "folder_name",
    "polarization",
    "flooding",
    "season",
    "raw_mean",
    "black_component_size",
    "black_width",
    "black_height",
    "black_diameter",
    "black_shape",
    "white_component_size",
    "white_width",
    "white_height",
    "white_diameter",
    "white_shape",
    "dominant_shape",
]

SKIPPED_COLUMNS = ["image_name", "folder_name", "reason"]


def raw_code(value: int) -> str:
    return f"RAW_{value:05d}"


def raw_values(records: Iterable[ImageRecord]) -> List[int]:
    """Every raw value with a non-zero count in any record, ascending."""
    present = set()
    for record in records:
        present.update(record.histogram)
    return sorted(present)


def _region_cells(stats: RegionStats) -> List[object]:
    return [stats.pixel_count, stats.width, stats.height, repr(float(stats.diameter)), stats.shape]


def image_row(record: ImageRecord, values: Sequence[int]) -> List[object]:
    row: List[object] = [
        record.image_name,
        record.folder_name,
        record.polarization,
        "true" if record.flooding else "false",
        record.season,
        repr(float(record.raw_mean)),
    ]
    row.extend(_region_cells(record.dark))
    row.extend(_region_cells(record.bright))
    row.append(record.dominant_shape)
    row.extend(record.histogram.get(value, 0) for value in values)
    return row


def _write_rows(output_csv: Path, rows: Iterable[Sequence[object]]) -> None:
    with output_csv.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerows(rows)


def write_images_csv(output_csv: Path, records: Sequence[ImageRecord]) -> None:
    """Write one row per processed image, with a RAW_XXXXX column per raw value seen."""
    values = raw_values(records)
    header = IMAGE_COLUMNS + [raw_code(v) for v in values]
    _write_rows(output_csv, [header] + [image_row(r, values) for r in records])
    logger.info(f"Wrote {len(records)} image row(s) and {len(values)} raw column(s) to {output_csv}")


def write_skipped_csv(output_csv: Path, skips: Sequence[SkipRecord]) -> None:
    rows = [SKIPPED_COLUMNS] + [[s.image_name, s.folder_name, s.reason] for s in skips]
    _write_rows(output_csv, rows)
    logger.info(f"Wrote {len(skips)} skipped row(s) to {output_csv}")


def write_summary_csv(output_csv: Path, records: Sequence[ImageRecord]) -> None:
    rows = build_summary_rows(records)
    _write_rows(output_csv, rows)
    logger.info(f"Wrote {len(rows) - 1} summary row(s) to {output_csv}")
