"""Command-line interface for flood shape extraction."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from floodshape.batch import run_batch
from floodshape.config import IMAGES_CSV, SKIPPED_CSV, SUMMARY_CSV, default_worker_count, load_params
from floodshape.errors import FloodshapeError
from floodshape.image_io import gather_jobs
from floodshape.labels import load_flood_labels
from floodshape.output import write_images_csv, write_skipped_csv, write_summary_csv
from floodshape.progress import ProgressRenderer

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Extract dark/bright flood regions and shape features from SAR/optical rasters."
    )
    parser.add_argument(
        "root",
        type=Path,
        help="Dataset root holding S1list.json/S2list.json, numeric subfolders and/or .tif images.",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of worker processes (default: min(8, CPU count); 1 = no process pool).",
    )
    parser.add_argument(
        "--params-json",
        type=Path,
        help="Optional JSON file overriding segmentation parameters.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Directory for the CSV outputs (default: the dataset root).",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Also write log messages to this file.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug messages, including one line per skipped image.",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable the terminal progress bar.",
    )

    args = parser.parse_args(argv)
    if args.workers is not None and args.workers < 1:
        parser.error("--workers must be >= 1")
    return args


def configure_logging(verbose: bool = False, log_file: Optional[Path] = None) -> None:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    args = parse_args(argv)
    configure_logging(args.verbose, args.log_file)

    root: Path = args.root
    if not root.is_dir():
        logger.error(f"Root folder does not exist or is not a directory: {root}")
        return 1
    output_dir: Path = args.output_dir or root

    try:
        params = load_params(args.params_json)
        labels = load_flood_labels(root)
        jobs = gather_jobs(root)
    except (FloodshapeError, OSError) as exc:
        logger.error(str(exc))
        return 1

    logger.info(f"Loaded {len(labels)} flood label(s), found {len(jobs)} image(s) under {root}")
    if not jobs:
        logger.warning(f"No .tif/.tiff images found under {root}")

    renderer = ProgressRenderer(enable=not args.no_progress and sys.stdout.isatty())
    try:
        result = run_batch(
            jobs,
            labels,
            params,
            max_workers=args.workers or default_worker_count(),
            progress_renderer=renderer,
        )
    except KeyboardInterrupt:
        logger.error("Interrupted; no output written")
        return 1

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        write_images_csv(output_dir / IMAGES_CSV, result.records)
        write_skipped_csv(output_dir / SKIPPED_CSV, result.skips)
        write_summary_csv(output_dir / SUMMARY_CSV, result.records)
    except OSError as exc:
        logger.error(f"Failed to write outputs to {output_dir}: {exc}")
        return 1

    print(
        f"Processed {result.processed} image(s), skipped {len(result.skips)}, "
        f"failed {len(result.failures)}. CSV files written to {output_dir}."
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
