"""Batch scheduling of per-image jobs over a process pool."""

import logging
import time
from concurrent.futures import Future, ProcessPoolExecutor, as_completed
from typing import Callable, Dict, List, Optional, Sequence

from floodshape.config import default_worker_count
from floodshape.labels import FloodLabels
from floodshape.models import (
    BatchResult,
    ImageJob,
    JobOutcome,
    JobStatus,
    SegmentationParams,
)
from floodshape.processing import process_job
from floodshape.progress import ProgressRenderer

logger = logging.getLogger(__name__)

ProcessFunc = Callable[[ImageJob, FloodLabels, SegmentationParams], JobOutcome]
ProgressCallback = Callable[[int, int, float, Optional[float]], None]

# Per-worker state, installed once per process by _init_worker.
_worker_func: Optional[ProcessFunc] = None
_worker_labels: Optional[FloodLabels] = None
_worker_params: Optional[SegmentationParams] = None


def _init_worker(func: ProcessFunc, labels: FloodLabels, params: SegmentationParams) -> None:
    global _worker_func, _worker_labels, _worker_params
    _worker_func = func
    _worker_labels = labels
    _worker_params = params


def process_job_worker(job: ImageJob) -> JobOutcome:
    """Worker entry point; uses the state installed by the pool initializer."""
    if _worker_func is None or _worker_labels is None or _worker_params is None:
        raise RuntimeError("Worker process was not initialized")
    return _worker_func(job, _worker_labels, _worker_params)


def _failed(job: ImageJob, exc: BaseException) -> JobOutcome:
    return JobOutcome(job=job, status=JobStatus.FAILED, error=f"{type(exc).__name__}: {exc}")


class _ProgressTracker:
    """Fans one completion event out to the renderer and the callback."""

    def __init__(
        self,
        total: int,
        progress_cb: Optional[ProgressCallback],
        progress_renderer: Optional[ProgressRenderer],
    ):
        self.total = total
        self.progress_cb = progress_cb
        self.progress_renderer = progress_renderer
        self.completed = 0
        self.start = time.time()
        if progress_renderer is not None:
            progress_renderer.reset(total)

    def advance(self, outcome: JobOutcome) -> None:
        self.completed += 1
        if self.progress_renderer is not None:
            self.progress_renderer.update(outcome)
        if self.progress_cb is not None:
            elapsed = time.time() - self.start
            remaining = self.total - self.completed
            estimated_remaining = elapsed / self.completed * remaining if self.completed else None
            self.progress_cb(self.completed, self.total, elapsed, estimated_remaining)


def run_batch(
    jobs: Sequence[ImageJob],
    labels: FloodLabels,
    params: SegmentationParams,
    max_workers: Optional[int] = None,
    progress_cb: Optional[ProgressCallback] = None,
    progress_renderer: Optional[ProgressRenderer] = None,
    process_func: ProcessFunc = process_job,
) -> BatchResult:
    """Process every job and collect the outcomes in submission order.

    Args:
        jobs: Discovered images, in the order results must come back.
        labels: Flood labels shared read-only by all workers.
        params: Segmentation constants.
        max_workers: Pool size; defaults to min(8, CPU count). A value of 1
            processes the jobs in the calling process.
        progress_cb: Optional callback(current, total, elapsed, eta).
        progress_renderer: Optional terminal progress bar.
        process_func: Per-job function; must be a module-level function when
            a process pool is used.

    Returns:
        BatchResult with records, skips and failures in submission order.

    Raises:
        KeyboardInterrupt: Pending jobs are cancelled and the interrupt is
            re-raised; nothing is returned.
    """
    if max_workers is None:
        max_workers = default_worker_count()
    if max_workers < 1:
        raise ValueError(f"max_workers must be >= 1, got {max_workers}")

    tracker = _ProgressTracker(len(jobs), progress_cb, progress_renderer)
    if not jobs:
        return BatchResult(total_jobs=0, records=[], skips=[], failures=[])

    workers = min(max_workers, len(jobs))
    logger.info(f"Processing {len(jobs)} image(s) with {workers} worker(s)")

    if workers == 1:
        outcomes = _run_sequential(jobs, labels, params, tracker, process_func)
    else:
        outcomes = _run_parallel(jobs, labels, params, workers, tracker, process_func)
    return _collect(jobs, outcomes)


def _run_sequential(
    jobs: Sequence[ImageJob],
    labels: FloodLabels,
    params: SegmentationParams,
    tracker: _ProgressTracker,
    process_func: ProcessFunc,
) -> List[Optional[JobOutcome]]:
    outcomes: List[Optional[JobOutcome]] = [None] * len(jobs)
    for slot, job in enumerate(jobs):
        try:
            outcome = process_func(job, labels, params)
        except Exception as exc:
            logger.error(f"Worker failed on {job.folder_name}/{job.image_name}", exc_info=exc)
            outcome = _failed(job, exc)
        outcomes[slot] = outcome
        tracker.advance(outcome)
    return outcomes


def _run_parallel(
    jobs: Sequence[ImageJob],
    labels: FloodLabels,
    params: SegmentationParams,
    max_workers: int,
    tracker: _ProgressTracker,
    process_func: ProcessFunc,
) -> List[Optional[JobOutcome]]:
    outcomes: List[Optional[JobOutcome]] = [None] * len(jobs)
    with ProcessPoolExecutor(
        max_workers=max_workers,
        initializer=_init_worker,
        initargs=(process_func, labels, params),
    ) as executor:
        future_to_slot: Dict[Future, int] = {
            executor.submit(process_job_worker, job): slot for slot, job in enumerate(jobs)
        }
        try:
            for future in as_completed(future_to_slot):
                slot = future_to_slot[future]
                job = jobs[slot]
                try:
                    outcome = future.result()
                except Exception as exc:
                    logger.error(f"Worker failed on {job.folder_name}/{job.image_name}", exc_info=exc)
                    outcome = _failed(job, exc)
                outcomes[slot] = outcome
                tracker.advance(outcome)
        except KeyboardInterrupt:
            logger.warning("Interrupted, cancelling pending jobs")
            for future in future_to_slot:
                future.cancel()
            executor.shutdown(wait=False, cancel_futures=True)
            raise
    return outcomes


def _collect(jobs: Sequence[ImageJob], outcomes: List[Optional[JobOutcome]]) -> BatchResult:
    """Read the result slots back in submission order."""
    result = BatchResult(total_jobs=len(jobs), records=[], skips=[], failures=[])
    for job, outcome in zip(jobs, outcomes):
        if outcome is None:
            outcome = JobOutcome(job=job, status=JobStatus.FAILED, error="No result produced")
        if outcome.status == JobStatus.COMPLETED and outcome.record is not None:
            result.records.append(outcome.record)
        elif outcome.status == JobStatus.SKIPPED and outcome.skip is not None:
            result.skips.append(outcome.skip)
        else:
            result.failures.append(outcome)

    logger.info(
        f"Batch finished: {result.processed} processed, {len(result.skips)} skipped, "
        f"{len(result.failures)} failed"
    )
    return result
