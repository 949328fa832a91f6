"""Terminal progress line for batch runs."""

import sys
import time
from collections import Counter
from typing import Optional, TextIO

from floodshape.models import JobOutcome, JobStatus
from floodshape.processing import NO_LABEL_REASON, TOO_SMALL_REASON

# Short tags for the skip breakdown; any other reason is a decode failure.
SKIP_TAGS = {
    NO_LABEL_REASON: "unlabeled",
    TOO_SMALL_REASON: "tiny",
}
UNREADABLE_TAG = "unreadable"


def skip_tag(reason: str) -> str:
    return SKIP_TAGS.get(reason, UNREADABLE_TAG)


class ProgressRenderer:
    """One carriage-return line showing images done, records, skips by cause and failures.

    Tallies are kept even when rendering is disabled, so callers can read
    them after the run.
    """

    def __init__(self, enable: bool = True, width: int = 30, stream: Optional[TextIO] = None):
        self.enable = enable
        self.width = width
        self.stream = stream if stream is not None else sys.stdout
        self.reset(0)

    def reset(self, total: int) -> None:
        self.total = max(total, 0)
        self.statuses: Counter = Counter()
        self.skip_tags: Counter = Counter()
        self.start = time.monotonic()
        self._last_line = ""

    @property
    def processed(self) -> int:
        return self.statuses[JobStatus.COMPLETED]

    @property
    def skipped(self) -> int:
        return self.statuses[JobStatus.SKIPPED]

    @property
    def failed(self) -> int:
        return self.statuses[JobStatus.FAILED]

    @property
    def done(self) -> int:
        return sum(self.statuses.values())

    def update(self, outcome: JobOutcome) -> None:
        self.statuses[outcome.status] += 1
        if outcome.status == JobStatus.SKIPPED and outcome.skip is not None:
            self.skip_tags[skip_tag(outcome.skip.reason)] += 1
        if self.enable and self.total > 0:
            self._render()

    def format_line(self) -> str:
        done = self.done
        filled = self.width * done // self.total if self.total else 0
        bar = "=" * filled + " " * (self.width - filled)
        skips = ""
        if self.skip_tags:
            skips = " (" + ", ".join(f"{tag} {n}" for tag, n in sorted(self.skip_tags.items())) + ")"

        line = (
            f"images {done}/{self.total} |{bar}| records {self.processed}"
            f" | skipped {self.skipped}{skips} | failed {self.failed}"
        )
        elapsed = time.monotonic() - self.start
        if 0 < done < self.total:
            line += f" | ~{elapsed / done * (self.total - done):.0f}s left"
        else:
            line += f" | {elapsed:.1f}s"
        return line

    def _render(self) -> None:
        line = self.format_line()
        if line != self._last_line:
            # Pad so a shorter line fully covers the previous one.
            self.stream.write("\r" + line.ljust(len(self._last_line)))
            self.stream.flush()
            self._last_line = line
        if self.done >= self.total:
            self.stream.write("\n")
            self.stream.flush()
