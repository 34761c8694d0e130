"""Progress observers notified once per deletion outcome."""

import logging
import threading
from dataclasses import dataclass
from typing import Optional

from tqdm import tqdm

from .models import DeletionOutcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressTally:
    """Running counts at the moment an outcome was recorded."""

    completed: int
    successful: int
    failed: int
    total: int
    elapsed_seconds: float

    @property
    def remaining(self) -> int:
        return max(0, self.total - self.completed)

    @property
    def rate(self) -> float:
        """Completions per second since the deletions started."""
        if self.elapsed_seconds <= 0:
            return 0.0
        return self.completed / self.elapsed_seconds

    @property
    def speed_display(self) -> str:
        rate = self.rate
        if rate >= 1:
            return f"{rate:.1f}/s"
        return f"{rate * 60:.1f}/min"

    @property
    def eta_seconds(self) -> Optional[float]:
        if self.rate <= 0:
            return None
        return self.remaining / self.rate


def format_eta(seconds: Optional[float]) -> str:
    if seconds is None:
        return "--:--"
    minutes, secs = divmod(int(round(seconds)), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


class ProgressReporter:
    """Observer interface. Implementations must return quickly.

    ``on_outcome`` may be called from several worker threads at once, and
    tallies can arrive slightly out of order.
    """

    def on_outcome(self, outcome: DeletionOutcome, tally: ProgressTally) -> None:
        raise NotImplementedError


class NullProgressReporter(ProgressReporter):
    def on_outcome(self, outcome: DeletionOutcome, tally: ProgressTally) -> None:
        pass


class TqdmProgressReporter(ProgressReporter):
    """Renders a live progress bar with success/failure counts, speed and ETA."""

    def __init__(self, total: int, kind: str, file=None, disable: bool = False):
        self.total = total
        self.kind = kind
        self.file = file
        self.reported = 0
        self.finished = False
        self.lock = threading.Lock()
        self.bar = tqdm(
            total=total,
            desc=f"   Deleting {kind}s",
            unit=kind,
            dynamic_ncols=True,
            leave=True,
            file=file,
            disable=disable,
        )
        self.bar.set_postfix_str(f"✓ 0 ❌ 0 | 0/s | ETA: {format_eta(None)}")

    def on_outcome(self, outcome: DeletionOutcome, tally: ProgressTally) -> None:
        with self.lock:
            if self.finished:
                return
            self.reported += 1

            self.bar.set_postfix_str(
                f"✓ {tally.successful} ❌ {tally.failed} | {tally.speed_display} | ETA: {format_eta(tally.eta_seconds)}",
                refresh=False,
            )
            self.bar.update(1)

            if self.reported >= self.total:
                self.finished = True
                self.bar.close()
                avg_rate = self.total / tally.elapsed_seconds if tally.elapsed_seconds > 0 else 0.0
                message = (
                    f"✓ Completed {self.total} {self.kind} deletions in "
                    f"{tally.elapsed_seconds:.1f}s (avg: {avg_rate:.1f}/s)"
                )
                tqdm.write(f"\n{message}\n", file=self.file)
                logger.info(message)
