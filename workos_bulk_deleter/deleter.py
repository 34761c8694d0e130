"""Deletes a batch of entities with a cap on in-flight requests."""

import logging
import math
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Callable, Iterable, Optional, Sequence

from .executor import RetryingExecutor
from .models import DeletionOutcome, DeletionResults, Entity
from .progress import ProgressReporter, ProgressTally, TqdmProgressReporter

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 40

DeleteOne = Callable[[str], object]
ReporterFactory = Callable[[int, str], ProgressReporter]


class _Tally:
    """Counts outcomes as they arrive and forwards them to the reporter."""

    def __init__(self, total: int, results: DeletionResults, reporter: ProgressReporter,
                 clock: Callable[[], float]):
        self.total = total
        self.results = results
        self.reporter = reporter
        self.clock = clock
        self.start_time = clock()
        self.completed = 0
        self.successful = 0
        self.failed = 0
        self.lock = threading.Lock()

    def record(self, outcome: DeletionOutcome) -> None:
        # The reporter is called after the lock is released.
        with self.lock:
            self.results.record(outcome)
            self.completed += 1
            if outcome.succeeded:
                self.successful += 1
            else:
                self.failed += 1
            tally = ProgressTally(
                completed=self.completed,
                successful=self.successful,
                failed=self.failed,
                total=self.total,
                elapsed_seconds=self.clock() - self.start_time,
            )
        self.reporter.on_outcome(outcome, tally)


class BulkDeleter:
    """Runs one delete per entity through the retrying executor.

    At most ``concurrency`` deletions are in flight. A new one is started as
    soon as any outstanding deletion finishes, so completion order is not the
    input order.
    """

    def __init__(
        self,
        executor: RetryingExecutor,
        concurrency: int = DEFAULT_CONCURRENCY,
        dry_run: bool = False,
        reporter_factory: Optional[ReporterFactory] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1 (got {concurrency})")
        self.executor = executor
        self.concurrency = concurrency
        self.dry_run = dry_run
        self.reporter_factory = reporter_factory or TqdmProgressReporter
        self.clock = clock

    def delete_all(self, entities: Sequence[Entity], delete_one: DeleteOne, kind: str = "organization",
                   results: Optional[DeletionResults] = None) -> DeletionResults:
        """Delete every entity, returning per-entity outcomes.

        Per-entity errors are recorded as failures and never raised. Outcomes
        are appended to ``results`` when given, so a caller keeps them even if
        the batch is aborted.
        """
        if results is None:
            results = DeletionResults(kind)

        if not entities:
            print(f"✓ No {kind}s to delete.\n")
            logger.info(f"No {kind}s to delete")
            return results

        if self.dry_run:
            print(f"🔍 DRY RUN: Would delete {len(entities)} {kind}(s)\n")
            logger.info(f"DRY RUN: would delete {len(entities)} {kind}(s)")
            for entity in entities:
                results.record(DeletionOutcome.success(entity))
            return results

        requests_per_second = self.executor.rate_limiter.refill_rate
        estimated_time = math.ceil(len(entities) / requests_per_second)
        print(f"🗑️  Deleting {len(entities)} {kind}(s)...")
        print(f"   Concurrency: {self.concurrency} parallel operations")
        print(f"   Rate limit: {requests_per_second:g} req/s")
        print(f"   Estimated time: ~{estimated_time}s\n")
        logger.info(f"Deleting {len(entities)} {kind}(s) with concurrency {self.concurrency}")

        tally = _Tally(len(entities), results, self.reporter_factory(len(entities), kind), self.clock)

        def delete_worker(entity: Entity) -> None:
            """Worker function to delete a single entity."""
            try:
                self.executor.execute_with_rate_limit(lambda: delete_one(entity.id))
            except Exception as e:
                error = str(e) or e.__class__.__name__
                logger.debug(f"Failed to delete {kind} {entity.display_name} ({entity.id}): {error}")
                outcome = DeletionOutcome.failure(entity, error)
            else:
                outcome = DeletionOutcome.success(entity)
            tally.record(outcome)

        with ThreadPoolExecutor(max_workers=self.concurrency, thread_name_prefix=f"delete-{kind}") as pool:
            outstanding = set()
            for entity in entities:
                if len(outstanding) >= self.concurrency:
                    done, outstanding = wait(outstanding, return_when=FIRST_COMPLETED)
                    self._raise_unexpected(done)
                outstanding.add(pool.submit(delete_worker, entity))

            done, _ = wait(outstanding)
            self._raise_unexpected(done)

        logger.info(
            f"{kind.capitalize()} deletion completed. Successful: {len(results.successful)}, "
            f"Failed: {len(results.failed)}"
        )
        return results

    @staticmethod
    def _raise_unexpected(done: Iterable[Future]) -> None:
        # Workers turn deletion errors into outcomes; anything left here is a bug
        # in bookkeeping or reporting and aborts the run.
        for future in done:
            future.result()
