"""Sequences fetch, filter and delete for organizations and then users."""

import enum
import logging
import time
from typing import Callable, List, Optional

from .client import WorkOSClient
from .deleter import BulkDeleter
from .exceptions import RunAbortedError
from .fetcher import ListPage, PaginatedFetcher
from .filters import PREVIEW_LIMIT, DateFilter, filter_by_date, preview_lines
from .models import ORGANIZATION, USER, DeletionResults, Entity, RunResult

logger = logging.getLogger(__name__)


class Stage(enum.Enum):
    FETCH_ORGS = "fetch organizations"
    FILTER_ORGS = "filter organizations"
    DELETE_ORGS = "delete organizations"
    FETCH_USERS = "fetch users"
    FILTER_USERS = "filter users"
    DELETE_USERS = "delete users"
    SUMMARIZE = "summarize"
    DONE = "done"


class BulkDeletionRun:
    """One pass of fetch, filter and delete over organizations (and optionally users)."""

    def __init__(
        self,
        client: WorkOSClient,
        fetcher: PaginatedFetcher,
        deleter: BulkDeleter,
        date_filter: DateFilter,
        include_users: bool = False,
        debug: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.fetcher = fetcher
        self.deleter = deleter
        self.date_filter = date_filter
        self.include_users = include_users
        self.debug = debug
        self.clock = clock
        self.stage: Optional[Stage] = None
        self.result = RunResult(dry_run=deleter.dry_run)

    def _enter(self, stage: Stage) -> None:
        self.stage = stage
        logger.info(f"Stage: {stage.value}")

    def _select(self, entities: List[Entity], kind: str) -> List[Entity]:
        print(f"🔍 Filtering {kind}s created {self.date_filter.describe()}...\n")
        filtered = filter_by_date(entities, self.date_filter)
        if filtered.missing_created_at:
            print(f"   ⚠️  {len(filtered.missing_created_at)} {kind}(s) have no created_at field and were skipped")

        selected = filtered.selected
        print(f"✓ Found {len(selected)} {kind}(s) to delete\n")
        logger.info(f"Selected {len(selected)} of {len(entities)} {kind}s created {self.date_filter.describe()}")

        if selected and (self.debug or len(selected) <= PREVIEW_LIMIT):
            print(f"{kind}s to be deleted:")
            for line in preview_lines(selected):
                print(line)
            print("")
        return selected

    def _process(self, kind: str, list_page: ListPage, delete_one: Callable[[str], object],
                 stages: tuple, results: DeletionResults) -> DeletionResults:
        fetch_stage, filter_stage, delete_stage = stages

        self._enter(fetch_stage)
        print(f"📋 Fetching all {kind}s...\n")
        entities = self.fetcher.fetch_all(list_page, kind)
        print(f"✓ Fetched {len(entities)} {kind}s\n")

        self._enter(filter_stage)
        selected = self._select(entities, kind)

        self._enter(delete_stage)
        return self.deleter.delete_all(selected, delete_one, kind, results)

    def run(self) -> RunResult:
        """Execute every stage in order.

        Raises RunAbortedError if a stage fails; outcomes recorded before the
        failure stay on ``partial_result``.
        """
        start_time = self.clock()
        try:
            self._process(
                ORGANIZATION,
                self.client.list_organizations,
                self.client.delete_organization,
                (Stage.FETCH_ORGS, Stage.FILTER_ORGS, Stage.DELETE_ORGS),
                self.result.organizations,
            )

            if self.include_users:
                self.result.users = DeletionResults(USER)
                self._process(
                    USER,
                    self.client.list_users,
                    self.client.delete_user,
                    (Stage.FETCH_USERS, Stage.FILTER_USERS, Stage.DELETE_USERS),
                    self.result.users,
                )

            self._enter(Stage.SUMMARIZE)
            self.result.elapsed_seconds = self.clock() - start_time
        except Exception as e:
            self.result.elapsed_seconds = self.clock() - start_time
            logger.error(f"Run aborted during {self.stage.value}: {e}")
            raise RunAbortedError(self.stage, self.result, e) from e

        self._enter(Stage.DONE)
        return self.result
