"""Shared fixtures: a virtual clock and an in-memory stand-in for the WorkOS API."""

import datetime
import threading
import time
from typing import Callable, Dict, List, Optional, Set

import pytest

from workos_bulk_deleter.client import Page
from workos_bulk_deleter.deleter import BulkDeleter
from workos_bulk_deleter.exceptions import NotFoundError
from workos_bulk_deleter.executor import RetryingExecutor
from workos_bulk_deleter.models import ORGANIZATION, USER, Entity
from workos_bulk_deleter.progress import NullProgressReporter
from workos_bulk_deleter.rate_limiter import TokenBucketRateLimiter


class FakeClock:
    """Virtual time: ``sleep`` advances ``now`` instantly and records the duration."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


def utc(*args) -> datetime.datetime:
    return datetime.datetime(*args, tzinfo=datetime.timezone.utc)


def make_org(org_id: str, created_at: Optional[datetime.datetime], name: Optional[str] = None) -> Entity:
    return Entity(id=org_id, created_at=created_at, kind=ORGANIZATION, name=name or f"Org {org_id}")


def make_user(user_id: str, created_at: Optional[datetime.datetime], email: Optional[str] = None) -> Entity:
    return Entity(id=user_id, created_at=created_at, kind=USER, email=email or f"{user_id}@example.com")


class FakeWorkOS:
    """In-memory WorkOS with cursor pagination, failure injection and overlap tracking."""

    def __init__(self, organizations: List[Entity] = (), users: List[Entity] = (),
                 delete_delay: float = 0.0):
        self.organizations: Dict[str, Entity] = {e.id: e for e in organizations}
        self.users: Dict[str, Entity] = {e.id: e for e in users}
        self.delete_delay = delete_delay
        self.failing_ids: Dict[str, Exception] = {}
        self.list_calls: List[Dict] = []
        self.delete_calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.lock = threading.Lock()
        self.list_error: Optional[Exception] = None

    def _page(self, store: Dict[str, Entity], limit: int, order: str, after: Optional[str]) -> Page:
        self.list_calls.append({'limit': limit, 'order': order, 'after': after})
        if self.list_error is not None:
            raise self.list_error
        ids = list(store)
        start = ids.index(after) + 1 if after else 0
        chunk = ids[start:start + limit]
        next_cursor = chunk[-1] if start + limit < len(ids) else None
        return Page([store[i] for i in chunk], next_cursor)

    def list_organizations(self, limit: int = 100, order: str = "desc", after: Optional[str] = None) -> Page:
        return self._page(self.organizations, limit, order, after)

    def list_users(self, limit: int = 100, order: str = "desc", after: Optional[str] = None) -> Page:
        return self._page(self.users, limit, order, after)

    def _delete(self, store: Dict[str, Entity], entity_id: str) -> None:
        with self.lock:
            self.delete_calls.append(entity_id)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delete_delay:
                time.sleep(self.delete_delay)
            if entity_id in self.failing_ids:
                raise self.failing_ids[entity_id]
            with self.lock:
                if entity_id not in store:
                    raise NotFoundError(f"Could not find resource {entity_id}")
                del store[entity_id]
        finally:
            with self.lock:
                self.in_flight -= 1

    def delete_organization(self, organization_id: str) -> None:
        self._delete(self.organizations, organization_id)

    def delete_user(self, user_id: str) -> None:
        self._delete(self.users, user_id)

    def close(self) -> None:
        pass


class CountingRateLimiter(TokenBucketRateLimiter):
    """A fast limiter that counts acquisitions."""

    def __init__(self, rate: float = 10000):
        super().__init__(rate)
        self.acquired = 0
        self._count_lock = threading.Lock()

    def acquire(self) -> None:
        with self._count_lock:
            self.acquired += 1
        super().acquire()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rate_limiter() -> CountingRateLimiter:
    return CountingRateLimiter()


@pytest.fixture
def executor(rate_limiter) -> RetryingExecutor:
    """Executor with no real backoff waits."""
    return RetryingExecutor(rate_limiter, sleep=lambda seconds: None)


@pytest.fixture
def make_deleter(executor) -> Callable[..., BulkDeleter]:
    def factory(concurrency: int = 40, dry_run: bool = False, reporter_factory=None) -> BulkDeleter:
        return BulkDeleter(
            executor,
            concurrency=concurrency,
            dry_run=dry_run,
            reporter_factory=reporter_factory or (lambda total, kind: NullProgressReporter()),
        )
    return factory


def ids(outcomes) -> Set[str]:
    return {o.entity_id for o in outcomes}
