"""Records fetched from WorkOS and the outcomes produced while deleting them."""

import datetime
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

ORGANIZATION = "organization"
USER = "user"

logger = logging.getLogger(__name__)


def parse_timestamp(value: Optional[str]) -> Optional[datetime.datetime]:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive values are assumed to already be UTC. Empty or unparseable values
    give ``None``, so the entity is skipped by the date filter.
    """
    if not value:
        return None
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.datetime.fromisoformat(text)
    except ValueError:
        logger.warning(f"Unparseable created_at timestamp {value!r}")
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed.astimezone(datetime.timezone.utc)


@dataclass(frozen=True)
class Entity:
    """Read-only snapshot of an organization or user."""

    id: str
    created_at: Optional[datetime.datetime]
    kind: str = ORGANIZATION
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        if self.email:
            return self.email
        return "Unnamed"

    @classmethod
    def organization_from_api(cls, data: Dict) -> "Entity":
        return cls(
            id=data["id"],
            created_at=parse_timestamp(data.get("created_at")),
            kind=ORGANIZATION,
            name=data.get("name"),
        )

    @classmethod
    def user_from_api(cls, data: Dict) -> "Entity":
        return cls(
            id=data["id"],
            created_at=parse_timestamp(data.get("created_at")),
            kind=USER,
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            email=data.get("email"),
        )


@dataclass(frozen=True)
class DeletionOutcome:
    """Result of deleting one entity. ``error`` is set only on failure."""

    entity_id: str
    name: str
    created_at: Optional[datetime.datetime]
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, entity: Entity) -> "DeletionOutcome":
        return cls(entity.id, entity.display_name, entity.created_at)

    @classmethod
    def failure(cls, entity: Entity, error: str) -> "DeletionOutcome":
        return cls(entity.id, entity.display_name, entity.created_at, error)


@dataclass
class DeletionResults:
    """Successful and failed outcomes for one entity type.

    ``record`` may be called from several worker threads at once.
    """

    kind: str = ORGANIZATION
    successful: List[DeletionOutcome] = field(default_factory=list)
    failed: List[DeletionOutcome] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record(self, outcome: DeletionOutcome) -> None:
        with self._lock:
            if outcome.succeeded:
                self.successful.append(outcome)
            else:
                self.failed.append(outcome)

    @property
    def total(self) -> int:
        return len(self.successful) + len(self.failed)


@dataclass
class RunResult:
    """Aggregate outcome of one run. ``users`` is None unless users were requested."""

    organizations: DeletionResults = field(default_factory=lambda: DeletionResults(ORGANIZATION))
    users: Optional[DeletionResults] = None
    dry_run: bool = False
    elapsed_seconds: float = 0.0

    @property
    def total_failed(self) -> int:
        failed = len(self.organizations.failed)
        if self.users is not None:
            failed += len(self.users.failed)
        return failed

    @property
    def exit_code(self) -> int:
        return 1 if self.total_failed > 0 else 0
