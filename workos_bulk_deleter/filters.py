"""Selecting entities by the UTC calendar day they were created on."""

import datetime
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .exceptions import ConfigurationError
from .models import Entity

logger = logging.getLogger(__name__)

DATE_FORMAT = re.compile(r"^\d{4}-\d{2}-\d{2}$")
PREVIEW_LIMIT = 20


def validate_date(value: str) -> str:
    """Check that ``value`` is a real calendar date written as YYYY-MM-DD."""
    if not DATE_FORMAT.match(value):
        raise ConfigurationError(
            f"Invalid date format: {value!r}. Expected format: YYYY-MM-DD (e.g., 2005-12-17)"
        )
    try:
        datetime.date.fromisoformat(value)
    except ValueError:
        raise ConfigurationError(
            f"Invalid date provided: {value!r}. Please provide a valid date in YYYY-MM-DD format."
        ) from None
    return value


@dataclass(frozen=True)
class DateFilter:
    """A single UTC day (start == end) or an inclusive range of days."""

    start: str
    end: str

    def __post_init__(self):
        validate_date(self.start)
        validate_date(self.end)
        # Fixed-width, zero-padded dates compare correctly as strings.
        if self.start > self.end:
            raise ConfigurationError("Start date must be before or equal to end date.")

    @classmethod
    def single(cls, day: str) -> "DateFilter":
        return cls(day, day)

    @classmethod
    def from_args(cls, dates: Sequence[str]) -> "DateFilter":
        if len(dates) == 0:
            raise ConfigurationError("Date argument is required.")
        if len(dates) == 1:
            return cls.single(dates[0])
        if len(dates) == 2:
            return cls(dates[0], dates[1])
        raise ConfigurationError("Too many arguments provided.")

    @property
    def is_single_day(self) -> bool:
        return self.start == self.end

    def describe(self) -> str:
        if self.is_single_day:
            return f"on {self.start}"
        return f"between {self.start} and {self.end}"

    def matches(self, created_at: Optional[datetime.datetime]) -> bool:
        if created_at is None:
            return False
        if created_at.tzinfo is not None:
            created_at = created_at.astimezone(datetime.timezone.utc)
        day = created_at.strftime("%Y-%m-%d")
        return self.start <= day <= self.end


@dataclass
class FilterResult:
    selected: List[Entity] = field(default_factory=list)
    missing_created_at: List[Entity] = field(default_factory=list)


def filter_by_date(entities: Sequence[Entity], date_filter: DateFilter) -> FilterResult:
    """Keep entities created on the filter's day(s), in input order."""
    result = FilterResult()
    for entity in entities:
        if entity.created_at is None:
            logger.warning(f"{entity.kind} {entity.id} has no created_at field")
            result.missing_created_at.append(entity)
            continue
        if date_filter.matches(entity.created_at):
            result.selected.append(entity)
    return result


def preview_lines(entities: Sequence[Entity], limit: int = PREVIEW_LIMIT) -> List[str]:
    """Numbered ``name (ID: id)`` lines for the first ``limit`` entities."""
    lines = [f"   {i}. {entity.display_name} (ID: {entity.id})"
             for i, entity in enumerate(entities[:limit], start=1)]
    if len(entities) > limit:
        lines.append(f"   ... and {len(entities) - limit} more")
    return lines
