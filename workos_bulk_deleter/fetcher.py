"""Drains a cursor-paginated listing endpoint."""

import logging
import time
from typing import Callable, List, Optional

from .client import Page
from .executor import RetryingExecutor
from .models import Entity

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
ORDER = "desc"

ListPage = Callable[..., Page]


class PaginatedFetcher:
    """Collects every item of a paginated listing, one page at a time."""

    def __init__(self, executor: RetryingExecutor, page_size: int = PAGE_SIZE, order: str = ORDER):
        self.executor = executor
        self.page_size = page_size
        self.order = order

    def fetch_all(self, list_page: ListPage, kind: str = "organization") -> List[Entity]:
        """Call ``list_page`` until it stops returning a cursor.

        Any page failure propagates; nothing fetched so far is returned.
        """
        all_items: List[Entity] = []
        after: Optional[str] = None
        page = 0
        start_time = time.monotonic()

        while True:
            page += 1
            logger.debug(f"Fetching {kind}s page {page}...")
            cursor = after
            response = self.executor.execute_with_rate_limit(
                lambda: list_page(limit=self.page_size, order=self.order, after=cursor)
            )

            if response.items:
                all_items.extend(response.items)
                logger.debug(f"Retrieved {len(response.items)} {kind}s (total: {len(all_items)})")

            after = response.next_cursor
            if not after:
                break

        fetch_time = time.monotonic() - start_time
        logger.info(f"Fetched {len(all_items)} {kind}s in {fetch_time:.1f}s ({page} pages)")
        return all_items
