# bookstock/services/bulk_search.py
import asyncio
import logging
from enum import Enum
from typing import Callable, List, Optional

from pydantic import BaseModel, Field

from ..exceptions import BookstockError
from ..models import CatalogItem
from ..sources import AladinClient, QueryType

logger = logging.getLogger(__name__)

BULK_BATCH_SIZE = 5
BULK_BATCH_DELAY = 0.5
QUERY_WORDS = 2


class BulkSearchStatus(str, Enum):
    FOUND = "found"
    MULTIPLE = "multiple"
    NONE = "none"
    ERROR = "error"


class BulkSearchResult(BaseModel):
    input_title: str
    search_query: str
    status: BulkSearchStatus
    search_results: List[CatalogItem] = Field(default_factory=list)
    selected_book: Optional[CatalogItem] = None
    error_message: Optional[str] = None


def parse_book_titles(text: str) -> List[str]:
    """One title per line, blank lines dropped"""
    return [line.strip() for line in text.split('\n') if line.strip()]


def generate_search_query(title: str) -> str:
    return ' '.join(title.split()[:QUERY_WORDS])


def is_book_matching(search_query: str, title: str) -> bool:
    """True when every query word occurs in the title, ignoring case"""
    title_lower = title.lower()
    return all(word in title_lower for word in search_query.lower().split())


class BulkSearchService:
    """Looks up a pasted list of titles in the catalog"""

    def __init__(self, catalog: AladinClient, batch_size: int = BULK_BATCH_SIZE, batch_delay: float = BULK_BATCH_DELAY):
        self.catalog = catalog
        self.batch_size = batch_size
        self.batch_delay = batch_delay

    async def search_single_book(self, input_title: str) -> BulkSearchResult:
        search_query = generate_search_query(input_title)
        try:
            items = await asyncio.to_thread(self.catalog.search, search_query, QueryType.KEYWORD)
        except BookstockError as e:
            logger.error(f"Search failed for '{input_title}': {e}")
            return BulkSearchResult(
                input_title=input_title,
                search_query=search_query,
                status=BulkSearchStatus.ERROR,
                error_message=str(e),
            )

        matched = [item for item in items if is_book_matching(search_query, item.title)]
        if not matched:
            status = BulkSearchStatus.NONE
        elif len(matched) == 1:
            status = BulkSearchStatus.FOUND
        else:
            status = BulkSearchStatus.MULTIPLE

        return BulkSearchResult(
            input_title=input_title,
            search_query=search_query,
            status=status,
            search_results=matched,
            selected_book=matched[0] if status == BulkSearchStatus.FOUND else None,
        )

    async def search_bulk(
        self,
        titles: List[str],
        on_progress: Optional[Callable[[int, int, int, int], None]] = None
    ) -> List[BulkSearchResult]:
        """
        Search every title, a few at a time.

        Args:
            titles: Titles to look up
            on_progress: Called with (completed, total, current batch, batch count) after each title

        Returns:
            One result per title, in input order
        """
        total = len(titles)
        batches = [titles[i:i + self.batch_size] for i in range(0, total, self.batch_size)]
        results: List[BulkSearchResult] = []
        completed = 0

        for index, batch in enumerate(batches):
            async def search(title: str) -> BulkSearchResult:
                nonlocal completed
                result = await self.search_single_book(title)
                completed += 1
                if on_progress:
                    on_progress(completed, total, index + 1, len(batches))
                return result

            results.extend(await asyncio.gather(*(search(title) for title in batch)))
            if index < len(batches) - 1:
                await asyncio.sleep(self.batch_delay)

        return results
