# bookstock/services/refresh.py
import asyncio
import logging
from typing import Any, Callable, Dict, Optional, Tuple

from ..exceptions import (
    CatalogLookupError, CatalogMissError, RefreshCancelledError, SourceUnavailableError
)
from ..models import CatalogItem, LibraryApiResponse
from ..sources import AladinClient, LibraryCheckerClient
from .combiner import combine_book_data, combine_raw, merge_api_block
from .mutations import MutationPipeline
from .notifications import Notifier
from .store import LibraryStore

logger = logging.getLogger(__name__)


class StockRefresher:
    """Refreshes the availability of one saved book"""

    def __init__(
        self,
        store: LibraryStore,
        catalog: AladinClient,
        checker: LibraryCheckerClient,
        pipeline: MutationPipeline,
        notifier: Notifier
    ):
        self.store = store
        self.catalog = catalog
        self.checker = checker
        self.pipeline = pipeline
        self.notifier = notifier

    def _custom_title(self, book_id: int) -> Optional[str]:
        book = self.store.get(book_id)
        return book.custom_search_title if book else None

    async def fetch(self, book_id: int, isbn: str, title: str, author: str) -> Tuple[CatalogItem, LibraryApiResponse]:
        """
        Look the book up in the catalog, then ask every library for it.

        Raises:
            CatalogMissError: When the catalog has no item for the ISBN
            CatalogLookupError: When the catalog answered with an error code
            SourceUnavailableError: When the catalog or the availability service is unreachable
        """
        item = await asyncio.to_thread(self.catalog.lookup_isbn, isbn)
        response = await asyncio.to_thread(
            self.checker.fetch_availability, isbn, title, author, self._custom_title(book_id)
        )
        return item, response

    async def fetch_raw(self, book_id: int, isbn: str, title: str, author: str) -> Dict[str, Any]:
        """Both source payloads side by side, for inspection"""
        item, response = await self.fetch(book_id, isbn, title, author)
        return combine_raw(
            item.model_dump(mode='json', by_alias=True),
            response.model_dump(mode='json', by_alias=True),
        )

    async def refresh_book(
        self,
        book_id: int,
        isbn: str,
        title: str,
        author: str,
        cancel_check: Optional[Callable[[], bool]] = None,
        notify: bool = True
    ) -> bool:
        """
        Fetch fresh availability and commit it to the book.

        Nothing is written unless the catalog confirms the ISBN and at least
        one library answered. User fields are never touched.

        Args:
            book_id: Saved book to refresh
            isbn: ISBN used for the catalog lookup
            title: Title used to derive library search keys
            author: Author line sent to the libraries
            cancel_check: Called before committing; a true result discards the fetched data
            notify: Whether a failure is reported to the user

        Returns:
            True when fresh data was committed

        Raises:
            RefreshCancelledError: When ``cancel_check`` asked to stop before the commit
        """
        self.store.refreshing_ids.add(book_id)
        try:
            return await self._refresh(book_id, isbn, title, author, cancel_check, notify)
        finally:
            self.store.refreshing_ids.discard(book_id)

    async def _refresh(self, book_id, isbn, title, author, cancel_check, notify) -> bool:
        failure = "Failed to refresh library stock"
        try:
            item, response = await self.fetch(book_id, isbn, title, author)
        except CatalogMissError as e:
            logger.warning(f"Refresh of book {book_id} aborted: {e}")
            if notify:
                self.notifier.error(f"{failure}: no catalog entry for ISBN {isbn}")
            return False
        except (CatalogLookupError, SourceUnavailableError) as e:
            logger.error(f"Refresh of book {book_id} failed: {e}")
            if notify:
                self.notifier.error(failure)
            return False

        if cancel_check is not None and cancel_check():
            logger.info(f"Refresh of book {book_id} cancelled before commit")
            raise RefreshCancelledError(f"Refresh of book {book_id} cancelled")

        if response.all_failed:
            logger.error(f"Every library failed for book {book_id}: {response.errors()}")
            if notify:
                self.notifier.error(failure)
            return False

        current = self.store.get(book_id)
        if current is None:
            logger.warning(f"Book {book_id} was removed during its refresh")
            return False

        combined = combine_book_data(item, response)
        updates = merge_api_block(current, combined)
        return await self.pipeline.apply(book_id, updates, failure_message=failure, notify=notify)
