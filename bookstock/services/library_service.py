# bookstock/services/library_service.py
import asyncio
import logging
from typing import Any, Dict, List, Optional

from ..config import Settings
from ..exceptions import BookstockError, CatalogMissError, InvalidEditError, PersistenceError
from ..models import CanonicalBook, CatalogItem, CombinedBookData, ReadStatus, UserActivity
from ..sa.database import Database
from ..sources import AladinClient, LibraryCheckerClient, QueryType
from ..sources.aladin import drop_set_editions
from ..sources.http import HttpDownloader
from .batch import BatchRefreshController
from .bulk_search import BulkSearchService
from .mutations import MutationPipeline
from .notifications import Notifier
from .persistence import SqlLibraryPersistence
from .refresh import StockRefresher
from .store import LibraryStore

logger = logging.getLogger(__name__)

MAX_NOTE_LENGTH = 50
MAX_RATING = 5


class LibraryService:
    """Entry point for every library operation of one user"""

    def __init__(
        self,
        persistence: SqlLibraryPersistence,
        catalog: AladinClient,
        checker: LibraryCheckerClient,
        settings: Optional[Settings] = None,
        store: Optional[LibraryStore] = None,
        notifier: Optional[Notifier] = None
    ):
        self.settings = settings or Settings()
        self.persistence = persistence
        self.catalog = catalog
        self.store = store or LibraryStore()
        self.notifier = notifier or Notifier()
        self.pipeline = MutationPipeline(self.store, persistence, self.notifier)
        self.refresher = StockRefresher(self.store, catalog, checker, self.pipeline, self.notifier)

    @classmethod
    def from_settings(cls, settings: Settings) -> "LibraryService":
        database = Database(settings.database_url)
        database.init_db()
        downloader = HttpDownloader(timeout=settings.request_timeout)
        return cls(
            persistence=SqlLibraryPersistence(database, settings.user_id),
            catalog=AladinClient(settings.aladin_ttb_key, api_url=settings.aladin_api_url, downloader=downloader),
            checker=LibraryCheckerClient(settings.library_checker_url, downloader=downloader),
            settings=settings,
        )

    # --- loading and catalog search ---

    async def load_library(self) -> List[CanonicalBook]:
        try:
            books = await self.persistence.load_all()
        except PersistenceError:
            self.notifier.error("Failed to load the library")
            return []
        self.store.replace_all(books)
        logger.info(f"Loaded {len(books)} books")
        return books

    async def search(self, query: str, query_type: QueryType = QueryType.KEYWORD) -> List[CatalogItem]:
        """Search the catalog; results are kept as the current search view"""
        try:
            items = await asyncio.to_thread(self.catalog.search, query, query_type)
        except BookstockError as e:
            logger.error(f"Catalog search for '{query}' failed: {e}")
            self.notifier.error("Catalog search failed")
            items = []
        self.store.search_results = drop_set_editions(items)
        return self.store.search_results

    async def lookup_isbn(self, isbn: str) -> Optional[CatalogItem]:
        try:
            return await asyncio.to_thread(self.catalog.lookup_isbn, isbn)
        except CatalogMissError:
            self.notifier.warning(f"No catalog entry for ISBN {isbn}")
        except BookstockError as e:
            logger.error(f"Catalog lookup for {isbn} failed: {e}")
            self.notifier.error("Catalog search failed")
        return None

    def bulk_search(self) -> BulkSearchService:
        return BulkSearchService(self.catalog)

    def select(self, book_id: int) -> Optional[CanonicalBook]:
        book = self.store.get(book_id)
        self.store.selected_id = book.id if book else None
        return book

    def unselect(self) -> None:
        self.store.selected_id = None

    # --- lifecycle ---

    async def add_to_library(self, item: CatalogItem, refresh: bool = True) -> Optional[CanonicalBook]:
        """
        Save a catalog item as a new book with default user fields.

        Args:
            item: The catalog item to add
            refresh: Whether to fetch library stock right after adding

        Returns:
            The saved book, or None when it was already saved or the insert failed
        """
        if self.store.contains_isbn(item.isbn13):
            self.notifier.warning(f"'{item.title}' is already in the library")
            return None

        book_data = CombinedBookData.model_validate(item.model_dump()).model_dump(mode='json')
        book_data.update(UserActivity().model_dump(mode='json', exclude={'note'}))
        try:
            book = await self.persistence.insert(book_data)
        except PersistenceError:
            self.notifier.error("Failed to add the book to the library")
            return None

        self.store.put(book)
        self.notifier.success(f"Added '{book.title}' to the library")
        if refresh:
            await self.refresh_book(book.id)
        return self.store.get(book.id)

    async def remove_from_library(self, book_id: int) -> bool:
        book = self.store.get(book_id)
        if book is None:
            logger.warning(f"Book {book_id} not found, nothing to remove")
            return False
        try:
            await self.persistence.delete(book_id)
        except PersistenceError:
            self.notifier.error("Failed to remove the book from the library")
            return False
        self.store.remove(book_id)
        return True

    # --- refresh ---

    async def refresh_book(self, book_id: int) -> bool:
        book = self.store.get(book_id)
        if book is None:
            logger.warning(f"Book {book_id} not found, skipping refresh")
            return False
        return await self.refresher.refresh_book(book.id, book.isbn13, book.title, book.author)

    async def raw_combined(self, book_id: int) -> Optional[Dict[str, Any]]:
        book = self.store.get(book_id)
        if book is None:
            return None
        return await self.refresher.fetch_raw(book.id, book.isbn13, book.title, book.author)

    def batch_controller(self) -> BatchRefreshController:
        return BatchRefreshController(
            self.store,
            self.refresher,
            loader=self.load_library,
            batch_size=self.settings.batch_size,
            batch_delay=self.settings.batch_delay,
            pause_poll=self.settings.pause_poll_interval,
            notifier=self.notifier,
        )

    # --- user edits ---

    async def update_rating(self, book_id: int, rating: int) -> bool:
        if not 0 <= rating <= MAX_RATING:
            raise InvalidEditError(f"Rating must be between 0 and {MAX_RATING}, got {rating}")
        return await self.pipeline.apply(book_id, {'rating': rating}, "Failed to update the rating")

    async def update_read_status(self, book_id: int, status: ReadStatus | str) -> bool:
        try:
            read_status = ReadStatus(status)
        except ValueError as e:
            raise InvalidEditError(f"Unknown read status: {status}") from e
        return await self.pipeline.apply(book_id, {'read_status': read_status}, "Failed to update the read status")

    async def toggle_favorite(self, book_id: int) -> bool:
        book = self.store.get(book_id)
        if book is None:
            logger.warning(f"Book {book_id} not found, cannot toggle favorite")
            return False
        return await self.pipeline.apply(book_id, {'is_favorite': not book.is_favorite}, "Failed to update favorite")

    async def update_note(self, book_id: int, note: Optional[str]) -> bool:
        note = (note or '').strip() or None
        if note is not None and len(note) > MAX_NOTE_LENGTH:
            raise InvalidEditError(f"Note must be at most {MAX_NOTE_LENGTH} characters")
        return await self.pipeline.apply(book_id, {'note': note}, "Failed to save the note")

    async def add_tag(self, book_id: int, tag_id: str) -> bool:
        book = self.store.get(book_id)
        if book is None:
            logger.warning(f"Book {book_id} not found, cannot add tag {tag_id}")
            return False
        if tag_id in book.tags:
            return True
        return await self.pipeline.apply(book_id, {'tags': book.tags + [tag_id]}, "Failed to add the tag")

    async def remove_tag(self, book_id: int, tag_id: str) -> bool:
        book = self.store.get(book_id)
        if book is None:
            logger.warning(f"Book {book_id} not found, cannot remove tag {tag_id}")
            return False
        if tag_id not in book.tags:
            return True
        tags = [tag for tag in book.tags if tag != tag_id]
        return await self.pipeline.apply(book_id, {'tags': tags}, "Failed to remove the tag")

    async def set_custom_search_title(self, book_id: int, title: Optional[str]) -> bool:
        """Override the library search keyword; a blank title restores the derived one"""
        custom = (title or '').strip() or None
        return await self.pipeline.apply(book_id, {'custom_search_title': custom}, "Failed to save the search title")
