# bookstock/services/store.py
"""In-memory state of one user's library.

Books live in a single table keyed by id. The ISBN membership set and tag
counts are recomputed from that table on every write, and every view
(library list, tag filter, text search, selection) is read from it, so a
write is visible everywhere at once.
"""
import logging
from collections import Counter
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Set

from ..models import CanonicalBook, CatalogItem, ReadStatus
from ..utils.matching import normalize_isbn

logger = logging.getLogger(__name__)


class SortKey(str, Enum):
    TITLE = "title"
    AUTHOR = "author"
    ADDED_AT = "added_at"
    RATING = "rating"
    READ_STATUS = "read_status"
    PUB_DATE = "pub_date"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


DATE_SORT_KEYS = {SortKey.ADDED_AT, SortKey.PUB_DATE}

_READ_STATUS_ORDER = {ReadStatus.UNREAD: 0, ReadStatus.READING: 1, ReadStatus.FINISHED: 2}


def _sort_value(book: CanonicalBook, key: SortKey):
    if key == SortKey.READ_STATUS:
        return _READ_STATUS_ORDER[book.read_status]
    if key in (SortKey.TITLE, SortKey.AUTHOR):
        return getattr(book, key.value).casefold()
    return getattr(book, key.value)


class LibraryStore:
    def __init__(self):
        self._books: Dict[int, CanonicalBook] = {}
        self.isbn_index: Set[str] = set()
        self.tag_counts: Counter = Counter()

        self.search_results: List[CatalogItem] = []
        self.selected_id: Optional[int] = None
        self.active_tag_ids: List[str] = []
        self.library_query: str = ""
        self.sort_key: SortKey = SortKey.ADDED_AT
        self.sort_order: SortOrder = SortOrder.DESC

        self.is_loaded = False
        self.refreshing_ids: Set[int] = set()
        self._removal_listeners: List[Callable[[int], None]] = []

    def __len__(self) -> int:
        return len(self._books)

    def __contains__(self, book_id: int) -> bool:
        return book_id in self._books

    # --- writes ---

    def _reindex(self) -> None:
        self.isbn_index = {normalize_isbn(book.isbn13) for book in self._books.values() if book.isbn13}
        self.tag_counts = Counter(tag for book in self._books.values() for tag in set(book.tags))

    def put(self, book: CanonicalBook) -> None:
        """Insert or replace a book and recompute every index"""
        self._books[book.id] = book
        self._reindex()

    def replace_all(self, books: Iterable[CanonicalBook]) -> None:
        self._books = {book.id: book for book in books}
        self._reindex()
        if self.selected_id is not None and self.selected_id not in self._books:
            self.selected_id = None
        self.is_loaded = True

    def remove(self, book_id: int) -> Optional[CanonicalBook]:
        """Drop a book from the table, every index and the selection"""
        book = self._books.pop(book_id, None)
        if book is None:
            return None
        self._reindex()
        if self.selected_id == book_id:
            self.selected_id = None
        self.refreshing_ids.discard(book_id)
        for listener in list(self._removal_listeners):
            listener(book_id)
        return book

    def add_removal_listener(self, listener: Callable[[int], None]) -> None:
        self._removal_listeners.append(listener)

    def remove_removal_listener(self, listener: Callable[[int], None]) -> None:
        if listener in self._removal_listeners:
            self._removal_listeners.remove(listener)

    # --- reads ---

    def get(self, book_id: int) -> Optional[CanonicalBook]:
        return self._books.get(book_id)

    def all(self) -> List[CanonicalBook]:
        return list(self._books.values())

    def by_added(self, newest_first: bool = True) -> List[CanonicalBook]:
        return sorted(self._books.values(), key=lambda book: (book.added_at, book.id), reverse=newest_first)

    def contains_isbn(self, isbn: str) -> bool:
        return normalize_isbn(isbn) in self.isbn_index

    def selected_book(self) -> Optional[CanonicalBook]:
        if self.selected_id is None:
            return None
        return self._books.get(self.selected_id)

    def set_sort(self, key: SortKey | str) -> None:
        """Sort by ``key``; choosing the current key again flips the order"""
        key = SortKey(key)
        if key == self.sort_key:
            self.sort_order = SortOrder.ASC if self.sort_order == SortOrder.DESC else SortOrder.DESC
        else:
            self.sort_key = key
            self.sort_order = SortOrder.DESC if key in DATE_SORT_KEYS else SortOrder.ASC

    def sorted_books(self, books: Iterable[CanonicalBook]) -> List[CanonicalBook]:
        return sorted(
            books,
            key=lambda book: (_sort_value(book, self.sort_key), book.id),
            reverse=self.sort_order == SortOrder.DESC,
        )

    def tag_filtered_view(self, tag_ids: Optional[Iterable[str]] = None) -> List[CanonicalBook]:
        """Books carrying every one of the tags"""
        required = set(self.active_tag_ids if tag_ids is None else tag_ids)
        return [book for book in self._books.values() if required.issubset(book.tags)]

    def search_view(self, query: Optional[str] = None) -> List[CanonicalBook]:
        """Books whose title or author contains the query, case-insensitively"""
        needle = (self.library_query if query is None else query).strip().casefold()
        if not needle:
            return self.all()
        return [
            book for book in self._books.values()
            if needle in book.title.casefold() or needle in book.author.casefold()
        ]

    def library_view(self) -> List[CanonicalBook]:
        """The library as displayed: text query, tag filter and sort order applied"""
        matching_ids = {book.id for book in self.search_view()}
        return self.sorted_books(book for book in self.tag_filtered_view() if book.id in matching_ids)
