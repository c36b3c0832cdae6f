# bookstock/services/persistence.py
import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import PersistenceError
from ..models import CanonicalBook
from ..sa.database import Database
from ..sa.repositories import LibraryBookRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SqlLibraryPersistence:
    """Stores one user's books in the ``user_library`` table.

    Every call runs its session in a worker thread so the event loop keeps
    serving other refreshes while the database works.
    """

    def __init__(self, database: Database, user_id: str):
        self.database = database
        self.user_id = user_id

    async def _run(self, action: str, work: Callable[[LibraryBookRepository], T]) -> T:
        def in_session() -> T:
            with self.database.get_db() as session:
                return work(LibraryBookRepository(session))

        try:
            return await asyncio.to_thread(in_session)
        except SQLAlchemyError as e:
            logger.error(f"Failed to {action}: {e}")
            raise PersistenceError(f"Failed to {action}") from e

    async def load_all(self) -> List[CanonicalBook]:
        def work(repo: LibraryBookRepository) -> List[CanonicalBook]:
            return [
                CanonicalBook.from_row(entry.id, entry.book_data, entry.note)
                for entry in repo.get_all_for_user(self.user_id)
            ]

        return await self._run("load library", work)

    async def insert(self, book_data: Dict[str, Any], note: Optional[str] = None) -> CanonicalBook:
        """Create a row and return the book with the id the database assigned"""
        def work(repo: LibraryBookRepository) -> CanonicalBook:
            entry = repo.create_entry(
                user_id=self.user_id,
                title=book_data.get('title', ''),
                author=book_data.get('author', ''),
                book_data=book_data,
                note=note,
            )
            return CanonicalBook.from_row(entry.id, entry.book_data, entry.note)

        return await self._run("add book", work)

    async def save(self, book: CanonicalBook) -> None:
        """Write the whole book back in a single update"""
        def work(repo: LibraryBookRepository) -> None:
            entry = repo.update_entry(
                book.id,
                self.user_id,
                book_data=book.to_book_data(),
                title=book.title,
                author=book.author,
                note=book.note,
            )
            if entry is None:
                raise PersistenceError(f"Book {book.id} no longer exists")

        await self._run(f"save book {book.id}", work)

    async def delete(self, book_id: int) -> bool:
        return await self._run(f"delete book {book_id}", lambda repo: repo.delete_entry(book_id, self.user_id))
