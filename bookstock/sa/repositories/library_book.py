# bookstock/sa/repositories/library_book.py
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from bookstock.sa.models import LibraryBook

class LibraryBookRepository:
    """Repository for managing the saved books of a user."""

    def __init__(self, session: Session):
        """Initialize the repository with a database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def get_by_id(self, entry_id: int, user_id: str) -> Optional[LibraryBook]:
        """Get a saved book of a user by its ID.

        Args:
            entry_id: The ID of the entry to retrieve
            user_id: Owner of the entry

        Returns:
            The LibraryBook object if found, None otherwise
        """
        return (
            self.session.query(LibraryBook)
            .filter(LibraryBook.id == entry_id, LibraryBook.user_id == user_id)
            .first()
        )

    def get_all_for_user(self, user_id: str) -> List[LibraryBook]:
        """Get every saved book of a user, newest first.

        Args:
            user_id: Owner of the entries

        Returns:
            List of LibraryBook objects
        """
        return (
            self.session.query(LibraryBook)
            .filter(LibraryBook.user_id == user_id)
            .order_by(LibraryBook.id.desc())
            .all()
        )

    def create_entry(
        self,
        user_id: str,
        title: str,
        author: str,
        book_data: Dict[str, Any],
        note: Optional[str] = None
    ) -> LibraryBook:
        """Create a new saved book.

        Args:
            user_id: Owner of the entry
            title: Title of the book
            author: Author line of the book
            book_data: The full book document
            note: Optional note

        Returns:
            The created LibraryBook object with its assigned ID
        """
        entry = LibraryBook(
            user_id=user_id,
            title=title,
            author=author,
            book_data=book_data,
            note=note
        )
        self.session.add(entry)
        self.session.commit()
        return entry

    def update_entry(
        self,
        entry_id: int,
        user_id: str,
        book_data: Dict[str, Any],
        title: Optional[str] = None,
        author: Optional[str] = None,
        note: Optional[str] = None
    ) -> Optional[LibraryBook]:
        """Replace the document of a saved book in a single write.

        Args:
            entry_id: The ID of the entry to update
            user_id: Owner of the entry
            book_data: New full book document
            title: Optional new title
            author: Optional new author line
            note: New note, written as given

        Returns:
            The updated LibraryBook object if found for the user, None otherwise
        """
        entry = self.get_by_id(entry_id, user_id)
        if not entry:
            return None

        entry.book_data = book_data
        if title is not None:
            entry.title = title
        if author is not None:
            entry.author = author
        entry.note = note

        self.session.commit()
        return entry

    def delete_entry(self, entry_id: int, user_id: str) -> bool:
        """Delete a saved book.

        Args:
            entry_id: The ID of the entry to delete
            user_id: Owner of the entry

        Returns:
            True if the entry was deleted, False if not found
        """
        entry = self.get_by_id(entry_id, user_id)
        if not entry:
            return False

        self.session.delete(entry)
        self.session.commit()
        return True
