# bookstock/sa/models/library_book.py
from typing import Any, Dict
from sqlalchemy import Integer, String, Text, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column
from .base import Base, TimestampMixin

class LibraryBook(Base, TimestampMixin):
    """One saved book of a user.

    The whole book document lives in ``book_data``; title and author are
    duplicated into columns for listing and search.
    """
    __tablename__ = 'user_library'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    author: Mapped[str] = mapped_column(String(500), nullable=False, default='')
    book_data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index('idx_user_library_user_id', 'user_id'),
        Index('idx_user_library_title', 'title'),
    )
