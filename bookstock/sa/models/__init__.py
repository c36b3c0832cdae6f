# bookstock/sa/models/__init__.py
from .base import Base, TimestampMixin
from .library_book import LibraryBook

__all__ = [
    'Base',
    'TimestampMixin',
    'LibraryBook'
]
