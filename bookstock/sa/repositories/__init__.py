# bookstock/sa/repositories/__init__.py
from .library_book import LibraryBookRepository

__all__ = ['LibraryBookRepository']
