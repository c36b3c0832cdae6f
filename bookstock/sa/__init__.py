# bookstock/sa/__init__.py
from .database import Database
from .models import Base, LibraryBook

__all__ = [
    'Database',
    'Base',
    'LibraryBook'
]
