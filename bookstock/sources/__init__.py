# bookstock/sources/__init__.py
from .aladin import AladinClient, QueryType
from .library_checker import LibraryCheckerClient
from .links import create_library_open_url, paper_detail_url, LibraryShortcut

__all__ = [
    'AladinClient',
    'QueryType',
    'LibraryCheckerClient',
    'create_library_open_url',
    'paper_detail_url',
    'LibraryShortcut'
]
