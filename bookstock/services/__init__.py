# bookstock/services/__init__.py
from .notifications import Notifier, Notification, NotificationLevel
from .store import LibraryStore, SortKey, SortOrder
from .combiner import combine_raw, combine_book_data, merge_api_block
from .mutations import MutationPipeline
from .persistence import SqlLibraryPersistence
from .refresh import StockRefresher
from .batch import (
    BatchRefreshController, BatchRefreshJob, BatchCallbacks, BatchProgress,
    BatchRefreshSummary, RefreshSelection, JobState
)
from .bulk_search import BulkSearchService, BulkSearchResult, BulkSearchStatus
from .library_service import LibraryService

__all__ = [
    'Notifier',
    'Notification',
    'NotificationLevel',
    'LibraryStore',
    'SortKey',
    'SortOrder',
    'combine_raw',
    'combine_book_data',
    'merge_api_block',
    'MutationPipeline',
    'SqlLibraryPersistence',
    'StockRefresher',
    'BatchRefreshController',
    'BatchRefreshJob',
    'BatchCallbacks',
    'BatchProgress',
    'BatchRefreshSummary',
    'RefreshSelection',
    'JobState',
    'BulkSearchService',
    'BulkSearchResult',
    'BulkSearchStatus',
    'LibraryService'
]
