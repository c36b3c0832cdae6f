# bookstock/models/__init__.py
from .sources import (
    SourceError, EbookListEntry, SubInfo, CatalogItem, CatalogResponse,
    PaperAvailability, PaperStockResult, EduEbookItem, EduEbookResult,
    GyeonggiEbookItem, GyeonggiEbookResult, SiripEbook, SiripEbookSection,
    SiripEbookDetails, SiripEbookSummary, SiripEbookResult, LibraryApiResponse,
    SOURCE_KEYS
)
from .book import (
    ReadStatus, StockInfo, EbookStock, ApiDerivedBlock,
    UserActivity, CombinedBookData, CanonicalBook, API_DERIVED_FIELDS,
    CATALOG_FIELDS, USER_FIELDS
)

__all__ = [
    'SourceError',
    'EbookListEntry',
    'SubInfo',
    'CatalogItem',
    'CatalogResponse',
    'PaperAvailability',
    'PaperStockResult',
    'EduEbookItem',
    'EduEbookResult',
    'GyeonggiEbookItem',
    'GyeonggiEbookResult',
    'SiripEbook',
    'SiripEbookSection',
    'SiripEbookDetails',
    'SiripEbookSummary',
    'SiripEbookResult',
    'LibraryApiResponse',
    'SOURCE_KEYS',
    'ReadStatus',
    'StockInfo',
    'EbookStock',
    'ApiDerivedBlock',
    'UserActivity',
    'CombinedBookData',
    'CanonicalBook',
    'API_DERIVED_FIELDS',
    'CATALOG_FIELDS',
    'USER_FIELDS'
]
