# bookstock/models/book.py

from datetime import datetime, UTC
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .sources import CatalogItem


class ReadStatus(str, Enum):
    UNREAD = "unread"
    READING = "reading"
    FINISHED = "finished"

    @classmethod
    def _missing_(cls, value):
        # Labels stored by the first version of the web client
        legacy = {'읽지 않음': cls.UNREAD, '읽는 중': cls.READING, '완독': cls.FINISHED}
        return legacy.get(value)


class StockInfo(BaseModel):
    total_count: int = 0
    available_count: int = 0


class EbookStock(StockInfo):
    owned_count: int = 0
    subscription_count: int = 0


class ApiDerivedBlock(BaseModel):
    """Everything a refresh is allowed to replace"""
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    # Source payloads as received
    gwangju_paper_info: Optional[Dict[str, Any]] = None
    ebook_edu_info: Optional[Dict[str, Any]] = None
    gyeonggi_ebook_info: Optional[Dict[str, Any]] = None
    filtered_gyeonggi_ebook_info: Optional[Dict[str, Any]] = None
    sirip_ebook_info: Optional[Dict[str, Any]] = None

    # Summaries
    toechon_stock: Optional[StockInfo] = None
    other_stock: Optional[StockInfo] = None
    edu_ebook_stock: Optional[StockInfo] = None
    gyeonggi_ebook_stock: Optional[EbookStock] = None
    sirip_ebook_stock: Optional[EbookStock] = None

    # Sources that failed on the last refresh, keyed by source name
    source_errors: Dict[str, str] = Field(default_factory=dict)
    last_updated: Optional[datetime] = None


class UserActivity(BaseModel):
    """Fields only a user action may change"""
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    added_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    read_status: ReadStatus = ReadStatus.UNREAD
    rating: int = Field(default=0, ge=0, le=5)
    is_favorite: bool = False
    note: Optional[str] = Field(default=None, max_length=50)
    tags: List[str] = Field(default_factory=list)
    custom_search_title: Optional[str] = None


class CombinedBookData(CatalogItem, ApiDerivedBlock):
    """Catalog attributes plus a fresh API-derived block, without user data"""
    model_config = ConfigDict(populate_by_name=True, extra='ignore')


class CanonicalBook(CatalogItem, ApiDerivedBlock, UserActivity):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    id: int

    @classmethod
    def from_row(cls, book_id: int, book_data: Optional[Dict[str, Any]], note: Optional[str] = None) -> "CanonicalBook":
        """Build a book from a stored row, filling defaults for older documents"""
        data = dict(book_data or {})
        data.setdefault('read_status', ReadStatus.UNREAD)
        data.setdefault('rating', 0)
        data['id'] = book_id
        data['note'] = note
        return cls.model_validate(data)

    def to_book_data(self) -> Dict[str, Any]:
        """Document stored in the ``book_data`` column (id and note live in their own columns)"""
        return self.model_dump(mode='json', exclude={'id', 'note'})

    @property
    def has_source_errors(self) -> bool:
        return bool(self.source_errors)


CATALOG_FIELDS = tuple(CatalogItem.model_fields)
API_DERIVED_FIELDS = tuple(ApiDerivedBlock.model_fields)
USER_FIELDS = tuple(UserActivity.model_fields)
