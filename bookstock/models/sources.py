# bookstock/models/sources.py
"""Payload shapes returned by the external catalog and library sources.

Every availability source answers either with a populated result or with an
explicit ``{"error": "..."}`` object. The two shapes are kept apart at the type
level: ``SourceError`` for the marker, a result model for data, and ``None``
when the source was never asked.
"""
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class SourcePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')


class SourceError(SourcePayload):
    error: str


# --- Catalog (Aladin) ---

class EbookListEntry(SourcePayload):
    item_id: Optional[int] = Field(default=None, alias='itemId')
    isbn: str = ''
    isbn13: str = ''
    price_sales: Optional[int] = Field(default=None, alias='priceSales')
    link: str = ''


class SubInfo(SourcePayload):
    ebook_list: List[EbookListEntry] = Field(default_factory=list, alias='ebookList')
    paper_book_list: List[EbookListEntry] = Field(default_factory=list, alias='paperBookList')


class CatalogItem(SourcePayload):
    title: str
    author: str = ''
    pub_date: str = Field(default='', alias='pubDate')
    description: str = ''
    isbn13: str = ''
    cover: str = ''
    price_standard: Optional[int] = Field(default=None, alias='priceStandard')
    price_sales: Optional[int] = Field(default=None, alias='priceSales')
    publisher: str = ''
    link: str = ''
    sub_info: Optional[SubInfo] = Field(default=None, alias='subInfo')
    mall_type: Optional[str] = Field(default=None, alias='mallType')

    @property
    def ebook_isbn13(self) -> Optional[str]:
        if self.sub_info and self.sub_info.ebook_list:
            return self.sub_info.ebook_list[0].isbn13 or None
        return None

    @property
    def has_ebook(self) -> bool:
        return bool(self.sub_info and self.sub_info.ebook_list)


class CatalogResponse(SourcePayload):
    item: Optional[List[CatalogItem]] = None
    error_code: Optional[int] = Field(default=None, alias='errorCode')
    error_message: Optional[str] = Field(default=None, alias='errorMessage')


# --- Paper stock (Gwangju city libraries) ---

class PaperAvailability(SourcePayload):
    library: str = Field(alias='소장도서관')
    call_number: str = Field(default='', alias='청구기호')
    base_call_number: str = Field(default='', alias='기본청구기호')
    loan_status: str = Field(default='', alias='대출상태')
    due_date: str = Field(default='', alias='반납예정일')
    # Deep-link keys, only sent for loanable items of the primary branch
    rec_key: Optional[str] = Field(default=None, alias='recKey')
    book_key: Optional[str] = Field(default=None, alias='bookKey')
    publish_form_code: Optional[str] = Field(default=None, alias='publishFormCode')

    @property
    def is_available(self) -> bool:
        return self.loan_status == '대출가능'

    @property
    def has_detail_link(self) -> bool:
        return bool(self.rec_key and self.book_key and self.publish_form_code)


class PaperStockResult(SourcePayload):
    library_name: str = ''
    summary_total_count: int
    summary_available_count: int
    toechon_total_count: int = 0
    toechon_available_count: int = 0
    other_total_count: int = 0
    other_available_count: int = 0
    book_title: str = ''
    book_list: List[PaperAvailability] = Field(default_factory=list)


# --- Gyeonggi education office e-library ---

class EduEbookItem(SourcePayload):
    library_name: str = Field(alias='소장도서관')
    title: str = Field(default='', alias='도서명')
    author: str = Field(default='', alias='저자')
    publisher: str = Field(default='', alias='출판사')
    pub_date: str = Field(default='', alias='발행일')
    loan_status: str = Field(default='', alias='대출상태')


class EduEbookResult(SourcePayload):
    library_name: str = ''
    total_count: int
    available_count: int
    unavailable_count: int = 0
    seongnam_count: int = 0
    tonghap_count: int = 0
    error_count: int = 0
    error_lib_detail: Optional[str] = None
    book_list: List[Union[SourceError, EduEbookItem]] = Field(default_factory=list)


# --- Gyeonggi provincial e-library ---

class GyeonggiEbookItem(SourcePayload):
    type: str = ''
    title: str = ''
    available: bool = False
    current_borrow: Optional[int] = None
    total_capacity: Optional[int] = None
    author: Optional[str] = None
    publisher: Optional[str] = None
    isbn: Optional[str] = None
    owner: Optional[str] = None
    reservable: Optional[bool] = None
    reserve_count: Optional[int] = None

    @property
    def is_owned(self) -> bool:
        return self.type == '소장형'

    @property
    def is_subscription(self) -> bool:
        return self.type == '구독형'


class GyeonggiEbookResult(SourcePayload):
    library_name: str = ''
    total_count: int
    available_count: int
    unavailable_count: int = 0
    owned_count: int = 0
    subscription_count: int = 0
    book_list: List[GyeonggiEbookItem] = Field(default_factory=list)


# --- Gwangju city e-library (owned + subscription collections) ---

class SiripEbook(SourcePayload):
    type: str = '전자책'
    title: str = ''
    author: str = ''
    publisher: str = ''
    publish_date: str = ''
    loan_status: str = ''
    status: str = ''
    total_count: int = 0
    available_count: int = 0
    available: bool = False
    library_name: str = ''


class SiripEbookSection(SourcePayload):
    library_name: str = ''
    total_count: int = 0
    available_count: int = 0
    unavailable_count: int = 0
    book_list: List[SiripEbook] = Field(default_factory=list)
    error: Optional[str] = None


class SiripEbookDetails(SourcePayload):
    owned: Optional[SiripEbookSection] = None
    subscription: Optional[SiripEbookSection] = None


class SiripEbookSummary(SourcePayload):
    library_name: str = ''
    total_count: int = 0
    available_count: int = 0
    unavailable_count: int = 0
    owned_count: int = 0
    subscription_count: int = 0
    search_query: str = ''


class SiripEbookResult(SourcePayload):
    library_name: str = ''
    total_count: int
    available_count: int
    unavailable_count: int = 0
    book_list: List[SiripEbook] = Field(default_factory=list)
    details: Optional[SiripEbookDetails] = None
    sirip_ebook_summary: Optional[SiripEbookSummary] = None


# --- Unified availability response ---

SOURCE_KEYS = ('gwangju_paper', 'gyeonggi_ebook_edu', 'gyeonggi_ebook_library', 'sirip_ebook')

_RESULT_MODELS = {
    'gwangju_paper': PaperStockResult,
    'gyeonggi_ebook_edu': EduEbookResult,
    'gyeonggi_ebook_library': GyeonggiEbookResult,
    'sirip_ebook': SiripEbookResult,
}


def parse_source_payload(key: str, raw: Any) -> Union[SourcePayload, None]:
    """Turn one raw source payload into a result, an error marker or None.

    A payload that does not fit the result shape becomes an error marker for
    that source alone.
    """
    if raw is None:
        return None
    if isinstance(raw, SourcePayload):
        return raw
    if isinstance(raw, dict) and 'error' in raw and raw.get('error'):
        return SourceError(error=str(raw['error']))
    try:
        return _RESULT_MODELS[key].model_validate(raw)
    except ValidationError as e:
        return SourceError(error=f"malformed payload: {e.error_count()} validation errors")


class LibraryApiResponse(SourcePayload):
    gwangju_paper: Optional[Union[PaperStockResult, SourceError]] = None
    gyeonggi_ebook_edu: Optional[Union[EduEbookResult, SourceError]] = None
    gyeonggi_ebook_library: Optional[Union[GyeonggiEbookResult, SourceError]] = None
    sirip_ebook: Optional[Union[SiripEbookResult, SourceError]] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "LibraryApiResponse":
        return cls(**{key: parse_source_payload(key, data.get(key)) for key in SOURCE_KEYS})

    @classmethod
    def unavailable(cls, message: str) -> "LibraryApiResponse":
        """Response used when the availability service itself could not be reached."""
        return cls(**{key: SourceError(error=message) for key in SOURCE_KEYS})

    def errors(self) -> Dict[str, str]:
        errors = {}
        for key in SOURCE_KEYS:
            value = getattr(self, key)
            if isinstance(value, SourceError):
                errors[key] = value.error
        return errors

    @property
    def all_failed(self) -> bool:
        return len(self.errors()) == len(SOURCE_KEYS)
