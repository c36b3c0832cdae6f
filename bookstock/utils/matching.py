# bookstock/utils/matching.py
"""Decide whether a loosely described library record is the same book as a catalog record.

Order of evidence:
    1. paper ISBN equality
    2. e-book ISBN equality
    3. first-author prefix, only when the catalog knows no e-book edition

When the catalog confirms an e-book edition, a mismatching ISBN means a
different edition, so the author fallback is skipped to avoid pairing other
books by the same author.
"""
import re
from typing import Any, Optional

from ..models import CatalogItem, GyeonggiEbookResult

AUTHOR_PREFIX_LENGTH = 3

_ISBN_NOISE = re.compile(r'[-\s]')
_PARENTHETICAL = re.compile(r'\([^)]*\)')
_WHITESPACE = re.compile(r'\s')


def normalize_isbn(isbn: Optional[str]) -> str:
    if not isbn:
        return ''
    return _ISBN_NOISE.sub('', isbn)


def isbn_equal(isbn1: Optional[str], isbn2: Optional[str]) -> bool:
    normalized1 = normalize_isbn(isbn1)
    normalized2 = normalize_isbn(isbn2)
    return bool(normalized1) and normalized1 == normalized2


def author_key(author: Optional[str], length: int = AUTHOR_PREFIX_LENGTH) -> str:
    """Leading characters of the first listed author, annotations and spaces removed"""
    if not author:
        return ''
    first_author = _PARENTHETICAL.sub('', author).split(',')[0]
    return _WHITESPACE.sub('', first_author)[:length]


def _field(record: Any, name: str) -> Optional[str]:
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def is_same_book(book: CatalogItem, record: Any) -> bool:
    """Check whether an external record denotes ``book``.

    Args:
        book: Catalog or canonical book carrying ``isbn13``, ``author`` and ``sub_info``
        record: External record (model or dict) with optional ``isbn`` and ``author``

    Returns:
        True when the record is considered the same book
    """
    record_isbn = _field(record, 'isbn')
    if record_isbn:
        if isbn_equal(book.isbn13, record_isbn):
            return True
        if isbn_equal(book.ebook_isbn13, record_isbn):
            return True

    if book.has_ebook:
        return False

    book_author = author_key(book.author)
    record_author = author_key(_field(record, 'author'))
    return bool(book_author) and book_author == record_author


def filter_gyeonggi_ebooks(book: CatalogItem, result: GyeonggiEbookResult) -> GyeonggiEbookResult:
    """Keep only the e-library records matching ``book`` and recount them"""
    matched = [item for item in result.book_list if is_same_book(book, item)]
    available = sum(1 for item in matched if item.available)
    return result.model_copy(update={
        'total_count': len(matched),
        'available_count': available,
        'unavailable_count': len(matched) - available,
        'owned_count': sum(1 for item in matched if item.is_owned),
        'subscription_count': sum(1 for item in matched if item.is_subscription),
        'book_list': matched,
    })
