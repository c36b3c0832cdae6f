# bookstock/services/combiner.py
"""Combine a catalog item with the availability payloads of the libraries.

Two outputs are built from the same inputs: a raw merge for inspection and
the API-derived block written back to a saved book. A source that is absent
or answered with an error leaves its fields as None, which the merge step
reads as "keep what the book already had".
"""
import logging
from datetime import datetime, UTC
from typing import Any, Dict, Optional

from ..models import (
    API_DERIVED_FIELDS, CATALOG_FIELDS, CanonicalBook, CatalogItem, CombinedBookData,
    EbookStock, EduEbookResult, GyeonggiEbookResult, LibraryApiResponse,
    PaperStockResult, SiripEbookResult, StockInfo
)
from ..utils.matching import filter_gyeonggi_ebooks

logger = logging.getLogger(__name__)

# Replaced on every refresh, even when empty
_ALWAYS_REPLACED = ('source_errors', 'last_updated')

# Identity of a saved book; the lookup may match another edition listing it
IDENTITY_FIELDS = ('isbn13', 'sub_info')


def combine_raw(catalog_item: Any, library_payload: Any) -> Dict[str, Any]:
    """Wrap both payloads unmodified under labeled keys"""
    return {
        '_source_aladin_api': catalog_item,
        '_source_library_api': library_payload,
    }


def _dump(result) -> Dict[str, Any]:
    return result.model_dump(mode='json', by_alias=True)


def paper_summaries(result: PaperStockResult) -> Dict[str, StockInfo]:
    return {
        'toechon_stock': StockInfo(
            total_count=result.toechon_total_count,
            available_count=result.toechon_available_count,
        ),
        'other_stock': StockInfo(
            total_count=result.other_total_count,
            available_count=result.other_available_count,
        ),
    }


def sirip_summary(result: SiripEbookResult) -> EbookStock:
    """Owned and subscription totals of the city e-library"""
    summary = result.sirip_ebook_summary
    if summary is not None:
        return EbookStock(
            total_count=summary.total_count,
            available_count=summary.available_count,
            owned_count=summary.owned_count,
            subscription_count=summary.subscription_count,
        )

    owned = result.details.owned if result.details else None
    subscription = result.details.subscription if result.details else None
    return EbookStock(
        total_count=result.total_count,
        available_count=result.available_count,
        owned_count=owned.total_count if owned and not owned.error else 0,
        subscription_count=subscription.total_count if subscription and not subscription.error else 0,
    )


def combine_book_data(item: CatalogItem, response: LibraryApiResponse, now: Optional[datetime] = None) -> CombinedBookData:
    """
    Build the catalog attributes plus a fresh API-derived block.

    Args:
        item: The catalog item confirmed for the book
        response: Availability payloads of the four library sources
        now: Timestamp for ``last_updated``, current time when omitted

    Returns:
        The combined record, without any user-owned field
    """
    data: Dict[str, Any] = item.model_dump()

    paper = response.gwangju_paper
    if isinstance(paper, PaperStockResult):
        data['gwangju_paper_info'] = _dump(paper)
        data.update(paper_summaries(paper))

    edu = response.gyeonggi_ebook_edu
    if isinstance(edu, EduEbookResult):
        data['ebook_edu_info'] = _dump(edu)
        data['edu_ebook_stock'] = StockInfo(total_count=edu.total_count, available_count=edu.available_count)

    gyeonggi = response.gyeonggi_ebook_library
    if isinstance(gyeonggi, GyeonggiEbookResult):
        # The provincial library answers with a title search, so keep only this book's records
        filtered = filter_gyeonggi_ebooks(item, gyeonggi)
        data['gyeonggi_ebook_info'] = _dump(gyeonggi)
        data['filtered_gyeonggi_ebook_info'] = _dump(filtered)
        data['gyeonggi_ebook_stock'] = EbookStock(
            total_count=filtered.total_count,
            available_count=filtered.available_count,
            owned_count=filtered.owned_count,
            subscription_count=filtered.subscription_count,
        )

    sirip = response.sirip_ebook
    if isinstance(sirip, SiripEbookResult):
        data['sirip_ebook_info'] = _dump(sirip)
        data['sirip_ebook_stock'] = sirip_summary(sirip)

    data['source_errors'] = response.errors()
    data['last_updated'] = now or datetime.now(UTC)
    return CombinedBookData.model_validate(data)


def merge_api_block(previous: CanonicalBook, combined: CombinedBookData) -> Dict[str, Any]:
    """
    Compute the updates a refresh applies to a saved book.

    Only catalog and API-derived fields are ever returned, and never the
    identity fields. A field the refresh could not produce (None) is left
    out so the previous value survives.

    Args:
        previous: The book as currently held
        combined: Result of ``combine_book_data`` for the book

    Returns:
        Field updates for the mutation pipeline
    """
    updates: Dict[str, Any] = {}
    for name in CATALOG_FIELDS + API_DERIVED_FIELDS:
        if name in _ALWAYS_REPLACED or name in IDENTITY_FIELDS:
            continue
        value = getattr(combined, name)
        if value is not None:
            updates[name] = value

    for name in _ALWAYS_REPLACED:
        updates[name] = getattr(combined, name)

    kept = [name for name in API_DERIVED_FIELDS if name not in updates and getattr(previous, name) is not None]
    if kept:
        logger.debug(f"Book {previous.id}: keeping previous {', '.join(kept)}")
    return updates
