# tests/test_refresh.py
import asyncio
import pytest

from conftest import EBOOK_ISBN, ISBN, FakeCatalog, FakeChecker
from bookstock.exceptions import RefreshCancelledError, SourceUnavailableError
from bookstock.models import EbookStock, ReadStatus, StockInfo
from bookstock.services import NotificationLevel


def _saved_book(make_book):
    return make_book(
        1,
        rating=4,
        tags=['t1'],
        read_status=ReadStatus.READING,
        note='다시 읽기',
        toechon_stock=StockInfo(total_count=2, available_count=0),
        other_stock=StockInfo(total_count=4, available_count=1),
    )


def _refresh(refresher, book, **kwargs):
    return asyncio.run(refresher.refresh_book(book.id, book.isbn13, book.title, book.author, **kwargs))


def test_refresh_keeps_user_fields_and_previous_stock(store, persistence, make_refresher, make_book, make_item, library_payload):
    book = _saved_book(make_book)
    store.replace_all([book])
    del library_payload['gwangju_paper']
    refresher = make_refresher(FakeCatalog([make_item()]), FakeChecker(library_payload))

    assert _refresh(refresher, book) is True

    refreshed = store.get(1)
    assert refreshed.rating == 4
    assert refreshed.tags == ['t1']
    assert refreshed.read_status == ReadStatus.READING
    assert refreshed.note == '다시 읽기'
    assert refreshed.added_at == book.added_at
    assert refreshed.toechon_stock == StockInfo(total_count=2, available_count=0)
    assert refreshed.other_stock == StockInfo(total_count=4, available_count=1)
    assert refreshed.gyeonggi_ebook_stock == EbookStock(
        total_count=2, available_count=1, owned_count=1, subscription_count=1
    )
    assert refreshed.last_updated is not None
    assert persistence.saved[-1] == refreshed


def test_partial_failure_commits_and_records_errors(store, make_refresher, make_book, make_item, library_payload):
    book = _saved_book(make_book)
    store.replace_all([book])
    library_payload['sirip_ebook'] = {'error': '시립 전자도서관 점검 중'}
    refresher = make_refresher(FakeCatalog([make_item()]), FakeChecker(library_payload))

    assert _refresh(refresher, book) is True

    refreshed = store.get(1)
    assert refreshed.toechon_stock == StockInfo(total_count=1, available_count=1)
    assert refreshed.sirip_ebook_stock is None
    assert refreshed.source_errors == {'sirip_ebook': '시립 전자도서관 점검 중'}
    assert refreshed.has_source_errors


def test_catalog_miss_aborts_without_changes(store, persistence, notifier, make_refresher, make_book, library_payload):
    book = _saved_book(make_book)
    store.replace_all([book])
    checker = FakeChecker(library_payload)
    refresher = make_refresher(FakeCatalog([]), checker)

    assert _refresh(refresher, book) is False

    assert store.get(1) == book
    assert persistence.saved == []
    assert checker.calls == []
    assert len(notifier.of_level(NotificationLevel.ERROR)) == 1


def test_unreachable_checker_commits_nothing(store, persistence, make_refresher, make_book, make_item):
    book = _saved_book(make_book)
    store.replace_all([book])
    checker = FakeChecker(error=SourceUnavailableError('library_checker', 'timed out'))
    refresher = make_refresher(FakeCatalog([make_item()]), checker)

    assert _refresh(refresher, book, notify=False) is False
    assert store.get(1) == book
    assert persistence.saved == []
    assert 1 not in store.refreshing_ids


def test_all_sources_failing_commits_nothing(store, persistence, make_refresher, make_book, make_item):
    book = _saved_book(make_book)
    store.replace_all([book])
    payload = {key: {'error': 'down'} for key in
               ('gwangju_paper', 'gyeonggi_ebook_edu', 'gyeonggi_ebook_library', 'sirip_ebook')}
    refresher = make_refresher(FakeCatalog([make_item()]), FakeChecker(payload))

    assert _refresh(refresher, book) is False
    assert store.get(1) == book
    assert persistence.saved == []


def test_cancel_before_commit_discards_result(store, persistence, make_refresher, make_book, make_item, library_payload):
    book = _saved_book(make_book)
    store.replace_all([book])
    refresher = make_refresher(FakeCatalog([make_item()]), FakeChecker(library_payload))

    with pytest.raises(RefreshCancelledError):
        _refresh(refresher, book, cancel_check=lambda: True)

    assert store.get(1) == book
    assert persistence.saved == []


def test_custom_search_title_is_sent(store, make_refresher, make_book, make_item, library_payload):
    book = make_book(1, custom_search_title='습관의 힘')
    store.replace_all([book])
    checker = FakeChecker(library_payload)
    refresher = make_refresher(FakeCatalog([make_item()]), checker)

    _refresh(refresher, book)

    assert checker.calls == [(ISBN, book.title, book.author, '습관의 힘')]


def test_fetch_raw_returns_both_payloads(store, make_refresher, make_book, make_item, library_payload):
    book = make_book(1)
    store.replace_all([book])
    refresher = make_refresher(FakeCatalog([make_item()]), FakeChecker(library_payload))

    raw = asyncio.run(refresher.fetch_raw(book.id, book.isbn13, book.title, book.author))

    assert raw['_source_aladin_api']['isbn13'] == ISBN
    assert raw['_source_library_api']['gwangju_paper']['summary_total_count'] == 3


def test_refresh_through_another_edition_keeps_the_isbn(store, persistence, make_refresher, make_book, make_item, library_payload):
    book = _saved_book(make_book)
    store.replace_all([book])
    other_edition = make_item(isbn13=EBOOK_ISBN, subInfo={'paperBookList': [{'isbn13': ISBN}]})
    catalog = FakeCatalog()
    # the catalog answers the saved ISBN with the edition that lists it
    catalog.items[ISBN] = other_edition
    refresher = make_refresher(catalog, FakeChecker(library_payload))

    assert _refresh(refresher, book) is True

    refreshed = store.get(1)
    assert refreshed.isbn13 == ISBN
    assert refreshed.sub_info == book.sub_info
    assert store.contains_isbn(ISBN)
    assert not store.contains_isbn(EBOOK_ISBN)
    assert persistence.saved[-1].isbn13 == ISBN
