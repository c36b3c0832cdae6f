# tests/test_persistence.py
import asyncio
import pytest
from sqlalchemy.exc import OperationalError

from bookstock.exceptions import PersistenceError
from bookstock.models import ReadStatus, StockInfo
from bookstock.services import SqlLibraryPersistence


@pytest.fixture
def sql_persistence(clean_database):
    return SqlLibraryPersistence(clean_database, "user_1")


def test_insert_save_and_load_round_trip(sql_persistence, make_book):
    draft = make_book(1, rating=2, tags=['t1'], toechon_stock=StockInfo(total_count=1, available_count=1))

    book = asyncio.run(sql_persistence.insert(draft.to_book_data(), note='메모'))
    assert book.id is not None
    assert book.note == '메모'

    changed = book.model_copy(update={'rating': 5, 'read_status': ReadStatus.FINISHED, 'note': None})
    asyncio.run(sql_persistence.save(changed))

    loaded = asyncio.run(sql_persistence.load_all())
    assert len(loaded) == 1
    assert loaded[0].id == book.id
    assert loaded[0].rating == 5
    assert loaded[0].read_status == ReadStatus.FINISHED
    assert loaded[0].note is None
    assert loaded[0].tags == ['t1']
    assert loaded[0].toechon_stock == StockInfo(total_count=1, available_count=1)
    assert loaded[0].added_at == draft.added_at


def test_rows_of_other_users_are_not_loaded(clean_database, sql_persistence, make_book):
    other = SqlLibraryPersistence(clean_database, "user_2")
    asyncio.run(other.insert(make_book(1).to_book_data()))

    assert asyncio.run(sql_persistence.load_all()) == []


def test_saving_a_deleted_book_is_rejected(sql_persistence, make_book):
    book = asyncio.run(sql_persistence.insert(make_book(1).to_book_data()))
    assert asyncio.run(sql_persistence.delete(book.id)) is True

    with pytest.raises(PersistenceError):
        asyncio.run(sql_persistence.save(book))


def test_database_errors_become_persistence_errors(sql_persistence, make_book, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("UPDATE user_library", {}, Exception("database is locked"))

    monkeypatch.setattr("bookstock.sa.repositories.library_book.LibraryBookRepository.update_entry", broken)
    book = asyncio.run(sql_persistence.insert(make_book(1).to_book_data()))

    with pytest.raises(PersistenceError):
        asyncio.run(sql_persistence.save(book))


def test_legacy_documents_get_defaults(sql_persistence):
    book = asyncio.run(sql_persistence.insert({'title': '오래된 책', 'author': '누군가', 'isbn13': '9780000000001',
                                               'read_status': '완독'}))

    assert book.rating == 0
    assert book.read_status == ReadStatus.FINISHED
    assert book.tags == []


def test_books_of_another_owner_cannot_be_changed(sql_persistence, clean_database, make_book):
    book = asyncio.run(sql_persistence.insert(make_book(1).to_book_data()))
    intruder = SqlLibraryPersistence(clean_database, "user_2")

    with pytest.raises(PersistenceError):
        asyncio.run(intruder.save(book.model_copy(update={'rating': 1})))
    assert asyncio.run(intruder.delete(book.id)) is False
    assert [loaded.id for loaded in asyncio.run(sql_persistence.load_all())] == [book.id]
