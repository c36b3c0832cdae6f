# tests/conftest.py
import os
import pytest
from datetime import datetime, timedelta, UTC
from sqlalchemy.sql import text

from bookstock.config import Settings
from bookstock.exceptions import CatalogMissError, PersistenceError
from bookstock.models import CanonicalBook, CatalogItem, LibraryApiResponse
from bookstock.sa.database import Database
from bookstock.sa.models import Base
from bookstock.services import LibraryService, LibraryStore, MutationPipeline, Notifier, StockRefresher

ISBN = "9791162540640"
EBOOK_ISBN = "9791162540657"


class FakePersistence:
    """In-memory stand-in for SqlLibraryPersistence"""

    def __init__(self):
        self.rows = {}
        self.saved = []
        self.deleted = []
        self.fail_saves = False
        self._next_id = 1

    async def load_all(self):
        return list(self.rows.values())

    async def insert(self, book_data, note=None):
        book = CanonicalBook.from_row(self._next_id, book_data, note)
        self._next_id += 1
        self.rows[book.id] = book
        return book

    async def save(self, book):
        if self.fail_saves:
            raise PersistenceError("write rejected")
        self.saved.append(book)
        self.rows[book.id] = book

    async def delete(self, book_id):
        self.deleted.append(book_id)
        return self.rows.pop(book_id, None) is not None


class FakeCatalog:
    def __init__(self, items=None, error=None):
        self.items = {item.isbn13: item for item in (items or [])}
        self.error = error
        self.search_results = list(items or [])
        self.lookups = []

    def lookup_isbn(self, isbn):
        self.lookups.append(isbn)
        if self.error:
            raise self.error
        if isbn not in self.items:
            raise CatalogMissError(isbn)
        return self.items[isbn]

    def search(self, query, query_type=None):
        if self.error:
            raise self.error
        return self.search_results


class FakeChecker:
    def __init__(self, payload=None, error=None):
        self.payload = payload or {}
        self.error = error
        self.calls = []

    def fetch_availability(self, isbn, title, author, custom_title=None):
        self.calls.append((isbn, title, author, custom_title))
        if self.error:
            raise self.error
        return LibraryApiResponse.from_payload(self.payload)


@pytest.fixture
def make_item():
    """Factory for catalog items of a paper book without e-book edition"""
    def factory(**overrides):
        data = {
            'title': '아주 작은 습관의 힘 - 최고의 변화는 어떻게 만들어지는가',
            'author': '제임스 클리어 (지은이), 이한이 (옮긴이)',
            'pubDate': '2019-02-26',
            'isbn13': ISBN,
            'cover': 'https://image.aladin.co.kr/product/18/26/cover/k042535906_1.jpg',
            'priceStandard': 16000,
            'priceSales': 14400,
            'publisher': '비즈니스북스',
            'link': 'http://www.aladin.co.kr/shop/wproduct.aspx?ItemId=182618513',
            'subInfo': {'ebookList': []},
        }
        data.update(overrides)
        return CatalogItem.model_validate(data)
    return factory


@pytest.fixture
def make_book(make_item):
    """Factory for saved books; ``added_at`` grows with the id"""
    base = datetime(2024, 1, 1, tzinfo=UTC)

    def factory(book_id=1, **overrides):
        data = make_item().model_dump()
        data['added_at'] = base + timedelta(days=book_id)
        data.update(overrides)
        data['id'] = book_id
        return CanonicalBook.model_validate(data)
    return factory


@pytest.fixture
def library_payload():
    return {
        'gwangju_paper': {
            'library_name': '광주시립도서관',
            'book_title': '아주 작은 습관의 힘',
            'summary_total_count': 3,
            'summary_available_count': 2,
            'toechon_total_count': 1,
            'toechon_available_count': 1,
            'other_total_count': 2,
            'other_available_count': 1,
            'book_list': [
                {'소장도서관': '퇴촌도서관', '청구기호': '325.211-클294아', '기본청구기호': '325.211',
                 '대출상태': '대출가능', '반납예정일': '-', 'recKey': '1234', 'bookKey': '5678',
                 'publishFormCode': 'BO'},
                {'소장도서관': '중앙도서관', '청구기호': '325.211-클294아', '대출상태': '대출중',
                 '반납예정일': '2024-03-02'},
            ],
        },
        'gyeonggi_ebook_edu': {
            'library_name': '경기도교육청 전자도서관',
            'total_count': 2,
            'available_count': 1,
            'unavailable_count': 1,
            'book_list': [
                {'소장도서관': '성남도서관', '도서명': '아주 작은 습관의 힘', '저자': '제임스 클리어',
                 '출판사': '비즈니스북스', '발행일': '2019-02-26', '대출상태': '대출가능'},
                {'error': '통합도서관 검색 실패'},
            ],
        },
        'gyeonggi_ebook_library': {
            'library_name': '경기도 전자도서관',
            'total_count': 3,
            'available_count': 2,
            'unavailable_count': 1,
            'owned_count': 2,
            'subscription_count': 1,
            'book_list': [
                {'type': '소장형', 'title': '아주 작은 습관의 힘', 'available': True,
                 'isbn': ISBN, 'author': '제임스 클리어'},
                {'type': '구독형', 'title': '아주 작은 습관의 힘 (큰글씨)', 'available': False,
                 'isbn': EBOOK_ISBN, 'author': '제임스 클리어'},
                {'type': '소장형', 'title': '아주 작은 차이', 'available': True,
                 'isbn': '9788901234567', 'author': '다른 저자'},
            ],
        },
        'sirip_ebook': {
            'library_name': '광주시 전자도서관',
            'total_count': 2,
            'available_count': 1,
            'unavailable_count': 1,
            'sirip_ebook_summary': {
                'total_count': 2,
                'available_count': 1,
                'unavailable_count': 1,
                'owned_count': 1,
                'subscription_count': 1,
            },
        },
    }


@pytest.fixture
def store():
    return LibraryStore()


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def persistence():
    return FakePersistence()


@pytest.fixture
def pipeline(store, persistence, notifier):
    return MutationPipeline(store, persistence, notifier)


@pytest.fixture
def make_refresher(store, pipeline, notifier):
    def factory(catalog, checker):
        return StockRefresher(store, catalog, checker, pipeline, notifier)
    return factory


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory):
    """Create a temporary directory for the test database."""
    test_dir = tmp_path_factory.mktemp("test_db")
    return str(test_dir / "test_bookstock.db")


@pytest.fixture(scope="session")
def database(test_db_path):
    """Create a test database instance"""
    db = Database(f"sqlite:///{test_db_path}")

    Base.metadata.drop_all(db.engine)
    Base.metadata.create_all(db.engine)

    yield db

    db.engine.dispose()
    try:
        os.remove(test_db_path)
    except OSError:
        pass


@pytest.fixture
def clean_database(database):
    """Empty the tables before a test"""
    with database.get_db() as session:
        session.execute(text("DELETE FROM user_library"))
    return database


@pytest.fixture
def db_session(clean_database):
    """Create a new database session for a test"""
    session = clean_database.get_session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def service(persistence, make_item, library_payload):
    """Library service wired to in-memory collaborators"""
    return LibraryService(
        persistence=persistence,
        catalog=FakeCatalog([make_item()]),
        checker=FakeChecker(library_payload),
        settings=Settings(batch_delay=0, pause_poll_interval=0.001),
    )
