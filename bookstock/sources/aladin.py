# bookstock/sources/aladin.py
import json
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..exceptions import CatalogLookupError, CatalogMissError, SourceUnavailableError
from ..models import CatalogItem, CatalogResponse
from ..utils.matching import isbn_equal
from .base_source import BaseSource
from .http import HttpDownloader

ALADIN_API_BASE_URL = 'http://www.aladin.co.kr/ttb/api/ItemSearch.aspx'
NO_RESULTS_CODE = 4
LARGE_PRINT_PREFIXES = ('[큰글자도서]', '[큰글자책]')
SET_PREFIX = '[세트]'


class QueryType(str, Enum):
    KEYWORD = "Keyword"
    TITLE = "Title"
    AUTHOR = "Author"
    PUBLISHER = "Publisher"
    ISBN = "ISBN"


class AladinClient(BaseSource):
    """Catalog lookups against the Aladin item search API"""

    name = "aladin"

    def __init__(
        self,
        ttb_key: str,
        api_url: str = ALADIN_API_BASE_URL,
        max_results: int = 20,
        downloader: Optional[HttpDownloader] = None,
        retries: int = 2
    ):
        super().__init__(downloader=downloader, retries=retries)
        self.ttb_key = ttb_key
        self.api_url = api_url
        self.max_results = max_results

    def build_params(self, query: str, query_type: QueryType) -> Dict[str, str]:
        return {
            'ttbkey': self.ttb_key,
            'Query': query,
            'QueryType': QueryType(query_type).value,
            'MaxResults': str(self.max_results),
            'SearchTarget': 'Book',
            'output': 'js',
            'Version': '20131101',
            'OptResult': 'ebookList',
        }

    def parse_jsonp(self, text: str) -> Dict[str, Any]:
        """Extract the JSON object wrapped in the API's JSONP envelope."""
        start = text.find('{') if text else -1
        end = text.rfind('}') if text else -1
        if start == -1 or end == -1:
            raise SourceUnavailableError(self.name, "no JSON object in response")
        try:
            return json.loads(text[start:end + 1])
        except json.JSONDecodeError as e:
            raise SourceUnavailableError(self.name, f"invalid JSON: {e}") from e

    def parse_response(self, data: Dict[str, Any]) -> List[CatalogItem]:
        """
        Validate a decoded response and return its items.

        Raises:
            CatalogLookupError: For any error code other than "no results"
            SourceUnavailableError: When the payload does not fit the schema
        """
        try:
            response = CatalogResponse.model_validate(data)
        except ValidationError as e:
            self.logger.error(f"Catalog response validation failed: {e}")
            raise SourceUnavailableError(self.name, "unexpected response format") from e

        if response.error_code:
            if response.error_code == NO_RESULTS_CODE:
                return []
            raise CatalogLookupError(response.error_code, response.error_message or "")

        return [
            item for item in (response.item or [])
            if not item.title.startswith(LARGE_PRINT_PREFIXES)
        ]

    def search(self, query: str, query_type: QueryType = QueryType.KEYWORD) -> List[CatalogItem]:
        """
        Search the catalog.

        Args:
            query: The search text
            query_type: Which field the query applies to

        Returns:
            Matching catalog items, empty when the catalog has none
        """
        params = self.build_params(query, query_type)
        text = self.request(
            lambda: self.downloader.get_text(self.api_url, params=params),
            f"catalog search '{query}'"
        )
        return self.parse_response(self.parse_jsonp(text))

    def lookup_isbn(self, isbn: str) -> CatalogItem:
        """
        Find the catalog item for an ISBN.

        Raises:
            CatalogMissError: When no returned item carries the ISBN
        """
        for item in self.search(isbn, QueryType.ISBN):
            if isbn_equal(item.isbn13, isbn):
                return item
            if item.sub_info and any(
                isbn_equal(entry.isbn13, isbn)
                for entry in item.sub_info.ebook_list + item.sub_info.paper_book_list
            ):
                return item
        raise CatalogMissError(isbn)


def drop_set_editions(items: List[CatalogItem]) -> List[CatalogItem]:
    """Remove boxed sets, which never map to a single library entry"""
    return [item for item in items if not item.title.startswith(SET_PREFIX)]
