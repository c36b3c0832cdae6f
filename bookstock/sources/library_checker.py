# bookstock/sources/library_checker.py
from typing import Any, Dict, Optional

from ..exceptions import SourceUnavailableError
from ..models import LibraryApiResponse
from ..utils.title import edu_ebook_title, gyeonggi_ebook_title, sirip_ebook_title
from .base_source import BaseSource
from .http import HttpDownloader

LIBRARY_CHECKER_URL = 'https://library-checker.byungwook-an.workers.dev'


class LibraryCheckerClient(BaseSource):
    """Client for the availability service fronting the paper and e-book libraries.

    One request returns the four library payloads at once; each of them is
    either a result or an error marker for that library alone.
    """

    name = "library_checker"

    def __init__(self, endpoint: str = LIBRARY_CHECKER_URL, downloader: Optional[HttpDownloader] = None, retries: int = 1):
        super().__init__(downloader=downloader, retries=retries)
        self.endpoint = endpoint

    def build_request(self, isbn: str, title: str, author: str, custom_title: Optional[str] = None) -> Dict[str, Any]:
        if custom_title:
            # A user supplied search title is sent untouched to every library
            edu_title = gyeonggi_title = sirip_title = custom_title
        else:
            edu_title = edu_ebook_title(title)
            gyeonggi_title = gyeonggi_ebook_title(title)
            sirip_title = sirip_ebook_title(title)

        self.logger.debug(f"Search titles for '{title}': edu='{edu_title}' gyeonggi='{gyeonggi_title}' sirip='{sirip_title}'")
        return {
            'isbn': isbn,
            'author': author,
            'customTitle': custom_title,
            'eduTitle': edu_title,
            'gyeonggiTitle': gyeonggi_title,
            'siripTitle': sirip_title,
        }

    def fetch_availability(self, isbn: str, title: str, author: str, custom_title: Optional[str] = None) -> LibraryApiResponse:
        """
        Ask every library for the book.

        Raises:
            SourceUnavailableError: When the service itself cannot be reached
        """
        payload = self.build_request(isbn, title, author, custom_title)
        data = self.request(
            lambda: self.downloader.post_json(self.endpoint, payload),
            f"availability for ISBN {isbn}"
        )
        if not isinstance(data, dict):
            raise SourceUnavailableError(self.name, "unexpected response format")
        return LibraryApiResponse.from_payload(data)
