# bookstock/sources/http.py
import logging
import threading
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    'User-Agent': 'bookstock/0.1 (+personal library tracker)',
    'Accept': 'application/json, text/javascript, */*',
}


class HttpDownloader:
    """HTTP access shared by the sources.

    Calls run in worker threads, so nothing about a single request is kept on
    the instance: each call returns its own outcome, and each thread gets its
    own ``requests.Session`` unless one was injected.
    """

    def __init__(self, timeout: float = 30.0, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self._injected_session = session
        if session is not None:
            session.headers.update(DEFAULT_HEADERS)
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        if self._injected_session is not None:
            return self._injected_session
        session = getattr(self._local, 'session', None)
        if session is None:
            session = requests.Session()
            session.headers.update(DEFAULT_HEADERS)
            self._local.session = session
        return session

    def get_text(self, url: str, params: Optional[Dict[str, Any]] = None) -> tuple[bool, str, Optional[str]]:
        """
        Download a URL as text.

        Args:
            url: The URL to download
            params: Optional query parameters

        Returns:
            Tuple of (success: bool, content: str, error: Optional[str])
            If success is False, content will be empty string and
            error holds the reason
        """
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return True, response.text, None
        except requests.RequestException as e:
            logger.warning(f"GET {url} failed: {e}")
            return False, "", str(e)

    def post_json(self, url: str, payload: Dict[str, Any]) -> tuple[bool, Any, Optional[str]]:
        """
        POST a JSON body and decode the JSON answer.

        Returns:
            Tuple of (success: bool, data, error: Optional[str])
            If success is False, data will be None
        """
        try:
            response = self.session.post(url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            return True, response.json(), None
        except requests.Timeout:
            logger.warning(f"POST {url} timed out")
            return False, None, f"request timed out ({self.timeout:g}s)"
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"POST {url} failed: {e}")
            return False, None, str(e)
