# bookstock/sources/base_source.py

import logging
import time
from abc import ABC
from typing import Any, Callable, Optional

from ..exceptions import SourceUnavailableError
from .http import HttpDownloader


class BaseSource(ABC):
    """Base class for the external sources providing common functionality."""

    name = "source"

    def __init__(self, downloader: Optional[HttpDownloader] = None, retries: int = 1, retry_delay: float = 1.0):
        """
        Initialize the base source.

        Args:
            downloader: HTTP downloader to use, one is created when omitted
            retries: Number of attempts per request
            retry_delay: Initial delay between attempts, doubled after each failure
        """
        self.downloader = downloader or HttpDownloader()
        self.retries = max(1, retries)
        self.retry_delay = retry_delay
        self._setup_logging()

    def _setup_logging(self):
        """Set up logging for the source."""
        self.logger = logging.getLogger(f"bookstock.sources.{self.__class__.__name__}")

    def request(self, call: Callable[[], tuple[bool, Any, Optional[str]]], description: str) -> Any:
        """
        Run a downloader call with an exponential backoff strategy.

        Args:
            call: Zero-argument callable returning ``(success, content, error)``
            description: What is being fetched, for log messages

        Returns:
            The content of the first successful attempt

        Raises:
            SourceUnavailableError: When every attempt failed
        """
        attempt = 0
        delay = self.retry_delay
        reason = None

        while attempt < self.retries:
            success, content, reason = call()
            if success:
                return content

            attempt += 1
            if attempt < self.retries:
                self.logger.warning(f"Attempt {attempt} failed for {description}. Retrying in {delay} seconds.")
                time.sleep(delay)
                delay *= 2

        reason = reason or "request failed"
        self.logger.error(f"Failed to fetch {description} after {self.retries} attempts: {reason}")
        raise SourceUnavailableError(self.name, reason)
