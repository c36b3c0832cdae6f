# bookstock/exceptions.py


class BookstockError(Exception):
    """Base class for all errors raised by bookstock"""


class SourceUnavailableError(BookstockError):
    """An external source could not be reached or returned an unusable payload"""

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message


class CatalogLookupError(BookstockError):
    """The catalog answered with an error code other than 'no results'"""

    def __init__(self, code: int, message: str = ""):
        super().__init__(f"Catalog error {code}: {message}")
        self.code = code


class CatalogMissError(BookstockError):
    """No catalog item matched the ISBN of a book being refreshed"""

    def __init__(self, isbn: str):
        super().__init__(f"No catalog item found for ISBN {isbn}")
        self.isbn = isbn


class PersistenceError(BookstockError):
    """The persistent store rejected a write"""


class RefreshCancelledError(BookstockError):
    """A refresh was cancelled after fetching and before committing"""


class InvalidEditError(BookstockError):
    """A user edit carried a value outside the allowed range"""
