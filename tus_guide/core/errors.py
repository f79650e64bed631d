"""
Application errors.

Services raise these; the exception handlers in main.py map them to HTTP:
- QueryValidationError -> 400 with the offending field
- DataAccessError (and subclasses) -> 500 with a generic body
"""

from typing import Optional


class TusGuideError(Exception):
    """Base class for all application errors."""


class QueryValidationError(TusGuideError):
    """A search/filter input failed validation. Raised before any query runs."""

    def __init__(self, field: Optional[str], message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}" if field else message)


class DataAccessError(TusGuideError):
    """The database could not be read. Callers only ever see a generic message."""

    public_message = "Internal server error"


class FacetsUnavailableError(DataAccessError):
    pass


class SearchUnavailableError(DataAccessError):
    pass
