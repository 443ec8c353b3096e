"""Exceptions raised by SeriesForge.

kept deliberately small - most bad input is caught by pydantic or surfaces as
a plain ValueError/KeyError. these are the cases callers actually need to
tell apart when a report run dies halfway through.
"""

from typing import Any


class SeriesForgeError(Exception):
    """Base class for all SeriesForge errors."""


class DateFormatError(SeriesForgeError, ValueError):
    """A date string could not be parsed.

    zero-filling depends on exact day arithmetic, so this is always fatal -
    guessing a date would silently shift every value in the row.
    """


class TransportError(SeriesForgeError):
    """The request never produced a usable HTTP response (dns, timeout, reset)."""


class ProtocolError(SeriesForgeError):
    """The API answered, but with an error or something we can't decode."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PlanExecutionError(SeriesForgeError):
    """A planned follow-up query failed and the run was aborted.

    carries the position in the plan so it's obvious whether we built a bad
    url (budget miscalculation) or the api just fell over.
    """

    def __init__(self, index: int, total: int, query: Any) -> None:
        self.index = index
        self.total = total
        self.query = query
        super().__init__(f"Query {index + 1} of {total} in the plan failed")
