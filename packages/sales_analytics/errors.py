"""Exception taxonomy for dataset loading.

Lower layers raise the specific error for the stage that failed
(:class:`FetchError`, :class:`DecompressionError`, :class:`ParseError`).
:class:`~sales_analytics.cache.DatasetCache` surfaces any of them to callers
as :class:`DataLoadError`, chaining the original exception as ``__cause__``.

Numeric/date coercion problems are not errors; see
:mod:`sales_analytics.coerce`.
"""

from __future__ import annotations


class SalesAnalyticsError(Exception):
    """Base class for all errors raised by ``sales_analytics``."""


class FetchError(SalesAnalyticsError):
    """The request for the compressed dataset failed.

    ``status`` is the HTTP status code when a response was received (``None``
    for network errors and timeouts); ``detail`` carries the server-provided
    error text when available.
    """

    def __init__(self, message: str, *, status: int | None = None, detail: str | None = None):
        super().__init__(message)
        self.status = status
        self.detail = detail


class DecompressionError(SalesAnalyticsError):
    """The payload is not a complete gzip/zlib stream of UTF-8 text."""


class ParseError(SalesAnalyticsError):
    """The decompressed text is not well-formed CSV."""

    def __init__(self, message: str, *, line: int | None = None):
        super().__init__(message)
        self.line = line


class DataLoadError(SalesAnalyticsError):
    """Umbrella error surfaced by the dataset cache for any failed load."""

    @property
    def cause(self) -> BaseException | None:
        return self.__cause__


class InvalidCriteriaError(SalesAnalyticsError, ValueError):
    """A filter criteria value is malformed (e.g. a year that is not four digits)."""


__all__ = [
    "SalesAnalyticsError",
    "FetchError",
    "DecompressionError",
    "ParseError",
    "DataLoadError",
    "InvalidCriteriaError",
]
