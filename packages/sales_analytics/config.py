"""Runtime configuration read from the environment.

The CLI loads a local ``.env`` (python-dotenv) before reading settings;
library callers may construct :class:`Settings` directly.

Environment variables
---------------------
- ``SALES_ANALYTICS_DATA_URL``: dataset endpoint (gzip CSV).
- ``SALES_ANALYTICS_HTTP_TIMEOUT``: request timeout in seconds.
- ``SALES_ANALYTICS_TOP_N``: size of the category/customer top-N views.
- ``DATABASE_URL``: optional; enables the relational-store fallback.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .aggregation import DEFAULT_TOP_N
from .sources import (
    DEFAULT_TIMEOUT_SECONDS,
    DatabaseDataSource,
    DataSource,
    FallbackDataSource,
    HttpDataSource,
)

DEFAULT_DATA_URL = "http://localhost:3000/api/csv-data"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    try:
        value = float(raw) if raw else default
    except ValueError:
        return default
    return value if value > 0 else default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    try:
        value = int(raw) if raw else default
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass(frozen=True, slots=True)
class Settings:
    data_url: str = DEFAULT_DATA_URL
    http_timeout: float = DEFAULT_TIMEOUT_SECONDS
    top_n: int = DEFAULT_TOP_N
    database_url: str | None = None

    @classmethod
    def from_env(cls) -> Settings:
        """Read settings from the environment, falling back to defaults."""

        return cls(
            data_url=(os.getenv("SALES_ANALYTICS_DATA_URL") or "").strip() or DEFAULT_DATA_URL,
            http_timeout=_env_float("SALES_ANALYTICS_HTTP_TIMEOUT", DEFAULT_TIMEOUT_SECONDS),
            top_n=_env_int("SALES_ANALYTICS_TOP_N", DEFAULT_TOP_N),
            database_url=(os.getenv("DATABASE_URL") or "").strip() or None,
        )


def build_source(settings: Settings) -> DataSource:
    """HTTP source, with the database as fallback when ``database_url`` is set."""

    http = HttpDataSource(settings.data_url, timeout=settings.http_timeout)
    if settings.database_url:
        return FallbackDataSource(http, DatabaseDataSource(settings.database_url))
    return http


__all__ = ["DEFAULT_DATA_URL", "Settings", "build_source"]
