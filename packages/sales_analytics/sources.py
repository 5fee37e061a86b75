"""Data sources: collaborators that deliver the gzip-compressed dataset.

Every source implements :class:`DataSource`, an object with an async
``fetch()`` returning the compressed CSV bytes. Blocking I/O (``urllib``,
file reads, database queries) runs in a worker thread via
:func:`asyncio.to_thread` so the event loop stays free while bytes are in
transit. Any failure surfaces as :class:`~sales_analytics.errors.FetchError`.

- :class:`HttpDataSource`: HTTP GET against the dataset endpoint.
- :class:`FileDataSource`: a local ``.csv.gz`` (or plain ``.csv``) file.
- :class:`DatabaseDataSource`: rebuilds the export from the ``ARINV`` table.
- :class:`FallbackDataSource`: primary source with a fallback on failure.
"""

from __future__ import annotations

import asyncio
import gzip
import http.client
import json
import os
import time
import urllib.error
import urllib.request
from collections.abc import Mapping
from os import PathLike
from pathlib import Path
from typing import Protocol, runtime_checkable

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError

from .csv_io import serialize_csv
from .db import INVOICE_COLUMNS, InvoiceLine, session_scope
from .decompress import GZIP_MAGIC, compress_text
from .errors import FetchError
from .filters import EXCLUDED_CATEGORIES
from .logging_setup import get_logger

_logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 120.0
_MAX_DETAIL_CHARS = 500


@runtime_checkable
class DataSource(Protocol):
    """Anything that can produce the compressed dataset."""

    async def fetch(self) -> bytes: ...


def _mb(n: int) -> str:
    return f"{n / 1024 / 1024:.2f} MB"


def _error_detail(body: str) -> str | None:
    """Extract a server-provided error message from a response body.

    Prefers the ``error`` field of a JSON object body; otherwise returns the
    (truncated) text body, or ``None`` when empty.
    """

    text = body.strip()
    if not text:
        return None
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return text[:_MAX_DETAIL_CHARS]
    if isinstance(parsed, Mapping):
        err = parsed.get("error")
        if isinstance(err, str) and err.strip():
            return err.strip()
    return text[:_MAX_DETAIL_CHARS]


class HttpDataSource:
    """GET the compressed dataset from an HTTP endpoint."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.headers = dict(headers or {})

    def __repr__(self) -> str:
        return f"HttpDataSource({self.url!r})"

    async def fetch(self) -> bytes:
        return await asyncio.to_thread(self._get)

    def _get(self) -> bytes:
        req = urllib.request.Request(self.url, method="GET")
        req.add_header("Accept", "application/gzip, application/octet-stream")
        for name, value in self.headers.items():
            req.add_header(name, value)

        t0 = time.perf_counter()
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                body = resp.read()
                content_type = resp.headers.get("Content-Type", "")
        except urllib.error.HTTPError as e:
            try:
                err_body = e.read().decode("utf-8", errors="replace")
            except Exception:  # noqa: BLE001 - body is best-effort context only
                err_body = ""
            detail = _error_detail(err_body) or str(e.reason)
            raise FetchError(
                f"Failed to fetch CSV data: {e.code} {detail}", status=e.code, detail=detail
            ) from e
        except (urllib.error.URLError, http.client.HTTPException, TimeoutError, OSError) as e:
            # HTTPException covers a body cut off mid-download (IncompleteRead).
            reason = getattr(e, "reason", e)
            raise FetchError(f"Failed to fetch CSV data from {self.url}: {reason}") from e

        _logger.info(
            "http_fetch: downloaded %s (%s) in %.2fs",
            _mb(len(body)),
            content_type or "unknown content-type",
            time.perf_counter() - t0,
        )
        return body


class FileDataSource:
    """Read the dataset from a local file.

    A gzip file is returned as-is; any other file is treated as plain CSV and
    gzip-compressed byte for byte, so text that is not UTF-8 fails in
    :func:`~sales_analytics.decompress.decompress_gzip` exactly like a gzip
    file with the same content.
    """

    def __init__(self, path: str | PathLike[str]) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"FileDataSource({os.fspath(self.path)!r})"

    async def fetch(self) -> bytes:
        return await asyncio.to_thread(self._read)

    def _read(self) -> bytes:
        try:
            data = self.path.read_bytes()
        except OSError as e:
            raise FetchError(f"Failed to read dataset file {os.fspath(self.path)}: {e}") from e
        if data[:2] != GZIP_MAGIC:
            _logger.debug("file_source: %s is not gzip; compressing in memory", self.path)
            # Bytes are wrapped unchanged; decoding happens in the cache pipeline.
            data = gzip.compress(data)
        _logger.info("file_source: read %s from %s", _mb(len(data)), self.path)
        return data


class DatabaseDataSource:
    """Rebuild the compressed export from the relational store.

    Rows in an excluded category (trimmed, case-insensitive) are left out in
    the query; rows with no category are kept.
    """

    def __init__(self, database_url: str | None = None) -> None:
        self.database_url = database_url

    def __repr__(self) -> str:
        return "DatabaseDataSource()"

    async def fetch(self) -> bytes:
        return await asyncio.to_thread(self._export)

    def _export(self) -> bytes:
        category = InvoiceLine.TREE_DESCR
        folded = sorted(c.strip().lower() for c in EXCLUDED_CATEGORIES)
        stmt = (
            select(*(getattr(InvoiceLine, c) for c in INVOICE_COLUMNS))
            .where(or_(category.is_(None), func.lower(func.trim(category)).not_in(folded)))
            .order_by(InvoiceLine.id)
        )

        t0 = time.perf_counter()
        try:
            with session_scope(database_url=self.database_url) as session:
                rows = session.execute(stmt).all()
        except (SQLAlchemyError, RuntimeError) as e:
            raise FetchError(f"Database query failed: {e}") from e

        if not rows:
            message = "No data found in database"
            raise FetchError(message, status=404, detail=message)

        text = serialize_csv((row._asdict() for row in rows), INVOICE_COLUMNS)
        payload = compress_text(text)
        _logger.info(
            "db_source: exported %d rows (%s compressed) in %.2fs",
            len(rows),
            _mb(len(payload)),
            time.perf_counter() - t0,
        )
        return payload


class FallbackDataSource:
    """Fetch from ``primary``; on :class:`FetchError`, fetch from ``fallback``."""

    def __init__(self, primary: DataSource, fallback: DataSource) -> None:
        self.primary = primary
        self.fallback = fallback

    def __repr__(self) -> str:
        return f"FallbackDataSource({self.primary!r}, {self.fallback!r})"

    async def fetch(self) -> bytes:
        try:
            return await self.primary.fetch()
        except FetchError as e:
            _logger.warning(
                "primary source %r failed (%s); using %r", self.primary, e, self.fallback
            )
        return await self.fallback.fetch()


__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "DataSource",
    "HttpDataSource",
    "FileDataSource",
    "DatabaseDataSource",
    "FallbackDataSource",
]
