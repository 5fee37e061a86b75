"""gzip-family payload → CSV text.

The dataset arrives as a single gzip blob (tens of megabytes compressed). It
is inflated in one call and decoded as UTF-8; a stream that is truncated,
corrupt, not gzip/zlib, or not valid UTF-8 raises
:class:`~sales_analytics.errors.DecompressionError` rather than yielding
partial text.
"""

from __future__ import annotations

import gzip
import zlib

from .errors import DecompressionError
from .logging_setup import get_logger

GZIP_MAGIC = b"\x1f\x8b"

_logger = get_logger(__name__)


def _mb(n: int) -> str:
    return f"{n / 1024 / 1024:.2f} MB"


def _inflate(payload: bytes) -> bytes:
    if payload[:2] == GZIP_MAGIC:
        # gzip.decompress handles concatenated members and verifies CRC/length.
        return gzip.decompress(payload)
    # zlib-wrapped deflate; reject trailing garbage and short streams.
    d = zlib.decompressobj()
    out = d.decompress(payload)
    if not d.eof:
        raise EOFError("compressed stream ended before the end-of-stream marker")
    if d.unused_data:
        raise zlib.error("unexpected data after the end of the compressed stream")
    return out


def decompress_gzip(payload: bytes | bytearray | memoryview) -> str:
    """Return the UTF-8 text contained in a gzip (or zlib) payload."""

    data = bytes(payload)
    if not data:
        raise DecompressionError("empty payload: expected gzip-compressed data")

    _logger.debug("decompress:start compressed=%s", _mb(len(data)))
    try:
        raw = _inflate(data)
    except (OSError, EOFError, zlib.error) as e:
        # gzip.BadGzipFile subclasses OSError.
        raise DecompressionError(f"failed to decompress payload: {e}") from e

    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecompressionError(f"decompressed payload is not UTF-8 text: {e}") from e

    _logger.debug(
        "decompress:done compressed=%s decompressed=%s chars=%d",
        _mb(len(data)),
        _mb(len(raw)),
        len(text),
    )
    return text


def compress_text(text: str) -> bytes:
    """gzip-compress ``text`` as UTF-8."""

    return gzip.compress(text.encode("utf-8"))


__all__ = ["GZIP_MAGIC", "decompress_gzip", "compress_text"]
