import gzip
import zlib

import pytest

from sales_analytics import DecompressionError, compress_text, decompress_gzip


def test_gzip_payload_round_trips_utf8_text():
    text = "TOTAL,NAME\n100.00,Café Øresund\n2.50,\"Smith, \"\"J\"\"\"\n"
    assert decompress_gzip(compress_text(text)) == text


def test_concatenated_gzip_members_are_joined():
    payload = gzip.compress(b"TOTAL\n1\n") + gzip.compress(b"2\n")
    assert decompress_gzip(payload) == "TOTAL\n1\n2\n"


def test_zlib_wrapped_payload_is_accepted():
    assert decompress_gzip(zlib.compress(b"A,B\n1,2\n")) == "A,B\n1,2\n"


def test_memoryview_input():
    assert decompress_gzip(memoryview(compress_text("x\n"))) == "x\n"


def test_truncated_gzip_raises():
    payload = compress_text("TOTAL,NAME\n" + "100.00,Acme\n" * 500)
    with pytest.raises(DecompressionError):
        decompress_gzip(payload[: len(payload) // 2])


def test_truncated_zlib_raises():
    payload = zlib.compress(b"A,B\n" + b"1,2\n" * 500)
    with pytest.raises(DecompressionError):
        decompress_gzip(payload[:-6])


@pytest.mark.parametrize("payload", [b"", b"TOTAL,NAME\n1,Acme\n", b"\x1f\x8bnot really gzip"])
def test_non_gzip_payloads_raise(payload: bytes):
    with pytest.raises(DecompressionError):
        decompress_gzip(payload)


def test_non_utf8_content_raises():
    with pytest.raises(DecompressionError, match="UTF-8"):
        decompress_gzip(gzip.compress("Café".encode("latin-1")))
