"""CSV text ⇄ invoice records.

Parsing follows conventional CSV-with-header rules via the stdlib :mod:`csv`
module: comma delimiter, double-quote quoting with doubled quotes as escapes
(quoted fields may contain commas and newlines), one header row naming the
fields. On top of that:

- header names and field values are trimmed;
- blank lines are skipped;
- a short row simply lacks its trailing fields (the keys are absent);
- fields beyond the header width are dropped;
- spaces or tabs between a closing quote and the next delimiter (or line end)
  are dropped, like the padding before an opening quote.

The reader runs in strict mode, so an unterminated quoted field (or other
text between a closing quote and the next delimiter) raises
:class:`~sales_analytics.errors.ParseError`.
"""

from __future__ import annotations

import csv
import io
import re
from collections.abc import Iterable, Mapping, Sequence

from .errors import ParseError
from .logging_setup import get_logger
from .models import InvoiceRecord

_logger = get_logger(__name__)

# Closing quote followed by padding; cheap pre-check before the full scan.
_PADDED_QUOTE = re.compile(r'"[ \t]+(?=[,\r\n]|\Z)')
_SPECIAL = re.compile(r'[",\r\n]')


def _is_blank(row: Sequence[str]) -> bool:
    return not row or (len(row) == 1 and not row[0].strip())


def _trim_after_closing_quotes(text: str) -> str:
    """Drop spaces/tabs between a closing quote and the next delimiter or line end.

    Quoted fields are tracked the way the reader sees them: a quote opens a
    field only when nothing but spaces precedes it in that field, and ``""``
    inside a quoted field is an escaped quote. Anything else (an unterminated
    quote, text after a closing quote) is left as-is for the strict reader to
    report.
    """

    if not _PADDED_QUOTE.search(text):
        return text

    parts: list[str] = []
    copied = 0
    field_start = 0
    i = 0
    n = len(text)
    while i < n:
        m = _SPECIAL.search(text, i)
        if m is None:
            break
        j = m.start()
        if text[j] != '"':
            field_start = j + 1
            i = j + 1
            continue
        if text[field_start:j].strip(" "):
            # Literal quote inside an unquoted field.
            i = j + 1
            continue

        k = j + 1
        while True:
            k = text.find('"', k)
            if k == -1:
                parts.append(text[copied:])
                return "".join(parts)
            if text.startswith('"', k + 1):
                k += 2
                continue
            break

        end = k + 1
        pad_end = end
        while pad_end < n and text[pad_end] in " \t":
            pad_end += 1
        if pad_end > end and (pad_end == n or text[pad_end] in ",\r\n"):
            parts.append(text[copied:end])
            copied = pad_end
        # Whatever follows the closing quote belongs to the same field.
        field_start = j
        i = pad_end

    parts.append(text[copied:])
    return "".join(parts)


def parse_csv(text: str) -> list[InvoiceRecord]:
    """Parse CSV ``text`` into records in source row order."""

    reader = csv.reader(
        io.StringIO(_trim_after_closing_quotes(text.removeprefix("\ufeff")), newline=""),
        strict=True,
        skipinitialspace=True,
    )

    header: list[str] | None = None
    records: list[InvoiceRecord] = []
    dropped_extra = 0
    try:
        for row in reader:
            if _is_blank(row):
                continue
            if header is None:
                header = [name.strip() for name in row]
                continue
            if len(row) > len(header):
                dropped_extra += 1
            rec: dict[str, str] = {}
            for name, value in zip(header, row, strict=False):
                rec[name] = value.strip()
            records.append(rec)  # type: ignore[arg-type]
    except csv.Error as e:
        line = reader.line_num
        raise ParseError(f"malformed CSV near line {line}: {e}", line=line) from e

    if dropped_extra:
        _logger.debug("parse_csv: %d rows wider than the header; extras dropped", dropped_extra)
    _logger.debug("parse_csv: %d records, %d columns", len(records), len(header or ()))
    return records


def serialize_csv(
    records: Iterable[Mapping[str, object]],
    fieldnames: Sequence[str] | None = None,
) -> str:
    """Serialize records to CSV text with a header row.

    When ``fieldnames`` is omitted the header is the union of record keys in
    first-seen order. Absent and ``None`` values are written as empty fields.
    """

    rows = list(records)
    if fieldnames is None:
        seen: dict[str, None] = {}
        for r in rows:
            for k in r:
                seen.setdefault(k, None)
        fieldnames = list(seen)

    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(fieldnames)
    for r in rows:
        writer.writerow(["" if r.get(k) is None else str(r.get(k)) for k in fieldnames])
    return buf.getvalue()


__all__ = ["parse_csv", "serialize_csv"]
