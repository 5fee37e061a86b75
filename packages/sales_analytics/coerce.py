"""Tolerant coercion of the amount and date columns.

The export is produced outside this package and is not schema-checked, so
coercion never raises: an amount that cannot be read counts as ``0.0`` and a
date that cannot be read yields ``None`` (the caller decides whether that
record takes part in date-based views).
"""

from __future__ import annotations

import math
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

# Tried in order after ISO-8601.
_DATE_FORMATS: tuple[str, ...] = (
    "%m/%d/%Y",
    "%m/%d/%y",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%Y %I:%M:%S %p",
    "%Y/%m/%d",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d-%b-%Y",
)


def _to_decimal(raw: str) -> Decimal | None:
    s = raw.strip()
    if not s:
        return None
    negative = False

    # Strip leading sign, currency symbol and accounting parentheses in any order.
    while True:
        changed = False
        if s.startswith("+"):
            s = s[1:].lstrip()
            changed = True
        elif s.startswith("-"):
            negative = True
            s = s[1:].lstrip()
            changed = True
        if s.startswith("$"):
            s = s[1:].lstrip()
            changed = True
        if s.startswith("(") and s.endswith(")") and len(s) >= 2:
            negative = True
            s = s[1:-1].strip()
            changed = True
        if not changed:
            break

    s = s.replace(",", "").strip()
    try:
        d = Decimal(s)
    except InvalidOperation:
        return None
    if not d.is_finite():
        return None
    return -abs(d) if negative else d


def coerce_amount(value: object) -> float:
    """Return ``value`` as a float amount, or ``0.0`` when it is not numeric."""

    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, int | float):
        f = float(value)
        return f if math.isfinite(f) else 0.0
    d = _to_decimal(str(value))
    return float(d) if d is not None else 0.0


def parse_invoice_date(value: object) -> date | None:
    """Parse an invoice date string; ``None`` when absent or unreadable."""

    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    try:
        return datetime.fromisoformat(s).date()
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


def coerce_year(value: object) -> str | None:
    """Return the four-digit calendar year of a date string, or ``None``."""

    d = parse_invoice_date(value)
    return f"{d.year:04d}" if d is not None else None


__all__ = ["coerce_amount", "coerce_year", "parse_invoice_date"]
