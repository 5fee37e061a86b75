"""Summary statistics over invoice records.

:func:`summarize` reduces a record set (normally already filtered) to an
:class:`~sales_analytics.models.AggregationResult`. Amounts go through
:func:`~sales_analytics.coerce.coerce_amount` (unreadable → 0) and dates
through :func:`~sales_analytics.coerce.parse_invoice_date`. A record with an
unreadable date still counts toward ``total_records`` and ``total_amount`` but
not toward ``years`` or ``date_range``.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from datetime import date

from .coerce import coerce_amount, parse_invoice_date
from .models import (
    AMOUNT_FIELD,
    CATEGORY_FIELD,
    CUSTOMER_FIELD,
    DATE_FIELD,
    AggregationResult,
    DateRange,
    InvoiceRecord,
)

DEFAULT_TOP_N = 20


def _cents(value: float) -> float:
    return round(value, 2)


def top_n_by_amount(mapping: Mapping[str, float], n: int | None = None) -> dict[str, float]:
    """Return ``mapping`` ordered by descending amount, keeping the first ``n``.

    Ties are broken by key so the order is deterministic. ``n=None`` keeps
    every entry.
    """

    if n is not None and n < 0:
        raise ValueError("n must be non-negative")
    ordered = sorted(mapping.items(), key=lambda kv: (-kv[1], kv[0]))
    if n is not None:
        ordered = ordered[:n]
    return dict(ordered)


def summarize(records: Iterable[InvoiceRecord], *, top_n: int | None = None) -> AggregationResult:
    """Compute totals, breakdowns and the invoice date range for ``records``."""

    total_records = 0
    total_amount = 0.0
    categories: defaultdict[str, float] = defaultdict(float)
    customers: defaultdict[str, float] = defaultdict(float)
    years: defaultdict[str, float] = defaultdict(float)
    earliest: tuple[date, str] | None = None
    latest: tuple[date, str] | None = None

    for r in records:
        total_records += 1
        amount = coerce_amount(r.get(AMOUNT_FIELD))
        total_amount += amount

        category = r.get(CATEGORY_FIELD)
        if category:
            categories[category] += amount
        customer = r.get(CUSTOMER_FIELD)
        if customer:
            customers[customer] += amount

        raw_date = r.get(DATE_FIELD)
        d = parse_invoice_date(raw_date)
        if d is None or raw_date is None:
            continue
        years[f"{d.year:04d}"] += amount
        if earliest is None or d < earliest[0]:
            earliest = (d, raw_date)
        if latest is None or d > latest[0]:
            latest = (d, raw_date)

    return AggregationResult(
        total_records=total_records,
        total_amount=_cents(total_amount),
        date_range=DateRange(
            min=earliest[1] if earliest else "",
            max=latest[1] if latest else "",
        ),
        categories={k: _cents(v) for k, v in top_n_by_amount(categories, top_n).items()},
        customers={k: _cents(v) for k, v in top_n_by_amount(customers, top_n).items()},
        years={k: _cents(years[k]) for k in sorted(years, reverse=True)},
    )


__all__ = ["DEFAULT_TOP_N", "summarize", "top_n_by_amount"]
