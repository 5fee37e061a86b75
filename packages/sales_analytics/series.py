"""Chart-ready series derived from (filtered) invoice records.

Each helper is a pure reduction; callers pass the output of
:func:`~sales_analytics.filters.filter_records` or
:meth:`~sales_analytics.cache.DatasetCache.get_filtered_data`.
"""

from __future__ import annotations

import calendar
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field

from .coerce import coerce_amount, coerce_year, parse_invoice_date
from .filters import is_excluded_category
from .models import AMOUNT_FIELD, CATEGORY_FIELD, CUSTOMER_FIELD, DATE_FIELD, InvoiceRecord

MONTH_NAMES: tuple[str, ...] = tuple(calendar.month_name[1:])


@dataclass(frozen=True, slots=True)
class MonthlyPoint:
    month: str
    amount: float


@dataclass(frozen=True, slots=True)
class YearlyPoint:
    year: str
    amount: float


@dataclass(frozen=True, slots=True)
class CategoryPoint:
    category: str
    amount: float


@dataclass(frozen=True, slots=True)
class YearCategoryBreakdown:
    year: str
    categories: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CustomerTotal:
    """Per-customer total; ``address`` comes from the first row seen."""

    name: str
    address: str
    total: float


def monthly_sales(records: Iterable[InvoiceRecord]) -> list[MonthlyPoint]:
    """Amount per calendar month (all years folded together), January first.

    Months whose total is not positive are omitted.
    """

    by_month: defaultdict[int, float] = defaultdict(float)
    for r in records:
        d = parse_invoice_date(r.get(DATE_FIELD))
        if d is None:
            continue
        by_month[d.month] += coerce_amount(r.get(AMOUNT_FIELD))
    return [
        MonthlyPoint(month=MONTH_NAMES[m - 1], amount=by_month[m])
        for m in range(1, 13)
        if by_month.get(m, 0.0) > 0
    ]


def yearly_sales(records: Iterable[InvoiceRecord]) -> list[YearlyPoint]:
    """Amount per year, oldest first."""

    by_year: defaultdict[str, float] = defaultdict(float)
    for r in records:
        year = coerce_year(r.get(DATE_FIELD))
        if year is None:
            continue
        by_year[year] += coerce_amount(r.get(AMOUNT_FIELD))
    return [YearlyPoint(year=y, amount=by_year[y]) for y in sorted(by_year)]


def category_sales(records: Iterable[InvoiceRecord]) -> list[CategoryPoint]:
    """Amount per category, largest first."""

    by_category: defaultdict[str, float] = defaultdict(float)
    for r in records:
        category = r.get(CATEGORY_FIELD)
        if not category:
            continue
        by_category[category] += coerce_amount(r.get(AMOUNT_FIELD))
    ordered = sorted(by_category.items(), key=lambda kv: (-kv[1], kv[0]))
    return [CategoryPoint(category=c, amount=a) for c, a in ordered]


def year_category_breakdown(records: Iterable[InvoiceRecord]) -> list[YearCategoryBreakdown]:
    """Amount per category within each year (stacked bars), oldest year first."""

    matrix: defaultdict[str, defaultdict[str, float]] = defaultdict(lambda: defaultdict(float))
    for r in records:
        category = r.get(CATEGORY_FIELD)
        year = coerce_year(r.get(DATE_FIELD))
        if not category or year is None:
            continue
        matrix[year][category] += coerce_amount(r.get(AMOUNT_FIELD))
    return [YearCategoryBreakdown(year=y, categories=dict(matrix[y])) for y in sorted(matrix)]


def customer_totals(records: Iterable[InvoiceRecord]) -> list[CustomerTotal]:
    """Total per customer with a display address, largest first."""

    totals: dict[str, float] = {}
    addresses: dict[str, str] = {}
    for r in records:
        name = r.get(CUSTOMER_FIELD)
        if not name:
            continue
        if name not in totals:
            totals[name] = 0.0
            addresses[name] = ", ".join(p for p in (r.get("ADDRESS1"), r.get("ADDRESS2")) if p)
        totals[name] += coerce_amount(r.get(AMOUNT_FIELD))
    ordered = sorted(totals.items(), key=lambda kv: (-kv[1], kv[0]))
    return [CustomerTotal(name=n, address=addresses[n], total=t) for n, t in ordered]


# ---- Filter-bar options --------------------------------------------------------


def distinct_categories(records: Iterable[InvoiceRecord]) -> list[str]:
    """Sorted category labels, never including excluded categories."""

    return sorted(
        {
            c
            for r in records
            if (c := r.get(CATEGORY_FIELD)) and not is_excluded_category(c)
        }
    )


def distinct_customers(records: Iterable[InvoiceRecord]) -> list[str]:
    return sorted({n for r in records if (n := r.get(CUSTOMER_FIELD))})


def distinct_years(records: Iterable[InvoiceRecord]) -> list[str]:
    """Years with at least one dated record, newest first."""

    return sorted(
        {y for r in records if (y := coerce_year(r.get(DATE_FIELD))) is not None},
        reverse=True,
    )


__all__ = [
    "MONTH_NAMES",
    "MonthlyPoint",
    "YearlyPoint",
    "CategoryPoint",
    "YearCategoryBreakdown",
    "CustomerTotal",
    "monthly_sales",
    "yearly_sales",
    "category_sales",
    "year_category_breakdown",
    "customer_totals",
    "distinct_categories",
    "distinct_customers",
    "distinct_years",
]
