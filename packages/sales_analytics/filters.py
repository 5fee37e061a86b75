"""Filter engine over invoice records.

Two layers, always applied in this order:

1. Category exclusion: rows whose category (trimmed, case-insensitive) is one
   of :data:`EXCLUDED_CATEGORIES` never reach a caller, whatever the criteria.
2. User criteria (:class:`~sales_analytics.models.FilterCriteria`): year,
   customer and category narrowing, combined with AND.

Both functions return new lists in input order and never mutate their input.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from .coerce import coerce_year
from .models import (
    CATEGORY_FIELD,
    CUSTOMER_FIELD,
    DATE_FIELD,
    FilterCriteria,
    InvoiceRecord,
    is_constrained,
)

EXCLUDED_CATEGORIES: frozenset[str] = frozenset({"Employee Appreciation", "Shipped To"})

_EXCLUDED_FOLDED: frozenset[str] = frozenset(c.strip().casefold() for c in EXCLUDED_CATEGORIES)


def is_excluded_category(value: object) -> bool:
    """Return ``True`` when ``value`` names an excluded category."""

    if value is None:
        return False
    return str(value).strip().casefold() in _EXCLUDED_FOLDED


def exclude_categories(records: Iterable[InvoiceRecord]) -> list[InvoiceRecord]:
    """Drop records in an excluded category; no other narrowing."""

    return [r for r in records if not is_excluded_category(r.get(CATEGORY_FIELD))]


def _as_criteria(criteria: FilterCriteria | Mapping[str, Any] | None) -> FilterCriteria:
    if isinstance(criteria, FilterCriteria):
        return criteria
    return FilterCriteria.from_mapping(criteria)


def filter_records(
    records: Iterable[InvoiceRecord],
    criteria: FilterCriteria | Mapping[str, Any] | None = None,
) -> list[InvoiceRecord]:
    """Apply category exclusion and then ``criteria`` to ``records``.

    - ``year``: the record's invoice date must parse and fall in that calendar
      year; undated/unparseable rows are dropped only while a year is selected.
    - ``customer`` / ``category``: exact, case-sensitive match.
    """

    c = _as_criteria(criteria)
    want_year = c.year if is_constrained(c.year) else None
    want_customer = c.customer if is_constrained(c.customer) else None
    want_category = c.category if is_constrained(c.category) else None

    out: list[InvoiceRecord] = []
    for r in records:
        if is_excluded_category(r.get(CATEGORY_FIELD)):
            continue
        if want_year is not None and coerce_year(r.get(DATE_FIELD)) != want_year:
            continue
        if want_customer is not None and r.get(CUSTOMER_FIELD) != want_customer:
            continue
        if want_category is not None and r.get(CATEGORY_FIELD) != want_category:
            continue
        out.append(r)
    return out


__all__ = [
    "EXCLUDED_CATEGORIES",
    "is_excluded_category",
    "exclude_categories",
    "filter_records",
]
