"""Data models and type aliases for ``sales_analytics``.

Records come from an untyped CSV export, so every field is an optional
string. The invoice columns consumers rely on are declared on
:class:`InvoiceRecord`; any other column from the export is carried along
unchanged (``TypedDict`` does not reject extra keys at runtime).
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, TypedDict

from pydantic import BaseModel, ConfigDict, Field

from .errors import InvalidCriteriaError

# ---------------------------------------------------------------------------
# Raw records
# ---------------------------------------------------------------------------

AMOUNT_FIELD = "TOTAL"
DATE_FIELD = "INV_DATE"
CUSTOMER_FIELD = "NAME"
CATEGORY_FIELD = "TREE_DESCR"


class InvoiceRecord(TypedDict, total=False):
    """One row of the invoice export, keyed by header name.

    ``TOTAL`` is a decimal string, ``INV_DATE`` a calendar date string,
    ``NAME`` the customer and ``TREE_DESCR`` the product category. Address
    columns are optional and only used by location views.
    """

    TOTAL: str
    INV_DATE: str
    NAME: str
    TREE_DESCR: str
    ADDRESS1: str
    ADDRESS2: str
    CITY: str
    STATE: str
    ZIP: str


type Dataset = tuple[InvoiceRecord, ...]
"""The complete, ordered record set for one session. Never mutated in place;
the cache stores each record as a read-only mapping view."""


# ---------------------------------------------------------------------------
# Filter criteria
# ---------------------------------------------------------------------------

ALL = "All"

_YEAR_RE = re.compile(r"^\d{4}$")


def is_constrained(value: str | None) -> bool:
    """Return ``True`` when a criteria value narrows its dimension."""

    return value is not None and value != "" and value != ALL


@dataclass(frozen=True, slots=True)
class FilterCriteria:
    """User-selected narrowing of the dataset.

    Each dimension is optional; ``None``, ``""`` or ``"All"`` leave it
    unconstrained. ``year`` must be a four-digit string when set; anything
    else raises :class:`~sales_analytics.errors.InvalidCriteriaError`.
    """

    year: str | None = None
    customer: str | None = None
    category: str | None = None

    def __post_init__(self) -> None:
        if is_constrained(self.year) and not _YEAR_RE.fullmatch(str(self.year)):
            raise InvalidCriteriaError(f"year must be a four-digit year or 'All': {self.year!r}")

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> FilterCriteria:
        """Build criteria from a loose mapping such as a query string or JSON body.

        Only ``year``, ``customer`` and ``category`` are recognized; other keys
        are ignored. Non-string values are converted with ``str``.
        """

        if not raw:
            return cls()

        def _get(key: str) -> str | None:
            val = raw.get(key)
            if val is None:
                return None
            return val if isinstance(val, str) else str(val)

        return cls(year=_get("year"), customer=_get("customer"), category=_get("category"))

    @property
    def is_empty(self) -> bool:
        return not any(is_constrained(v) for v in (self.year, self.customer, self.category))


# ---------------------------------------------------------------------------
# Aggregation results
# ---------------------------------------------------------------------------


class DateRange(BaseModel):
    """Earliest and latest invoice dates, as they appear in the source."""

    model_config = ConfigDict(frozen=True)

    min: str = ""
    max: str = ""


class AggregationResult(BaseModel):
    """Totals and breakdowns derived from a (filtered) record set.

    ``categories`` and ``customers`` are ordered by descending amount (and may
    be truncated to a top-N view); ``years`` is ordered newest first.
    """

    model_config = ConfigDict(frozen=True)

    total_records: int = Field(serialization_alias="totalRecords")
    total_amount: float = Field(serialization_alias="totalAmount")
    date_range: DateRange = Field(default_factory=DateRange, serialization_alias="dateRange")
    categories: dict[str, float] = Field(default_factory=dict)
    customers: dict[str, float] = Field(default_factory=dict)
    years: dict[str, float] = Field(default_factory=dict)


__all__ = [
    "AMOUNT_FIELD",
    "DATE_FIELD",
    "CUSTOMER_FIELD",
    "CATEGORY_FIELD",
    "ALL",
    "InvoiceRecord",
    "Dataset",
    "FilterCriteria",
    "is_constrained",
    "DateRange",
    "AggregationResult",
]
