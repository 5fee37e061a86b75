"""Data verification helpers used while debugging chart totals.

- :func:`compare_chart_total` checks that a chart's plotted total agrees with
  the aggregate computed from the same record set.
- :func:`audit_exclusions` reports what the category exclusion removes and
  the per-year sales that remain, for reconciliation against the accounting
  export.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .coerce import coerce_amount, coerce_year
from .filters import EXCLUDED_CATEGORIES, is_excluded_category
from .logging_setup import get_logger
from .models import AMOUNT_FIELD, CATEGORY_FIELD, DATE_FIELD, AggregationResult, InvoiceRecord

_logger = get_logger(__name__)

# Percentage-difference thresholds for ``ChartComparison.status``.
MATCH_THRESHOLD_PCT = 1.0
SMALL_THRESHOLD_PCT = 5.0

ComparisonStatus = Literal["match", "small", "significant"]


class ChartComparison(BaseModel):
    model_config = ConfigDict(frozen=True)

    chart_name: str = Field(serialization_alias="chartName")
    data_points: int = Field(serialization_alias="dataPoints")
    chart_total: float = Field(serialization_alias="chartTotal")
    record_count: int = Field(serialization_alias="recordCount")
    record_total: float = Field(serialization_alias="recordTotal")
    difference: float
    percent_difference: float = Field(serialization_alias="percentDifference")
    status: ComparisonStatus


class ExcludedCategoryStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    count: int = 0
    total: float = 0.0


class ExclusionAudit(BaseModel):
    """Per-year sales after exclusion plus what the exclusion removed."""

    model_config = ConfigDict(frozen=True)

    sales_by_year: dict[str, float] = Field(serialization_alias="salesByYear")
    category_by_year: dict[str, dict[str, float]] = Field(serialization_alias="categoryByYear")
    excluded: dict[str, ExcludedCategoryStats]


def _point_value(point: object) -> float:
    if isinstance(point, bool):
        return 0.0
    if isinstance(point, int | float):
        return coerce_amount(point)
    if isinstance(point, Mapping):
        if "value" in point:
            return coerce_amount(point.get("value"))
        if "amount" in point:
            return coerce_amount(point.get("amount"))
        return 0.0
    # Chart point dataclasses (see ``sales_analytics.series``).
    for attr in ("value", "amount", "total"):
        if hasattr(point, attr):
            return coerce_amount(getattr(point, attr))
    return 0.0


def compare_chart_total(
    chart_name: str,
    points: Iterable[object],
    summary: AggregationResult,
) -> ChartComparison:
    """Compare the sum of a chart's points with ``summary.total_amount``."""

    pts = list(points)
    chart_total = round(sum(_point_value(p) for p in pts), 2)
    difference = round(abs(chart_total - summary.total_amount), 2)
    pct = (difference / summary.total_amount) * 100 if summary.total_amount > 0 else 0.0

    status: ComparisonStatus
    if pct < MATCH_THRESHOLD_PCT:
        status = "match"
    elif pct < SMALL_THRESHOLD_PCT:
        status = "small"
    else:
        status = "significant"

    result = ChartComparison(
        chart_name=chart_name,
        data_points=len(pts),
        chart_total=chart_total,
        record_count=summary.total_records,
        record_total=summary.total_amount,
        difference=difference,
        percent_difference=round(pct, 2),
        status=status,
    )
    log = _logger.warning if status == "significant" else _logger.info
    log(
        "chart_compare chart=%s points=%d chart_total=%.2f records=%d record_total=%.2f "
        "diff=%.2f (%.2f%%) status=%s",
        chart_name,
        result.data_points,
        chart_total,
        result.record_count,
        result.record_total,
        difference,
        result.percent_difference,
        status,
    )
    return result


def audit_exclusions(records: Iterable[InvoiceRecord]) -> ExclusionAudit:
    """Reconcile per-year sales and report rows removed by category exclusion.

    Rows without a readable date are left out of the per-year figures but are
    still counted in ``excluded`` when their category is excluded.
    """

    labels = {c.casefold(): c for c in EXCLUDED_CATEGORIES}
    excluded_count: defaultdict[str, int] = defaultdict(int)
    excluded_total: defaultdict[str, float] = defaultdict(float)
    by_year: defaultdict[str, float] = defaultdict(float)
    cat_by_year: defaultdict[str, defaultdict[str, float]] = defaultdict(lambda: defaultdict(float))

    for r in records:
        amount = coerce_amount(r.get(AMOUNT_FIELD))
        category = (r.get(CATEGORY_FIELD) or "").strip()
        if is_excluded_category(category):
            label = labels[category.casefold()]
            excluded_count[label] += 1
            excluded_total[label] += amount
            continue
        year = coerce_year(r.get(DATE_FIELD))
        if year is None:
            continue
        by_year[year] += amount
        if category:
            cat_by_year[year][category] += amount

    return ExclusionAudit(
        sales_by_year={y: round(by_year[y], 2) for y in sorted(by_year, reverse=True)},
        category_by_year={
            y: {c: round(a, 2) for c, a in sorted(cat_by_year[y].items(), key=lambda kv: -kv[1])}
            for y in sorted(cat_by_year, reverse=True)
        },
        excluded={
            label: ExcludedCategoryStats(
                count=excluded_count[label], total=round(excluded_total[label], 2)
            )
            for label in sorted(EXCLUDED_CATEGORIES)
        },
    )


__all__ = [
    "ChartComparison",
    "ExcludedCategoryStats",
    "ExclusionAudit",
    "compare_chart_total",
    "audit_exclusions",
]
