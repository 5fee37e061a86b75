"""CLI for the ``sales_analytics`` package.

Typer-based console interface over the dataset cache. Environment variables
(``SALES_ANALYTICS_*``, ``DATABASE_URL``) are loaded from a local ``.env``
using ``python-dotenv`` before any command runs. Every command loads the
dataset once through a :class:`~sales_analytics.cache.DatasetCache` and prints
JSON (or CSV) to stdout; errors go to stderr with exit status 1.

The dataset comes from ``--file`` (local ``.csv.gz``/``.csv``), ``--url``, or
the configured endpoint (with the database fallback when ``DATABASE_URL`` is
set).
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable
from pathlib import Path
from typing import Annotated, TypeVar

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .aggregation import summarize
from .cache import DatasetCache
from .config import Settings, build_source
from .csv_io import serialize_csv
from .errors import InvalidCriteriaError, SalesAnalyticsError
from .logging_setup import configure_logging
from .models import FilterCriteria
from .series import distinct_categories, distinct_customers, distinct_years, yearly_sales
from .sources import FileDataSource, HttpDataSource
from .verification import audit_exclusions, compare_chart_total

T = TypeVar("T")


# Module-level option objects (used through Annotated); the parameter default
# supplies the value when the option is omitted.
FILE_OPTION: OptionInfo = typer.Option(
    "--file",
    "-f",
    help="Local dataset file (.csv.gz or .csv) instead of the HTTP endpoint.",
    exists=True,
    dir_okay=False,
    readable=True,
)
URL_OPTION: OptionInfo = typer.Option(
    "--url", help="Dataset endpoint URL (overrides SALES_ANALYTICS_DATA_URL)."
)


def _make_cache(file: Path | None, url: str | None, *, top_n: int | None = None) -> DatasetCache:
    settings = Settings.from_env()
    if file is not None:
        source = FileDataSource(file)
    elif url:
        source = HttpDataSource(url, timeout=settings.http_timeout)
    else:
        source = build_source(settings)
    return DatasetCache(source, summary_top_n=top_n if top_n is not None else settings.top_n)


def _run(awaitable: Awaitable[T]) -> T:
    """Run ``awaitable`` to completion; report package errors and exit 1."""

    async def _main() -> T:
        return await awaitable

    try:
        return asyncio.run(_main())
    except SalesAnalyticsError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e


def _echo_json(payload: object) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Inspect the invoice dataset behind the sales dashboard: summaries, "
        "filtered extracts, filter options and exclusion audits. Loads "
        "settings from a local .env before running."
    ),
)


@app.callback()
def main(
    log_level: str | None = typer.Option(
        None, "--log-level", help="Log level (falls back to SALES_ANALYTICS_LOG_LEVEL, then INFO)."
    ),
) -> None:
    """Load ``.env`` from the working directory and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level)


@app.command("summary")
def summary_cmd(
    file: Annotated[Path | None, FILE_OPTION] = None,
    url: Annotated[str | None, URL_OPTION] = None,
    top_n: int | None = typer.Option(
        None, "--top-n", min=1, help="Categories/customers to list (default SALES_ANALYTICS_TOP_N)."
    ),
) -> None:
    """Print totals, date range and breakdowns of the non-excluded records."""

    cache = _make_cache(file, url, top_n=top_n)
    result = _run(cache.get_data_summary())
    typer.echo(result.model_dump_json(by_alias=True, indent=2))


@app.command("filter")
def filter_cmd(
    file: Annotated[Path | None, FILE_OPTION] = None,
    url: Annotated[str | None, URL_OPTION] = None,
    year: str | None = typer.Option(None, help="Four-digit year, or 'All'."),
    customer: str | None = typer.Option(None, help="Exact customer name, or 'All'."),
    category: str | None = typer.Option(None, help="Exact category, or 'All'."),
    as_csv: bool = typer.Option(False, "--csv", help="Write the matching rows as CSV."),
) -> None:
    """Filter the dataset by year/customer/category."""

    try:
        criteria = FilterCriteria(year=year, customer=customer, category=category)
    except InvalidCriteriaError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    cache = _make_cache(file, url)
    records = _run(cache.get_filtered_data(criteria))
    if as_csv:
        typer.echo(serialize_csv(records), nl=False)
        return
    totals = summarize(records)
    _echo_json({"records": totals.total_records, "totalAmount": totals.total_amount})


@app.command("options")
def options_cmd(
    file: Annotated[Path | None, FILE_OPTION] = None,
    url: Annotated[str | None, URL_OPTION] = None,
) -> None:
    """Print the year, customer and category choices for the filter bar."""

    cache = _make_cache(file, url)
    records = _run(cache.get_filtered_data())
    _echo_json(
        {
            "years": distinct_years(records),
            "customers": distinct_customers(records),
            "categories": distinct_categories(records),
        }
    )


@app.command("verify")
def verify_cmd(
    file: Annotated[Path | None, FILE_OPTION] = None,
    url: Annotated[str | None, URL_OPTION] = None,
) -> None:
    """Audit the category exclusion and cross-check the yearly chart total."""

    cache = _make_cache(file, url)

    async def _collect():
        data = await cache.get_data()
        records = await cache.get_filtered_data()
        summary = await cache.get_data_summary()
        return data, records, summary

    data, records, summary = _run(_collect())
    audit = audit_exclusions(data)
    comparison = compare_chart_total("Yearly sales", yearly_sales(records), summary)
    _echo_json(
        {
            "audit": audit.model_dump(mode="json", by_alias=True),
            "yearlyChart": comparison.model_dump(mode="json", by_alias=True),
        }
    )


if __name__ == "__main__":  # pragma: no cover
    app()
