"""In-memory dataset cache with single-flight loading.

The dataset is one large gzip CSV. Downloading, inflating and parsing it is
expensive, so a :class:`DatasetCache` runs that pipeline at most once at a
time and keeps the parsed records until :meth:`DatasetCache.clear_cache`.

States
------
- ``EMPTY``: nothing cached, nothing running.
- ``LOADING``: one load task is running; every caller awaits that task.
- ``LOADED``: the parsed dataset (a tuple of read-only records) and its load
  time.

A failed load returns the cache to ``EMPTY`` and every caller waiting on it
receives the same :class:`~sales_analytics.errors.DataLoadError`; the next
call starts a fresh load. A waiting caller that is cancelled does not cancel
the shared load.

Instances are independent; :func:`get_dataset_cache` returns the process-wide
instance built from :class:`~sales_analytics.config.Settings`.
"""

from __future__ import annotations

import asyncio
import time
from types import MappingProxyType
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from .aggregation import DEFAULT_TOP_N, summarize
from .config import Settings, build_source
from .csv_io import parse_csv
from .decompress import decompress_gzip
from .errors import DataLoadError
from .filters import exclude_categories, filter_records
from .logging_setup import get_logger
from .models import AggregationResult, Dataset, FilterCriteria, InvoiceRecord
from .sources import DataSource

_logger = get_logger(__name__)


class CacheState(StrEnum):
    EMPTY = "empty"
    LOADING = "loading"
    LOADED = "loaded"


@dataclass(frozen=True, slots=True)
class _Empty:
    pass


@dataclass(frozen=True, slots=True)
class _Loading:
    task: asyncio.Task[Dataset]


@dataclass(frozen=True, slots=True)
class _Loaded:
    dataset: Dataset
    loaded_at: float


type _State = _Empty | _Loading | _Loaded

_EMPTY = _Empty()


def _retrieve_exception(task: asyncio.Task[Dataset]) -> None:
    # Mark the exception as retrieved when every waiter was cancelled.
    if not task.cancelled():
        task.exception()


class DatasetCache:
    """Fetch → decompress → parse once, then serve records from memory."""

    def __init__(
        self,
        source: DataSource,
        *,
        summary_top_n: int | None = DEFAULT_TOP_N,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._summary_top_n = summary_top_n
        self._clock = clock
        self._state: _State = _EMPTY
        self._loads_started = 0

    # ---- Introspection ---------------------------------------------------------

    @property
    def state(self) -> CacheState:
        if isinstance(self._state, _Loaded):
            return CacheState.LOADED
        if isinstance(self._state, _Loading):
            return CacheState.LOADING
        return CacheState.EMPTY

    @property
    def loaded_at(self) -> float | None:
        """Clock reading when the cached dataset finished loading, if any."""

        return self._state.loaded_at if isinstance(self._state, _Loaded) else None

    @property
    def loads_started(self) -> int:
        """Number of load pipelines started over the lifetime of this cache."""

        return self._loads_started

    # ---- Public operations -----------------------------------------------------

    async def get_data(self) -> Dataset:
        """Return the full dataset, loading it if needed.

        Raises :class:`DataLoadError` when the load fails.
        """

        state = self._state
        if isinstance(state, _Loaded):
            _logger.debug("cache hit: %d records", len(state.dataset))
            return state.dataset
        if isinstance(state, _Loading):
            _logger.debug("waiting for in-flight load")
            task = state.task
        else:
            task = asyncio.get_running_loop().create_task(self._load(), name="sales-analytics-load")
            task.add_done_callback(_retrieve_exception)
            self._state = _Loading(task)
        return await asyncio.shield(task)

    async def get_filtered_data(
        self, criteria: FilterCriteria | Mapping[str, Any] | None = None
    ) -> list[InvoiceRecord]:
        """Return a new list of records after exclusion and ``criteria``.

        Raises :class:`~sales_analytics.errors.InvalidCriteriaError` for a
        malformed ``criteria`` year, before any load starts, and
        :class:`DataLoadError` when the load fails.
        """

        if not isinstance(criteria, FilterCriteria):
            criteria = FilterCriteria.from_mapping(criteria)
        return filter_records(await self.get_data(), criteria)

    async def get_data_summary(self, *, top_n: int | None = None) -> AggregationResult:
        """Summarize every non-excluded record (no user criteria)."""

        data = await self.get_data()
        return summarize(
            exclude_categories(data),
            top_n=top_n if top_n is not None else self._summary_top_n,
        )

    def clear_cache(self) -> None:
        """Drop the cached dataset so the next :meth:`get_data` reloads.

        Idempotent. A load already in flight is not interrupted; it completes
        and fills the cache as usual.
        """

        if isinstance(self._state, _Loaded):
            self._state = _EMPTY
            _logger.info("cache cleared")
        elif isinstance(self._state, _Loading):
            _logger.debug("clear_cache: load in flight; leaving it to complete")

    # ---- Load pipeline ---------------------------------------------------------

    async def _load(self) -> Dataset:
        self._loads_started += 1
        t0 = time.perf_counter()
        _logger.info("load:start source=%r", self._source)
        try:
            payload = await self._source.fetch()
            text = decompress_gzip(payload)
            records = parse_csv(text)
            # Read-only views; records handed to callers cannot change the cache.
            dataset: Dataset = tuple(MappingProxyType(r) for r in records)
        except asyncio.CancelledError:
            self._state = _EMPTY
            raise
        except Exception as e:
            self._state = _EMPTY
            _logger.error("load:failed after %.2fs: %s", time.perf_counter() - t0, e)
            raise DataLoadError(f"Failed to load dataset: {e}") from e

        self._state = _Loaded(dataset=dataset, loaded_at=self._clock())
        _logger.info(
            "load:done records=%d in %.2fs", len(dataset), time.perf_counter() - t0
        )
        return dataset


_DEFAULT_CACHE: DatasetCache | None = None


def get_dataset_cache(settings: Settings | None = None) -> DatasetCache:
    """Return the process-wide cache, creating it on first use.

    ``settings`` is only consulted when the instance is created.
    """

    global _DEFAULT_CACHE
    if _DEFAULT_CACHE is None:
        settings = settings or Settings.from_env()
        _DEFAULT_CACHE = DatasetCache(build_source(settings), summary_top_n=settings.top_n)
    return _DEFAULT_CACHE


__all__ = ["CacheState", "DatasetCache", "get_dataset_cache"]
