"""Public interface for the ``sales_analytics`` package.

Invoice dataset cache and filter engine behind the sales dashboard. This
module only re-exports the stable import surface.
"""

from .aggregation import summarize, top_n_by_amount
from .cache import CacheState, DatasetCache, get_dataset_cache
from .coerce import coerce_amount, coerce_year, parse_invoice_date
from .csv_io import parse_csv, serialize_csv
from .decompress import compress_text, decompress_gzip
from .errors import (
    DataLoadError,
    DecompressionError,
    FetchError,
    InvalidCriteriaError,
    ParseError,
    SalesAnalyticsError,
)
from .filters import (
    EXCLUDED_CATEGORIES,
    exclude_categories,
    filter_records,
    is_excluded_category,
)
from .models import AggregationResult, Dataset, DateRange, FilterCriteria, InvoiceRecord
from .sources import (
    DatabaseDataSource,
    DataSource,
    FallbackDataSource,
    FileDataSource,
    HttpDataSource,
)

__all__ = [
    # Cache
    "CacheState",
    "DatasetCache",
    "get_dataset_cache",
    # Pipeline stages
    "decompress_gzip",
    "compress_text",
    "parse_csv",
    "serialize_csv",
    # Filtering / aggregation
    "EXCLUDED_CATEGORIES",
    "is_excluded_category",
    "exclude_categories",
    "filter_records",
    "summarize",
    "top_n_by_amount",
    "coerce_amount",
    "coerce_year",
    "parse_invoice_date",
    # Sources
    "DataSource",
    "HttpDataSource",
    "FileDataSource",
    "DatabaseDataSource",
    "FallbackDataSource",
    # Models / types
    "InvoiceRecord",
    "Dataset",
    "FilterCriteria",
    "DateRange",
    "AggregationResult",
    # Errors
    "SalesAnalyticsError",
    "FetchError",
    "DecompressionError",
    "ParseError",
    "DataLoadError",
    "InvalidCriteriaError",
]
