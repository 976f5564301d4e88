"""Pagination module for offset-based aggregation queries."""

from .filters import (
    BooleanValue,
    NumberValue,
    PatternValue,
    FilterValue,
    parse_filter_value,
    parse_date,
    create_date_filter,
    process_filters,
    create_global_search_query,
    merge_filters
)
from .aggregation import (
    AggregateExecutor,
    PaginationRequest,
    PageResult,
    coerce_positive_int,
    build_match_filter,
    build_aggregation_pipeline,
    build_page_result,
    paginate
)

__all__ = [
    "BooleanValue",
    "NumberValue",
    "PatternValue",
    "FilterValue",
    "parse_filter_value",
    "parse_date",
    "create_date_filter",
    "process_filters",
    "create_global_search_query",
    "merge_filters",
    "AggregateExecutor",
    "PaginationRequest",
    "PageResult",
    "coerce_positive_int",
    "build_match_filter",
    "build_aggregation_pipeline",
    "build_page_result",
    "paginate"
]
