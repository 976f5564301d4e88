"""Offset pagination over a MongoDB aggregation pipeline.

A request is translated into a single pipeline:

    $match -> caller stages -> $facet {metadata: [$count], data: [...]} -> $unwind

so the total count and the requested page come back in one round trip.
"""

import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Type, Union

from pydantic import BaseModel, Field, field_validator

from ..errors.problem_details import (
    InvalidPaginationParameterError, InvalidPageError, InvalidMaxError
)
from .filters import (
    TIMESTAMP_FIELD, create_date_filter, process_filters,
    create_global_search_query, merge_filters
)


logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_MAX = 10


class AggregateExecutor(Protocol):
    """Anything that can run an aggregation pipeline and return its documents."""
    
    async def aggregate(self, pipeline: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        ...


def coerce_positive_int(value: Any, error_cls: Type[InvalidPaginationParameterError]) -> int:
    """Validate a page or page-size value and return it as an int.
    
    Integral floats (``2.0``) and numeric strings (``"2"``) are accepted.
    
    Raises:
        InvalidPageError / InvalidMaxError: with reason ``not_a_number``,
            ``not_integer`` or ``not_positive``
    """
    if isinstance(value, bool):
        raise error_cls(value, "not_integer")
    
    if isinstance(value, str):
        try:
            number: Union[int, float] = float(value.strip())
        except ValueError:
            raise error_cls(value, "not_a_number") from None
    elif isinstance(value, (int, float)):
        number = value
    else:
        raise error_cls(value, "not_a_number")
    
    if isinstance(number, float):
        if math.isnan(number):
            raise error_cls(value, "not_a_number")
        if not number.is_integer():
            raise error_cls(value, "not_integer")
        number = int(number)
    
    if number < 1:
        raise error_cls(value, "not_positive")
    
    return number


class PaginationRequest(BaseModel):
    """Options for one paginated query.
    
    ``page`` and ``max`` are checked when the request is built, so an invalid
    request never reaches the database.
    """
    
    page: int = Field(default=DEFAULT_PAGE, description="Page number (1-based)")
    max: int = Field(default=DEFAULT_MAX, description="Maximum number of records per page")
    filter: Dict[str, Any] = Field(default_factory=dict, description="Base query document")
    filters: Optional[Dict[str, Optional[str]]] = Field(
        default=None, description="Field name to raw value filters"
    )
    global_search: bool = Field(default=False, description="OR the field filters instead of AND")
    sort: bool = Field(default=True, description="Sort by the timestamp field, newest first")
    start_date: Optional[str] = Field(default=None, description="Lower date bound")
    end_date: Optional[str] = Field(default=None, description="Upper date bound")
    search_between_dates: bool = Field(default=False, description="Use exclusive date bounds")
    pipeline: List[Dict[str, Any]] = Field(
        default_factory=list, description="Extra stages run after $match"
    )
    extract: Union[List[str], Dict[str, Any]] = Field(
        default_factory=list, description="Fields to keep in each record"
    )
    timestamp_field: str = Field(default=TIMESTAMP_FIELD, description="Timestamp field name")
    
    @field_validator("page", mode="before")
    @classmethod
    def validate_page(cls, v):
        return coerce_positive_int(v, InvalidPageError)
    
    @field_validator("max", mode="before")
    @classmethod
    def validate_max(cls, v):
        return coerce_positive_int(v, InvalidMaxError)
    
    @property
    def skip(self) -> int:
        return (self.page - 1) * self.max
    
    def projection(self) -> Dict[str, Any]:
        """Return the $project document for ``extract``, empty when nothing is extracted."""
        if isinstance(self.extract, Mapping):
            return dict(self.extract)
        return {field: 1 for field in self.extract}


class PageResult(BaseModel):
    """One page of records plus page metadata."""
    
    total: int = Field(ge=0, description="Documents matching the filter, ignoring skip/limit")
    page: int = Field(description="Requested page")
    max: int = Field(description="Requested page size")
    total_pages: int = Field(ge=0, description="ceil(total / max)")
    has_next: bool = Field(description="Whether a later page has records")
    has_previous: bool = Field(description="Whether this is not the first page")
    records: List[Dict[str, Any]] = Field(default_factory=list, description="Records on this page")


def build_match_filter(request: PaginationRequest) -> Dict[str, Any]:
    """Combine base filter, date range and field filters into one query document."""
    date_filter = create_date_filter(
        request.start_date,
        request.end_date,
        request.search_between_dates,
        field=request.timestamp_field
    )
    if request.global_search:
        field_filter = create_global_search_query(request.filters)
    else:
        field_filter = process_filters(request.filters)
    
    return merge_filters(request.filter, date_filter, field_filter)


def build_aggregation_pipeline(request: PaginationRequest) -> List[Dict[str, Any]]:
    """Build the full stage list for a request."""
    data_stages: List[Dict[str, Any]] = []
    if request.sort:
        data_stages.append({"$sort": {request.timestamp_field: -1}})
    data_stages.append({"$skip": request.skip})
    data_stages.append({"$limit": request.max})
    projection = request.projection()
    if projection:
        data_stages.append({"$project": projection})
    
    return [
        {"$match": build_match_filter(request)},
        *request.pipeline,
        {
            "$facet": {
                "metadata": [{"$count": "total"}],
                "data": data_stages,
            }
        },
        {"$unwind": {"path": "$metadata", "preserveNullAndEmptyArrays": True}},
    ]


def build_page_result(
    documents: Sequence[Mapping[str, Any]],
    request: PaginationRequest
) -> PageResult:
    """Turn the facet output into a PageResult.
    
    ``documents`` holds at most one document; ``metadata`` is absent from it
    when nothing matched.
    """
    result = documents[0] if documents else {}
    metadata = result.get("metadata") or {}
    total = metadata.get("total", 0)
    
    return PageResult(
        total=total,
        page=request.page,
        max=request.max,
        total_pages=math.ceil(total / request.max),
        has_next=total > request.skip + request.max,
        has_previous=request.page > 1,
        records=list(result.get("data") or [])
    )


async def paginate(
    executor: AggregateExecutor,
    request: Optional[PaginationRequest] = None,
    **options: Any
) -> PageResult:
    """Run one paginated query.
    
    Args:
        executor: Runs the aggregation pipeline against a collection
        request: Pagination options; built from ``options`` when omitted
        **options: PaginationRequest fields, used only without ``request``
        
    Returns:
        The requested page with metadata
        
    Raises:
        InvalidPageError: If page is not a positive integer
        InvalidMaxError: If max is not a positive integer
        Exception: Whatever the storage engine raises, unchanged
    """
    if request is None:
        request = PaginationRequest(**options)
    
    pipeline = build_aggregation_pipeline(request)
    logger.debug(f"Running pagination pipeline: {pipeline}")
    
    documents = await executor.aggregate(pipeline)
    
    page = build_page_result(documents, request)
    logger.debug(
        f"Page {page.page}/{page.total_pages} returned {len(page.records)} of {page.total} records"
    )
    return page
