"""Documents API endpoints."""

import logging
import re
from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Query, Request

from ..config import get_settings
from ..db.documents import list_documents
from ..pagination import PaginationRequest, PageResult


logger = logging.getLogger(__name__)

FILTER_PARAM_PATTERN = re.compile(r"^filters\[(?P<field>[^\]]+)\]$")

documents_router = APIRouter(
    prefix="/collections/{collection_name}/documents",
    tags=["Documents"],
    responses={
        400: {"description": "Bad Request"},
        503: {"description": "Service Unavailable"}
    }
)


def extract_field_filters(request: Request) -> Dict[str, str]:
    """Collect ``filters[<field>]=<value>`` query parameters.
    
    The last value wins when a field is repeated.
    """
    filters: Dict[str, str] = {}
    for key, value in request.query_params.multi_items():
        match = FILTER_PARAM_PATTERN.match(key)
        if match:
            filters[match.group("field")] = value
    return filters


def parse_extract(extract: Optional[str]) -> list[str]:
    """Split a comma-separated field list, dropping blanks."""
    if not extract:
        return []
    return [field.strip() for field in extract.split(",") if field.strip()]


@documents_router.get(
    "",
    response_model=PageResult,
    summary="List documents",
    description="List documents in a collection with offset pagination, field filters, "
                "global search, date ranges and field extraction.",
    responses={
        200: {"description": "Documents retrieved successfully"},
        400: {"description": "Bad Request - Invalid page or max value"}
    }
)
async def list_collection_documents(
    collection_name: str,
    request: Request,
    page: Annotated[Optional[str], Query(description="Page number (1-based)")] = None,
    max_: Annotated[Optional[str], Query(alias="max", description="Records per page")] = None,
    sort: Annotated[bool, Query(description="Sort by creation time, newest first")] = True,
    global_search: Annotated[bool, Query(description="Match any filter instead of all")] = False,
    start_date: Annotated[Optional[str], Query(description="Lower date bound (ISO-8601)")] = None,
    end_date: Annotated[Optional[str], Query(description="Upper date bound (ISO-8601)")] = None,
    search_between_dates: Annotated[bool, Query(description="Use exclusive date bounds")] = False,
    extract: Annotated[Optional[str], Query(description="Comma-separated fields to return")] = None
) -> PageResult:
    """List a page of documents.
    
    Field filters are passed as ``filters[<field>]=<value>``. Values ``true`` and
    ``false`` match booleans, numeric values match numbers and anything else is
    a case-insensitive substring match. With ``global_search`` a document matches
    when any one filter matches.
    
    Page and max are validated by the pagination layer so invalid values are
    reported as Problem Details with the offending parameter and reason.
    """
    settings = get_settings()
    
    options: Dict[str, Any] = {
        "max": settings.default_page_size,
        "sort": sort,
        "global_search": global_search,
        "start_date": start_date,
        "end_date": end_date,
        "search_between_dates": search_between_dates,
        "extract": parse_extract(extract),
        "filters": extract_field_filters(request),
        "timestamp_field": settings.timestamp_field,
    }
    if page is not None:
        options["page"] = page
    if max_ is not None:
        options["max"] = max_
    
    pagination = PaginationRequest(**options)
    
    logger.info(
        f"Listing documents in '{collection_name}' page={pagination.page} max={pagination.max} "
        f"global_search={pagination.global_search}"
    )
    return await list_documents(collection_name, pagination)
