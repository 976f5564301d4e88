"""Filter builders for offset-paginated aggregation queries.

Every builder returns a plain MongoDB query document. An empty dict means
"no condition" and is dropped when the parts are merged.
"""

import logging
import math
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict


logger = logging.getLogger(__name__)

TIMESTAMP_FIELD = "createdAt"

# An inclusive end date covers the whole calendar day it names
INCLUSIVE_END_PADDING = timedelta(hours=24)
LATEST_TIMESTAMP = datetime.max.replace(tzinfo=timezone.utc)

# Range of a BSON int64; larger integers are matched as doubles
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

_NUMBER_PATTERN = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")


class BooleanValue(BaseModel):
    """Filter value that matches a boolean field exactly."""
    
    kind: Literal["boolean"] = "boolean"
    value: bool
    
    model_config = ConfigDict(frozen=True)
    
    def to_condition(self) -> Any:
        return self.value


class NumberValue(BaseModel):
    """Filter value that matches a numeric field exactly."""
    
    kind: Literal["number"] = "number"
    value: Union[int, float]
    
    model_config = ConfigDict(frozen=True)
    
    def to_condition(self) -> Any:
        return self.value


class PatternValue(BaseModel):
    """Filter value that matches any field containing the text, ignoring case."""
    
    kind: Literal["pattern"] = "pattern"
    value: str
    
    model_config = ConfigDict(frozen=True)
    
    def to_condition(self) -> Dict[str, str]:
        return {"$regex": re.escape(self.value), "$options": "i"}


FilterValue = Union[BooleanValue, NumberValue, PatternValue]


def _parse_boolean(raw: str) -> Optional[FilterValue]:
    if raw in ("true", "false"):
        return BooleanValue(value=raw == "true")
    return None


def _parse_number(raw: str) -> Optional[FilterValue]:
    text = raw.strip()
    if not _NUMBER_PATTERN.match(text):
        return None
    if re.fullmatch(r"[+-]?\d+", text):
        number = int(text)
        if INT64_MIN <= number <= INT64_MAX:
            return NumberValue(value=number)
    number = float(text)
    if not math.isfinite(number):
        return None
    return NumberValue(value=number)


# Applied in order; the first rule that recognises the value wins
COERCION_RULES: List[Callable[[str], Optional[FilterValue]]] = [
    _parse_boolean,
    _parse_number,
]


def parse_filter_value(raw: str) -> FilterValue:
    """Coerce a raw query-string value into a typed filter value.
    
    Args:
        raw: Value as received from the caller
        
    Returns:
        BooleanValue for "true"/"false", NumberValue for anything that parses
        fully as a finite number, PatternValue otherwise
    """
    for rule in COERCION_RULES:
        parsed = rule(raw)
        if parsed is not None:
            return parsed
    return PatternValue(value=raw)


def parse_date(value: str) -> Optional[datetime]:
    """Parse an ISO-8601 date or datetime into UTC, reading naive values as UTC.

    Returns None when the value cannot be parsed or its UTC instant falls
    outside the datetime range.
    """
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError:
        return None


def create_date_filter(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    search_between_dates: bool = False,
    field: str = TIMESTAMP_FIELD
) -> Dict[str, Any]:
    """Build a range condition on the timestamp field.
    
    In inclusive mode (the default) the bounds are ``$gte start`` and
    ``$lte end + 24h`` so the whole end day is covered. With
    ``search_between_dates`` the bounds become ``$gt start`` and ``$lt end``.
    
    A bound that cannot be parsed does not raise: the returned condition
    matches no document, so the page comes back empty.
    
    Args:
        start_date: Lower bound, optional
        end_date: Upper bound, optional
        search_between_dates: Use exclusive bounds
        field: Timestamp field to filter on
        
    Returns:
        Query document, empty when neither bound is supplied
    """
    if not start_date and not end_date:
        return {}
    
    start = parse_date(start_date) if start_date else None
    end = parse_date(end_date) if end_date else None
    
    if (start_date and start is None) or (end_date and end is None):
        logger.warning(
            f"Unparseable date range start={start_date!r} end={end_date!r}, "
            f"filter on '{field}' will match nothing"
        )
        return {field: {"$in": []}}
    
    bounds: Dict[str, datetime] = {}
    if search_between_dates:
        if start is not None:
            bounds["$gt"] = start
        if end is not None:
            bounds["$lt"] = end
    else:
        if start is not None:
            bounds["$gte"] = start
        if end is not None:
            try:
                bounds["$lte"] = end + INCLUSIVE_END_PADDING
            except OverflowError:
                bounds["$lte"] = LATEST_TIMESTAMP
    
    return {field: bounds}


def process_filters(filters: Optional[Mapping[str, Optional[str]]]) -> Dict[str, Any]:
    """Turn field filters into one typed condition per field (AND semantics).
    
    Missing and empty values are skipped. Field names are not checked; a field
    the documents do not have simply matches nothing.
    """
    if not filters:
        return {}
    
    query: Dict[str, Any] = {}
    for key, value in filters.items():
        if value is None or value == "":
            continue
        query[key] = parse_filter_value(value).to_condition()
    
    return query


def create_global_search_query(filters: Optional[Mapping[str, Optional[str]]]) -> Dict[str, Any]:
    """Turn field filters into a single ``$or`` of case-insensitive substring matches."""
    if not filters:
        return {}
    
    conditions = [
        {key: PatternValue(value=value).to_condition()}
        for key, value in filters.items()
        if isinstance(value, str) and value
    ]
    
    return {"$or": conditions} if conditions else {}


def merge_filters(*parts: Mapping[str, Any]) -> Dict[str, Any]:
    """AND together several query documents.
    
    Parts with disjoint top-level keys are flattened into one document. If any
    key appears in more than one part, the parts are kept whole under ``$and``
    so that none of them overrides another.
    """
    non_empty = [dict(part) for part in parts if part]
    if not non_empty:
        return {}
    
    seen: set = set()
    for part in non_empty:
        if seen & part.keys():
            return {"$and": non_empty}
        seen |= part.keys()
    
    merged: Dict[str, Any] = {}
    for part in non_empty:
        merged.update(part)
    return merged
