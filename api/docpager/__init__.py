"""Offset pagination for MongoDB aggregation queries."""

from .pagination import PaginationRequest, PageResult, paginate
from .errors import InvalidPageError, InvalidMaxError

__version__ = "1.0.0"

__all__ = [
    "PaginationRequest",
    "PageResult",
    "paginate",
    "InvalidPageError",
    "InvalidMaxError",
    "__version__"
]
