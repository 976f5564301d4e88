"""Error handling module for the docpager service."""

from .problem_details import (
    ProblemDetail,
    ProblemDetailException,
    BadRequestError,
    ServiceUnavailableError,
    InvalidPaginationParameterError,
    InvalidPageError,
    InvalidMaxError,
    create_problem_response
)
from .handlers import register_exception_handlers

__all__ = [
    "ProblemDetail",
    "ProblemDetailException",
    "BadRequestError",
    "ServiceUnavailableError",
    "InvalidPaginationParameterError",
    "InvalidPageError",
    "InvalidMaxError",
    "create_problem_response",
    "register_exception_handlers"
]
