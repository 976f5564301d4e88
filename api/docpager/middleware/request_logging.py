"""Request logging middleware for document listings."""

import logging
import time
from starlette.middleware.base import BaseHTTPMiddleware
from fastapi import Request

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, query, status and duration of document listing requests."""
    
    def __init__(self, app, path_marker: str = "/documents"):
        super().__init__(app)
        self.path_marker = path_marker
    
    async def dispatch(self, request: Request, call_next):
        """Log request details and call next middleware."""
        if self.path_marker not in request.url.path:
            return await call_next(request)
        
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)",
            extra={
                "method": request.method,
                "path": str(request.url.path),
                "query": str(request.url.query),
                "status_code": response.status_code,
                "duration_ms": round(elapsed_ms, 1)
            }
        )
        return response
