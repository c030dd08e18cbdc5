"""
Security middleware for FastAPI:
- Security headers (HSTS, X-Frame-Options, etc.)
- Request logging with timing
"""

import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from loguru import logger


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add security headers to all responses.

    Headers added:
    - Strict-Transport-Security (HSTS)
    - X-Frame-Options
    - X-Content-Type-Options
    - Content-Security-Policy
    - Referrer-Policy
    - Cache-Control (responses carry client and case data)
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains; preload"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cache-Control"] = "no-store"

        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of every request."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        log = logger.warning if response.status_code >= 400 else logger.info
        log(
            f"[HTTP] {request.method} {request.url.path} -> {response.status_code} "
            f"({elapsed_ms:.1f}ms) from {request.client.host if request.client else 'unknown'}"
        )
        return response
