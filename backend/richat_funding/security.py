"""
HTTP hardening and error responses for the Richat Funding API.

Every error leaves the API as ``{"message": ..., "requestId": ...}`` (plus
``errors`` for validation failures), the shape the dashboard reads.  The
request id also goes out in the ``X-Request-ID`` header and into the access
log line, so a report from a consultant can be matched to server logs.

Environment:
- RATE_LIMIT_PER_MINUTE: requests per minute per client IP (default: 100)
- MAX_REQUEST_SIZE_MB: largest accepted request body (default: 10)
- TRUSTED_PROXY_COUNT: reverse proxies in front of the API (default: 1)
- ENVIRONMENT: 'production' hides exception details in 500 responses
"""

import ipaddress
import logging
import os
import time
import uuid
from typing import Any, Callable, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from richat_funding.services.errors import InvalidDataError

load_dotenv()

logger = logging.getLogger(__name__)

RATE_LIMIT_PER_MINUTE = int(os.getenv("RATE_LIMIT_PER_MINUTE", "100"))
MAX_REQUEST_SIZE_MB = int(os.getenv("MAX_REQUEST_SIZE_MB", "10"))
TRUSTED_PROXY_COUNT = int(os.getenv("TRUSTED_PROXY_COUNT", "1"))
IS_PRODUCTION = os.getenv("ENVIRONMENT", "development").lower() == "production"

SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}
HSTS_HEADER = "max-age=31536000; includeSubDomains"

INVALID_DATA = "Invalid data"


# =============================================================================
# Client IP and rate limiting
# =============================================================================

def _parse_ip(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    value = value.strip()
    try:
        return str(ipaddress.ip_address(value))
    except ValueError:
        return None


def get_client_ip(request: Request) -> str:
    """Caller IP for rate limiting and access logs.

    X-Forwarded-For is read from the right, skipping the hops appended by
    our own TRUSTED_PROXY_COUNT proxies; entries further left are
    client-supplied.  Falls back to X-Real-IP, then the socket peer.
    """
    forwarded = [
        hop.strip()
        for hop in request.headers.get("X-Forwarded-For", "").split(",")
        if hop.strip()
    ]
    if forwarded:
        index = -(TRUSTED_PROXY_COUNT + 1) if len(forwarded) > TRUSTED_PROXY_COUNT else 0
        if ip := _parse_ip(forwarded[index]):
            return ip
        logger.warning("Ignoring malformed X-Forwarded-For entry %r", forwarded[index][:50])

    if ip := _parse_ip(request.headers.get("X-Real-IP")):
        return ip
    return _parse_ip(request.client.host if request.client else None) or "unknown"


limiter = Limiter(
    key_func=get_client_ip,
    default_limits=[f"{RATE_LIMIT_PER_MINUTE}/minute"],
    storage_uri="memory://",
    strategy="fixed-window",
)


# =============================================================================
# Error responses
# =============================================================================

def request_id_of(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


def error_response(
    request: Request,
    status_code: int,
    message: Any,
    headers: Optional[dict] = None,
    **extra: Any,
) -> JSONResponse:
    """JSON error body with the request id in both body and header."""
    request_id = request_id_of(request)
    return JSONResponse(
        status_code=status_code,
        content={"message": message, "requestId": request_id, **extra},
        headers={"X-Request-ID": request_id, **(headers or {})},
    )


def _field_error(loc, msg: str, error_type: str) -> dict:
    return {"loc": [str(part) for part in loc], "msg": msg, "type": error_type}


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled %s on %s %s request_id=%s",
        type(exc).__name__,
        request.method,
        request.url.path,
        request_id_of(request),
        exc_info=exc,
    )
    detail = {} if IS_PRODUCTION else {"detail": str(exc), "errorType": type(exc).__name__}
    return error_response(request, 500, "Internal server error", **detail)


async def handle_http_error(request: Request, exc: HTTPException) -> JSONResponse:
    return error_response(request, exc.status_code, exc.detail, headers=exc.headers)


async def handle_rate_limited(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning(
        "Rate limit exceeded for %s on %s", get_client_ip(request), request.url.path
    )
    return error_response(
        request,
        429,
        "Rate limit exceeded. Please slow down your requests.",
        headers={"Retry-After": "60"},
    )


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        _field_error(err.get("loc", ()), str(err.get("msg", "")), str(err.get("type", "")))
        for err in exc.errors()
    ]
    return error_response(request, 400, INVALID_DATA, errors=errors)


async def handle_invalid_data(request: Request, exc: InvalidDataError) -> JSONResponse:
    loc = ("body", exc.field) if exc.field else ("body",)
    return error_response(
        request, 400, INVALID_DATA, errors=[_field_error(loc, str(exc), "value_error")]
    )


EXCEPTION_HANDLERS: dict[type, Callable] = {
    RateLimitExceeded: handle_rate_limited,
    Exception: handle_unexpected_error,
    HTTPException: handle_http_error,
    RequestValidationError: handle_validation_error,
    InvalidDataError: handle_invalid_data,
}


# =============================================================================
# Middleware
# =============================================================================

class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Assign a request id, add security headers, log one access line."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request.state.request_id = request_id = str(uuid.uuid4())
        started = time.perf_counter()

        response = await call_next(request)

        response.headers.update(SECURITY_HEADERS)
        if IS_PRODUCTION:
            response.headers["Strict-Transport-Security"] = HSTS_HEADER
        response.headers["X-Request-ID"] = request_id

        logger.info(
            "%s %s -> %s in %.3fs request_id=%s client_ip=%s",
            request.method,
            request.url.path,
            response.status_code,
            time.perf_counter() - started,
            request_id,
            get_client_ip(request),
        )
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Refuse bodies over MAX_REQUEST_SIZE_MB based on Content-Length."""

    max_bytes = MAX_REQUEST_SIZE_MB * 1024 * 1024

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        declared = request.headers.get("content-length")
        if declared is not None:
            if not declared.isdigit():
                return error_response(request, 400, "Invalid Content-Length header")
            if int(declared) > self.max_bytes:
                return error_response(
                    request,
                    413,
                    f"Request body too large. Maximum size is {MAX_REQUEST_SIZE_MB}MB.",
                )
        return await call_next(request)


def setup_security(app: FastAPI) -> None:
    """Install rate limiting, middleware and error handlers.

    Call after CORS middleware is added.
    """
    app.state.limiter = limiter

    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestSizeLimitMiddleware)

    for exc_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exc_class, handler)

    logger.info(
        "Security configured: rate_limit=%s/min max_request_size=%sMB production=%s",
        RATE_LIMIT_PER_MINUTE,
        MAX_REQUEST_SIZE_MB,
        IS_PRODUCTION,
    )
