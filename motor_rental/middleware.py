"""HTTP middleware for request tracking, logging, and security headers."""

import re
import time
import uuid

from fastapi import Request
from fastapi.responses import JSONResponse

from .config import settings
from .logger import logger
from .schemas import ErrorCode

# Set by main.py to avoid a circular import
shutdown_manager = None

# Seconds a client is told to wait before retrying during shutdown
SHUTDOWN_RETRY_AFTER = 10

# Client-supplied ids end up in every log line for the request
REQUEST_ID_PATTERN = re.compile(r"[A-Za-z0-9._-]{1,128}")


def set_shutdown_manager(manager):
    """Register the shutdown manager instance (called from main.py)."""
    global shutdown_manager
    shutdown_manager = manager


def service_unavailable() -> JSONResponse:
    """503 in the same ``detail`` envelope the API routes use for errors."""
    return JSONResponse(
        status_code=503,
        content={"detail": {
            "error": ErrorCode.SERVICE_UNAVAILABLE,
            "message": "Motor Rental API is shutting down",
            "details": {"retry_after": SHUTDOWN_RETRY_AFTER},
        }},
        headers={"Retry-After": str(SHUTDOWN_RETRY_AFTER)},
    )


def resolve_request_id(raw: str | None) -> str:
    """Keep a well-formed client id, otherwise mint a fresh uuid4."""
    if raw and REQUEST_ID_PATTERN.fullmatch(raw):
        return raw
    return str(uuid.uuid4())


# ==================== Graceful Shutdown Middleware ====================

async def graceful_shutdown_middleware(request: Request, call_next):
    """Track in-flight requests so shutdown can drain them; refuse new work once draining."""
    manager = shutdown_manager
    if manager is None:
        return await call_next(request)

    if manager.is_shutting_down:
        logger.warning(f"Shutdown in progress, refusing {request.method} {request.url.path}")
        return service_unavailable()

    manager.request_started()
    try:
        return await call_next(request)
    finally:
        manager.request_finished()


# ==================== Request ID Middleware ====================

async def add_request_id_middleware(request: Request, call_next):
    """Attach a correlation id to request state and echo it on the response."""
    request.state.request_id = resolve_request_id(request.headers.get("X-Request-ID"))

    response = await call_next(request)
    response.headers["X-Request-ID"] = request.state.request_id
    return response


# ==================== Request Logging Middleware ====================

async def request_logging_middleware(request: Request, call_next):
    """Log each API request with its status and duration."""
    path = request.url.path
    # Static asset hits would drown the log
    if not path.startswith("/api") and path != "/health":
        return await call_next(request)

    start_time = time.time()
    request_id = getattr(request.state, "request_id", "unknown")
    logger.info(f"[{request_id}] {request.method} {path} - Request received")

    try:
        response = await call_next(request)
    except Exception as e:
        duration = time.time() - start_time
        logger.error(
            f"[{request_id}] {request.method} {path} - Error: {str(e)} - Duration: {duration:.3f}s",
            exc_info=True
        )
        raise

    duration = time.time() - start_time
    logger.info(
        f"[{request_id}] {request.method} {path} - "
        f"Status: {response.status_code} - Duration: {duration:.3f}s"
    )
    return response


# ==================== Security Headers Middleware ====================

# The bundled frontend loads its own scripts and calls this API; images may be remote
CONTENT_SECURITY_POLICY = "; ".join([
    "default-src 'self'",
    "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net",
    "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net",
    "img-src 'self' data: https:",
    "font-src 'self' data: https://cdn.jsdelivr.net",
])


def security_headers() -> dict[str, str]:
    """Headers stamped on every response; HSTS only when serving production traffic."""
    headers = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        "Content-Security-Policy": CONTENT_SECURITY_POLICY,
        "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
    }
    if settings.APP_ENV in ("prod", "production"):
        headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return headers


async def security_headers_middleware(request: Request, call_next):
    response = await call_next(request)
    response.headers.update(security_headers())
    return response
