"""FastAPI application entry point with lifecycle management."""

import asyncio
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .routes import routers, limiter
from .db import dispose_engine, wait_for_database
from .logger import logger
from .middleware import (
    graceful_shutdown_middleware,
    add_request_id_middleware,
    request_logging_middleware,
    security_headers_middleware,
    set_shutdown_manager,
)
from .monitoring import setup_monitoring
from .schemas import ErrorCode
from .utils import describe_validation_errors

# ==================== Graceful Shutdown ====================


class GracefulShutdownManager:
    """Tracks in-flight requests so shutdown can let them finish before the pool is closed."""

    def __init__(self):
        self.is_shutting_down = False
        self.active_requests = 0
        self.shutdown_timeout = settings.GRACEFUL_SHUTDOWN_TIMEOUT

    def request_started(self):
        if not self.is_shutting_down:
            self.active_requests += 1

    def request_finished(self):
        self.active_requests -= 1

    async def initiate_shutdown(self):
        """Stop accepting requests and wait (up to the timeout) for active ones."""
        if self.is_shutting_down:
            return

        logger.info("Graceful shutdown initiated")
        self.is_shutting_down = True

        if self.active_requests == 0:
            logger.info("No active requests - proceeding with immediate shutdown")
            return

        logger.info(f"Waiting for {self.active_requests} active request(s) to complete...")
        loop = asyncio.get_running_loop()
        start_time = loop.time()
        while self.active_requests > 0:
            if loop.time() - start_time >= self.shutdown_timeout:
                logger.warning(
                    f"Shutdown timeout ({self.shutdown_timeout}s) reached with "
                    f"{self.active_requests} request(s) still active - forcing shutdown"
                )
                return
            await asyncio.sleep(0.1)
        logger.info("All active requests completed successfully")


shutdown_manager = GracefulShutdownManager()
set_shutdown_manager(shutdown_manager)

# ==================== Static Frontend ====================


class SPAStaticFiles(StaticFiles):
    """Serve built frontend assets; unknown paths get the single-page-app entry document."""

    def __init__(self, *args, index_file: str = "index.html", **kwargs):
        super().__init__(*args, **kwargs)
        self.index_file = index_file

    async def get_response(self, path: str, scope):
        try:
            return await super().get_response(path, scope)
        except StarletteHTTPException as exc:
            if exc.status_code != 404:
                raise
            return await super().get_response(self.index_file, scope)


def mount_frontend(app: FastAPI) -> None:
    """Mount the static frontend at / (must be the last route registered)."""
    if not os.path.isdir(settings.STATIC_DIR):
        logger.warning(f"Static directory '{settings.STATIC_DIR}' not found - frontend will not be served")
        return
    app.mount(
        "/",
        SPAStaticFiles(directory=settings.STATIC_DIR, html=True, index_file=settings.STATIC_INDEX),
        name="frontend",
    )
    logger.info(f"Serving frontend from {settings.STATIC_DIR}")

# ==================== Exception Handlers ====================


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed input as 400 with one entry per offending field."""
    message, errors = describe_validation_errors(exc.errors())
    logger.info(f"{request.method} {request.url.path} - rejected input: {message}")
    return JSONResponse(
        status_code=400,
        content={"detail": {"error": ErrorCode.INVALID_INPUT, "message": message, "details": {"errors": errors}}},
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """Log storage failures in full and answer with a generic message."""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.error(f"[{request_id}] Database error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": {"error": ErrorCode.INTERNAL_ERROR, "message": "Database error", "details": {}}},
    )

# ==================== Application Lifecycle ====================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - waits for the database on startup, drains requests on shutdown."""
    logger.info(f"Starting {settings.APP_NAME} in {settings.APP_ENV} mode")
    logger.info("Database schema managed by Alembic migrations")

    # Raises after the last failed attempt, which aborts startup
    await wait_for_database()

    logger.info(f"{settings.APP_NAME} started successfully - ready to accept requests")

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")
    await shutdown_manager.initiate_shutdown()
    await dispose_engine()
    logger.info(f"{settings.APP_NAME} shutdown complete")

# ==================== Application Setup ====================


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

# Middleware registration (first registered = innermost layer)
app.middleware("http")(security_headers_middleware)
app.middleware("http")(request_logging_middleware)
app.middleware("http")(add_request_id_middleware)
app.middleware("http")(graceful_shutdown_middleware)

cors_origins = settings.get_cors_origins()
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    # Browsers refuse credentialed requests against a wildcard origin
    allow_credentials="*" not in cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(SQLAlchemyError, database_exception_handler)

for router in routers:
    app.include_router(router)

setup_monitoring(app)

mount_frontend(app)


def run() -> None:
    """Console entry point: serve the app on HOST:PORT."""
    import uvicorn

    logger.info(f"Listening on http://{settings.HOST}:{settings.PORT}")
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
