"""Database connection pooling, session management, and resilience utilities."""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.exc import OperationalError, DBAPIError
from sqlalchemy import event, text
import asyncio
from .config import settings
from .logger import logger

# ==================== Connection Pool Setup ====================


def _engine_options() -> dict:
    """Pool and driver options for the configured backend.

    asyncpg gets the bounded pool and timeouts; aiosqlite (tests, local runs)
    keeps SQLAlchemy's defaults.
    """
    if settings.is_sqlite:
        return {}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_recycle": settings.DB_POOL_RECYCLE,
        "pool_pre_ping": True,  # Verify connections before use
        "connect_args": {
            "timeout": settings.DB_CONNECT_TIMEOUT,
            "command_timeout": settings.DB_QUERY_TIMEOUT,
        },
    }


def enable_sqlite_foreign_keys(sync_engine) -> None:
    """SQLite ignores FOREIGN KEY clauses unless the pragma is set per connection."""

    @event.listens_for(sync_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(settings.DB_URL, echo=False, **_engine_options())

if settings.is_sqlite:
    enable_sqlite_foreign_keys(engine.sync_engine)
else:
    logger.info(
        f"Database engine configured: pool_size={settings.DB_POOL_SIZE}, "
        f"max_overflow={settings.DB_MAX_OVERFLOW}, timeout={settings.DB_POOL_TIMEOUT}s"
    )

# Session factory for creating database sessions
async_session = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

# Base class for ORM models
Base = declarative_base()

# ==================== Database Resilience ====================


async def retry_on_db_error(func, max_retries: int = 3, base_delay: float = 0.5):
    """Retry database operations with exponential backoff.

    Only connection-class failures are retried; constraint violations and
    other errors are raised on the first attempt.
    """
    last_exception = None

    for attempt in range(max_retries):
        try:
            return await func()
        except (OperationalError, DBAPIError) as e:
            last_exception = e

            error_msg = str(e).lower()
            is_retryable = any([
                "connection" in error_msg,
                "timeout" in error_msg,
                "database is locked" in error_msg,
                "server closed the connection" in error_msg,
            ])

            if not is_retryable or attempt == max_retries - 1:
                logger.error(
                    f"Database operation failed (attempt {attempt + 1}/{max_retries}): {str(e)}",
                    exc_info=True
                )
                raise

            delay = base_delay * (2 ** attempt)
            logger.warning(
                f"Database error on attempt {attempt + 1}/{max_retries}, "
                f"retrying in {delay}s: {str(e)}"
            )
            await asyncio.sleep(delay)

    raise last_exception


async def _ping() -> None:
    async with async_session() as session:
        await session.execute(text("SELECT 1"))


async def wait_for_database(
    max_attempts: int = settings.DB_STARTUP_MAX_ATTEMPTS,
    delay: float = settings.DB_STARTUP_RETRY_DELAY,
) -> None:
    """Block startup until the database answers, with a fixed delay between attempts.

    Raises:
        RuntimeError: no attempt succeeded; the process should not start.
    """
    for attempt in range(1, max_attempts + 1):
        try:
            await _ping()
            logger.info(f"Database reachable (attempt {attempt}/{max_attempts})")
            return
        except (OSError, OperationalError, DBAPIError) as e:
            logger.warning(f"Database not reachable (attempt {attempt}/{max_attempts}): {e}")
            if attempt < max_attempts:
                await asyncio.sleep(delay)

    logger.critical(f"Giving up on database after {max_attempts} attempts")
    raise RuntimeError(f"Could not connect to the database after {max_attempts} attempts")


async def check_db_connection() -> bool:
    """Check if database connection is healthy."""
    try:
        await retry_on_db_error(_ping, max_retries=2, base_delay=0.1)
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {str(e)}")
        return False

# ==================== Cleanup ====================

async def dispose_engine():
    """Close all pooled connections during application shutdown."""
    logger.info("Disposing database engine and closing connections")
    try:
        await engine.dispose()
        logger.info("Database connections closed successfully")
    except Exception as e:
        logger.error(f"Error disposing database engine: {str(e)}", exc_info=True)
