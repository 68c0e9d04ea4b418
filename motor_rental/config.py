"""Configuration management and validation using Pydantic."""

import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AliasChoices, Field, field_validator


class Settings(BaseSettings):
    """Application configuration settings loaded from environment variables or .env files."""

    @staticmethod
    def get_env_file() -> str | None:
        """Determine which .env file to load based on environment variables.

        Returns:
            None if SKIP_ENV_FILE is set (Docker/direct env vars)
            .env.{APP_ENV} file path otherwise (defaults to .env.dev)
        """
        if os.getenv("SKIP_ENV_FILE"):
            return None
        env = os.getenv("APP_ENV", "dev")
        env_file = f".env.{env}"
        if not os.path.exists(env_file):
            raise FileNotFoundError(
                f"Environment file '{env_file}' not found. "
                f"Create it, set APP_ENV, or set SKIP_ENV_FILE to read the process environment only."
            )
        return env_file

    model_config = SettingsConfigDict(
        env_file=get_env_file.__func__(),
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # ==================== Application Settings ====================
    APP_NAME: str = "Motor Rental API"
    APP_ENV: str = "dev"
    DB_URL: str = Field(validation_alias=AliasChoices("DB_URL", "DATABASE_URL"))

    # ==================== Listen Address ====================
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    # ==================== Database Connection Pooling ====================
    DB_POOL_SIZE: int = 10  # Maximum pooled connections
    DB_MAX_OVERFLOW: int = 0  # Hard cap: no connections beyond the pool
    DB_POOL_TIMEOUT: int = 30  # Seconds to wait for a free connection
    DB_POOL_RECYCLE: int = 600  # Recycle idle connections after 10 minutes
    DB_CONNECT_TIMEOUT: int = 10
    DB_QUERY_TIMEOUT: int = 60

    # ==================== Startup Connection Loop ====================
    DB_STARTUP_MAX_ATTEMPTS: int = 5
    DB_STARTUP_RETRY_DELAY: float = 2.0  # Fixed delay between attempts (seconds)

    # ==================== CORS Settings ====================
    CORS_ORIGINS: str = "*"  # Comma-separated allowed origins

    # ==================== Pagination ====================
    DEFAULT_PAGE: int = 1
    DEFAULT_LIMIT: int = 10
    MAX_LIMIT: int = 100

    # ==================== Field Validation ====================
    USER_NAME_MAX_LENGTH: int = 100
    USER_USERNAME_MAX_LENGTH: int = 50
    USER_EMAIL_MAX_LENGTH: int = 255
    USER_PHONE_MAX_LENGTH: int = 30
    PASSWORD_MIN_LENGTH: int = 8
    PASSWORD_MAX_LENGTH: int = 72  # bcrypt only looks at the first 72 bytes

    # ==================== Token Authentication ====================
    JWT_SECRET_KEY: str  # Required, defined in .env files
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_MINUTES: int = 60 * 24

    # ==================== Roles ====================
    ADMIN_USERNAMES: str = ""  # Comma-separated usernames granted the admin role at registration

    # ==================== Profiles ====================
    PROFILE_ANONYMOUS_CREATE: bool = False
    PROFILE_DEFAULT_PASSWORD: str = "password123"
    PROFILE_LIST_LIMIT: int = 50

    # ==================== Bookings ====================
    BOOKING_REFERENCE_PREFIX: str = "BWK"
    BOOKING_DEFAULT_PRICE: str = "Rp 50.000/hari"
    BOOKING_DEFAULT_STATUS: str = "pending"

    # ==================== Static Frontend ====================
    STATIC_DIR: str = "../fe/dist"
    STATIC_INDEX: str = "index.html"

    # ==================== Rate Limiting ====================
    RATE_LIMIT_AUTH: str = "10/minute"
    RATE_LIMIT_WRITE: str = "60/minute"

    # ==================== Graceful Shutdown ====================
    GRACEFUL_SHUTDOWN_TIMEOUT: int = 30  # Max wait time for active requests (seconds)

    # ==================== Logging ====================
    LOG_LEVEL: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    LOG_FILE: str | None = "app.log"  # Empty to disable file logging
    LOG_FORMAT: str = "console"  # "console" for dev, "json" for production

    @field_validator('DB_URL')
    @classmethod
    def validate_db_url(cls, v: str) -> str:
        """Validate the connection string and pin PostgreSQL URLs to the asyncpg driver."""
        if not v:
            raise ValueError("DB_URL is required but not provided in environment variables")
        for prefix in ("postgres://", "postgresql://"):
            if v.startswith(prefix):
                return "postgresql+asyncpg://" + v[len(prefix):]
        if not v.startswith(("postgresql+asyncpg://", "sqlite+aiosqlite://")):
            raise ValueError("DB_URL must be a PostgreSQL (or sqlite+aiosqlite) connection string")
        return v

    @field_validator('JWT_SECRET_KEY')
    @classmethod
    def validate_jwt_secret(cls, v: str) -> str:
        """Validate that JWT_SECRET_KEY is provided and sufficiently long."""
        if not v:
            raise ValueError("JWT_SECRET_KEY is required but not provided in environment variables")
        if len(v) < 32:
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters long for security")
        return v

    def get_cors_origins(self) -> list[str]:
        """Parse CORS_ORIGINS into a list of allowed origins."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    def get_admin_usernames(self) -> set[str]:
        """Parse ADMIN_USERNAMES into a set of lower-cased usernames."""
        return {name.strip().lower() for name in self.ADMIN_USERNAMES.split(",") if name.strip()}

    @property
    def is_sqlite(self) -> bool:
        return self.DB_URL.startswith("sqlite")

settings = Settings()
