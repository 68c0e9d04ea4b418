"""
Pytest configuration and shared fixtures for testing.
Sets up a throwaway SQLite database, a static frontend directory and the test client.
"""

import os
import tempfile

# Set TEST_MODE before any app imports to disable rate limiting
os.environ["TEST_MODE"] = "1"

# Enable metrics endpoint for testing
os.environ["ENABLE_METRICS"] = "true"

# Read configuration from the process environment only
os.environ["SKIP_ENV_FILE"] = "1"
os.environ.setdefault("APP_ENV", "test")

# Tests run against a SQLite file through aiosqlite; no database server needed
_tmp_dir = tempfile.mkdtemp(prefix="motor_rental_test_")
TEST_DB_URL = f"sqlite+aiosqlite:///{os.path.join(_tmp_dir, 'test.db')}"
os.environ["DB_URL"] = TEST_DB_URL

os.environ["JWT_SECRET_KEY"] = "test-secret-key-that-is-at-least-32-characters-long"
os.environ["ADMIN_USERNAMES"] = "admin"
os.environ["LOG_FILE"] = ""

# Minimal built frontend for the static fallback
STATIC_DIR = os.path.join(_tmp_dir, "dist")
os.makedirs(os.path.join(STATIC_DIR, "assets"), exist_ok=True)
with open(os.path.join(STATIC_DIR, "index.html"), "w", encoding="utf-8") as f:
    f.write("<!doctype html><html><body><div id=\"app\">motor rental</div></body></html>")
with open(os.path.join(STATIC_DIR, "assets", "app.js"), "w", encoding="utf-8") as f:
    f.write("console.log('motor rental');")
os.environ["STATIC_DIR"] = STATIC_DIR

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from motor_rental.main import app
from motor_rental.db import Base, enable_sqlite_foreign_keys
from motor_rental import db as app_db


@pytest_asyncio.fixture(scope="function")
async def test_db_engine():
    """Create a test database engine and fresh tables for one test."""
    # NullPool so every session gets its own connection (and the FK pragma)
    engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=NullPool)
    enable_sqlite_foreign_keys(engine.sync_engine)

    test_session_maker = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    # Store original session maker and override it BEFORE creating tables
    original_session = app_db.async_session
    app_db.async_session = test_session_maker

    # Tests create tables directly; deployments use the Alembic migration
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    app_db.async_session = original_session

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(test_db_engine):
    """Create a test HTTP client bound to the test database."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        timeout=30.0
    ) as ac:
        yield ac


@pytest.fixture
def sample_user():
    """Registration payload for a regular user."""
    return {
        "full_name": "Budi Santoso",
        "username": "budi",
        "email": "budi@example.com",
        "phone": "081234567890",
        "password": "password123",
    }


@pytest.fixture
def sample_motor():
    """Motor payload as submitted by the catalogue admin page."""
    return {
        "motor_slug": "vario-125",
        "motor_name": "Honda Vario 125",
        "motor_type": "matic",
        "price_per_day": 75000,
        "description": "Irit dan nyaman untuk dalam kota",
        "image_url": "https://example.com/vario.jpg",
        "branch": "Jakarta Selatan",
    }


@pytest.fixture
def sample_booking():
    """Booking form payload (camelCase wire names)."""
    return {
        "tanggalPeminjaman": "2025-03-10",
        "jamPeminjaman": "09:30",
        "alamatPengantaran": "Jl. Sudirman No. 1",
        "tanggalPengembalian": "2025-03-12",
        "jamPengembalian": "17:00",
        "alamatPengembalian": "Jl. Thamrin No. 2",
        "pilihCabang": "Jakarta Selatan",
        "pilihMotor": "Honda Vario 125",
    }


@pytest.fixture
def make_user(client):
    """Register an account, log in, and return (user json, auth headers)."""

    async def _make_user(username: str = "budi", **overrides):
        payload = {
            "full_name": overrides.pop("full_name", f"{username.title()} Tester"),
            "username": username,
            "email": overrides.pop("email", f"{username}@example.com"),
            "phone": overrides.pop("phone", "081234567890"),
            "password": overrides.pop("password", "password123"),
        }
        response = await client.post("/api/register", json=payload)
        assert response.status_code == 201, response.text
        login = await client.post(
            "/api/login",
            json={"username": payload["username"], "password": payload["password"]},
        )
        assert login.status_code == 200, login.text
        headers = {"Authorization": f"Bearer {login.json()['token']}"}
        return response.json(), headers

    return _make_user
