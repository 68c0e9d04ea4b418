"""
Tests for serving the built frontend with single-page-app fallback.
"""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from motor_rental import main
from motor_rental.main import SPAStaticFiles


@pytest.mark.asyncio
async def test_root_serves_index(client: AsyncClient):
    response = await client.get("/")

    assert response.status_code == 200
    assert "motor rental" in response.text
    assert response.headers["content-type"].startswith("text/html")


@pytest.mark.asyncio
async def test_asset_served(client: AsyncClient):
    response = await client.get("/assets/app.js")

    assert response.status_code == 200
    assert "console.log" in response.text


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/booking", "/profil/edit", "/assets/missing.js"])
async def test_unknown_path_falls_back_to_index(client: AsyncClient, path):
    response = await client.get(path)

    assert response.status_code == 200
    assert '<div id="app">' in response.text


@pytest.mark.asyncio
async def test_api_routes_take_precedence(client: AsyncClient):
    response = await client.get("/api/motors")

    assert response.headers["content-type"].startswith("application/json")


@pytest.mark.asyncio
async def test_fallback_only_for_reads(client: AsyncClient):
    response = await client.post("/booking", json={})

    assert response.status_code == 405


@pytest.mark.asyncio
async def test_spa_static_files_custom_index(tmp_path):
    (tmp_path / "app.html").write_text("<p>entry</p>", encoding="utf-8")
    app = FastAPI()
    app.mount("/", SPAStaticFiles(directory=str(tmp_path), html=True, index_file="app.html"))

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get("/anything/here")

    assert response.status_code == 200
    assert response.text == "<p>entry</p>"


def test_mount_skipped_when_directory_missing(tmp_path, monkeypatch):
    monkeypatch.setattr(main.settings, "STATIC_DIR", str(tmp_path / "nope"))
    app = FastAPI()

    main.mount_frontend(app)

    assert all(getattr(route, "name", None) != "frontend" for route in app.routes)
