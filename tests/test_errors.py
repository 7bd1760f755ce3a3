"""Error shape tests: every failure is {"error": message}."""

import pytest
from httpx import ASGITransport, AsyncClient

from tasktrack.errors import (
    AppError,
    DuplicateEmail,
    InternalError,
    InvalidCredentials,
    NotFound,
    Unauthenticated,
    ValidationError,
)


@pytest.mark.parametrize(
    "error, status",
    [
        (ValidationError, 400),
        (DuplicateEmail, 400),
        (Unauthenticated, 401),
        (InvalidCredentials, 401),
        (NotFound, 404),
        (InternalError, 500),
    ],
)
def test_error_statuses(error, status):
    exc = error("boom")
    assert isinstance(exc, AppError)
    assert exc.status_code == status
    assert exc.to_dict() == {"error": "boom"}


def test_default_messages():
    assert InvalidCredentials().message == "Invalid credentials"
    assert InternalError().message == "Internal server error"


@pytest.mark.asyncio
async def test_unknown_route(client):
    r = await client.get("/api/nope")
    assert r.status_code == 404
    assert r.json() == {"error": "Route not found"}


@pytest.mark.asyncio
async def test_method_not_allowed(client):
    r = await client.delete("/api/health")
    assert r.status_code == 405
    assert "error" in r.json()


@pytest.mark.asyncio
async def test_malformed_json_body(client):
    r = await client.post(
        "/api/auth/register",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == 400
    assert "error" in r.json()


@pytest.mark.asyncio
async def test_app_error_raised_from_route(app, client):
    @app.get("/api/teapot")
    async def teapot():
        raise NotFound("No teapot here")

    r = await client.get("/api/teapot")
    assert r.status_code == 404
    assert r.json() == {"error": "No teapot here"}


@pytest.mark.asyncio
async def test_unexpected_exception_becomes_generic_500(app):
    @app.get("/api/explode")
    async def explode():
        raise RuntimeError("database password is hunter2")

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        r = await ac.get("/api/explode")

    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error"}
    assert "hunter2" not in r.text
