"""Integration test fixtures: the ASGI app over an in-memory store."""

from collections.abc import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from agency_erp.api.app import create_app


@pytest_asyncio.fixture
async def client(store, notifier) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to an app using the test store and notifier."""
    app = create_app(store=store, notifier=notifier)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def as_user(ctx) -> dict[str, str]:
    return {"X-User-ID": str(ctx.user_id)}
