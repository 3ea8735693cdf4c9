from __future__ import annotations

from contextlib import asynccontextmanager

import pytest
from aiohttp import test_utils

from astrbot_plugin_qfarm_panel.services.panel_server import UNAUTHORIZED_PAGE_TEXT, PanelServer
from astrbot_plugin_qfarm_panel.services.panel_state import PanelStateService


@asynccontextmanager
async def _client(token: str):
    server = PanelServer(PanelStateService(), token=token)
    client = test_utils.TestClient(test_utils.TestServer(server.build_app()))
    await client.start_server()
    try:
        yield client
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_api_requires_token():
    async with _client("s3cret") as client:
        resp = await client.get("/api/state")
        assert resp.status == 401
        assert await resp.json() == {"error": "Unauthorized"}

        resp = await client.get("/api/state", params={"token": "wrong"})
        assert resp.status == 401


@pytest.mark.asyncio
async def test_root_without_token_returns_plain_text_hint():
    async with _client("s3cret") as client:
        resp = await client.get("/")
        assert resp.status == 401
        assert await resp.text() == UNAUTHORIZED_PAGE_TEXT


@pytest.mark.asyncio
async def test_query_token_and_bearer_header_are_accepted():
    async with _client("s3cret") as client:
        resp = await client.get("/api/state", params={"token": "s3cret"})
        assert resp.status == 200

        resp = await client.get("/api/state", headers={"Authorization": "Bearer s3cret"})
        assert resp.status == 200

        resp = await client.get("/api/state", headers={"Authorization": "Basic s3cret"})
        assert resp.status == 401


@pytest.mark.asyncio
async def test_query_token_takes_precedence_over_header():
    async with _client("s3cret") as client:
        resp = await client.get(
            "/api/state",
            params={"token": "wrong"},
            headers={"Authorization": "Bearer s3cret"},
        )
        assert resp.status == 401


@pytest.mark.asyncio
async def test_empty_token_disables_auth():
    async with _client("") as client:
        resp = await client.get("/api/logs")
        assert resp.status == 200
