from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path

import pytest
from aiohttp import test_utils

from astrbot_plugin_qfarm_panel.services.panel_server import PanelServer
from astrbot_plugin_qfarm_panel.services.panel_state import PanelStateService


class _StubRecommender:
    def __init__(self) -> None:
        self.calls: list[tuple[int, int, int]] = []

    def __call__(self, level: int, lands: int, top: int) -> dict[str, object]:
        self.calls.append((level, lands, top))
        normal = [{"seedId": 20003, "expPerHour": 360}, {"seedId": 20001, "expPerHour": 120}]
        no_fert = [{"seedId": 20001, "expPerHour": 60}]
        return {
            "level": level,
            "lands": lands,
            "candidatesNormalFert": normal,
            "candidatesNoFert": no_fert,
            "bestNormalFert": normal[0],
            "bestNoFert": no_fert[0],
        }


@asynccontextmanager
async def _client(server: PanelServer):
    client = test_utils.TestClient(test_utils.TestServer(server.build_app()))
    await client.start_server()
    try:
        yield client
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_calc_defaults_follow_status_level():
    state = PanelStateService()
    state.update_status({"name": "A", "level": 7})
    stub = _StubRecommender()
    server = PanelServer(state, recommender=stub)

    async with _client(server) as client:
        resp = await client.get("/api/calc")
        body = await resp.json()

    assert resp.status == 200
    assert stub.calls == [(7, 18, 10)]
    assert body["mode"] == "normalFert"
    assert body["best"] == {"seedId": 20003, "expPerHour": 360}
    assert len(body["candidates"]) == 2
    assert isinstance(body["generatedAt"], int)


@pytest.mark.asyncio
async def test_calc_mode_and_top_clamp():
    stub = _StubRecommender()
    server = PanelServer(PanelStateService(), recommender=stub)

    async with _client(server) as client:
        resp = await client.get("/api/calc", params={"level": "12", "lands": "24", "mode": "noFert", "top": "999"})
        body = await resp.json()
        assert body["mode"] == "noFert"
        assert body["best"] == {"seedId": 20001, "expPerHour": 60}

        await client.get("/api/calc", params={"top": "0", "mode": "NOFERT"})

    assert stub.calls == [(12, 24, 50), (1, 18, 1)]


@pytest.mark.asyncio
async def test_calc_failure_reports_message():
    def broken(level: int, lands: int, top: int):
        raise ValueError("等级必须大于 0")

    server = PanelServer(PanelStateService(), recommender=broken)

    async with _client(server) as client:
        resp = await client.get("/api/calc", params={"level": "-3"})
        assert resp.status == 500
        assert await resp.json() == {"error": "等级必须大于 0"}


@pytest.mark.asyncio
async def test_calc_accepts_async_recommender_and_reports_missing_one():
    stub = _StubRecommender()

    async def recommend(level: int, lands: int, top: int):
        return stub(level, lands, top)

    async with _client(PanelServer(PanelStateService(), recommender=recommend)) as client:
        resp = await client.get("/api/calc", params={"level": "3"})
        assert (await resp.json())["level"] == 3

    async with _client(PanelServer(PanelStateService())) as client:
        resp = await client.get("/api/calc")
        assert resp.status == 500
        assert await resp.json() == {"error": "calc_unavailable"}


@pytest.mark.asyncio
async def test_calc_static_files(tmp_path: Path):
    (tmp_path / "index.html").write_text("<h1>calc</h1>", encoding="utf-8")
    (tmp_path / "app.js").write_text("console.log(1)", encoding="utf-8")
    server = PanelServer(PanelStateService(), calc_root=tmp_path)

    async with _client(server) as client:
        for path in ("/calc", "/calc/"):
            resp = await client.get(path)
            assert resp.status == 200
            assert resp.headers["Content-Type"] == "text/html; charset=utf-8"
            assert await resp.text() == "<h1>calc</h1>"

        resp = await client.get("/calc/app.js")
        assert resp.headers["Content-Type"] == "application/javascript; charset=utf-8"

        resp = await client.get("/calc/missing.css")
        assert resp.status == 404
        assert await resp.json() == {"error": "Not Found"}


def test_resolve_calc_file_rejects_escaping_paths(tmp_path: Path):
    root = tmp_path / "FarmCalc"
    root.mkdir()
    server = PanelServer(PanelStateService(), calc_root=root)

    assert server.resolve_calc_file("") == (root / "index.html").resolve()
    assert server.resolve_calc_file("css/site.css") == (root / "css" / "site.css").resolve()
    assert server.resolve_calc_file("../secret.txt") is None
    assert server.resolve_calc_file("..\\..\\etc\\passwd") is None


@pytest.mark.asyncio
async def test_calc_static_rejects_escaping_and_malformed_paths(tmp_path: Path):
    root = tmp_path / "FarmCalc"
    root.mkdir()
    (root / "index.html").write_text("<h1>calc</h1>", encoding="utf-8")
    (tmp_path / "secret.txt").write_text("top secret", encoding="utf-8")
    server = PanelServer(PanelStateService(), calc_root=root)

    async with _client(server) as client:
        for path in ("/calc/..%2Fsecret.txt", "/calc/a%00b"):
            resp = await client.get(path)
            assert resp.status == 404
            assert await resp.json() == {"error": "Not Found"}


def test_resolve_calc_file_rejects_nul_byte(tmp_path: Path):
    server = PanelServer(PanelStateService(), calc_root=tmp_path)

    assert server.resolve_calc_file("a\x00b") is None
