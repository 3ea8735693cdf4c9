from __future__ import annotations

import asyncio
import hmac
import inspect
import json
import math
import time
from collections.abc import Callable
from functools import partial
from pathlib import Path
from typing import Any

from aiohttp import web

from .panel_page import dashboard_html
from .panel_state import PanelStateService
from .runtime_settings import SettingsValidationError

MIME_TYPES = {
    ".html": "text/html; charset=utf-8",
    ".css": "text/css; charset=utf-8",
    ".js": "application/javascript; charset=utf-8",
    ".json": "application/json; charset=utf-8",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
}

NO_STORE = {"Cache-Control": "no-store"}
UNAUTHORIZED_PAGE_TEXT = "Dashboard token required. Use ?token=YOUR_TOKEN"

# (method, path, handler attribute)
ROUTES = (
    ("GET", "/", "handle_index"),
    ("GET", "/calc", "handle_calc_static"),
    ("GET", "/calc/{tail:.*}", "handle_calc_static"),
    ("GET", "/api/state", "handle_state"),
    ("GET", "/api/settings", "handle_get_settings"),
    ("POST", "/api/settings", "handle_post_settings"),
    ("GET", "/api/calc", "handle_calc"),
    ("GET", "/api/strategy", "handle_get_strategy"),
    ("POST", "/api/strategy", "handle_post_strategy"),
    ("GET", "/api/logs", "handle_logs"),
)

Recommender = Callable[[int, int, int], Any]
PANEL_SERVER_KEY: web.AppKey[PanelServer] = web.AppKey("panel_server")


class PanelApiError(RuntimeError):
    """面板接口错误，code 会原样返回给前端。"""

    status = 500

    def __init__(self, code: str) -> None:
        super().__init__(code)
        self.code = code


class PanelAuthError(PanelApiError):
    status = 401


class PanelValidationError(PanelApiError):
    status = 400


class PanelNotFoundError(PanelApiError):
    status = 404


class PanelUpstreamError(PanelApiError):
    status = 500


def json_response(payload: Any, status: int = 200) -> web.Response:
    return web.json_response(
        payload,
        status=status,
        headers=NO_STORE,
        dumps=partial(json.dumps, ensure_ascii=False),
    )


def _query_number(request: web.Request, key: str, default: float) -> float:
    raw = str(request.query.get(key) or "").strip()
    if not raw:
        return float(default)
    try:
        value = float(raw)
    except ValueError:
        return float(default)
    return value if math.isfinite(value) else float(default)


def _read_static_file(path: Path) -> bytes | None:
    try:
        if not path.is_file():
            return None
        return path.read_bytes()
    except OSError:
        return None


@web.middleware
async def error_middleware(request: web.Request, handler: Any) -> web.StreamResponse:
    try:
        return await handler(request)
    except PanelApiError as e:
        return json_response({"error": e.code}, status=e.status)
    except (web.HTTPNotFound, web.HTTPMethodNotAllowed):
        return json_response({"error": "Not Found"}, status=404)
    except web.HTTPException:
        raise
    except Exception as e:
        server = request.app[PANEL_SERVER_KEY]
        server._log_warning(f"面板请求处理异常 {request.method} {request.path}: {e}")
        return json_response({"error": "Internal Server Error"}, status=500)


@web.middleware
async def auth_middleware(request: web.Request, handler: Any) -> web.StreamResponse:
    server = request.app[PANEL_SERVER_KEY]
    if server.is_authorized(request):
        return await handler(request)
    if request.path == "/":
        return web.Response(status=401, text=UNAUTHORIZED_PAGE_TEXT, headers=NO_STORE)
    raise PanelAuthError("Unauthorized")


class PanelServer:
    """面板 HTTP 服务：鉴权、路由分发、JSON 渲染与 FarmCalc 静态文件。"""

    def __init__(
        self,
        state: PanelStateService,
        *,
        host: str = "0.0.0.0",
        port: int = 0,
        token: str = "",
        calc_root: Path | str = "FarmCalc",
        recommender: Recommender | None = None,
        max_body_bytes: int = 65536,
        logger: Any | None = None,
    ) -> None:
        self.state = state
        self.host = str(host or "0.0.0.0").strip() or "0.0.0.0"
        self.port = max(0, int(port))
        self.token = str(token or "")
        self.calc_root = Path(calc_root)
        self.recommender = recommender
        self.max_body_bytes = max(1024, int(max_body_bytes))
        self.logger = logger

        self._runner: web.AppRunner | None = None
        self._bound_port = 0

    @property
    def bound_port(self) -> int:
        return self._bound_port

    def is_running(self) -> bool:
        return self._runner is not None

    def build_app(self) -> web.Application:
        app = web.Application(
            middlewares=[error_middleware, auth_middleware],
            client_max_size=self.max_body_bytes,
        )
        app[PANEL_SERVER_KEY] = self
        for method, path, name in ROUTES:
            app.router.add_route(method, path, getattr(self, name))
        return app

    async def start(self) -> int:
        if self._runner is not None:
            return self._bound_port
        runner = web.AppRunner(self.build_app(), access_log=None)
        await runner.setup()
        try:
            site = web.TCPSite(runner, self.host, self.port)
            await site.start()
        except Exception as e:
            await runner.cleanup()
            self._log_warning(f"面板启动失败: {e}")
            raise
        self._runner = runner
        addresses = runner.addresses
        self._bound_port = int(addresses[0][1]) if addresses else self.port
        self._log_info(f"面板已启动 http://{self.host}:{self._bound_port}")
        return self._bound_port

    async def stop(self) -> None:
        runner = self._runner
        if runner is None:
            return
        self._runner = None
        self._bound_port = 0
        await runner.cleanup()
        self._log_info("面板已停止。")

    def is_authorized(self, request: web.Request) -> bool:
        if not self.token:
            return True
        token = self._request_token(request)
        return hmac.compare_digest(token.encode("utf-8"), self.token.encode("utf-8"))

    async def handle_index(self, request: web.Request) -> web.Response:
        return web.Response(text=dashboard_html(), content_type="text/html", charset="utf-8", headers=NO_STORE)

    async def handle_calc_static(self, request: web.Request) -> web.Response:
        target = self.resolve_calc_file(request.match_info.get("tail", ""))
        if target is None:
            raise PanelNotFoundError("Not Found")
        content = await asyncio.to_thread(_read_static_file, target)
        if content is None:
            raise PanelNotFoundError("Not Found")
        content_type = MIME_TYPES.get(target.suffix.lower(), "application/octet-stream")
        return web.Response(body=content, headers={"Content-Type": content_type, **NO_STORE})

    async def handle_state(self, request: web.Request) -> web.Response:
        return json_response(self.state.get_snapshot_for_api())

    async def handle_get_settings(self, request: web.Request) -> web.Response:
        return json_response(self.state.get_runtime_settings())

    async def handle_post_settings(self, request: web.Request) -> web.Response:
        body = await self._read_json_body(request)
        try:
            settings = self.state.update_runtime_settings(body)
        except SettingsValidationError as e:
            raise PanelValidationError(e.code) from e
        self._log_info(f"巡查间隔已更新: 农场{settings['farmIntervalSec']}s / 好友{settings['friendIntervalSec']}s")
        return json_response(settings)

    async def handle_calc(self, request: web.Request) -> web.Response:
        level = int(_query_number(request, "level", self.state.status.level or 1))
        lands = int(_query_number(request, "lands", 18))
        mode = "noFert" if request.query.get("mode") == "noFert" else "normalFert"
        top = max(1, min(50, int(_query_number(request, "top", 10))))
        if self.recommender is None:
            raise PanelUpstreamError("calc_unavailable")
        try:
            result = self.recommender(level, lands, top)
            if inspect.isawaitable(result):
                result = await result
            suffix = "NoFert" if mode == "noFert" else "NormalFert"
            candidates = list(result.get(f"candidates{suffix}") or [])
            payload = {
                "level": result.get("level", level),
                "lands": result.get("lands", lands),
                "mode": mode,
                "best": result.get(f"best{suffix}"),
                "candidates": candidates[:top],
                "generatedAt": int(time.time() * 1000),
            }
        except Exception as e:
            raise PanelUpstreamError(str(e) or "calc_failed") from e
        return json_response(payload)

    async def handle_get_strategy(self, request: web.Request) -> web.Response:
        return json_response(self.state.get_strategy_config())

    async def handle_post_strategy(self, request: web.Request) -> web.Response:
        body = await self._read_json_body(request)
        return json_response(self.state.update_strategy_config(body))

    async def handle_logs(self, request: web.Request) -> web.Response:
        logs = self.state.get_logs_since(request.query.get("since", 0))
        return json_response({"logs": logs, "lastLogId": self.state.last_log_id})

    def resolve_calc_file(self, tail: str) -> Path | None:
        rel = str(tail or "").replace("\\", "/").lstrip("/")
        if not rel:
            rel = "index.html"
        if "\x00" in rel:
            return None
        root = self.calc_root.resolve()
        try:
            target = (root / rel).resolve()
        except (OSError, ValueError):
            return None
        if target != root and not target.is_relative_to(root):
            return None
        return target

    async def _read_json_body(self, request: web.Request) -> dict[str, Any]:
        if request.content_length is not None and request.content_length > self.max_body_bytes:
            raise PanelValidationError("body_too_large")
        try:
            raw = await request.read()
        except web.HTTPRequestEntityTooLarge:
            raise PanelValidationError("body_too_large") from None
        if not raw:
            return {}
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            raise PanelValidationError("invalid_json") from None
        return data if isinstance(data, dict) else {}

    def _request_token(self, request: web.Request) -> str:
        from_query = str(request.query.get("token") or "")
        if from_query:
            return from_query
        auth = str(request.headers.get("Authorization") or "")
        if auth.startswith("Bearer "):
            return auth[7:].strip()
        return ""

    def _log_info(self, message: str) -> None:
        text = f"[qfarm-panel] {message}"
        if self.logger and hasattr(self.logger, "info"):
            self.logger.info(text)
        else:
            print(text)

    def _log_warning(self, message: str) -> None:
        text = f"[qfarm-panel] {message}"
        if self.logger and hasattr(self.logger, "warning"):
            self.logger.warning(text)
        elif self.logger and hasattr(self.logger, "warn"):
            self.logger.warn(text)
        else:
            print(text)
