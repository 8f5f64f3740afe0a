"""
Dashboard API — Poll and push endpoints for an external status viewer

Routes:
  GET /api/status       -> ServerStatus snapshot
  GET /api/connections  -> active connections
  GET /api/stats        -> request counters and tool usage
  GET /ws               -> WebSocket push: {"event": name, "data": payload}

The dashboard subscribes to the tracker; a slow or broken socket is dropped
without ever delaying a tool call.
"""

import asyncio
from typing import Any, Optional, Set

from aiohttp import WSMsgType, web

from blogger_mcp.server.logger import get_logger
from blogger_mcp.server.tracker import Tracker

log = get_logger("dashboard")


class Dashboard:
    """
    Usage:
        dashboard = Dashboard(tracker)
        await dashboard.start(port=Config.UI_PORT)
        ...
        await dashboard.stop()
    """

    def __init__(self, tracker: Tracker):
        self._tracker = tracker
        self._sockets: Set[web.WebSocketResponse] = set()
        self._runner: Optional[web.AppRunner] = None
        self._unsubscribe = tracker.subscribe(self.publish)

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/api/status", self._status)
        app.router.add_get("/api/connections", self._connections)
        app.router.add_get("/api/stats", self._stats)
        app.router.add_get("/ws", self._websocket)
        return app

    async def _status(self, request: web.Request) -> web.Response:
        return web.json_response(self._tracker.get_status())

    async def _connections(self, request: web.Request) -> web.Response:
        return web.json_response(self._tracker.get_connections())

    async def _stats(self, request: web.Request) -> web.Response:
        return web.json_response(self._tracker.get_stats())

    async def _websocket(self, request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse(heartbeat=30)
        await ws.prepare(request)
        log.info(f"Dashboard client connected: {request.remote}")

        await ws.send_json({"event": "status", "data": self._tracker.get_status()})
        await ws.send_json({"event": "connections", "data": self._tracker.get_connections()})
        await ws.send_json({"event": "stats", "data": self._tracker.get_stats()})
        self._sockets.add(ws)

        try:
            async for msg in ws:
                if msg.type == WSMsgType.ERROR:
                    log.warning(f"Dashboard socket error: {ws.exception()}")
                    break
        finally:
            self._sockets.discard(ws)
            log.info(f"Dashboard client disconnected: {request.remote}")
        return ws

    async def publish(self, event: str, payload: Any):
        """Tracker subscriber: fan the update out to every open socket."""
        if not self._sockets:
            return
        message = {"event": event, "data": payload}
        targets = list(self._sockets)
        results = await asyncio.gather(
            *(ws.send_json(message) for ws in targets),
            return_exceptions=True,
        )
        for ws, result in zip(targets, results):
            if isinstance(result, Exception):
                log.warning(f"Dropping dashboard socket: {result}")
                self._sockets.discard(ws)

    @property
    def client_count(self) -> int:
        return len(self._sockets)

    async def start(self, port: int, host: str = "0.0.0.0"):
        self._runner = web.AppRunner(self.build_app(), handle_signals=False, access_log=None)
        await self._runner.setup()
        site = web.TCPSite(self._runner, host, port)
        await site.start()
        log.info(f"Dashboard API available at http://localhost:{port}")

    async def stop(self):
        self._unsubscribe()
        for ws in list(self._sockets):
            await ws.close()
        self._sockets.clear()
        if self._runner is not None:
            runner, self._runner = self._runner, None
            await runner.cleanup()
