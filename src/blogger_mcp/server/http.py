"""
HTTP Transport — One JSON tool call per POST (aiohttp)

Wire protocol:
  POST /     {"tool": "<name>", "params": {...}}
             200 -> tool payload (JSON-in-text unwrapped one level)
             4xx -> {"error": "<message>"}
  OPTIONS /  CORS preflight, no body

Transport-level failures (oversized body, bad JSON, client disconnect)
are answered here and never reach the dispatcher or the tracker.
"""

import asyncio
import json
import signal
from typing import Any, Dict, Optional, Tuple

from aiohttp import ClientPayloadError, web

from blogger_mcp.config import Config
from blogger_mcp.server.dispatcher import Dispatcher
from blogger_mcp.server.logger import get_logger
from blogger_mcp.server.protocol import unwrap_text_json

log = get_logger("http")

CHUNK_SIZE = 64 * 1024

CORS_ORIGIN = {"Access-Control-Allow-Origin": "*"}
CORS_PREFLIGHT = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


class BodyTooLarge(Exception):
    """Request body exceeded the configured ceiling."""


class MalformedRequest(ValueError):
    """Request body is not a {"tool": str, "params": object} JSON document."""


def parse_tool_request(body: bytes) -> Tuple[str, Any]:
    """Decode a POST body into (tool, params)."""
    try:
        request = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedRequest(str(exc)) from exc

    if not isinstance(request, dict):
        raise MalformedRequest("request body must be a JSON object")

    tool = request.get("tool")
    if not isinstance(tool, str):
        raise MalformedRequest("'tool' must be a string")

    return tool, request.get("params")


def _json_response(payload: Any, status: int = 200, headers: Optional[Dict[str, str]] = None) -> web.Response:
    return web.Response(
        text=json.dumps(payload, default=str),
        status=status,
        content_type="application/json",
        headers=headers,
    )


def _error(message: str, status: int) -> web.Response:
    return _json_response({"error": message}, status=status)


def _peer(request: web.Request) -> Tuple[str, Optional[str]]:
    """(connection id, source address) for the remote peer."""
    peername = request.transport.get_extra_info("peername") if request.transport else None
    if isinstance(peername, (tuple, list)) and len(peername) >= 2:
        host, port = peername[0], peername[1]
        return (str(port) if port else "client"), (str(host) if host else None)
    return "client", request.remote


class HttpServer:
    """
    HTTP transport adapter.

    Usage:
        server = HttpServer(dispatcher, host="0.0.0.0", port=3000)
        await server.serve_forever()
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        host: str = Config.HTTP_HOST,
        port: int = Config.HTTP_PORT,
        max_body_bytes: int = Config.MAX_BODY_BYTES,
        shutdown_grace: float = Config.SHUTDOWN_GRACE,
    ):
        self._dispatcher = dispatcher
        self._tracker = dispatcher.tracker
        self.host = host
        self.port = port
        self.max_body_bytes = max_body_bytes
        self.shutdown_grace = shutdown_grace
        self._runner: Optional[web.AppRunner] = None
        self._stop_event: Optional[asyncio.Event] = None

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", self.handle)
        return app

    # -- request handling --

    async def handle(self, request: web.Request) -> web.StreamResponse:
        if request.method == "OPTIONS":
            return web.Response(status=200, headers=CORS_PREFLIGHT)

        if request.method != "POST":
            return _error("Method not allowed", 405)

        try:
            body = await self._read_body(request)
        except BodyTooLarge:
            log.warning(f"Rejected body over {self.max_body_bytes} bytes from {request.remote}")
            resp = _error("Request entity too large", 413)
            resp.force_close()
            return resp
        except (ConnectionResetError, ClientPayloadError) as exc:
            log.info(f"Client went away mid-body: {exc}")
            resp = _error("Connection closed before the request body was received", 400)
            resp.force_close()
            return resp

        try:
            tool, params = parse_tool_request(body)
        except MalformedRequest as exc:
            return _error(f"Parsing error: {exc}", 400)

        client_id, address = _peer(request)
        await self._tracker.touch_connection(client_id, address)

        result = await self._dispatcher.dispatch(tool, params)

        if not result.ok:
            return _error(f"Error executing tool: {result.error_message}", 400)

        return _json_response(unwrap_text_json(result.payload), headers=CORS_ORIGIN)

    async def _read_body(self, request: web.Request) -> bytes:
        """Stream the body, aborting as soon as it exceeds the ceiling."""
        declared = request.content_length
        if declared is not None and declared > self.max_body_bytes:
            raise BodyTooLarge()

        chunks = []
        size = 0
        async for chunk in request.content.iter_chunked(CHUNK_SIZE):
            size += len(chunk)
            if size > self.max_body_bytes:
                raise BodyTooLarge()
            chunks.append(chunk)
        return b"".join(chunks)

    # -- lifecycle --

    async def start(self):
        self._runner = web.AppRunner(
            self.build_app(),
            handle_signals=False,
            shutdown_timeout=self.shutdown_grace,
            access_log=None,
        )
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        await self._tracker.mark_running("http")
        log.info(f"HTTP transport listening on {self.host}:{self.port}")

    async def stop(self):
        """Mark stopped, then close the listener with a bounded grace period."""
        if self._runner is None:
            return
        await self._tracker.mark_stopped()
        runner, self._runner = self._runner, None
        await runner.cleanup()
        await self._tracker.drain()
        log.info("HTTP transport stopped")

    async def serve_forever(self):
        """Run until SIGINT/SIGTERM."""
        self._stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        installed = []
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self._stop_event.set)
                installed.append(sig)
            except (NotImplementedError, RuntimeError, ValueError):
                pass

        await self.start()
        try:
            await self._stop_event.wait()
            log.info("Shutdown signal received")
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)
            await self.stop()

    def request_stop(self):
        if self._stop_event is not None:
            self._stop_event.set()
