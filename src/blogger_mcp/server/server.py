"""
Stdio MCP Server — Main loop for the single stdio session

Ties together:
  Transport -> Protocol -> Router -> Dispatcher -> Tracker

Flow:
  1. Transport reads one line from stdin
  2. Protocol validates JSON-RPC 2.0
  3. Router maps the method onto the registry / dispatcher
  4. Dispatcher updates the tracker
  5. Transport writes the response to stdout

Requests are handled strictly one at a time: the next line is not read
until the current response has been written.
"""

import asyncio
import signal
from typing import Optional

from blogger_mcp.config import Config
from blogger_mcp.server.dispatcher import Dispatcher
from blogger_mcp.server.logger import get_logger
from blogger_mcp.server.protocol import (
    validate_message,
    make_response,
    make_error,
    ProtocolError,
    PARSE_ERROR,
    INTERNAL_ERROR,
)
from blogger_mcp.server.router import Router
from blogger_mcp.server.transport import MalformedMessage, RawStdioTransport

log = get_logger("server")


class StdioServer:
    """
    Stdio transport adapter.

    Usage:
        server = StdioServer(dispatcher)
        await server.run()
    """

    def __init__(self, dispatcher: Dispatcher, transport: Optional[RawStdioTransport] = None):
        self._dispatcher = dispatcher
        self._tracker = dispatcher.tracker
        self._transport = transport or RawStdioTransport()
        self._router = Router(dispatcher)
        self._running = False
        self._stopped = False

    @property
    def router(self) -> Router:
        return self._router

    # -- main loop --

    async def run(self):
        """Start the server and process messages until EOF or signal."""
        log.info(f"Starting {Config.SERVER_NAME} v{Config.SERVER_VERSION} (stdio)")

        await self._transport.start()

        loop = asyncio.get_running_loop()
        main_task = asyncio.current_task()
        installed = []
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, main_task.cancel)
                installed.append(sig)
            except (NotImplementedError, RuntimeError, ValueError):
                pass

        self._running = True
        await self._tracker.mark_running("stdio")
        log.info(f"Server ready — tools={self._router.tool_count}")

        try:
            while self._running:
                try:
                    msg = await self._transport.read_message()
                except MalformedMessage as exc:
                    await self._transport.write_message(make_error(None, PARSE_ERROR, exc.reason))
                    continue

                if msg is None:
                    log.info("EOF on stdin — shutting down")
                    break

                await self.handle_message(msg)

        except asyncio.CancelledError:
            log.info("Server cancelled")
        except Exception as exc:
            log.error(f"Server error: {exc}", exc_info=True)
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)
            await self.shutdown()

    async def handle_message(self, msg):
        """Process a single JSON-RPC message through the full pipeline."""
        request_id = msg.get("id") if isinstance(msg, dict) else None

        try:
            msg_type = validate_message(msg)
            if msg_type in ("response", "error"):
                log.debug(f"Ignoring client {msg_type} id={request_id}")
                return

            result = await self._router.route(msg_type, msg)

            if result is None or msg_type == "notification":
                return

            response = make_response(request_id, result)
            await self._transport.write_message(response)

        except ProtocolError as exc:
            log.warning(f"Protocol error: {exc.message} (code={exc.code})")
            if request_id is not None:
                error_resp = make_error(request_id, exc.code, exc.message, exc.data)
                await self._transport.write_message(error_resp)

        except Exception as exc:
            log.error(f"Unhandled error: {exc}", exc_info=True)
            if request_id is not None:
                error_resp = make_error(request_id, INTERNAL_ERROR, str(exc))
                await self._transport.write_message(error_resp)

    async def shutdown(self):
        """Graceful shutdown — publish stopped status, then close the transport."""
        if self._stopped:
            return
        self._stopped = True
        self._running = False

        stats = self._tracker.get_stats()
        log.info(
            f"Shutting down — requests={stats['totalRequests']} "
            f"failed={stats['failedRequests']}"
        )

        await self._tracker.mark_stopped()
        await self._transport.close()
        await self._tracker.drain()

        log.info("Server stopped")
