"""
Method Router — Dispatch MCP methods to the tool registry

Routes:
  initialize       -> server capabilities handshake
  initialized      -> notification (no response)
  tools/list       -> registered tool definitions
  tools/call       -> Dispatcher.dispatch
  ping             -> pong
"""

from typing import Any, Dict, Optional

from blogger_mcp.config import Config
from blogger_mcp.server.dispatcher import (
    INVALID_PARAMETERS,
    UNKNOWN_OPERATION,
    Dispatcher,
)
from blogger_mcp.server.logger import get_logger
from blogger_mcp.server.protocol import (
    initialize_result,
    tools_list_result,
    tool_result_content,
    text_content,
    ProtocolError,
    METHOD_NOT_FOUND,
    INVALID_PARAMS,
)

log = get_logger("router")

STDIO_CONNECTION_ID = "stdio"


class Router:
    """MCP method dispatcher for the stdio session."""

    def __init__(self, dispatcher: Dispatcher):
        self._dispatcher = dispatcher
        self._initialized = False
        self._client_name: Optional[str] = None

    async def route(self, msg_type: str, msg: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Route a validated message to the appropriate handler.
        Returns the result payload or None for notifications.
        """
        method = msg.get("method", "")
        params = msg.get("params") or {}

        if method == "initialize":
            return self._handle_initialize(params)

        if method in ("initialized", "notifications/initialized"):
            self._initialized = True
            return None

        if method == "notifications/cancelled":
            return None

        if method == "ping":
            return {}

        if method == "tools/list":
            return tools_list_result(self._dispatcher.registry.catalog())

        if method == "tools/call":
            return await self._handle_tools_call(params)

        if msg_type == "notification":
            log.debug(f"Ignoring notification: {method}")
            return None

        raise ProtocolError(METHOD_NOT_FOUND, f"Unknown method: {method}")

    def _handle_initialize(self, params: Dict) -> Dict[str, Any]:
        self._client_name = params.get("clientInfo", {}).get("name")
        log.info(
            f"Client initialize: {self._client_name or '?'} "
            f"protocol={params.get('protocolVersion', '?')}"
        )
        return initialize_result(
            server_name=Config.SERVER_NAME,
            server_version=Config.SERVER_VERSION,
            protocol_version=Config.PROTOCOL_VERSION,
        )

    async def _handle_tools_call(self, params: Dict) -> Dict[str, Any]:
        name = params.get("name", "")
        args = params.get("arguments")

        if not name:
            raise ProtocolError(INVALID_PARAMS, "Missing tool name")

        await self._dispatcher.tracker.touch_connection(STDIO_CONNECTION_ID)
        result = await self._dispatcher.dispatch(name, args)

        if result.ok:
            return result.payload
        if result.error_kind == UNKNOWN_OPERATION:
            raise ProtocolError(METHOD_NOT_FOUND, result.error_message)
        if result.error_kind == INVALID_PARAMETERS:
            raise ProtocolError(INVALID_PARAMS, result.error_message)
        return tool_result_content(
            [text_content(f"Error executing tool: {result.error_message}")],
            is_error=True,
        )

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def tool_count(self) -> int:
        return len(self._dispatcher.registry)
