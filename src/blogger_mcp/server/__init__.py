"""Blogger MCP Server — Shared dispatch core with stdio and HTTP transports."""

from blogger_mcp.server.dispatcher import DispatchResult, Dispatcher, ToolError, ToolSuccess
from blogger_mcp.server.registry import Operation, Registry
from blogger_mcp.server.tracker import Tracker

__all__ = [
    "Dispatcher",
    "DispatchResult",
    "Operation",
    "Registry",
    "ToolError",
    "ToolSuccess",
    "Tracker",
]
