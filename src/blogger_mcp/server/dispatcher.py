"""
Dispatcher — Resolve, validate, invoke, and envelope one tool call

Both transports go through dispatch(). It never raises: unknown tools,
schema violations, handler faults, and timeouts all come back as a
DispatchResult with ok=False. A handler that *returns* ToolError has run
successfully; that is a business-level error, reported with ok=True and an
isError payload.

Every call ends with exactly one tracker.record_dispatch().
"""

import asyncio
import time
from typing import Any, Dict, Optional

from blogger_mcp.server.logger import get_logger
from blogger_mcp.server.protocol import json_text_content, text_content, tool_result_content
from blogger_mcp.server.registry import InvalidParameters, Registry, UnknownOperation
from blogger_mcp.server.tracker import Tracker

log = get_logger("dispatcher")

UNKNOWN_OPERATION = "unknown_operation"
INVALID_PARAMETERS = "invalid_parameters"
HANDLER_FAULT = "handler_fault"
HANDLER_TIMEOUT = "handler_timeout"


class ToolSuccess:
    """Handler completed with a normal payload."""

    __slots__ = ("data",)

    def __init__(self, data: Any):
        self.data = data

    def __repr__(self):
        return f"ToolSuccess({self.data!r})"


class ToolError:
    """Handler completed, but the operation itself failed (e.g. upstream 404)."""

    __slots__ = ("message",)

    def __init__(self, message: str):
        self.message = message

    def __repr__(self):
        return f"ToolError({self.message!r})"


class DispatchResult:
    """Uniform envelope returned to transports."""

    __slots__ = ("ok", "payload", "error_message", "error_kind", "duration_ms")

    def __init__(
        self,
        ok: bool,
        payload: Any = None,
        error_message: Optional[str] = None,
        error_kind: Optional[str] = None,
        duration_ms: float = 0,
    ):
        self.ok = ok
        self.payload = payload
        self.error_message = error_message
        self.error_kind = error_kind
        self.duration_ms = duration_ms

    @classmethod
    def failure(cls, kind: str, message: str, duration_ms: float = 0) -> "DispatchResult":
        return cls(False, error_message=message, error_kind=kind, duration_ms=duration_ms)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"ok": self.ok}
        if self.ok:
            d["payload"] = self.payload
        else:
            d["error"] = self.error_message
            d["kind"] = self.error_kind
        return d

    def __repr__(self):
        if self.ok:
            return f"DispatchResult(ok=True, payload={self.payload!r})"
        return f"DispatchResult(ok=False, {self.error_kind}: {self.error_message!r})"


def render_tool_result(result: Any) -> Dict[str, Any]:
    """Collapse a handler's ToolSuccess / ToolError into the MCP tool-result payload."""
    if isinstance(result, ToolError):
        return tool_result_content([text_content(result.message)], is_error=True)
    if isinstance(result, ToolSuccess):
        result = result.data
    return tool_result_content([json_text_content(result)])


def _fault_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class Dispatcher:
    """
    Tool dispatcher shared by the stdio and HTTP transports.

    Usage:
        dispatcher = Dispatcher(registry, tracker, timeout=Config.TOOL_TIMEOUT)
        result = await dispatcher.dispatch("get_blog", {"blogId": "123"})
    """

    def __init__(self, registry: Registry, tracker: Tracker, timeout: Optional[float] = None):
        self.registry = registry
        self.tracker = tracker
        self.timeout = timeout

    async def dispatch(self, name: str, raw_input: Any = None) -> DispatchResult:
        resolved: Optional[str] = None
        result: DispatchResult
        try:
            result, resolved = await self._dispatch(name, raw_input)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            log.error(f"Dispatch of {name!r} failed unexpectedly: {exc}", exc_info=True)
            result = DispatchResult.failure(HANDLER_FAULT, _fault_message(exc))

        await self.tracker.record_dispatch(resolved, result.ok, result.duration_ms)
        return result

    async def _dispatch(self, name: str, raw_input: Any):
        try:
            op = self.registry.lookup(name)
        except UnknownOperation as exc:
            log.warning(str(exc))
            return DispatchResult.failure(UNKNOWN_OPERATION, str(exc)), None

        try:
            args = op.validate(raw_input)
        except InvalidParameters as exc:
            log.warning(f"Tool {name}: {exc}")
            return DispatchResult.failure(INVALID_PARAMETERS, str(exc)), name

        started = time.perf_counter()
        try:
            if self.timeout is None:
                outcome = await op.handler(args)
            else:
                outcome = await asyncio.wait_for(op.handler(args), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            elapsed = (time.perf_counter() - started) * 1000.0
            if self.timeout is None:
                log.error(f"Tool {name} raised: {exc!r}")
                return DispatchResult.failure(HANDLER_FAULT, _fault_message(exc), elapsed), name
            message = f"Tool {name} timed out after {self.timeout:g}s"
            log.warning(message)
            return DispatchResult.failure(HANDLER_TIMEOUT, message, elapsed), name
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            elapsed = (time.perf_counter() - started) * 1000.0
            log.error(f"Tool {name} raised: {exc}", exc_info=True)
            return DispatchResult.failure(HANDLER_FAULT, _fault_message(exc), elapsed), name
        elapsed = (time.perf_counter() - started) * 1000.0

        if isinstance(outcome, ToolError):
            log.info(f"Tool {name} reported error: {outcome.message}")

        log.debug(f"Tool {name} completed in {elapsed:.1f}ms")
        return DispatchResult(True, payload=render_tool_result(outcome), duration_ms=elapsed), name
