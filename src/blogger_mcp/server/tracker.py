"""
Observability Tracker — Connections, usage counters, server status

One Tracker instance is shared by the dispatcher and both transports.
Every mutation runs under a single asyncio.Lock, so concurrent HTTP
requests never interleave a read-modify-write on the counters. After each
mutation a snapshot is published to subscribers (the dashboard push
channel). Publication is fire-and-forget: subscribers run as background
tasks and their failures are only logged.

Wire format follows the dashboard contract: camelCase keys, ISO-8601 UTC
timestamps.
"""

import asyncio
import inspect
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from blogger_mcp.server.logger import get_logger

log = get_logger("tracker")

CONNECTION_RETENTION_SECONDS = 5 * 60

Subscriber = Callable[[str, Any], Any]


def _iso(ts: Optional[float]) -> Optional[str]:
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


class Connection:
    """A client seen by a transport, keyed by its peer identity."""

    __slots__ = ("id", "source_address", "connected_at", "last_activity_at", "request_count")

    def __init__(self, client_id: str, source_address: Optional[str], now: float):
        self.id = client_id
        self.source_address = source_address
        self.connected_at = now
        self.last_activity_at = now
        self.request_count = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "ip": self.source_address,
            "connectedAt": _iso(self.connected_at),
            "lastActivity": _iso(self.last_activity_at),
            "requestCount": self.request_count,
        }


class Tracker:
    """
    Process-wide observability state.

    Usage:
        tracker = Tracker(registry.names())
        tracker.subscribe(dashboard.publish)
        await tracker.mark_running("http")
        await tracker.touch_connection("54321", "10.0.0.7")
        await tracker.record_dispatch("get_blog", True, 12.5)
    """

    def __init__(
        self,
        tool_names: Iterable[str] = (),
        *,
        clock: Callable[[], float] = time.time,
        retention_seconds: float = CONNECTION_RETENTION_SECONDS,
    ):
        self._clock = clock
        self._retention = retention_seconds
        self._lock = asyncio.Lock()
        self._tool_names = list(tool_names)

        self._connections: Dict[str, Connection] = {}

        self._total = 0
        self._successful = 0
        self._total_response_ms = 0.0
        self._tool_usage: Dict[str, int] = {name: 0 for name in self._tool_names}

        self._running = False
        self._mode = "stopped"
        self._start_time: Optional[float] = None

        self._subscribers: List[Subscriber] = []
        self._pending: Set[asyncio.Task] = set()

    # -- subscription --

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a (sync or async) callback(event_name, payload). Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # -- mutations --

    async def touch_connection(self, client_id: str, source_address: Optional[str] = None):
        """Record activity from a client and prune idle connections."""
        async with self._lock:
            now = self._clock()
            conn = self._connections.get(client_id)
            if conn is None:
                self._connections[client_id] = Connection(client_id, source_address, now)
            else:
                conn.last_activity_at = now
                conn.request_count += 1
                if source_address:
                    conn.source_address = source_address

            cutoff = now - self._retention
            for cid in [
                cid for cid, c in self._connections.items()
                if cid != client_id and c.last_activity_at < cutoff
            ]:
                del self._connections[cid]
                log.debug(f"Pruned idle connection {cid}")

            connections = self._connections_snapshot()
            status = self._status_snapshot()

        self._publish("connections", connections)
        self._publish("status", status)

    async def record_dispatch(self, tool_name: Optional[str], success: bool, duration_ms: float = 0):
        """Count one dispatch attempt. Only successful durations feed the average."""
        async with self._lock:
            self._total += 1
            if success:
                self._successful += 1
                self._total_response_ms += max(0.0, float(duration_ms))
            if tool_name is not None and tool_name in self._tool_usage:
                self._tool_usage[tool_name] += 1
            stats = self._stats_snapshot()

        self._publish("stats", stats)

    async def mark_running(self, transport_kind: str):
        async with self._lock:
            self._running = True
            self._mode = transport_kind
            self._start_time = self._clock()
            status = self._status_snapshot()
        log.info(f"Server running — mode={transport_kind}")
        self._publish("status", status)

    async def mark_stopped(self):
        async with self._lock:
            self._running = False
            status = self._status_snapshot()
        log.info("Server marked stopped")
        self._publish("status", status)

    # -- snapshots (read without the lock: single-threaded event loop, no await) --

    def get_status(self) -> Dict[str, Any]:
        return self._status_snapshot()

    def get_connections(self) -> List[Dict[str, Any]]:
        return self._connections_snapshot()

    def get_stats(self) -> Dict[str, Any]:
        return self._stats_snapshot()

    @property
    def running(self) -> bool:
        return self._running

    def _status_snapshot(self) -> Dict[str, Any]:
        return {
            "running": self._running,
            "mode": self._mode,
            "startTime": _iso(self._start_time),
            "connections": len(self._connections),
            "tools": list(self._tool_names),
        }

    def _connections_snapshot(self) -> List[Dict[str, Any]]:
        return [c.to_dict() for c in self._connections.values()]

    def _stats_snapshot(self) -> Dict[str, Any]:
        if self._successful:
            # half-up rounding, not banker's
            average = int(self._total_response_ms / self._successful + 0.5)
        else:
            average = 0
        return {
            "totalRequests": self._total,
            "successfulRequests": self._successful,
            "failedRequests": self._total - self._successful,
            "averageResponseTime": average,
            "toolUsage": dict(self._tool_usage),
        }

    # -- publication --

    def _publish(self, event: str, payload: Any):
        for cb in list(self._subscribers):
            try:
                result = cb(event, payload)
            except Exception as exc:
                log.error(f"Subscriber error on {event}: {exc}")
                continue
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._pending.add(task)
                task.add_done_callback(self._on_published)

    def _on_published(self, task: asyncio.Task):
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.error(f"Subscriber error: {exc}")

    async def drain(self):
        """Wait for in-flight publications (used at shutdown and in tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
