"""
Raw STDIO Transport — newline-delimited JSON-RPC

Reads from stdin, writes to stdout.
NEVER pollutes stdout with logs.
"""

import asyncio
import json
import sys
from typing import Any, BinaryIO, Dict, Optional

from blogger_mcp.server.logger import get_logger

log = get_logger("transport")

# StreamReader buffer limit; longer lines are discarded as parse errors
MAX_LINE_BYTES = 2**20


class MalformedMessage(Exception):
    """A line arrived that is not valid JSON."""

    def __init__(self, raw_bytes: bytes, reason: str):
        self.raw_bytes = raw_bytes
        self.reason = reason
        super().__init__(reason)


class RawStdioTransport:
    """Raw STDIO transport: one JSON message per line in each direction."""

    def __init__(
        self,
        reader: Optional[asyncio.StreamReader] = None,
        writer: Optional[BinaryIO] = None,
    ):
        self.running = False
        self._reader = reader
        self._stdout = writer

    async def start(self):
        """Initialize async stdin reader and direct stdout writer."""
        if self._reader is None:
            loop = asyncio.get_running_loop()
            self._reader = asyncio.StreamReader(limit=MAX_LINE_BYTES)
            protocol = asyncio.StreamReaderProtocol(self._reader)
            await loop.connect_read_pipe(lambda: protocol, sys.stdin.buffer)

        if self._stdout is None:
            self._stdout = sys.stdout.buffer
        self.running = True
        log.info("Transport initialized")

    async def read_message(self) -> Optional[Dict[str, Any]]:
        """
        Read one JSON-RPC message from stdin.
        Returns the parsed message, or None on EOF.
        Blank lines are skipped; undecodable or oversized lines raise
        MalformedMessage and leave the reader at the start of the next line.
        """
        if not self._reader:
            raise RuntimeError("Transport not started")

        while True:
            try:
                raw_bytes = await self._reader.readuntil(b"\n")
            except asyncio.IncompleteReadError as exc:
                # EOF: an unterminated last line, or nothing at all
                raw_bytes = exc.partial
            except asyncio.LimitOverrunError:
                dropped = await self._discard_line()
                log.error(f"Oversized line discarded ({dropped} bytes)")
                raise MalformedMessage(b"", "Parse error: message exceeds the stdin line limit")

            if not raw_bytes:
                return None
            if not raw_bytes.strip():
                continue

            try:
                parsed = json.loads(raw_bytes)
            except (json.JSONDecodeError, UnicodeDecodeError) as exc:
                log.error(f"JSON parse error: {exc}")
                raise MalformedMessage(raw_bytes, f"Parse error: {exc}") from exc

            log.debug(f"[in] {parsed.get('method', 'response') if isinstance(parsed, dict) else '?'} "
                      f"bytes={len(raw_bytes)}")
            return parsed

    async def _discard_line(self) -> int:
        """Drop buffered input up to and including the next newline (or EOF)."""
        dropped = 0
        while True:
            try:
                dropped += len(await self._reader.readuntil(b"\n"))
                return dropped
            except asyncio.LimitOverrunError as exc:
                dropped += len(await self._reader.readexactly(exc.consumed))
            except asyncio.IncompleteReadError as exc:
                return dropped + len(exc.partial)

    async def write_message(self, message: Dict[str, Any]):
        """Write a JSON-RPC message to stdout."""
        if self._stdout is None:
            raise RuntimeError("Transport not started")

        raw_text = json.dumps(message, separators=(",", ":"), default=str) + "\n"
        raw_bytes = raw_text.encode("utf-8")

        self._stdout.write(raw_bytes)
        self._stdout.flush()
        log.debug(f"[out] id={message.get('id')} bytes={len(raw_bytes)}")

    async def close(self):
        self.running = False
        log.info("Transport closed")
