"""Live MCP protocol test — real subprocess, handshake + tool calls over stdio."""

import asyncio
import json
import os
import sys

import pytest


async def send(proc, msg):
    """Send a JSON-RPC message and return the parsed response (None for notifications)."""
    raw = json.dumps(msg) + "\n"
    proc.stdin.write(raw.encode())
    await proc.stdin.drain()

    if "id" not in msg:
        return None

    line = await asyncio.wait_for(proc.stdout.readline(), timeout=10)
    return json.loads(line)


@pytest.fixture
def server_env(tmp_path):
    env = dict(os.environ)
    for name in ("GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET", "GOOGLE_REFRESH_TOKEN", "UI_PORT", "MCP_MODE"):
        env.pop(name, None)
    env["HOME"] = str(tmp_path)
    env["BLOGGER_MCP_DATA_DIR"] = str(tmp_path / ".blogger-mcp")
    env["BLOGGER_API_KEY"] = "live-test-key"
    return env


@pytest.mark.asyncio
async def test_stdio_session(server_env):
    proc = await asyncio.create_subprocess_exec(
        sys.executable, "-m", "blogger_mcp", "server",
        stdin=asyncio.subprocess.PIPE,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        env=server_env,
    )

    try:
        resp = await send(proc, {
            "jsonrpc": "2.0", "id": 1, "method": "initialize",
            "params": {
                "protocolVersion": "2024-11-05",
                "capabilities": {},
                "clientInfo": {"name": "test-client", "version": "1.0"},
            },
        })
        assert resp["result"]["serverInfo"]["name"] == "blogger-mcp"

        await send(proc, {"jsonrpc": "2.0", "method": "notifications/initialized"})

        resp = await send(proc, {"jsonrpc": "2.0", "id": 2, "method": "tools/list"})
        tool_names = [t["name"] for t in resp["result"]["tools"]]
        assert len(tool_names) == 12
        assert tool_names[0] == "list_blogs"

        # Needs no network: blog creation is refused locally
        resp = await send(proc, {
            "jsonrpc": "2.0", "id": 3, "method": "tools/call",
            "params": {"name": "create_blog", "arguments": {"name": "Test"}},
        })
        assert resp["result"]["isError"] is True
        assert "not supported" in resp["result"]["content"][0]["text"]

        resp = await send(proc, {
            "jsonrpc": "2.0", "id": 4, "method": "tools/call",
            "params": {"name": "no_such_tool", "arguments": {}},
        })
        assert resp["error"]["code"] == -32601

        proc.stdin.write(b"{not json}\n")
        await proc.stdin.drain()
        line = await asyncio.wait_for(proc.stdout.readline(), timeout=10)
        resp = json.loads(line)
        assert resp["id"] is None
        assert resp["error"]["code"] == -32700

        resp = await send(proc, {"jsonrpc": "2.0", "id": 5, "method": "ping"})
        assert resp == {"jsonrpc": "2.0", "id": 5, "result": {}}

        proc.stdin.close()
        assert await asyncio.wait_for(proc.wait(), timeout=10) == 0
    finally:
        if proc.returncode is None:
            proc.kill()
            await proc.wait()


@pytest.mark.asyncio
async def test_refuses_to_start_without_auth(server_env):
    server_env.pop("BLOGGER_API_KEY")
    proc = await asyncio.create_subprocess_exec(
        sys.executable, "-m", "blogger_mcp", "server",
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        env=server_env,
    )
    stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=10)
    assert proc.returncode == 1
    assert stdout == b""
    assert b"no Blogger authentication" in stderr
