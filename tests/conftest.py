"""Shared fixtures for Blogger MCP tests."""

import asyncio
import os
import tempfile
import pytest

# Keep module-level loggers out of the real ~/.blogger-mcp
os.environ.setdefault("BLOGGER_MCP_DATA_DIR", tempfile.mkdtemp(prefix="blogger-mcp-tests-"))

from blogger_mcp.server.dispatcher import Dispatcher, ToolError, ToolSuccess  # noqa: E402
from blogger_mcp.server.registry import Operation, Registry  # noqa: E402
from blogger_mcp.server.tracker import Tracker  # noqa: E402


@pytest.fixture
def tmp_data_dir(tmp_path):
    """Point Config at a temp directory for isolated tests."""
    data_dir = tmp_path / ".blogger-mcp"
    data_dir.mkdir()
    (data_dir / "logs").mkdir()

    from blogger_mcp import config
    saved = {
        name: getattr(config.Config, name)
        for name in ("DATA_DIR", "LOG_DIR", "LOG_FILE", "ERROR_LOG")
    }
    config.Config.DATA_DIR = data_dir
    config.Config.LOG_DIR = data_dir / "logs"
    config.Config.LOG_FILE = data_dir / "logs" / "blogger-mcp.log"
    config.Config.ERROR_LOG = data_dir / "logs" / "blogger-mcp-errors.log"

    yield data_dir

    for name, value in saved.items():
        setattr(config.Config, name, value)


class FakeClock:
    """Manually advanced clock for retention tests."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


def _blog_schema():
    return {
        "type": "object",
        "properties": {
            "blogId": {"type": "string"},
            "verbose": {"type": "boolean", "default": False},
        },
        "required": ["blogId"],
    }


async def _echo_blog(args):
    return ToolSuccess({"blog": {"id": args["blogId"]}})


async def _not_found(args):
    return ToolError("Error fetching post: Not Found (status=404)")


async def _explode(args):
    raise RuntimeError("boom")


async def _slow(args):
    await asyncio.sleep(args.get("seconds", 0.5))
    return {"done": True}


def make_test_operations():
    """A small catalog exercising each dispatch outcome."""
    return [
        Operation("get_blog", "Echo a blog id", _blog_schema(), _echo_blog),
        Operation(
            "get_post",
            "Always reports a not-found business error",
            {"type": "object", "properties": {}},
            _not_found,
        ),
        Operation("explode", "Handler raises", {"type": "object"}, _explode),
        Operation(
            "slow",
            "Sleeps before answering",
            {"type": "object", "properties": {"seconds": {"type": "number", "default": 0.5}}},
            _slow,
        ),
    ]


@pytest.fixture
def registry():
    return Registry(make_test_operations())


@pytest.fixture
def tracker(registry, clock):
    return Tracker(registry.names(), clock=clock)


@pytest.fixture
def dispatcher(registry, tracker):
    return Dispatcher(registry, tracker)
