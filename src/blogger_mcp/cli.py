"""
Blogger MCP CLI — Command-line interface for the Blogger MCP server

Commands:
    blogger-mcp init        Create ~/.blogger-mcp/ and generate config
    blogger-mcp server      Start the MCP server (stdio or HTTP)
    blogger-mcp tools       List the registered tools
    blogger-mcp mcp-config  Print Claude Desktop/Code JSON config
"""

import asyncio
import json
import shutil
import sys
from typing import Optional

import click

from blogger_mcp import __version__
from blogger_mcp.config import Config


@click.group()
@click.version_option(version=__version__, prog_name="blogger-mcp")
def main():
    """Blogger MCP — blogs, posts and labels as MCP tools."""
    pass


@main.command()
def init():
    """Initialize: create ~/.blogger-mcp/, generate config, print setup instructions."""
    Config.ensure_dirs()

    config_env = Config.DATA_DIR / "config.env"
    if not config_env.exists():
        config_env.write_text(
            "# Blogger MCP Configuration\n"
            "# Uncomment and edit as needed.\n"
            "\n"
            "# Read-only access to public blogs:\n"
            "# BLOGGER_API_KEY=\n"
            "\n"
            "# Full access (list_blogs, create/update/delete posts):\n"
            "# GOOGLE_CLIENT_ID=\n"
            "# GOOGLE_CLIENT_SECRET=\n"
            "# GOOGLE_REFRESH_TOKEN=\n"
            "\n"
            "# MCP_MODE=stdio\n"
            "# MCP_HTTP_HOST=0.0.0.0\n"
            "# MCP_HTTP_PORT=3000\n"
            "# UI_PORT=3001\n"
            "# BLOGGER_MAX_RESULTS=10\n"
            "# BLOGGER_API_TIMEOUT=30000\n"
            "# MCP_TOOL_TIMEOUT=60\n"
            "# LOG_LEVEL=DEBUG\n"
        )

    click.echo(f"Blogger MCP initialized at {Config.DATA_DIR}")
    click.echo(f"  Config: {config_env}")
    click.echo(f"  Logs:   {Config.LOG_DIR}")
    click.echo()
    click.echo("Next: set BLOGGER_API_KEY or the GOOGLE_* OAuth2 values in config.env,")
    click.echo("then run `blogger-mcp mcp-config` to get the JSON snippet.")


@main.command()
@click.option("--mode", type=click.Choice(["stdio", "http"]), default=None,
              help="Transport (default: MCP_MODE or stdio)")
@click.option("--host", default=None, help="HTTP bind host (default: MCP_HTTP_HOST)")
@click.option("--port", type=int, default=None, help="HTTP port (default: MCP_HTTP_PORT)")
def server(mode: Optional[str], host: Optional[str], port: Optional[int]):
    """Start the Blogger MCP server."""
    if not (Config.has_oauth2() or Config.has_api_key()):
        click.echo(
            "Error: no Blogger authentication configured.\n"
            "Set BLOGGER_API_KEY (read-only) or GOOGLE_CLIENT_ID, "
            "GOOGLE_CLIENT_SECRET and GOOGLE_REFRESH_TOKEN (full access).",
            err=True,
        )
        sys.exit(1)

    mode = mode or Config.MODE
    if mode not in ("stdio", "http"):
        click.echo(f"Error: unknown MCP_MODE {mode!r} (expected stdio or http)", err=True)
        sys.exit(1)

    try:
        asyncio.run(_serve(mode, host or Config.HTTP_HOST, port or Config.HTTP_PORT))
    except KeyboardInterrupt:
        pass


async def _serve(mode: str, host: str, port: int):
    from blogger_mcp.blogger import BloggerService
    from blogger_mcp.server.dashboard import Dashboard
    from blogger_mcp.server.dispatcher import Dispatcher
    from blogger_mcp.server.http import HttpServer
    from blogger_mcp.server.registry import Registry
    from blogger_mcp.server.server import StdioServer
    from blogger_mcp.server.tracker import Tracker
    from blogger_mcp.tools import build_operations

    service = BloggerService.from_config()
    registry = Registry(build_operations(service))
    tracker = Tracker(registry.names())
    dispatcher = Dispatcher(registry, tracker, timeout=Config.TOOL_TIMEOUT)

    dashboard = None
    if Config.UI_PORT is not None:
        dashboard = Dashboard(tracker)
        await dashboard.start(Config.UI_PORT)

    try:
        if mode == "http":
            await HttpServer(dispatcher, host=host, port=port).serve_forever()
        else:
            await StdioServer(dispatcher).run()
    finally:
        if dashboard is not None:
            await dashboard.stop()
        await service.close()


@main.command()
def tools():
    """List the tools this server exposes."""
    from blogger_mcp.tools import build_operations

    for op in build_operations():
        click.echo(f"{op.name:<18} {op.description}")


@main.command("mcp-config")
def mcp_config():
    """Print MCP config JSON for Claude Desktop or Claude Code (stdio mode)."""
    executable = _find_executable()

    args = ["server"] if executable.endswith("blogger-mcp") else ["-m", "blogger_mcp", "server"]

    config = {
        "mcpServers": {
            "blogger": {
                "command": executable,
                "args": args,
                "env": {"BLOGGER_API_KEY": "<your-api-key>"},
            }
        }
    }

    click.echo("Add this to your Claude settings:\n")
    click.echo(json.dumps(config, indent=2))
    click.echo()
    click.echo("Claude Desktop: Settings > Developer > Edit Config")
    click.echo("Claude Code:    .claude/settings.json or ~/.claude/settings.json")


def _find_executable() -> str:
    """Find the blogger-mcp command path."""
    path = shutil.which("blogger-mcp")
    if path:
        return path
    # Fallback: python -m blogger_mcp
    return sys.executable


if __name__ == "__main__":
    main()
