"""
Blogger MCP Configuration — Unified settings for both transports

Load order: env vars > ~/.blogger-mcp/config.env > defaults
"""

import os
from pathlib import Path
from typing import Optional


def _load_config_env():
    """Load key=value pairs from ~/.blogger-mcp/config.env if it exists."""
    config_file = Path.home() / ".blogger-mcp" / "config.env"
    if not config_file.exists():
        return
    for line in config_file.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" in line:
            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, str(default)))
    except ValueError:
        return default


def _port_env(name: str) -> Optional[int]:
    """Port from env, or None when unset or outside 1..65535."""
    raw = os.environ.get(name)
    if not raw:
        return None
    try:
        port = int(raw)
    except ValueError:
        return None
    return port if 0 < port < 65536 else None


def _timeout_env(name: str) -> Optional[float]:
    raw = os.environ.get(name)
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value > 0 else None


# Load config.env before reading env vars
_load_config_env()


class Config:
    # Server identity
    SERVER_NAME = "blogger-mcp"
    SERVER_VERSION = "0.1.0"
    PROTOCOL_VERSION = "2024-11-05"

    # Transport selection
    MODE = os.environ.get("MCP_MODE", "stdio")
    HTTP_HOST = os.environ.get("MCP_HTTP_HOST", "0.0.0.0")
    HTTP_PORT = _int_env("MCP_HTTP_PORT", 3000)
    MAX_BODY_BYTES = 1024 * 1024
    SHUTDOWN_GRACE = 1.0

    # Dashboard API (disabled unless UI_PORT is a valid port)
    UI_PORT = _port_env("UI_PORT")

    # Blogger API
    BLOGGER_API_KEY = os.environ.get("BLOGGER_API_KEY")
    MAX_RESULTS = _int_env("BLOGGER_MAX_RESULTS", 10)
    API_TIMEOUT = _int_env("BLOGGER_API_TIMEOUT", 30000)

    # OAuth2 (required for list_blogs and all write operations)
    GOOGLE_CLIENT_ID = os.environ.get("GOOGLE_CLIENT_ID")
    GOOGLE_CLIENT_SECRET = os.environ.get("GOOGLE_CLIENT_SECRET")
    GOOGLE_REFRESH_TOKEN = os.environ.get("GOOGLE_REFRESH_TOKEN")

    # Per-call handler timeout in seconds (None = wait forever)
    TOOL_TIMEOUT = _timeout_env("MCP_TOOL_TIMEOUT")

    # Paths
    DATA_DIR = Path(os.environ.get("BLOGGER_MCP_DATA_DIR", str(Path.home() / ".blogger-mcp")))
    LOG_DIR = DATA_DIR / "logs"

    # Logging (NEVER to stdout: it carries the stdio protocol)
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    LOG_FILE = LOG_DIR / "blogger-mcp.log"
    ERROR_LOG = LOG_DIR / "blogger-mcp-errors.log"
    LOG_MAX_BYTES = _int_env("LOG_MAX_BYTES", 5 * 1024 * 1024)
    LOG_BACKUPS = _int_env("LOG_BACKUPS", 3)

    @classmethod
    def has_oauth2(cls) -> bool:
        return bool(cls.GOOGLE_CLIENT_ID and cls.GOOGLE_CLIENT_SECRET and cls.GOOGLE_REFRESH_TOKEN)

    @classmethod
    def has_api_key(cls) -> bool:
        return bool(cls.BLOGGER_API_KEY)

    @classmethod
    def ensure_dirs(cls):
        """Create required directories."""
        cls.DATA_DIR.mkdir(parents=True, exist_ok=True)
        cls.LOG_DIR.mkdir(parents=True, exist_ok=True)
