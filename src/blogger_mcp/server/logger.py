"""
File-only logger — NEVER writes to stdout (would corrupt the stdio protocol)

Both files rotate by size: the HTTP transport is a long-running process.
The handlers live on the `blogger_mcp` package logger only, so every module
logger shares one RotatingFileHandler per file.
"""

import logging
from logging.handlers import RotatingFileHandler

from blogger_mcp.config import Config

ROOT_NAME = "blogger_mcp"

_FORMAT = logging.Formatter(
    "%(asctime)s %(levelname)-5s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def _file_handler(path, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path,
        maxBytes=Config.LOG_MAX_BYTES,
        backupCount=Config.LOG_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(_FORMAT)
    return handler


def _root_logger() -> logging.Logger:
    root = logging.getLogger(ROOT_NAME)
    if root.handlers:
        return root

    Config.ensure_dirs()
    root.setLevel(getattr(logging, Config.LOG_LEVEL, logging.INFO))
    root.addHandler(_file_handler(Config.LOG_FILE, logging.DEBUG))
    root.addHandler(_file_handler(Config.ERROR_LOG, logging.ERROR))
    root.propagate = False
    return root


def get_logger(name: str) -> logging.Logger:
    """Get a `blogger_mcp.<name>` logger that writes to the log files only."""
    _root_logger()
    return logging.getLogger(f"{ROOT_NAME}.{name}")
