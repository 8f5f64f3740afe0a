"""Blogger MCP — Blogger content API exposed as MCP tools over stdio and HTTP."""

__version__ = "0.1.0"
