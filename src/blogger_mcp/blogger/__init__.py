"""Thin async client for the Google Blogger v3 REST API."""

from blogger_mcp.blogger.client import BloggerService
from blogger_mcp.blogger.errors import (
    BloggerAPIError,
    BloggerAuthError,
    BloggerConnectionError,
    BloggerError,
    BloggerNotFoundError,
)

__all__ = [
    "BloggerService",
    "BloggerError",
    "BloggerAuthError",
    "BloggerConnectionError",
    "BloggerAPIError",
    "BloggerNotFoundError",
]
