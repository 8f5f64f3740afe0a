"""
Blogger client exceptions.
"""

from typing import Any, Optional


class BloggerError(RuntimeError):
    """Base class for Blogger client errors."""


class BloggerAuthError(BloggerError):
    """No usable credentials, or the operation needs OAuth2."""


class BloggerConnectionError(BloggerError):
    """Raised when the Blogger API (or the token endpoint) cannot be reached."""


class BloggerNotFoundError(BloggerError):
    """A resource looked up client-side does not exist."""


class BloggerAPIError(BloggerError):
    """Raised when the API returns a non-2xx response."""

    def __init__(
        self,
        detail: str,
        *,
        status_code: Optional[int] = None,
        path: Optional[str] = None,
        payload: Optional[Any] = None,
    ) -> None:
        self.status_code = status_code
        self.path = path
        self.payload = payload
        status_hint = f" (status={status_code})" if status_code is not None else ""
        path_hint = f" [{path}]" if path else ""
        super().__init__(f"{detail}{status_hint}{path_hint}")
