"""
Blogger Service — async access to the Blogger v3 REST API (httpx)

Two authentication modes:
  OAuth2 (GOOGLE_CLIENT_ID + GOOGLE_CLIENT_SECRET + GOOGLE_REFRESH_TOKEN)
      full access; required for list_blogs and every write operation.
  API key (BLOGGER_API_KEY)
      read-only access to public blogs.

If both are configured, OAuth2 wins.
"""

import asyncio
import time
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote

import httpx

from blogger_mcp.blogger.errors import (
    BloggerAPIError,
    BloggerAuthError,
    BloggerConnectionError,
    BloggerNotFoundError,
)
from blogger_mcp.config import Config
from blogger_mcp.server.logger import get_logger

log = get_logger("blogger")

BLOGGER_API_URL = "https://www.googleapis.com/blogger/v3"
TOKEN_URL = "https://oauth2.googleapis.com/token"

# Refresh the access token this long before Google says it expires
TOKEN_EXPIRY_MARGIN = 60.0
LABEL_SCAN_POSTS = 50


class BloggerService:
    """
    Async Blogger API client.

    Usage:
        async with BloggerService(api_key="...") as blogger:
            blog = await blogger.get_blog("2399953")
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        refresh_token: Optional[str] = None,
        *,
        max_results: int = 10,
        timeout: float = 30.0,
        base_url: str = BLOGGER_API_URL,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._is_oauth2 = bool(client_id and client_secret and refresh_token)
        if not self._is_oauth2 and not api_key:
            raise BloggerAuthError(
                "No authentication configured. "
                "Set BLOGGER_API_KEY (read-only) or "
                "GOOGLE_CLIENT_ID + GOOGLE_CLIENT_SECRET + GOOGLE_REFRESH_TOKEN (full access)."
            )

        self._api_key = api_key
        self._client_id = client_id
        self._client_secret = client_secret
        self._refresh_token = refresh_token
        self.max_results = max_results
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")
        self._clock = clock

        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(headers={"Accept": "application/json"})

        self._access_token: Optional[str] = None
        self._token_expires_at = 0.0
        self._token_lock = asyncio.Lock()

        mode = "OAuth2 (full access)" if self._is_oauth2 else "API Key (read-only)"
        log.info(f"BloggerService initialized with {mode}")

    @classmethod
    def from_config(cls, http_client: Optional[httpx.AsyncClient] = None) -> "BloggerService":
        return cls(
            api_key=Config.BLOGGER_API_KEY,
            client_id=Config.GOOGLE_CLIENT_ID,
            client_secret=Config.GOOGLE_CLIENT_SECRET,
            refresh_token=Config.GOOGLE_REFRESH_TOKEN,
            max_results=Config.MAX_RESULTS,
            timeout=Config.API_TIMEOUT / 1000.0,
            http_client=http_client,
        )

    @property
    def is_oauth2(self) -> bool:
        return self._is_oauth2

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "BloggerService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # -- auth --

    def require_oauth2(self, operation: str) -> None:
        if not self._is_oauth2:
            raise BloggerAuthError(
                f'Operation "{operation}" requires OAuth2 authentication. '
                "API Key mode only allows reading public blogs. "
                "Configure GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET and GOOGLE_REFRESH_TOKEN."
            )

    async def _get_access_token(self) -> str:
        async with self._token_lock:
            if self._access_token and self._clock() < self._token_expires_at:
                return self._access_token

            try:
                response = await self._client.post(
                    TOKEN_URL,
                    data={
                        "grant_type": "refresh_token",
                        "client_id": self._client_id,
                        "client_secret": self._client_secret,
                        "refresh_token": self._refresh_token,
                    },
                    timeout=self.timeout,
                )
            except httpx.HTTPError as exc:
                raise BloggerConnectionError(f"Failed to reach Google token endpoint: {exc}") from exc

            payload = _json_or_text(response)
            if response.status_code != 200 or not isinstance(payload, dict) or "access_token" not in payload:
                detail = payload.get("error_description") or payload.get("error") if isinstance(payload, dict) else payload
                raise BloggerAuthError(f"OAuth2 token refresh failed: {detail or response.status_code}")

            self._access_token = payload["access_token"]
            expires_in = float(payload.get("expires_in", 3600))
            self._token_expires_at = self._clock() + max(0.0, expires_in - TOKEN_EXPIRY_MARGIN)
            log.debug(f"Refreshed OAuth2 access token (expires_in={expires_in:.0f}s)")
            return self._access_token

    # -- transport --

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        query = {k: v for k, v in (params or {}).items() if v is not None}
        headers: Dict[str, str] = {}
        if self._is_oauth2:
            headers["Authorization"] = f"Bearer {await self._get_access_token()}"
        else:
            query["key"] = self._api_key

        url = f"{self.base_url}{path}"
        try:
            response = await self._client.request(
                method,
                url,
                params=query,
                json=json_body,
                headers=headers,
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            raise BloggerConnectionError(f"Failed to connect to Blogger API: {exc}") from exc

        payload = _json_or_text(response) if response.content else {}
        if response.status_code >= 400:
            raise BloggerAPIError(
                _error_detail(payload, response),
                status_code=response.status_code,
                path=path,
                payload=payload,
            )
        return payload

    # -- blogs --

    async def list_blogs(self) -> Dict[str, Any]:
        """Blogs of the authenticated user (OAuth2 only)."""
        self.require_oauth2("list_blogs")
        return await self._request("GET", "/users/self/blogs")

    async def get_blog(self, blog_id: str) -> Dict[str, Any]:
        return await self._request("GET", _path("blogs", blog_id))

    async def get_blog_by_url(self, url: str) -> Dict[str, Any]:
        return await self._request("GET", "/blogs/byurl", params={"url": url})

    # -- posts --

    async def list_posts(self, blog_id: str, max_results: Optional[int] = None) -> Dict[str, Any]:
        return await self._request(
            "GET",
            _path("blogs", blog_id, "posts"),
            params={"maxResults": int(max_results or self.max_results)},
        )

    async def search_posts(self, blog_id: str, query: str, max_results: Optional[int] = None) -> Dict[str, Any]:
        """
        Full-text search. The search endpoint ignores maxResults, so the
        result is truncated client-side.
        """
        data = await self._request(
            "GET",
            _path("blogs", blog_id, "posts", "search"),
            params={"q": query, "fetchBodies": "true"},
        )
        items = data.get("items") or []
        limit = int(max_results or self.max_results)
        return {"kind": data.get("kind"), "items": items[:limit]}

    async def get_post(self, blog_id: str, post_id: str) -> Dict[str, Any]:
        return await self._request("GET", _path("blogs", blog_id, "posts", post_id))

    async def create_post(
        self,
        blog_id: str,
        title: str,
        content: str,
        labels: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        self.require_oauth2("create_post")
        body: Dict[str, Any] = {"title": title, "content": content}
        if labels is not None:
            body["labels"] = labels
        return await self._request("POST", _path("blogs", blog_id, "posts") + "/", json_body=body)

    async def update_post(
        self,
        blog_id: str,
        post_id: str,
        title: Optional[str] = None,
        content: Optional[str] = None,
        labels: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        self.require_oauth2("update_post")
        body = {
            k: v for k, v in (("title", title), ("content", content), ("labels", labels))
            if v is not None
        }
        return await self._request("PUT", _path("blogs", blog_id, "posts", post_id), json_body=body)

    async def delete_post(self, blog_id: str, post_id: str) -> None:
        self.require_oauth2("delete_post")
        await self._request("DELETE", _path("blogs", blog_id, "posts", post_id))

    # -- labels (derived: the API has no label endpoints) --

    async def list_labels(self, blog_id: str) -> Dict[str, Any]:
        """Unique labels across the most recent posts, in first-seen order."""
        data = await self._request(
            "GET",
            _path("blogs", blog_id, "posts"),
            params={"maxResults": LABEL_SCAN_POSTS},
        )
        seen: Dict[str, None] = {}
        for post in data.get("items") or []:
            for label in post.get("labels") or []:
                seen.setdefault(label, None)
        return {
            "kind": "blogger#labelList",
            "items": [{"name": name} for name in seen],
        }

    async def get_label(self, blog_id: str, label_name: str) -> Dict[str, Any]:
        labels = await self.list_labels(blog_id)
        for label in labels["items"]:
            if label["name"] == label_name:
                return label
        raise BloggerNotFoundError(f"Label {label_name} not found")


def _json_or_text(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _error_detail(payload: Any, response: httpx.Response) -> str:
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
    if isinstance(payload, str) and payload.strip():
        return payload.strip()[:200]
    return response.reason_phrase or f"HTTP {response.status_code}"


def _path(*segments: str) -> str:
    """Join path segments, percent-encoding each so an ID stays one segment."""
    encoded = []
    for segment in segments:
        part = quote(str(segment), safe="")
        # Dot segments survive quote() and would be collapsed by URL normalization
        if part in (".", ".."):
            part = part.replace(".", "%2E")
        encoded.append("/" + part)
    return "".join(encoded)
