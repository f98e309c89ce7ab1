"""SavedPagesClient: the remote saved-pages API via httpx.

Fetch failures are raised once as ``FetchError`` and never retried here;
the dashboard decides what the user sees.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

import httpx

from ..types import FetchError, PageQuery, PaginationMeta, ResponsePage

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[str | None]]


def _parse_error(response: httpx.Response) -> str:
    """Best error message from a failed response."""
    try:
        data = response.json()
    except ValueError:
        return response.reason_phrase or f"HTTP {response.status_code}"
    if isinstance(data, dict):
        message = data.get("error") or data.get("message")
        if message:
            return str(message)
    return f"HTTP {response.status_code}"


def normalize_response(data: Any) -> ResponsePage:
    """Accept ``{pages, pagination}`` or a bare list of pages."""
    if isinstance(data, list):
        page = ResponsePage.from_dict({"pages": data})
        page.pagination = PaginationMeta(total=len(page.items))
        return page
    if not isinstance(data, dict):
        raise FetchError(f"Unexpected response body: {type(data).__name__}")
    pages = data.get("pages")
    if pages is None:
        pages = data.get("results", [])
    page = ResponsePage.from_dict({"pages": pages, "pagination": data.get("pagination") or {}})
    if "pagination" not in data:
        page.pagination = PaginationMeta(total=len(page.items))
    return page


def query_params(query: PageQuery) -> list[tuple[str, str]]:
    """Query string for a page request. Tag steps go out as repeated ``tag=type:label``."""
    params: list[tuple[str, str]] = [
        ("limit", str(query.limit)),
        ("search", query.search),
        ("sort", query.sort),
    ]
    if query.cursor:
        params.append(("cursor", query.cursor))
    else:
        params.append(("offset", str(query.offset)))
    for step in query.tag_path:
        params.append(("tag", f"{step.type}:{step.label}"))
    return params


class SavedPagesClient:
    """Authenticated calls against the saved-pages endpoint."""

    def __init__(
        self,
        base_url: str,
        *,
        token_provider: TokenProvider | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._token_provider = token_provider
        self._timeout = timeout
        self._transport = transport

    async def _headers(self) -> dict[str, str]:
        if self._token_provider is None:
            return {}
        token = await self._token_provider()
        if not token:
            raise FetchError("No user signed in")
        return {"Authorization": f"Bearer {token}"}

    async def _request(
        self,
        method: str,
        path: str = "",
        *,
        params: Any = None,
        json: dict | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        headers = await self._headers()
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.request(method, url, params=params, json=json, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise FetchError(f"HTTP error: {e}") from e

        if response.status_code >= 400:
            message = _parse_error(response)
            logger.warning("%s %s -> %d: %s", method, url, response.status_code, message)
            raise FetchError(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise FetchError(f"Invalid JSON from {url}") from e

    async def fetch_pages(self, query: PageQuery) -> ResponsePage:
        data = await self._request("GET", params=query_params(query))
        try:
            page = normalize_response(data)
        except (KeyError, TypeError, ValueError) as e:
            raise FetchError(f"Malformed page list: {e}") from e
        logger.debug(
            "Fetched %d pages (offset=%d, total=%d, next=%s)",
            len(page.items), query.offset, page.pagination.total, page.pagination.has_next_page,
        )
        return page

    __call__ = fetch_pages

    async def delete_page(self, page_id: str) -> dict:
        return await self._request("DELETE", params={"id": page_id})

    async def pin_page(self, page_id: str, pinned: bool) -> dict:
        return await self._request("POST", "/pin", json={"id": page_id, "pinned": pinned})
