"""ASGI adapter placing a :class:`~pagecache.cache.facade.PageCache` in front of an app.

The middleware is the request-handling side of the cache: it asks the cache
before the wrapped application renders anything, and hands successful HTML
responses back to it afterwards.

* Non-HTTP scopes (websocket, lifespan) pass straight through.
* Requests the cache will never serve (logged-in visitors, non-``GET``
  methods, a disabled cache) pass straight through without touching disk.
* A hit is answered directly with ``200``, ``text/html; charset=utf-8`` and
  an ``x-page-cache: hit`` header.
* On a miss the wrapped app runs normally; its response is streamed to the
  client unchanged while being buffered, and a ``200`` HTML response is then
  stored unless it carries a ``content-encoding`` other than ``identity``.

Blocking disk I/O runs in a worker thread via :func:`asyncio.to_thread` so
the event loop never waits on the filesystem.

Example::

    from starlette.applications import Starlette

    site = Starlette(routes=[...])
    cache = PageCache.from_config(resolve_config().cache)
    app = PageCacheMiddleware(
        site,
        cache,
        is_logged_in=lambda scope: "session=" in (header_value(scope, b"cookie") or ""),
    )
"""

from __future__ import annotations

import asyncio
import re
from typing import Any, Awaitable, Callable, MutableMapping

from pagecache.cache.facade import PageCache
from pagecache.models import RequestInfo

Scope = MutableMapping[str, Any]
Message = MutableMapping[str, Any]
Receive = Callable[[], Awaitable[Message]]
Send = Callable[[Message], Awaitable[None]]
ASGIApp = Callable[[Scope, Receive, Send], Awaitable[None]]
ScopePredicate = Callable[[Scope], bool]

CACHE_STATUS_HEADER = b"x-page-cache"

_MOBILE_UA = re.compile(
    r"Mobile|Android|iPhone|iPod|iPad|Windows Phone|BlackBerry|Opera Mini|IEMobile",
    re.IGNORECASE,
)


def header_value(scope: Scope, name: bytes) -> str | None:
    """Return the first request header called *name* (lower-case bytes), decoded."""
    for key, value in scope.get("headers", []):
        if key.lower() == name:
            return value.decode("latin-1")
    return None


def user_agent_is_mobile(scope: Scope) -> bool:
    """Classify the client as mobile from its ``User-Agent`` header."""
    agent = header_value(scope, b"user-agent")
    return bool(agent and _MOBILE_UA.search(agent))


def _is_encoded(headers: list[tuple[bytes, bytes]]) -> bool:
    """True when the response body carries a non-identity ``content-encoding``."""
    for key, value in headers:
        if key.lower() == b"content-encoding":
            if value.decode("latin-1").strip().lower() not in ("", "identity"):
                return True
    return False


def request_info_from_scope(scope: Scope, *, logged_in: bool, mobile: bool) -> RequestInfo:
    """Build the cache's view of an HTTP request.

    The raw query string, when present, is kept as part of the path so that
    ``/tags?page=2`` and ``/tags?page=3`` get separate entries.
    """
    path = scope.get("path", "/")
    query = scope.get("query_string", b"")
    if query:
        path = f"{path}?{query.decode('latin-1')}"
    return RequestInfo(
        method=scope.get("method", "GET"),
        path=path,
        logged_in=logged_in,
        mobile=mobile,
    )


class PageCacheMiddleware:
    """Serve cached pages and cache freshly rendered ones.

    Args:
        app: The wrapped ASGI application (the rendering pipeline).
        cache: The page cache to consult and fill.
        is_logged_in: Session collaborator; returns ``True`` for requests
            carrying an authenticated session. Required because caching a
            personalised page would leak it to other visitors.
        is_mobile: Device classifier; defaults to :func:`user_agent_is_mobile`.
        content_types: Response media types eligible for caching.
    """

    def __init__(
        self,
        app: ASGIApp,
        cache: PageCache,
        *,
        is_logged_in: ScopePredicate,
        is_mobile: ScopePredicate = user_agent_is_mobile,
        content_types: tuple[str, ...] = ("text/html",),
    ) -> None:
        self.app = app
        self._cache = cache
        self._is_logged_in = is_logged_in
        self._is_mobile = is_mobile
        self._content_types = content_types

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = request_info_from_scope(
            scope,
            logged_in=self._is_logged_in(scope),
            mobile=self._is_mobile(scope),
        )
        if self._cache.key_for(request) is None:
            await self.app(scope, receive, send)
            return

        html = await asyncio.to_thread(self._cache.get, request)
        if html is not None:
            await self._send_hit(send, html)
            return

        await self._render_and_store(scope, receive, send, request)

    async def _send_hit(self, send: Send, html: str) -> None:
        body = html.encode("utf-8")
        await send(
            {
                "type": "http.response.start",
                "status": 200,
                "headers": [
                    (b"content-type", b"text/html; charset=utf-8"),
                    (b"content-length", str(len(body)).encode("latin-1")),
                    (CACHE_STATUS_HEADER, b"hit"),
                ],
            }
        )
        await send({"type": "http.response.body", "body": body})

    async def _render_and_store(
        self, scope: Scope, receive: Receive, send: Send, request: RequestInfo
    ) -> None:
        storable = False
        chunks: list[bytes] = []

        async def send_wrapper(message: Message) -> None:
            nonlocal storable
            if message["type"] == "http.response.start":
                headers = message.get("headers", [])
                storable = (
                    message["status"] == 200
                    and self._is_cacheable_type(headers)
                    and not _is_encoded(headers)
                )
                message = dict(message)
                message["headers"] = [
                    *message.get("headers", []),
                    (CACHE_STATUS_HEADER, b"miss"),
                ]
                await send(message)
                return

            if message["type"] == "http.response.body" and storable:
                chunks.append(message.get("body", b""))
                await send(message)
                if not message.get("more_body", False):
                    await asyncio.to_thread(self._cache.put, request, b"".join(chunks))
                return

            await send(message)

        await self.app(scope, receive, send_wrapper)

    def _is_cacheable_type(self, headers: list[tuple[bytes, bytes]]) -> bool:
        for key, value in headers:
            if key.lower() == b"content-type":
                media_type = value.decode("latin-1").split(";", 1)[0].strip().lower()
                return media_type in self._content_types
        return False
