"""Immutable HTTP request.

Frozen metadata with async body access. The request is honest about
what it is: received data that doesn't change.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncGenerator, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pico._internal.asgi import Receive
from pico.errors import HTTPError
from pico.http.cookies import parse_cookies
from pico.http.headers import Headers
from pico.http.query import QueryParams

if TYPE_CHECKING:
    from pico.http.forms import FormData


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``path`` is the server-decoded path; ``raw_path`` keeps the bytes the
    client sent (decoded as latin-1) so routing and static resolution can
    work on undecoded segments. The body is read once via ``.body()`` and
    cached.
    """

    method: str
    path: str
    raw_path: str
    headers: Headers
    query: QueryParams
    cookies: Mapping[str, str]
    client: tuple[str, int] | None

    # Private: ASGI receive callable for body streaming
    _receive: Receive

    # Private: largest body accepted before answering 413
    _max_body: int | None = None

    # Private: mutable cache for body and parsed form data
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def is_fragment(self) -> bool:
        """True if this is an htmx request (HX-Request header)."""
        return self.headers.get("hx-request") == "true"

    @property
    def content_type(self) -> str | None:
        """The media type of the body, lower-cased, without parameters."""
        value = self.headers.get("content-type")
        if value is None:
            return None
        return value.split(";", 1)[0].strip().lower() or None

    @property
    def accept(self) -> str:
        """The Accept header, or ``""``."""
        return self.headers.get("accept", "") or ""

    @property
    def url(self) -> str:
        """Path plus query string, as received."""
        qs = self.query.raw
        if qs:
            return f"{self.raw_path}?{qs.decode('latin-1')}"
        return self.raw_path

    @property
    def body_consumed(self) -> bool:
        """Whether the ASGI body stream has been fully read."""
        return "_body" in self._cache

    # -- Async body access --

    async def body(self) -> bytes:
        """Read the full request body.

        Result is cached — the ASGI receive is consumed once, then
        the same bytes are returned on subsequent calls.
        """
        if "_body" in self._cache:
            return self._cache["_body"]
        chunks: list[bytes] = []
        size = 0
        async for chunk in self.stream():
            size += len(chunk)
            if self._max_body is not None and size > self._max_body:
                raise HTTPError(status=413, detail="Request body too large")
            chunks.append(chunk)
        result = b"".join(chunks)
        self._cache["_body"] = result
        return result

    async def stream(self) -> AsyncGenerator[bytes]:
        """Stream the request body in chunks."""
        while True:
            message = await self._receive()
            if message["type"] == "http.disconnect":
                self._cache["_disconnected"] = True
                break
            body = message.get("body", b"")
            if body:
                yield body
            if not message.get("more_body", False):
                break

    async def json(self) -> Any:
        """Parse the body as JSON (UTF-8)."""
        raw = await self.body()
        return json_module.loads(raw)

    async def text(self) -> str:
        """Read the body as text (UTF-8)."""
        raw = await self.body()
        return raw.decode("utf-8")

    async def form(self) -> FormData:
        """Parse a URL-encoded body. Cached after the first call.

        Raises:
            ValueError: If the body is not valid UTF-8 form data.
        """
        if "_form" in self._cache:
            return self._cache["_form"]

        from pico.http.forms import parse_urlencoded

        result = parse_urlencoded(await self.body())
        self._cache["_form"] = result
        return result

    # -- Factory --

    @classmethod
    def from_asgi(
        cls,
        scope: Mapping[str, Any],
        receive: Receive,
        *,
        max_body: int | None = None,
    ) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        headers = Headers(tuple(scope.get("headers", ())))
        client = scope.get("client")
        path = scope["path"]
        raw = scope.get("raw_path")
        raw_path = raw.decode("latin-1") if raw else path
        # Some servers include the query string in raw_path.
        raw_path = raw_path.split("?", 1)[0]
        return cls(
            method=scope["method"].upper(),
            path=path,
            raw_path=raw_path,
            headers=headers,
            query=QueryParams(scope.get("query_string", b"")),
            cookies=parse_cookies(headers.get("cookie", "") or ""),
            client=tuple(client) if client else None,
            _receive=receive,
            _max_body=max_body,
        )
