"""HTTP response with chainable .with_*() transformation API.

Each transformation returns a new Response. Immutable by convention,
built incrementally by design.
"""

import json as json_module
from collections.abc import AsyncIterator, Iterator, Mapping
from dataclasses import dataclass, replace
from typing import Any

from pico.http.cookies import SetCookie

HTML = "text/html; charset=utf-8"
JSON = "application/json"
TEXT = "text/plain; charset=utf-8"


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations.

    Construct with a body, then chain ``.with_*()`` calls to set
    status, headers, and cookies. Each call returns a new ``Response``.
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str = HTML
    headers: tuple[tuple[str, str], ...] = ()
    cookies: tuple[SetCookie, ...] = ()

    # -- Constructors --

    @classmethod
    def json_body(cls, value: Any, *, status: int = 200) -> Response:
        """A JSON response. Non-JSON values (datetimes, ...) use ``str()``."""
        return cls(
            body=json_module.dumps(value, ensure_ascii=False, default=str),
            status=status,
            content_type=JSON,
        )

    @classmethod
    def plain(cls, text: str, *, status: int = 200) -> Response:
        """A ``text/plain`` response."""
        return cls(body=text, status=status, content_type=TEXT)

    # -- Chainable transformations --

    def with_status(self, status: int) -> Response:
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> Response:
        """Return a new Response with additional headers."""
        new = tuple(headers.items())
        return replace(self, headers=(*self.headers, *new))

    def with_content_type(self, content_type: str) -> Response:
        """Return a new Response with a different content type."""
        return replace(self, content_type=content_type)

    def with_cookie(self, cookie: SetCookie) -> Response:
        """Return a new Response with an additional Set-Cookie."""
        return replace(self, cookies=(*self.cookies, cookie))

    # -- Accessors --

    def header(self, name: str) -> str | None:
        """First value of header *name* (case-insensitive), or ``None``."""
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return None

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes."""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        """Body as string."""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body

    def json(self) -> Any:
        """Parse the body as JSON."""
        return json_module.loads(self.body_bytes)


@dataclass(frozen=True, slots=True)
class StreamingResponse:
    """A response whose body is sent chunk by chunk.

    Used for static files. When ``content_length`` is known it is sent
    as a header; otherwise chunked transfer encoding is used. ``HEAD``
    responses set ``head_only`` so the sender skips the body.
    """

    chunks: Iterator[bytes] | AsyncIterator[bytes]
    status: int = 200
    content_type: str = "application/octet-stream"
    headers: tuple[tuple[str, str], ...] = ()
    cookies: tuple[SetCookie, ...] = ()
    content_length: int | None = None
    head_only: bool = False

    def with_status(self, status: int) -> StreamingResponse:
        """Return a new StreamingResponse with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> StreamingResponse:
        """Return a new StreamingResponse with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_cookie(self, cookie: SetCookie) -> StreamingResponse:
        """Return a new StreamingResponse with an additional Set-Cookie."""
        return replace(self, cookies=(*self.cookies, cookie))


type AnyResponse = Response | StreamingResponse
