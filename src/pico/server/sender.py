"""ASGI response sending — translates pico Response types to ASGI messages.

Handles both standard single-body responses and streamed file bodies.
"""

import logging
from collections.abc import AsyncIterator

from pico._internal.asgi import Send
from pico.http.cookies import SetCookie
from pico.http.response import Response, StreamingResponse

logger = logging.getLogger("pico.server")


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


def _raw_headers(
    content_type: str,
    headers: tuple[tuple[str, str], ...],
    cookies: tuple[SetCookie, ...],
) -> list[tuple[bytes, bytes]]:
    raw: list[tuple[bytes, bytes]] = [(b"content-type", content_type.encode("latin-1"))]
    for name, value in headers:
        raw.append((name.lower().encode("latin-1"), value.encode("latin-1")))
    raw.extend((b"set-cookie", cookie.to_header_value().encode("latin-1")) for cookie in cookies)
    return raw


async def send_response(response: Response, send: Send, *, head_only: bool = False) -> None:
    """Translate a pico Response into ASGI send() calls."""
    raw_headers = _raw_headers(response.content_type, response.headers, response.cookies)

    body = response.body_bytes if _body_allowed(response.status) else b""

    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": b"" if head_only else body,
        }
    )


async def send_streaming_response(response: StreamingResponse, send: Send) -> None:
    """Send a streaming response chunk by chunk.

    With a known ``content_length`` the length is announced up front;
    otherwise chunked transfer encoding signals the body boundaries.
    ``head_only`` responses send headers and an empty body.
    """
    raw_headers = _raw_headers(response.content_type, response.headers, response.cookies)
    if response.content_length is not None:
        raw_headers.append((b"content-length", str(response.content_length).encode("latin-1")))
    else:
        raw_headers.append((b"transfer-encoding", b"chunked"))

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )

    if not response.head_only:
        try:
            if isinstance(response.chunks, AsyncIterator):
                async for chunk in response.chunks:
                    if chunk:
                        await send({"type": "http.response.body", "body": chunk, "more_body": True})
            else:
                for chunk in response.chunks:
                    if chunk:
                        await send({"type": "http.response.body", "body": chunk, "more_body": True})
        except OSError:
            # Headers are already out; all that is left is to end the body.
            logger.exception("Streaming response body failed")

    # Close the stream
    await send(
        {
            "type": "http.response.body",
            "body": b"",
            "more_body": False,
        }
    )
