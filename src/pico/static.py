"""Static asset resolver.

Serves files from one root directory when no route matches. Every
path is checked before the filesystem is touched: ``..`` segments
(raw or percent-encoded), NUL bytes and backslashes are refused
outright, and the resolved path must still sit inside the root so
symlinks cannot escape it.
"""

import logging
from collections.abc import AsyncIterator
from pathlib import Path
from urllib.parse import unquote

import anyio

from pico.errors import BadRequest, Forbidden, NotFound
from pico.http.response import StreamingResponse

logger = logging.getLogger("pico.static")

CHUNK_SIZE = 64 * 1024

CONTENT_TYPES: dict[str, str] = {
    ".html": "text/html; charset=utf-8",
    ".htm": "text/html; charset=utf-8",
    ".css": "text/css; charset=utf-8",
    ".js": "text/javascript; charset=utf-8",
    ".mjs": "text/javascript; charset=utf-8",
    ".json": "application/json",
    ".txt": "text/plain; charset=utf-8",
    ".md": "text/markdown; charset=utf-8",
    ".xml": "application/xml",
    ".svg": "image/svg+xml",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".ico": "image/x-icon",
    ".pdf": "application/pdf",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".otf": "font/otf",
    ".wasm": "application/wasm",
}

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def content_type_for(path: Path) -> str:
    """Content type from the file suffix, case-insensitively."""
    return CONTENT_TYPES.get(path.suffix.lower(), DEFAULT_CONTENT_TYPE)


class StaticResolver:
    """Resolve request paths to files under a root directory.

    Usage::

        static = StaticResolver("public")
        response = static.resolve("/css/site.css", "GET")

    Raises ``BadRequest`` for undecodable paths, ``Forbidden`` for
    traversal attempts and ``NotFound`` for everything that is not a
    servable file.
    """

    __slots__ = ("_directory", "_index")

    def __init__(self, directory: str | Path, *, index: str = "index.html") -> None:
        self._directory = Path(directory).resolve()
        self._index = index

    @property
    def directory(self) -> Path:
        return self._directory

    def resolve(self, raw_path: str, method: str = "GET") -> StreamingResponse:
        """Build a streaming response for *raw_path*."""
        method = method.upper()
        if method not in ("GET", "HEAD"):
            raise NotFound()

        relative = self._relative_path(raw_path)
        file_path = (self._directory / relative).resolve() if relative else self._directory
        if not file_path.is_relative_to(self._directory):
            logger.warning("Static path escapes root: %r", raw_path)
            raise Forbidden()

        if raw_path.endswith("/") or file_path.is_dir():
            file_path = file_path / self._index

        if not file_path.is_file():
            raise NotFound()

        size = file_path.stat().st_size
        return StreamingResponse(
            chunks=_read_chunks(file_path) if method == "GET" else _no_chunks(),
            content_type=content_type_for(file_path),
            content_length=size,
            head_only=method == "HEAD",
        )

    def _relative_path(self, raw_path: str) -> str:
        """Decode and vet *raw_path*; return it relative to the root."""
        raw_segments = raw_path.split("/")
        if ".." in raw_segments:
            raise Forbidden()
        try:
            decoded = unquote(raw_path, encoding="utf-8", errors="strict")
        except UnicodeDecodeError as exc:
            msg = "Path is not valid UTF-8"
            raise BadRequest(msg) from exc
        if "\x00" in decoded or "\\" in decoded:
            raise Forbidden()
        segments = [s for s in decoded.split("/") if s and s != "."]
        if ".." in segments:
            raise Forbidden()
        return "/".join(segments)


async def _read_chunks(path: Path) -> AsyncIterator[bytes]:
    async with await anyio.open_file(path, "rb") as f:
        while chunk := await f.read(CHUNK_SIZE):
            yield chunk


async def _no_chunks() -> AsyncIterator[bytes]:
    return
    yield
