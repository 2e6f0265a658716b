"""Pico exception hierarchy.

Shared across the route table, pipeline, static resolver, and server
so every module raises and catches the same types.
"""

from dataclasses import dataclass


class PicoError(Exception):
    """Base for all pico-specific errors."""


class ConfigurationError(PicoError):
    """Raised when the route table or app configuration is invalid.

    Typically raised while loading a project or during ``App._freeze()``.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(PicoError):
    """An error that maps directly to an HTTP status code.

    Raised by the assembler, pipeline stages, or static resolver. The
    ASGI handler catches these and turns them into error responses.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404 — no route and no static file matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class BadRequest(HTTPError):  # noqa: N818
    """400 — unparsable body or a missing data-function argument."""

    def __init__(self, detail: str = "Bad Request") -> None:
        super().__init__(status=400, detail=detail)


class Unauthorized(HTTPError):  # noqa: N818
    """401 — a guard refused the request and no credentials were presented."""

    def __init__(self, detail: str = "Unauthorized") -> None:
        super().__init__(status=401, detail=detail)


class Forbidden(HTTPError):  # noqa: N818
    """403 — credentials were presented but are not sufficient.

    Also used by the static resolver for paths escaping the root.
    """

    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(status=403, detail=detail)


class TransformError(HTTPError):
    """500 — a transform callable failed unexpectedly.

    Carries the failing stage name so logs point at the right callable.
    The original exception is chained as ``__cause__``.
    """

    def __init__(self, stage: str, detail: str = "") -> None:
        super().__init__(status=500, detail=detail or f"{stage} transform failed")
