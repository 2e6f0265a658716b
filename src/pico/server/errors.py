"""Error mapping for pico requests.

Turns ``HTTPError``, data-layer failures, and unexpected exceptions into
Response objects. htmx requests get a small fragment plus headers that
steer it into a dedicated error container.
"""

import html
import logging
import traceback

from pico.data.errors import DataError, redact
from pico.errors import HTTPError
from pico.http.request import Request
from pico.http.response import Response

logger = logging.getLogger("pico.server")


def default_fragment_error(status: int, detail: str) -> str:
    """Minimal HTML snippet for fragment error responses."""
    return f'<div class="pico-error" data-status="{status}">{html.escape(detail)}</div>'


def _with_htmx_error_headers(response: Response, request: Request) -> Response:
    """Add htmx error-handling headers when the request is a fragment.

    Headers added:
    - ``HX-Retarget: #pico-error`` — redirect error content to a dedicated container
    - ``HX-Reswap: innerHTML`` — replace (not append) the error content
    - ``HX-Trigger: picoError`` — fire a client-side event for custom handling
    """
    if not request.is_fragment:
        return response
    return (
        response
        .with_header("HX-Retarget", "#pico-error")
        .with_header("HX-Reswap", "innerHTML")
        .with_header("HX-Trigger", "picoError")
    )


def _error_response(status: int, detail: str, request: Request) -> Response:
    if request.is_fragment:
        resp = Response(body=default_fragment_error(status, detail), status=status)
        return _with_htmx_error_headers(resp, request)
    return Response.plain(detail, status=status)


def handle_http_error(exc: HTTPError, request: Request, *, debug: bool = False) -> Response:
    """Map an HTTPError to a Response carrying its status and detail."""
    logger.debug("%d %s %s — %s", exc.status, request.method, request.path, exc.detail)
    if exc.status >= 500 and exc.__cause__ is not None:
        logger.error(
            "%d %s %s",
            exc.status,
            request.method,
            request.path,
            exc_info=(type(exc.__cause__), exc.__cause__, exc.__cause__.__traceback__),
        )

    detail = exc.detail or f"Error {exc.status}"
    if debug and exc.status >= 500 and exc.__cause__ is not None:
        detail = f"{detail}\n\n{_format_traceback(exc.__cause__)}"

    resp = _error_response(exc.status, detail, request)
    for name, value in exc.headers:
        resp = resp.with_header(name, value)
    return resp


def handle_data_error(exc: DataError, request: Request, *, debug: bool = False) -> Response:
    """Data-layer failures are 500s whose message never leaks credentials."""
    logger.error("500 %s %s — %s", request.method, request.path, exc)
    detail = f"Database error: {redact(str(exc))}" if str(exc) else "Database error"
    if debug and exc.__cause__ is not None:
        detail = f"{detail}\n\n{redact(_format_traceback(exc.__cause__))}"
    return _error_response(500, detail, request)


def handle_internal_error(exc: Exception, request: Request, *, debug: bool = False) -> Response:
    """Handle unexpected exceptions as 500 errors."""
    logger.exception("500 %s %s", request.method, request.path)
    detail = "Internal Server Error"
    if debug:
        detail = f"{detail}\n\n{redact(_format_traceback(exc))}"
    return _error_response(500, detail, request)


def _format_traceback(exc: BaseException) -> str:
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
