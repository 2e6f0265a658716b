"""Content negotiation — maps a pipeline result to a Response.

isinstance-based dispatch, no magic, fully predictable:

1. Route declares a view and the client does not insist on JSON
   -> rendered HTML (layout for full pages, bare entities for htmx)
2. ``str`` / ``bytes`` result -> ``text/plain``
3. anything else -> ``application/json``
"""

from collections.abc import Sequence
from typing import Any

from pico.http.request import Request
from pico.http.response import Response
from pico.view.entities import ViewEntity
from pico.view.renderer import ViewRenderer


def wants_json(request: Request) -> bool:
    """True when the client asks for JSON and not for HTML."""
    accept = request.accept.lower()
    return "application/json" in accept and "text/html" not in accept


def negotiate(
    result: Any,
    *,
    request: Request,
    view: Sequence[ViewEntity] = (),
    renderer: ViewRenderer | None = None,
) -> Response:
    """Convert a pipeline result to a Response for *request*."""
    if view and renderer is not None and not wants_json(request):
        if request.is_fragment:
            return Response(body=renderer.render_fragment(view, result))
        return Response(body=renderer.render(view, result))

    match result:
        case str():
            return Response.plain(result)
        case bytes():
            return Response.plain(result.decode("utf-8", "replace"))
        case _:
            return Response.json_body(result)
