"""ASGI handler — translates ASGI scope/messages to pico types.

The only component that touches raw ASGI directly. Converts scope dicts
to typed Request objects, dispatches through the route table, pipeline,
and static resolver, and sends the Response back through ASGI send().
"""

import logging
from collections.abc import Awaitable, Callable

import anyio

from pico._internal.asgi import Receive, Scope, Send
from pico.credentials import CredentialManager
from pico.data.errors import DataError
from pico.errors import HTTPError, NotFound
from pico.http.request import Request
from pico.http.response import AnyResponse, StreamingResponse
from pico.pipeline.context import PipelineContext
from pico.pipeline.executor import PipelineExecutor
from pico.pipeline.params import assemble_params
from pico.routing.table import RouteTable
from pico.server.errors import handle_data_error, handle_http_error, handle_internal_error
from pico.server.negotiation import negotiate
from pico.server.sender import send_response, send_streaming_response
from pico.static import StaticResolver
from pico.view.renderer import ViewRenderer

logger = logging.getLogger("pico.server")


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    table: RouteTable,
    executor: PipelineExecutor,
    credentials: CredentialManager,
    renderer: ViewRenderer,
    static: StaticResolver | None = None,
    max_body: int | None = None,
    debug: bool = False,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive, max_body=max_body)

    try:
        response = await _dispatch(
            request,
            table=table,
            executor=executor,
            credentials=credentials,
            renderer=renderer,
            static=static,
        )
    except HTTPError as exc:
        response = handle_http_error(exc, request, debug=debug)
    except DataError as exc:
        response = handle_data_error(exc, request, debug=debug)
    except Exception as exc:
        response = handle_internal_error(exc, request, debug=debug)

    if response is None:
        logger.debug("Client disconnected: %s %s", request.method, request.path)
        return

    logger.debug("%d %s %s", response.status, request.method, request.path)
    if isinstance(response, StreamingResponse):
        await send_streaming_response(response, send)
    else:
        await send_response(response, send, head_only=request.method == "HEAD")


async def _dispatch(
    request: Request,
    *,
    table: RouteTable,
    executor: PipelineExecutor,
    credentials: CredentialManager,
    renderer: ViewRenderer,
    static: StaticResolver | None,
) -> AnyResponse | None:
    """Route, run the pipeline, and negotiate. ``None`` means the client left."""
    match = table.match(request.method, request.raw_path)
    if match is None:
        if static is None:
            raise NotFound()
        return static.resolve(request.raw_path, request.method)

    route = match.route
    params = await assemble_params(request, match.path_params)
    claims, presented = credentials.read(request)

    ctx = await _run_watched(
        request, lambda should_stop: executor.run(route, params, claims, should_stop=should_stop)
    )
    if ctx is None:
        return None

    response = negotiate(ctx.result, request=request, view=route.view, renderer=renderer)
    cookie = credentials.outbound(ctx.inbound_claims, ctx.claims, presented=presented)
    if cookie is not None:
        response = response.with_cookie(cookie)
    return response


async def _run_watched(
    request: Request,
    run: Callable[[Callable[[], bool]], Awaitable[PipelineContext | None]],
) -> PipelineContext | None:
    """Run the pipeline while watching the ASGI receive channel.

    Once the body has been read, the only message a server can still
    deliver is ``http.disconnect``. The pipeline polls the returned
    flag between stages.
    """
    disconnected = False

    def should_stop() -> bool:
        return disconnected or bool(request._cache.get("_disconnected"))

    async def watch() -> None:
        nonlocal disconnected
        while True:
            message = await request._receive()
            if message["type"] == "http.disconnect":
                disconnected = True
                return

    error: Exception | None = None
    ctx: PipelineContext | None = None
    async with anyio.create_task_group() as tg:
        if request.body_consumed and not should_stop():
            tg.start_soon(watch)
        try:
            ctx = await run(should_stop)
        except Exception as exc:
            # Re-raised below so the task group does not wrap it.
            error = exc
        finally:
            tg.cancel_scope.cancel()
    if error is not None:
        raise error
    return ctx
