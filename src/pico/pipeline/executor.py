"""Pipeline executor — run a route's declared stages in order.

Stage order::

    PREPROCESS -> DATA-CALL -> POLICY -> POSTPROCESS -> SETCREDENTIAL

VIEW is left to the server, which renders the final result once content
negotiation has picked a representation. Undeclared stages pass their
input through unchanged. The first stage that raises aborts the rest.
"""

import logging
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

import anyio

from pico._internal.invoke import call_transform
from pico.data.errors import DataError
from pico.data.functions import FunctionCatalog
from pico.errors import Forbidden, HTTPError, TransformError, Unauthorized
from pico.pipeline.context import PipelineContext
from pico.routing.route import Route

logger = logging.getLogger("pico.pipeline")


class PipelineExecutor:
    """Execute routes against a data-function catalog.

    Usage::

        executor = PipelineExecutor(catalog)
        ctx = await executor.run(route, params, claims)
        ctx.result, ctx.claims
    """

    __slots__ = ("_catalog",)

    def __init__(self, catalog: FunctionCatalog | None = None) -> None:
        self._catalog = catalog

    async def run(
        self,
        route: Route,
        params: Mapping[str, Any],
        claims: Mapping[str, Any] | None = None,
        *,
        should_stop: Callable[[], bool] | None = None,
    ) -> PipelineContext | None:
        """Run *route* and return the finished context.

        Returns ``None`` when *should_stop* reports that the client went
        away; remaining stages are skipped without an error.
        """
        inbound = dict(claims) if claims is not None else None
        ctx = PipelineContext(params=dict(params), claims=inbound, inbound_claims=inbound)

        def stopped() -> bool:
            if should_stop is not None and should_stop():
                logger.debug("Client gone before %s on %s %s", ctx.stage, route.method, route.pattern)
                return True
            return False

        if route.preprocess is not None:
            ctx.stage = "PREPROCESS"
            if stopped():
                return None
            await self._preprocess(route, ctx)

        if route.function is not None:
            ctx.stage = "DATA-CALL"
            if stopped():
                return None
            ctx.result = await self._data_call(route.function, ctx.params)

        if route.policy is not None:
            ctx.stage = "POLICY"
            if stopped():
                return None
            await self._check_policy(route, ctx)

        if route.postprocess is not None:
            ctx.stage = "POSTPROCESS"
            if stopped():
                return None
            ctx.result = await self._transform("POSTPROCESS", route.postprocess, ctx.result, ctx.claims)

        if route.setcredential is not None:
            ctx.stage = "SETCREDENTIAL"
            if stopped():
                return None
            await self._setcredential(route, ctx)

        ctx.stage = None
        return ctx

    # -- Stages --

    async def _preprocess(self, route: Route, ctx: PipelineContext) -> None:
        params = await self._transform("PREPROCESS", route.preprocess, ctx.params, ctx.claims)
        if params is None:
            return
        if not isinstance(params, Mapping):
            msg = f"PREPROCESS must return a mapping, got {type(params).__name__}"
            raise TransformError("PREPROCESS", msg)
        ctx.params = dict(params)

    async def _data_call(self, name: str, params: Mapping[str, Any]) -> Any:
        if self._catalog is None:
            msg = f"Route calls data-function {name!r} but no catalog is configured"
            raise DataError(msg)
        logger.debug("DATA-CALL %s(%s)", name, ", ".join(params))
        # Once dispatched, the call finishes even if the client disconnects.
        with anyio.CancelScope(shield=True):
            return await self._catalog.call(name, params)

    async def _check_policy(self, route: Route, ctx: PipelineContext) -> None:
        allowed = await self._transform("POLICY", route.policy, ctx.result, ctx.claims)
        if allowed:
            return
        logger.debug("Policy refused %s %s", route.method, route.pattern)
        if ctx.claims is None:
            raise Unauthorized()
        raise Forbidden()

    async def _setcredential(self, route: Route, ctx: PipelineContext) -> None:
        view = _read_only(ctx.claims)
        claims = await self._transform_raw("SETCREDENTIAL", route.setcredential, ctx.result, view)
        if claims is view:
            return
        if claims is None:
            ctx.claims = None
            return
        if not isinstance(claims, Mapping):
            msg = f"SETCREDENTIAL must return a mapping or None, got {type(claims).__name__}"
            raise TransformError("SETCREDENTIAL", msg)
        ctx.claims = dict(claims) or None

    # -- Invocation --

    async def _transform(
        self,
        stage: str,
        func: Callable[..., Any],
        value: Any,
        claims: Mapping[str, Any] | None,
    ) -> Any:
        return await self._transform_raw(stage, func, value, _read_only(claims))

    async def _transform_raw(
        self,
        stage: str,
        func: Callable[..., Any],
        value: Any,
        claims: Mapping[str, Any] | None,
    ) -> Any:
        try:
            return await call_transform(func, value, claims)
        except (HTTPError, DataError):
            raise
        except Exception as exc:
            logger.exception("%s transform %s raised", stage, getattr(func, "__qualname__", func))
            raise TransformError(stage) from exc


def _read_only(claims: Mapping[str, Any] | None) -> Mapping[str, Any] | None:
    if claims is None:
        return None
    return MappingProxyType(claims)
