"""Route table — built once from configuration, read-only afterwards.

The configuration shape mirrors a project's ``ROUTES`` constant::

    ROUTES = {
        "/": {"GET": {"VIEW": [{"TYPE": "MARKDOWN"}], "SQL": "home.sql"}},
        "/users/:id": {
            "GET": {"SQL": "get_user", "VIEW": [{"TYPE": "OBJECT"}]},
            "PUT": {"PREPROCESS": normalize, "SQL": "update_user"},
        },
    }

Stage keys are case-insensitive. ``SETJWT`` is accepted as an alias of
``SETCREDENTIAL``; ``SQL`` and ``FUNCTION`` both name the data-function.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from pico.errors import ConfigurationError
from pico.routing.route import Route, RouteMatch
from pico.routing.router import Router, normalize_pattern, parse_pattern
from pico.view.entities import parse_view

METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})

_STAGE_ALIASES = {
    "PREPROCESS": "preprocess",
    "SQL": "function",
    "FUNCTION": "function",
    "POLICY": "policy",
    "GUARD": "policy",
    "POSTPROCESS": "postprocess",
    "SETCREDENTIAL": "setcredential",
    "SETJWT": "setcredential",
    "VIEW": "view",
}

_CALLABLE_STAGES = ("preprocess", "policy", "postprocess", "setcredential")


def build_route(pattern: str, method: str, stages: Mapping[str, Any]) -> Route:
    """Build one ``Route`` from a stage mapping.

    Raises ``ConfigurationError`` for unknown methods, unknown stage keys,
    non-callable transforms, or an empty data-function name.
    """
    method = method.upper()
    if method not in METHODS:
        msg = f"Unsupported method {method!r} for route {pattern!r}."
        raise ConfigurationError(msg)
    if not isinstance(stages, Mapping):
        msg = f"Route {method} {pattern!r} must map stage names to values."
        raise ConfigurationError(msg)

    kwargs: dict[str, Any] = {}
    for key, value in stages.items():
        name = _STAGE_ALIASES.get(str(key).upper())
        if name is None:
            msg = f"Unknown stage {key!r} in route {method} {pattern!r}."
            raise ConfigurationError(msg)
        if name in kwargs:
            msg = f"Stage {name!r} declared twice in route {method} {pattern!r}."
            raise ConfigurationError(msg)
        kwargs[name] = value

    for name in _CALLABLE_STAGES:
        fn = kwargs.get(name)
        if fn is not None and not callable(fn):
            msg = f"{name.upper()} of route {method} {pattern!r} must be callable."
            raise ConfigurationError(msg)

    function = kwargs.get("function")
    if function is not None:
        kwargs["function"] = function_name(function, f"{method} {pattern!r}")

    kwargs["view"] = parse_view(kwargs.get("view"))
    return Route(
        pattern=normalize_pattern(pattern),
        method=method,
        segments=parse_pattern(pattern),
        **kwargs,
    )


def function_name(value: Any, where: str = "") -> str:
    """Normalize a data-function reference: ``"get_user.sql"`` -> ``"get_user"``."""
    if not isinstance(value, str) or not value.strip():
        msg = f"Data-function name must be a non-empty string{f' in {where}' if where else ''}."
        raise ConfigurationError(msg)
    name = value.strip()
    name = name.rsplit("/", 1)[-1]
    if name.lower().endswith(".sql"):
        name = name[:-4]
    return name


def routes_from_config(config: Mapping[str, Any]) -> list[Route]:
    """Parse a ``{pattern: {METHOD: {STAGE: value}}}`` mapping."""
    if not isinstance(config, Mapping):
        msg = f"ROUTES must be a mapping, got {type(config).__name__}."
        raise ConfigurationError(msg)
    routes: list[Route] = []
    for pattern, methods in config.items():
        if not isinstance(pattern, str):
            msg = f"Route pattern must be a string, got {pattern!r}."
            raise ConfigurationError(msg)
        if not isinstance(methods, Mapping):
            msg = f"Route {pattern!r} must map HTTP methods to stages."
            raise ConfigurationError(msg)
        for method, stages in methods.items():
            routes.append(build_route(pattern, str(method), stages))
    return routes


@dataclass(frozen=True, slots=True)
class RouteTable:
    """Immutable route table shared by all in-flight requests."""

    _router: Router

    @classmethod
    def build(cls, routes: list[Route]) -> RouteTable:
        """Compile *routes* into a table. Duplicates raise ``ConfigurationError``."""
        router = Router()
        for route in routes:
            router.add(route)
        router.compile()
        return cls(router)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> RouteTable:
        return cls.build(routes_from_config(config))

    def match(self, method: str, path: str) -> RouteMatch | None:
        """Resolve (method, raw path); ``None`` means try static assets."""
        return self._router.match(method, path)

    @property
    def routes(self) -> list[Route]:
        return self._router.routes

    def function_names(self) -> set[str]:
        """Data-functions referenced by any route."""
        return {r.function for r in self.routes if r.function}

    def __len__(self) -> int:
        return len(self._router)

    def __iter__(self) -> Iterator[Route]:
        return iter(self.routes)


