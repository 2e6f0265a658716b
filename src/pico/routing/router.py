"""Compiled router with trie-based path matching.

Routes are registered during setup and compiled into an immutable
lookup structure when the app freezes.
"""

import re

from pico.errors import ConfigurationError
from pico.routing.route import Route, RouteMatch, Segment

_VAR_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def split_path(path: str) -> list[str]:
    """Split a path into its non-empty segments.

    Leading, trailing, and doubled slashes are ignored, so ``""``,
    ``"/"``, and ``"//"`` all denote the root.
    """
    return [part for part in path.split("/") if part]


def parse_pattern(pattern: str) -> tuple[Segment, ...]:
    """Parse a route pattern string into segments.

    Examples::

        "/"              -> ()
        "/users"         -> (Segment("users"),)
        "/users/:id"     -> (Segment("users"), Segment("id", is_var=True))

    Raises ``ConfigurationError`` for an invalid or repeated variable name.
    """
    segments: list[Segment] = []
    seen: set[str] = set()
    for part in split_path(pattern):
        if not part.startswith(":"):
            segments.append(Segment(part))
            continue
        name = part[1:]
        if not _VAR_NAME.match(name):
            msg = f"Invalid path variable {part!r} in route {pattern!r}."
            raise ConfigurationError(msg)
        if name in seen:
            msg = f"Path variable {name!r} appears twice in route {pattern!r}."
            raise ConfigurationError(msg)
        seen.add(name)
        segments.append(Segment(name, is_var=True))
    return tuple(segments)


def normalize_pattern(pattern: str) -> str:
    """Canonical spelling of a pattern: leading slash, no trailing slash."""
    return "/" + "/".join(split_path(pattern))


class _TrieNode:
    """A node in the route trie. Mutable during compilation only."""

    __slots__ = ("children", "routes_by_method", "var_child")

    def __init__(self) -> None:
        # Literal segment children: "users" -> node
        self.children: dict[str, _TrieNode] = {}
        # One variable edge per level; names live on the routes
        self.var_child: _TrieNode | None = None
        # Routes ending at this node, keyed by HTTP method
        self.routes_by_method: dict[str, Route] = {}


class Router:
    """Compiled router with trie-based path matching.

    Literal segments outrank variable segments at the same position.
    When the literal branch cannot complete a match for the request
    method, matching backtracks to the variable edge.

    Usage::

        router = Router()
        router.add(Route("/users/:id", "GET", parse_pattern("/users/:id")))
        router.compile()
        match = router.match("GET", "/users/42")
    """

    __slots__ = ("_compiled", "_count", "_root")

    def __init__(self) -> None:
        self._root = _TrieNode()
        self._compiled = False
        self._count = 0

    def add(self, route: Route) -> None:
        """Add a route. Must be called before compile().

        Raises ``ConfigurationError`` if a route with the same segment
        shape is already registered for the method, including patterns
        that differ only in variable names.
        """
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)

        node = self._root
        for seg in route.segments:
            if seg.is_var:
                if node.var_child is None:
                    node.var_child = _TrieNode()
                node = node.var_child
            else:
                node = node.children.setdefault(seg.value, _TrieNode())

        existing = node.routes_by_method.get(route.method)
        if existing is not None:
            msg = (
                f"Duplicate route {route.method} {route.pattern!r}: "
                f"conflicts with {existing.pattern!r}."
            )
            raise ConfigurationError(msg)
        node.routes_by_method[route.method] = route
        self._count += 1

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    def __len__(self) -> int:
        return self._count

    @property
    def routes(self) -> list[Route]:
        """All registered routes, literal branches before variable ones."""
        result: list[Route] = []
        stack = [self._root]
        while stack:
            node = stack.pop()
            result.extend(node.routes_by_method.values())
            if node.var_child is not None:
                stack.append(node.var_child)
            stack.extend(reversed(list(node.children.values())))
        return result

    def match(self, method: str, path: str) -> RouteMatch | None:
        """Match a method and raw path against compiled routes.

        Returns ``None`` when nothing matches, including when the path
        exists but not for *method*. Captured values are the raw segment
        text, bound under the matched route's variable names.
        """
        parts = split_path(path)
        found = self._match_node(self._root, method, parts, 0, [])
        if found is None:
            return None
        route, values = found
        return RouteMatch(route=route, path_params=dict(zip(route.var_names, values, strict=True)))

    def _match_node(
        self,
        node: _TrieNode,
        method: str,
        parts: list[str],
        index: int,
        values: list[str],
    ) -> tuple[Route, list[str]] | None:
        if index == len(parts):
            route = node.routes_by_method.get(method)
            return (route, values) if route is not None else None

        part = parts[index]

        child = node.children.get(part)
        if child is not None:
            found = self._match_node(child, method, parts, index + 1, values)
            if found is not None:
                return found

        if node.var_child is not None:
            return self._match_node(node.var_child, method, parts, index + 1, [*values, part])

        return None
