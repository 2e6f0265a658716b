"""Routing — route table with O(path-depth) matching.

Routes are parsed from configuration during setup and compiled into an
immutable lookup structure when the app freezes.
"""

from pico.routing.route import Route, RouteMatch, Segment
from pico.routing.router import Router, parse_pattern
from pico.routing.table import RouteTable, build_route, routes_from_config

__all__ = [
    "Route",
    "RouteMatch",
    "RouteTable",
    "Router",
    "Segment",
    "build_route",
    "parse_pattern",
    "routes_from_config",
]
