"""``pico routes`` — list the route table.

Resolves a project to an App and prints every route with its method,
pattern, and declared stages.
"""

import argparse
import sys

from pico.cli._resolve import resolve_app
from pico.errors import ConfigurationError


def run_routes(args: argparse.Namespace) -> None:
    """Print a table of METHOD, PATTERN, and STAGES."""
    try:
        app = resolve_app(args.app)
        app._ensure_frozen()
    except (ConfigurationError, ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    routes = app.routes
    if not routes:
        print("No routes registered.")
        return

    rows: list[tuple[str, str, str]] = []
    for route in sorted(routes, key=lambda r: (r.pattern, r.method)):
        stages = ", ".join(route.stages)
        if route.function:
            stages = stages.replace("DATA-CALL", f"DATA-CALL({route.function})")
        rows.append((route.method, route.pattern, stages or "-"))

    # Column widths
    max_method = max(max(len(r[0]) for r in rows), 6)  # "METHOD" header
    max_pattern = max(max(len(r[1]) for r in rows), 7)  # "PATTERN" header

    fmt = f"{{:<{max_method}}}  {{:<{max_pattern}}}  {{}}"
    print(fmt.format("METHOD", "PATTERN", "STAGES"))
    sep_len = max_method + max_pattern + 4 + max((len(r[2]) for r in rows), default=0)
    print("-" * min(sep_len, 80))
    for method, pattern, stages in rows:
        print(fmt.format(method, pattern, stages))
