"""Pico CLI — serve a project and inspect its route table.

Entry point registered as ``pico`` in ``pyproject.toml``::

    [project.scripts]
    pico = "pico.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``pico`` command."""
    parser = argparse.ArgumentParser(
        prog="pico",
        description="Pico — declarative routes, database functions, and views.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- pico run ---------------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Serve a project")
    run_parser.add_argument(
        "app",
        nargs="?",
        default=".",
        help="Project directory, route module (.py), or import string (default: .)",
    )
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port number")
    run_parser.add_argument("--workers", type=int, default=1, help="Worker count")
    run_parser.add_argument(
        "--debug",
        action="store_true",
        help="Debug mode: auto-reload, tracebacks in error responses",
    )

    # -- pico routes ------------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List the route table")
    routes_parser.add_argument(
        "app",
        nargs="?",
        default=".",
        help="Project directory, route module (.py), or import string (default: .)",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "run":
        from pico.cli._run import run_server

        run_server(args)
    elif args.command == "routes":
        from pico.cli._routes import run_routes

        run_routes(args)
