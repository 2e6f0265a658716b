"""``pico run`` — serve a project.

Resolves a project to a pico App and starts pounce with it.
"""

import argparse
import logging
import sys

from pico.cli._resolve import resolve_app
from pico.errors import ConfigurationError


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )


def run_server(args: argparse.Namespace) -> None:
    """Start the server for ``args.app``.

    CLI flags override the project's host, port, and debug settings.
    """
    try:
        app = resolve_app(args.app)
    except (ConfigurationError, ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    if args.debug:
        app.config = app.config.with_overrides(debug=True, log_level="debug")
    configure_logging(app.config.log_level)

    host = args.host or app.config.host
    port = args.port or app.config.port

    from pico.server.dev import run_server as serve

    reload_dirs = tuple(
        str(path)
        for path in (
            app.resolve_dir(app.config.functions_dir),
            app.resolve_dir(app.config.migrations_dir),
        )
        if path is not None and path.is_dir()
    )
    serve(
        app,
        host,
        port,
        reload=app.config.debug,
        reload_dirs=reload_dirs,
        workers=args.workers,
    )
