"""Serve a pico App with pounce.

Pounce's ``run()`` takes an import string, but pico has a live ``App``
object built from a project file. We use ``pounce.Server`` directly
with the ASGI callable.
"""


def run_server(
    app: object,
    host: str,
    port: int,
    *,
    reload: bool = False,
    reload_dirs: tuple[str, ...] = (),
    workers: int = 1,
) -> None:
    """Start a pounce server with the given pico App.

    Args:
        app: ASGI callable (pico App instance).
        host: Bind host address.
        port: Bind port number.
        reload: Enable auto-reload on file changes.
        reload_dirs: Extra directories to watch alongside cwd (the
            project's function and migration folders).
        workers: Worker count.
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    config = ServerConfig(
        host=host,
        port=port,
        workers=workers,
        reload=reload,
        reload_include=(".sql", ".py") if reload else (),
        reload_dirs=reload_dirs,
    )
    server = Server(config, app)
    server.run()
