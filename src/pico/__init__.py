"""Pico — declarative routes, database functions, and views.

A route table binds URL patterns and methods to a pipeline of optional
stages (preprocess, data-call, policy, postprocess, set-credential,
view). Everything else is a static file.

Basic usage::

    from pico import App, AppConfig

    app = App(
        AppConfig(db="sqlite:///app.db"),
        routes={"/ping": {"GET": {"SQL": "pong.sql"}}},
    )

Projects (``config.py`` with ``ROUTES``, ``DB``, ...) run from the CLI::

    pico run ./myproject
"""

# Declare free-threading support (PEP 703)
_Py_mod_gil = 0

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "BadRequest",
    "ConfigurationError",
    "Forbidden",
    "HTTPError",
    "NotFound",
    "PicoError",
    "Request",
    "Response",
    "Unauthorized",
    "load_project",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import pico`` fast while providing a clean top-level API.
    """
    if name == "App":
        from pico.app import App

        return App

    if name == "AppConfig":
        from pico.config import AppConfig

        return AppConfig

    if name == "Request":
        from pico.http.request import Request

        return Request

    if name == "Response":
        from pico.http.response import Response

        return Response

    if name == "load_project":
        from pico.project import load_project

        return load_project

    if name in (
        "BadRequest",
        "ConfigurationError",
        "Forbidden",
        "HTTPError",
        "NotFound",
        "PicoError",
        "Unauthorized",
    ):
        from pico import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
