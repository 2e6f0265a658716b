"""Project loader — build an App from a Python route module.

A project is a directory holding a ``config.py`` (or any single module
passed explicitly) plus optional ``functions/``, ``migrations/`` and
``public/`` folders::

    # config.py
    DB = "sqlite:///app.db"
    ROUTES = {
        "/": {"GET": {"VIEW": [{"TYPE": "LINKS", "LINKS": [{"value": "login"}]}]}},
        "/ping": {"GET": {"SQL": "pong.sql"}},
    }

Module constants override ``PICO_*`` environment variables, which
override the ``AppConfig`` defaults.
"""

import importlib.util
import logging
import sys
from pathlib import Path
from types import ModuleType
from typing import Any

from pico.app import App
from pico.config import AppConfig
from pico.errors import ConfigurationError

logger = logging.getLogger("pico.project")

DEFAULT_MODULE = "config.py"

# Module constant -> AppConfig field
SETTINGS: dict[str, str] = {
    "DB": "db",
    "HOST": "host",
    "PORT": "port",
    "DEBUG": "debug",
    "SECRET_KEY": "secret_key",
    "TITLE": "title",
    "STATIC_DIR": "static_dir",
    "STATIC_INDEX": "static_index",
    "FUNCTIONS_DIR": "functions_dir",
    "MIGRATIONS_DIR": "migrations_dir",
    "COOKIE_NAME": "cookie_name",
    "COOKIE_MAX_AGE": "cookie_max_age",
    "COOKIE_SECURE": "cookie_secure",
    "LOG_LEVEL": "log_level",
}


def find_module(path: str | Path) -> Path:
    """The route module for *path*: the file itself, or ``config.py`` inside it."""
    path = Path(path)
    if path.is_dir():
        path = path / DEFAULT_MODULE
    if not path.is_file():
        msg = f"No pico project module at {path}"
        raise ConfigurationError(msg)
    return path.resolve()


def load_module(path: str | Path) -> ModuleType:
    """Import a route module from a file path.

    The project directory is put on ``sys.path`` first so the module can
    import helpers that live next to it.
    """
    module_path = find_module(path)
    project_dir = str(module_path.parent)
    if project_dir not in sys.path:
        sys.path.insert(0, project_dir)

    name = f"pico_project_{module_path.stem}"
    spec = importlib.util.spec_from_file_location(name, module_path)
    if spec is None or spec.loader is None:
        msg = f"Cannot import {module_path}"
        raise ConfigurationError(msg)
    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    spec.loader.exec_module(module)
    return module


def config_from_module(module: ModuleType, environ: dict[str, str] | None = None) -> AppConfig:
    """Build an ``AppConfig`` from the module's constants and the environment."""
    overrides: dict[str, Any] = {}
    for constant, field_name in SETTINGS.items():
        value = getattr(module, constant, None)
        if value is not None:
            overrides[field_name] = value
    return AppConfig.from_env(environ, **overrides)


def load_project(path: str | Path, *, environ: dict[str, str] | None = None) -> App:
    """Load the project at *path* and return an unfrozen ``App``."""
    module_path = find_module(path)
    module = load_module(module_path)

    routes = getattr(module, "ROUTES", None)
    if routes is None:
        msg = f"{module_path} does not define ROUTES"
        raise ConfigurationError(msg)

    functions = getattr(module, "FUNCTIONS", None)
    app = App(
        config_from_module(module, environ),
        routes=routes,
        functions=functions,
        root=module_path.parent,
    )
    logger.debug("Loaded project %s (%d route(s))", module_path, len(app.routes))
    return app
