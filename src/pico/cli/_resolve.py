"""App resolution — turns a CLI target into an App instance.

Shared by ``pico run`` and ``pico routes``. A target is either a project
path (a directory with ``config.py`` or a ``.py`` file) or a
``"module:attribute"`` import string.
"""

import importlib
from pathlib import Path

from pico.app import App
from pico.project import load_project


def is_project_path(target: str) -> bool:
    path = Path(target)
    return target.endswith(".py") or path.is_dir()


def resolve_app(target: str) -> App:
    """Resolve *target* to a pico App instance.

    Import strings default to the ``app`` attribute (``"blog"`` resolves
    to ``blog.app``). Factory functions are called.

    Raises:
        ConfigurationError: If a project path is not a valid project.
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        TypeError: If the resolved object is not a pico ``App`` or callable.
    """
    if is_project_path(target):
        return load_project(target)

    module_path, _, attr_name = target.partition(":")
    if not attr_name:
        attr_name = "app"

    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name)

    # Support factory functions - call them if they're not already an App
    if callable(obj) and not isinstance(obj, App):
        try:
            obj = obj()
        except Exception as exc:
            msg = f"Factory function {target!r} raised an error: {exc}"
            raise TypeError(msg) from exc

    if not isinstance(obj, App):
        msg = f"{target!r} resolved to {type(obj).__name__}, not a pico.App instance"
        raise TypeError(msg)

    return obj
