"""Tests for pico.project — loading an App from a route module."""

import sys
import textwrap

import pytest

from pico.app import App
from pico.errors import ConfigurationError
from pico.project import find_module, load_project
from pico.testing import TestClient


@pytest.fixture(autouse=True)
def _isolate_imports(monkeypatch: pytest.MonkeyPatch) -> None:
    """Project loading prepends to sys.path; undo it after each test."""
    monkeypatch.setattr(sys, "path", list(sys.path))


def _write(path, source: str) -> None:
    path.write_text(textwrap.dedent(source))


class TestFindModule:
    def test_directory_uses_config_py(self, tmp_path) -> None:
        (tmp_path / "config.py").write_text("ROUTES = {}")
        assert find_module(tmp_path) == (tmp_path / "config.py").resolve()

    def test_explicit_file(self, tmp_path) -> None:
        (tmp_path / "site.py").write_text("ROUTES = {}")
        assert find_module(tmp_path / "site.py").name == "site.py"

    def test_missing(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError, match="No pico project module"):
            find_module(tmp_path)


class TestLoadProject:
    def test_settings_from_constants(self, tmp_path) -> None:
        _write(
            tmp_path / "config.py",
            """
            DB = "sqlite:///:memory:"
            PORT = 3000
            SECRET_KEY = "from-module"
            TITLE = "Demo"
            ROUTES = {"/ping": {"GET": {"SQL": "pong.sql"}}}
            """,
        )
        app = load_project(tmp_path, environ={})
        assert isinstance(app, App)
        assert app.config.port == 3000
        assert app.config.secret_key == "from-module"
        assert app.config.title == "Demo"
        assert app.db.driver == "sqlite"
        assert [(r.method, r.pattern, r.function) for r in app.routes] == [
            ("GET", "/ping", "pong")
        ]

    def test_constants_beat_environment(self, tmp_path) -> None:
        _write(tmp_path / "config.py", 'PORT = 3000\nROUTES = {}\n')
        app = load_project(tmp_path, environ={"PICO_PORT": "4000", "PICO_HOST": "0.0.0.0"})
        assert app.config.port == 3000
        assert app.config.host == "0.0.0.0"

    def test_missing_routes(self, tmp_path) -> None:
        (tmp_path / "config.py").write_text("DB = None\n")
        with pytest.raises(ConfigurationError, match="does not define ROUTES"):
            load_project(tmp_path, environ={})

    def test_invalid_routes(self, tmp_path) -> None:
        (tmp_path / "config.py").write_text('ROUTES = {"/": {"GET": {"RENDER": 1}}}\n')
        with pytest.raises(ConfigurationError, match="Unknown stage"):
            load_project(tmp_path, environ={})

    async def test_helpers_next_to_module(self, tmp_path) -> None:
        _write(
            tmp_path / "pico_test_transforms.py",
            """
            def shout(result):
                return result.upper()
            """,
        )
        _write(
            tmp_path / "config.py",
            """
            from pico_test_transforms import shout

            def greet(name="world"):
                return f"hello {name}"

            FUNCTIONS = {"greet": greet}
            ROUTES = {"/greet": {"GET": {"SQL": "greet", "POSTPROCESS": shout}}}
            """,
        )
        try:
            app = load_project(tmp_path, environ={})
            async with TestClient(app) as client:
                response = await client.get("/greet", query={"name": "pico"})
        finally:
            sys.modules.pop("pico_test_transforms", None)
        assert response.text == "HELLO PICO"

    async def test_directories_resolve_against_project(self, tmp_path) -> None:
        (tmp_path / "public").mkdir()
        (tmp_path / "public" / "hello.txt").write_text("hi")
        (tmp_path / "config.py").write_text("ROUTES = {}\n")
        app = load_project(tmp_path, environ={})
        async with TestClient(app) as client:
            response = await client.get("/hello.txt")
        assert response.text == "hi"
