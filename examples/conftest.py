"""Shared fixtures for the example projects."""

import sys
from pathlib import Path

import pytest

from pico.app import App
from pico.project import load_project

EXAMPLES = Path(__file__).parent


@pytest.fixture
def example_app(tmp_path, monkeypatch):
    """Load an example project with its SQLite file kept under ``tmp_path``."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(sys, "path", list(sys.path))

    def load(name: str) -> App:
        return load_project(EXAMPLES / name, environ={})

    return load
