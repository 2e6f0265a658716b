"""Data layer error hierarchy.

Every message that reaches a ``DataError`` passes through ``redact``
first, so connection strings never leak credentials into logs or
error responses.
"""

import re

from pico.errors import PicoError

_URL_CREDENTIALS = re.compile(r"(?P<scheme>[a-zA-Z][a-zA-Z0-9+.-]*://)[^/@\s]+@")
_PASSWORD_PAIR = re.compile(r"(?i)\b(password|passwd|pwd)\s*=\s*('[^']*'|\"[^\"]*\"|\S+)")


def redact(text: str) -> str:
    """Strip credentials from URLs and ``password=...`` pairs in *text*."""
    text = _URL_CREDENTIALS.sub(r"\g<scheme>***@", text)
    return _PASSWORD_PAIR.sub(r"\1=***", text)


class DataError(PicoError):
    """Base for all pico.data errors. Maps to HTTP 500."""

    def __init__(self, message: str = "") -> None:
        super().__init__(redact(message))


class DriverNotInstalledError(DataError):
    """Raised when the required database driver is not installed."""


class ConnectionError(DataError):  # noqa: A001
    """Raised when a database connection cannot be established."""


class QueryError(DataError):
    """Raised when a SQL statement or data-function call fails."""


class FunctionNotFoundError(DataError):
    """Raised when a route names a data-function the catalog lacks."""


class FunctionDefinitionError(DataError):
    """Raised when a function file cannot be parsed or installed."""


class MigrationError(DataError):
    """Raised when a migration fails or the migrations directory is invalid."""
