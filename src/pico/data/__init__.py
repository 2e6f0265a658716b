"""Async database access and data-functions for pico.

SQL in, plain dict rows out. Not an ORM.

Basic usage::

    from pico.data import Database, SQLFunctionCatalog

    db = Database("sqlite:///app.db")
    catalog = await SQLFunctionCatalog.load(db, "functions")
    user = await catalog.call("get_user", {"id": 42})

PostgreSQL requires ``asyncpg``::

    pip install pico[pg]
"""

from pico.data.database import Database
from pico.data.errors import (
    DataError,
    DriverNotInstalledError,
    FunctionDefinitionError,
    FunctionNotFoundError,
    MigrationError,
    QueryError,
)
from pico.data.functions import (
    CallableCatalog,
    ChainCatalog,
    FunctionCatalog,
    SQLFunctionCatalog,
)
from pico.data.migrate import migrate

__all__ = [
    "CallableCatalog",
    "ChainCatalog",
    "DataError",
    "Database",
    "DriverNotInstalledError",
    "FunctionCatalog",
    "FunctionDefinitionError",
    "FunctionNotFoundError",
    "MigrationError",
    "QueryError",
    "SQLFunctionCatalog",
    "migrate",
]
