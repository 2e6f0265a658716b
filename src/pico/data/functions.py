"""Data-function catalogs — call database routines by name.

A catalog maps a data-function name to something that accepts a
parameter set and returns rows. Arguments bind by *name*: a parameter
the function requires but the set lacks is a ``BadRequest``; extra
parameters are ignored.

Function files live in one directory, one function per file, named
after the file stem::

    functions/
        get_user.sql
        list_posts.sql

PostgreSQL files hold a ``CREATE [OR REPLACE] FUNCTION`` statement;
argument names and defaults are read from its signature and the
function is (re)installed when the catalog loads. SQLite has no stored
functions, so SQLite files hold one statement with ``:name``
placeholders; an optional ``-- returns: scalar`` header marks it as
returning a single value.
"""

import inspect
import json
import logging
import re
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from pico._internal.invoke import invoke
from pico.data._values import normalize_value, shape_rows
from pico.data.database import Database
from pico.data.errors import DataError, FunctionDefinitionError, FunctionNotFoundError, QueryError
from pico.errors import BadRequest, HTTPError

logger = logging.getLogger("pico.data")


@runtime_checkable
class FunctionCatalog(Protocol):
    """Anything that can call a data-function by name."""

    def __contains__(self, name: object) -> bool: ...

    async def call(self, name: str, params: Mapping[str, Any]) -> Any: ...


class Returns(StrEnum):
    """What a data-function hands back."""

    ROWS = "rows"
    SCALAR = "scalar"
    VOID = "void"


@dataclass(frozen=True, slots=True)
class Argument:
    """A named input of a data-function."""

    name: str
    type: str = ""
    required: bool = True


@dataclass(frozen=True, slots=True)
class DataFunction:
    """A parsed function file."""

    name: str
    sql_name: str
    arguments: tuple[Argument, ...]
    returns: Returns
    source: str
    path: Path | None = None
    result_type: str = ""

    def bind(self, params: Mapping[str, Any]) -> list[tuple[Argument, Any]]:
        """Pick this function's arguments out of *params*, in declared order.

        Optional arguments missing from *params* are left out so the
        database applies their defaults.
        """
        bound: list[tuple[Argument, Any]] = []
        for arg in self.arguments:
            if arg.name in params:
                bound.append((arg, params[arg.name]))
            elif arg.required:
                msg = f"Missing parameter {arg.name!r} for {self.name}"
                raise BadRequest(msg)
        return bound


def _sql_value(value: Any) -> Any:
    """Nested structures travel as JSON text."""
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value)
    return value


def _shape(fn: DataFunction, rows: list[dict[str, Any]]) -> Any:
    if fn.returns is Returns.VOID:
        return None
    if fn.returns is Returns.SCALAR:
        if not rows:
            return None
        value = next(iter(rows[0].values()), None)
        if fn.result_type in ("json", "jsonb") and isinstance(value, str):
            return json.loads(value)
        return normalize_value(value)
    return shape_rows(rows)


# =============================================================================
# Parsing
# =============================================================================

_CREATE_FUNCTION = re.compile(
    r"create\s+(?:or\s+replace\s+)?function\s+"
    r"(?P<name>(?:\"[^\"]+\"|[\w$]+)(?:\.(?:\"[^\"]+\"|[\w$]+))?)\s*\(",
    re.IGNORECASE,
)
_RETURNS = re.compile(
    r"^\s*returns\s+(?P<kind>setof\b|table\b|void\b|record\b)?(?P<type>[\w.]*)\s*(?P<array>\[\])?",
    re.IGNORECASE,
)
# Built-in types returned as a single value. Any other named type is a
# table or composite row type and is called with SELECT * FROM.
_SCALAR_TYPES = frozenset(
    {
        "bigint", "bigserial", "bit", "bool", "boolean", "bpchar", "bytea", "char",
        "character", "cidr", "citext", "date", "decimal", "double", "float4", "float8",
        "inet", "int", "int2", "int4", "int8", "integer", "interval", "json", "jsonb",
        "macaddr", "money", "name", "numeric", "oid", "real", "serial", "smallint",
        "smallserial", "text", "time", "timestamp", "timestamptz", "timetz", "uuid",
        "varbit", "varchar", "xml",
    }
)
_ARG_MODES = {"in", "out", "inout", "variadic"}
_DEFAULT = re.compile(r"\s(?:default\s|=)", re.IGNORECASE)
_NAMED_PLACEHOLDER = re.compile(r"(?<![:\w]):([A-Za-z_]\w*)")
_RETURNS_HEADER = re.compile(r"^\s*--\s*returns\s*:\s*(\w+)", re.IGNORECASE | re.MULTILINE)


def _is_scalar_type(type_name: str) -> bool:
    return type_name.removeprefix("pg_catalog.") in _SCALAR_TYPES


def _split_top_level(text: str) -> list[str]:
    """Split on commas that are not nested inside parentheses or quotes."""
    parts: list[str] = []
    depth = 0
    quote: str | None = None
    current: list[str] = []
    for ch in text:
        if quote:
            if ch == quote:
                quote = None
        elif ch in "'\"":
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == "," and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    if "".join(current).strip():
        parts.append("".join(current))
    return parts


def _closing_paren(text: str, start: int) -> int:
    """Index of the parenthesis closing the one opened just before *start*."""
    depth = 1
    quote: str | None = None
    for i in range(start, len(text)):
        ch = text[i]
        if quote:
            if ch == quote:
                quote = None
        elif ch in "'\"":
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i
    return -1


def _parse_argument(text: str, where: str) -> Argument | None:
    """Parse ``[mode] name type [DEFAULT expr]``; ``None`` for OUT arguments."""
    required = _DEFAULT.search(" " + text) is None
    head = _DEFAULT.split(" " + text, maxsplit=1)[0].strip()
    words = head.split()
    if words and words[0].lower() in _ARG_MODES:
        mode = words.pop(0).lower()
        if mode == "out":
            return None
    if len(words) < 2:
        msg = f"{where}: arguments must be named, got {text.strip()!r}"
        raise FunctionDefinitionError(msg)
    return Argument(name=words[0].strip('"'), type=" ".join(words[1:]), required=required)


def parse_pg_function(source: str, *, name: str, path: Path | None = None) -> DataFunction:
    """Parse a ``CREATE FUNCTION`` file into a ``DataFunction``.

    Raises ``FunctionDefinitionError`` when no definition is found.
    """
    where = str(path or name)
    match = _CREATE_FUNCTION.search(source)
    if match is None:
        msg = f"{where}: no CREATE FUNCTION statement found"
        raise FunctionDefinitionError(msg)

    end = _closing_paren(source, match.end())
    if end < 0:
        msg = f"{where}: unbalanced parentheses in function signature"
        raise FunctionDefinitionError(msg)

    arguments = tuple(
        arg
        for part in _split_top_level(source[match.end() : end])
        if (arg := _parse_argument(part, where)) is not None
    )

    returns_match = _RETURNS.match(source[end + 1 :])
    result_type = returns_match.group("type").lower() if returns_match else ""
    if returns_match is None:
        has_out = re.search(r"(?i)\b(?:out|inout)\s", source[match.end() : end])
        returns = Returns.ROWS if has_out else Returns.VOID
    else:
        kind = (returns_match.group("kind") or "").lower()
        if kind == "void":
            returns = Returns.VOID
        elif kind in ("setof", "table", "record"):
            returns = Returns.ROWS
        elif returns_match.group("array") or _is_scalar_type(result_type):
            returns = Returns.SCALAR
        else:
            returns = Returns.ROWS

    return DataFunction(
        name=name,
        sql_name=match.group("name"),
        arguments=arguments,
        returns=returns,
        source=source,
        path=path,
        result_type=result_type,
    )


def parse_sqlite_function(source: str, *, name: str, path: Path | None = None) -> DataFunction:
    """Parse a SQLite statement file; every ``:name`` placeholder is required."""
    statement = source.strip().rstrip(";").strip()
    if not statement:
        msg = f"{path or name}: empty function file"
        raise FunctionDefinitionError(msg)

    seen: dict[str, Argument] = {}
    for placeholder in _NAMED_PLACEHOLDER.findall(_strip_comments(statement)):
        seen.setdefault(placeholder, Argument(name=placeholder))

    header = _RETURNS_HEADER.search(source)
    try:
        returns = Returns(header.group(1).lower()) if header else Returns.ROWS
    except ValueError:
        msg = f"{path or name}: unknown returns header {header.group(1)!r}"
        raise FunctionDefinitionError(msg) from None

    return DataFunction(
        name=name,
        sql_name=name,
        arguments=tuple(seen.values()),
        returns=returns,
        source=statement,
        path=path,
    )


def _strip_comments(sql: str) -> str:
    sql = re.sub(r"--[^\n]*", "", sql)
    sql = re.sub(r"/\*.*?\*/", "", sql, flags=re.DOTALL)
    # Placeholders inside string literals are not placeholders.
    return re.sub(r"'(?:[^']|'')*'", "''", sql)


# =============================================================================
# Catalogs
# =============================================================================


class SQLFunctionCatalog:
    """Data-functions loaded from a directory of ``.sql`` files.

    Usage::

        catalog = await SQLFunctionCatalog.load(db, "functions")
        user = await catalog.call("get_user", {"id": 42})
    """

    __slots__ = ("_db", "_functions")

    def __init__(self, db: Database, functions: Mapping[str, DataFunction]) -> None:
        self._db = db
        self._functions = dict(functions)

    @classmethod
    async def load(
        cls,
        db: Database,
        directory: str | Path,
        *,
        install: bool = True,
    ) -> SQLFunctionCatalog:
        """Read every ``*.sql`` file in *directory*.

        For PostgreSQL each function is dropped and recreated unless
        *install* is false. A missing directory yields an empty catalog.
        """
        path = Path(directory)
        functions: dict[str, DataFunction] = {}
        if not path.is_dir():
            logger.debug("No functions directory at %s", path)
            return cls(db, functions)

        parse = parse_sqlite_function if db.driver == "sqlite" else parse_pg_function
        for sql_file in sorted(path.glob("*.sql")):
            source = sql_file.read_text(encoding="utf-8")
            fn = parse(source, name=sql_file.stem, path=sql_file)
            functions[fn.name] = fn

        catalog = cls(db, functions)
        if install and db.driver != "sqlite":
            await catalog.install()
        logger.info("Loaded %d data-function(s) from %s", len(functions), path)
        return catalog

    async def install(self) -> None:
        """Drop and recreate every PostgreSQL function in the catalog."""
        for fn in self._functions.values():
            try:
                async with self._db.transaction():
                    await self._db.execute_script(f"DROP FUNCTION IF EXISTS {fn.sql_name} CASCADE")
                    await self._db.execute_script(fn.source)
            except Exception as exc:
                msg = f"Installing function {fn.name} failed: {exc}"
                raise FunctionDefinitionError(msg) from exc

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __len__(self) -> int:
        return len(self._functions)

    @property
    def names(self) -> list[str]:
        return sorted(self._functions)

    def get(self, name: str) -> DataFunction:
        try:
            return self._functions[name]
        except KeyError:
            msg = f"Data-function {name!r} does not exist"
            raise FunctionNotFoundError(msg) from None

    async def call(self, name: str, params: Mapping[str, Any]) -> Any:
        """Call *name* with arguments bound from *params* by name."""
        fn = self.get(name)
        bound = fn.bind(params)
        if self._db.driver == "sqlite":
            rows = await self._db.query(fn.source, {arg.name: _sql_value(v) for arg, v in bound})
        else:
            rows = await self._db.query(_pg_call(fn, bound), [_pg_value(v) for _, v in bound])
        return _shape(fn, rows)


def _pg_call(fn: DataFunction, bound: Sequence[tuple[Argument, Any]]) -> str:
    """``SELECT`` statement calling *fn* with named notation.

    Each value is sent as text and cast to the declared type so the
    driver accepts query-string values for numeric arguments.
    """
    args = ", ".join(
        f'"{arg.name}" => ${i}::text::{arg.type}' if arg.type else f'"{arg.name}" => ${i}'
        for i, (arg, _) in enumerate(bound, start=1)
    )
    if fn.returns is Returns.ROWS:
        return f"SELECT * FROM {fn.sql_name}({args})"
    return f"SELECT {fn.sql_name}({args}) AS value"


def _pg_value(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value)
    return str(value)


class CallableCatalog:
    """Data-functions backed by Python callables.

    Each callable receives the parameter set as keyword arguments bound
    by name, like a database function would. Parameters the callable
    does not declare are dropped unless it takes ``**kwargs``::

        async def get_user(id):
            ...

        catalog = CallableCatalog({"get_user": get_user})
    """

    __slots__ = ("_functions",)

    def __init__(self, functions: Mapping[str, Callable[..., Any | Awaitable[Any]]]) -> None:
        self._functions = dict(functions)

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __len__(self) -> int:
        return len(self._functions)

    @property
    def names(self) -> list[str]:
        return sorted(self._functions)

    async def call(self, name: str, params: Mapping[str, Any]) -> Any:
        try:
            func = self._functions[name]
        except KeyError:
            msg = f"Data-function {name!r} does not exist"
            raise FunctionNotFoundError(msg) from None

        kwargs = _bind_kwargs(name, func, params)
        try:
            result = await invoke(func, **kwargs)
        except (HTTPError, DataError):
            raise
        except Exception as exc:
            msg = f"Data-function {name!r} failed: {exc}"
            raise QueryError(msg) from exc
        if isinstance(result, list) and all(isinstance(row, Mapping) for row in result):
            return shape_rows(result)
        return normalize_value(result)


def _bind_kwargs(name: str, func: Callable[..., Any], params: Mapping[str, Any]) -> dict[str, Any]:
    sig = inspect.signature(func)
    if any(p.kind is inspect.Parameter.VAR_KEYWORD for p in sig.parameters.values()):
        return dict(params)

    kwargs: dict[str, Any] = {}
    for param in sig.parameters.values():
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.POSITIONAL_ONLY):
            continue
        if param.name in params:
            kwargs[param.name] = params[param.name]
        elif param.default is inspect.Parameter.empty:
            msg = f"Missing parameter {param.name!r} for {name}"
            raise BadRequest(msg)
    return kwargs


class ChainCatalog:
    """Look functions up in several catalogs, first hit wins."""

    __slots__ = ("_catalogs",)

    def __init__(self, *catalogs: FunctionCatalog) -> None:
        self._catalogs = catalogs

    def __contains__(self, name: object) -> bool:
        return any(name in c for c in self._catalogs)

    async def call(self, name: str, params: Mapping[str, Any]) -> Any:
        for catalog in self._catalogs:
            if name in catalog:
                return await catalog.call(name, params)
        msg = f"Data-function {name!r} does not exist"
        raise FunctionNotFoundError(msg)
