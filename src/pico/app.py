"""Pico application class.

Mutable during setup (route registration, catalog wiring).
Frozen at runtime when ``app.run()`` or ``__call__()`` is first invoked.
"""

import logging
import threading
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from pico._internal.asgi import Receive, Scope, Send
from pico.config import DEFAULT_SECRET_KEY, AppConfig
from pico.credentials import CredentialConfig, CredentialManager
from pico.data.database import Database
from pico.data.functions import CallableCatalog, ChainCatalog, FunctionCatalog, SQLFunctionCatalog
from pico.data.migrate import migrate
from pico.pipeline.executor import PipelineExecutor
from pico.routing.route import Route
from pico.routing.table import RouteTable, build_route, routes_from_config
from pico.server.handler import handle_request
from pico.static import StaticResolver
from pico.view.renderer import ViewRenderer

logger = logging.getLogger("pico.app")


class App:
    """The pico application.

    Routes come from a ``ROUTES``-style mapping, from ``add_route()``
    calls, or both. Data-functions come from ``.sql`` files in
    ``config.functions_dir`` (loaded at startup when a database is
    configured), from plain Python callables, or from a custom catalog::

        app = App(
            AppConfig(db="sqlite:///blog.db", secret_key="s3cr3t"),
            routes={"/posts/:id": {"GET": {"SQL": "get_post", "VIEW": [{"TYPE": "OBJECT"}]}}},
        )

    Thread safety:
        The setup phase is single-threaded (module import time).
        The freeze transition uses a Lock + double-check to ensure exactly
        one thread compiles the app, even when several ASGI workers call
        ``__call__()`` concurrently on first request.
    """

    __slots__ = (
        "_callables",
        "_catalog",
        "_credentials",
        "_custom_catalog",
        "_db",
        "_executor",
        "_freeze_lock",
        "_frozen",
        "_pending_routes",
        "_renderer",
        "_root",
        "_started",
        "_static",
        # Compiled state (populated by _freeze)
        "_table",
        "config",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        routes: Mapping[str, Any] | None = None,
        functions: Mapping[str, Callable[..., Any]] | None = None,
        db: Database | str | None = None,
        catalog: FunctionCatalog | None = None,
        root: str | Path | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self._root = Path(root) if root is not None else Path.cwd()
        self._pending_routes: list[Route] = routes_from_config(routes) if routes else []
        self._callables: dict[str, Callable[..., Any]] = dict(functions or {})
        self._custom_catalog = catalog
        self._frozen: bool = False
        self._started: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Database: a Database instance or a connection URL string.
        db = db if db is not None else self.config.db
        self._db: Database | None = Database(db, echo=self.config.debug) if isinstance(db, str) else db

        # Compiled state, set during _freeze()
        self._table: RouteTable | None = None
        self._catalog: FunctionCatalog | None = None
        self._executor: PipelineExecutor | None = None
        self._credentials: CredentialManager | None = None
        self._renderer: ViewRenderer | None = None
        self._static: StaticResolver | None = None

    # -- Setup --

    def add_route(self, pattern: str, method: str = "GET", **stages: Any) -> Route:
        """Register a route programmatically.

        Stage keywords match the ``ROUTES`` stage keys, case-insensitively::

            app.add_route("/posts/:id", "GET", sql="get_post", view=[{"TYPE": "OBJECT"}])
        """
        self._check_not_frozen()
        route = build_route(pattern, method, stages)
        self._pending_routes.append(route)
        return route

    def add_function(self, name: str, func: Callable[..., Any]) -> None:
        """Register a Python callable as a data-function."""
        self._check_not_frozen()
        self._callables[name] = func

    @property
    def db(self) -> Database:
        """The database instance, if configured.

        Raises ``RuntimeError`` if no database was configured on this app.
        """
        if self._db is None:
            msg = "No database configured. Pass db= to App() or set AppConfig.db."
            raise RuntimeError(msg)
        return self._db

    @property
    def routes(self) -> list[Route]:
        """All routes in registration order (frozen table order once running)."""
        if self._table is not None:
            return self._table.routes
        return list(self._pending_routes)

    def resolve_dir(self, value: str | Path | None) -> Path | None:
        """Resolve a configured directory against the project root."""
        if value is None:
            return None
        path = Path(value)
        return path if path.is_absolute() else self._root / path

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Start the pounce server with this app."""
        self._ensure_frozen()

        from pico.server.dev import run_server

        run_server(self, host or self.config.host, port or self.config.port, reload=self.config.debug)

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles lifespan scopes directly, then delegates HTTP scopes to
        the request handler pipeline.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        self._ensure_frozen()

        assert self._table is not None
        assert self._executor is not None
        assert self._credentials is not None
        assert self._renderer is not None

        await handle_request(
            scope,
            receive,
            send,
            table=self._table,
            executor=self._executor,
            credentials=self._credentials,
            renderer=self._renderer,
            static=self._static,
            max_body=self.config.max_content_length,
            debug=self.config.debug,
        )

    async def _handle_lifespan(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup (before first HTTP request), then
        connects the database, applies migrations, loads the function
        catalog, and signals completion back to the server.
        """
        self._ensure_frozen()

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await self.startup()
                    await send({"type": "lifespan.startup.complete"})
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send(
                        {
                            "type": "lifespan.startup.failed",
                            "message": str(exc),
                        }
                    )
                    return

            elif msg_type == "lifespan.shutdown":
                await self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return

    async def startup(self) -> None:
        """Connect the database, migrate, and load data-functions.

        Called by the ASGI lifespan and by ``TestClient``. Safe to call
        once per process; later calls are no-ops until ``shutdown()``.
        """
        self._ensure_frozen()
        if self._started:
            return

        sql_catalog: SQLFunctionCatalog | None = None
        if self._db is not None:
            await self._db.connect()

            migrations_dir = self.resolve_dir(self.config.migrations_dir)
            if migrations_dir is not None and migrations_dir.is_dir():
                result = await migrate(self._db, migrations_dir)
                logger.info("%s", result.summary)

            functions_dir = self.resolve_dir(self.config.functions_dir)
            if functions_dir is not None:
                sql_catalog = await SQLFunctionCatalog.load(self._db, functions_dir)

        if sql_catalog is not None:
            self._use_catalog(sql_catalog)
        self._warn_missing_functions()
        self._started = True

    async def shutdown(self) -> None:
        """Disconnect the database."""
        if self._db is not None:
            await self._db.disconnect()
        self._started = False

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking.

        Under free-threading (3.14t), multiple ASGI worker threads could
        call __call__() concurrently on first request. This pattern ensures
        exactly one thread performs compilation.
        """
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        # 1. Compile route table (duplicates raise ConfigurationError)
        self._table = RouteTable.build(self._pending_routes)

        # 2. Credentials
        if self.config.secret_key == DEFAULT_SECRET_KEY:
            logger.warning("Using the default secret key; set PICO_SECRET_KEY in production.")
        self._credentials = CredentialManager(
            CredentialConfig(
                secret_key=self.config.secret_key,
                cookie_name=self.config.cookie_name,
                max_age=self.config.cookie_max_age,
                secure=self.config.cookie_secure,
            )
        )

        # 3. Views
        self._renderer = ViewRenderer(title=self.config.title)

        # 4. Static assets (only when the directory exists)
        static_dir = self.resolve_dir(self.config.static_dir)
        if static_dir is not None and static_dir.is_dir():
            self._static = StaticResolver(static_dir, index=self.config.static_index)

        # 5. Pipeline over the catalogs known so far; SQL functions join at startup.
        self._catalog = None
        self._use_catalog(None)

        self._frozen = True
        logger.debug("Compiled %d route(s)", len(self._table))

    def _use_catalog(self, sql_catalog: SQLFunctionCatalog | None) -> None:
        catalogs: list[FunctionCatalog] = []
        if self._custom_catalog is not None:
            catalogs.append(self._custom_catalog)
        if self._callables:
            catalogs.append(CallableCatalog(self._callables))
        if sql_catalog is not None:
            catalogs.append(sql_catalog)

        if not catalogs:
            self._catalog = None
        elif len(catalogs) == 1:
            self._catalog = catalogs[0]
        else:
            self._catalog = ChainCatalog(*catalogs)
        self._executor = PipelineExecutor(self._catalog)

    def _warn_missing_functions(self) -> None:
        assert self._table is not None
        for name in sorted(self._table.function_names()):
            if self._catalog is None or name not in self._catalog:
                logger.warning("Routes reference data-function %r, which is not defined", name)

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes and functions before calling app.run()."
            )
            raise RuntimeError(msg)
