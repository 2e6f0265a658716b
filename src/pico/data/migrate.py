"""Forward-only SQL migration runner.

Migrations are versioned ``.sql`` files in a directory::

    migrations/
        001_create_users.sql
        002_add_email_index.sql
        20240101120000:create_posts.sql

The version is the leading integer, separated from the description by
``_`` or ``:``. Applied versions are tracked in a ``pico_migrations``
table; a failing migration stops the run and nothing after it is applied.

Usage::

    from pico.data import Database, migrate

    async with Database("sqlite:///app.db") as db:
        result = await migrate(db, "migrations/")
        print(result.summary)
"""

import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from pico.data.database import Database
from pico.data.errors import MigrationError

logger = logging.getLogger("pico.data")

_TRACKING_TABLE = "pico_migrations"

_CREATE_TRACKING_SQL = f"""
CREATE TABLE IF NOT EXISTS {_TRACKING_TABLE} (
    version    BIGINT PRIMARY KEY,
    name       TEXT   NOT NULL,
    applied_at TEXT   NOT NULL
)
"""

_FILENAME = re.compile(r"^(?P<version>\d+)[_:](?P<description>.+)$")


@dataclass(frozen=True, slots=True)
class Migration:
    """A single migration file."""

    version: int
    name: str
    sql: str


@dataclass(frozen=True, slots=True)
class MigrationResult:
    """Result of running migrations."""

    applied: list[str]
    already_applied: int
    total_available: int

    @property
    def summary(self) -> str:
        if not self.applied:
            return f"Already up to date ({self.already_applied} migrations applied)"
        return f"Applied {len(self.applied)} migration(s): {', '.join(self.applied)}"


def discover_migrations(directory: str | Path) -> list[Migration]:
    """Parse migration files from *directory*, sorted by version.

    Raises ``MigrationError`` for a missing directory, a badly named or
    empty file, or duplicate versions.
    """
    path = Path(directory)
    if not path.is_dir():
        msg = f"Migration directory does not exist: {path}"
        raise MigrationError(msg)

    migrations: list[Migration] = []
    for sql_file in path.glob("*.sql"):
        match = _FILENAME.match(sql_file.stem)
        if match is None:
            msg = f"Invalid migration filename: {sql_file.name} (expected NNN_description.sql)"
            raise MigrationError(msg)

        sql = sql_file.read_text(encoding="utf-8").strip()
        if not sql:
            msg = f"Empty migration file: {sql_file.name}"
            raise MigrationError(msg)

        migrations.append(Migration(version=int(match["version"]), name=sql_file.stem, sql=sql))

    migrations.sort(key=lambda m: m.version)
    versions = [m.version for m in migrations]
    if len(versions) != len(set(versions)):
        msg = "Duplicate migration version numbers found"
        raise MigrationError(msg)
    return migrations


async def _applied_versions(db: Database) -> set[int]:
    await db.execute(_CREATE_TRACKING_SQL)
    rows = await db.fetch_all(f"SELECT version FROM {_TRACKING_TABLE}")
    return {int(row["version"]) for row in rows}


async def _apply(db: Database, migration: Migration) -> None:
    """Run one migration and record it.

    ``execute_script`` handles multi-statement files on both drivers.
    """
    await db.execute_script(migration.sql)
    await db.execute(
        f"INSERT INTO {_TRACKING_TABLE} (version, name, applied_at) "
        f"VALUES ({db.placeholder(1)}, {db.placeholder(2)}, {db.placeholder(3)})",
        migration.version,
        migration.name,
        datetime.now(UTC).isoformat(),
    )


async def migrate(db: Database, directory: str | Path) -> MigrationResult:
    """Apply pending migrations from *directory* in version order.

    Raises:
        MigrationError: If a migration fails or the directory is invalid.
    """
    migrations = discover_migrations(directory)
    applied_versions = await _applied_versions(db)
    pending = [m for m in migrations if m.version not in applied_versions]

    applied_names: list[str] = []
    for migration in pending:
        try:
            await _apply(db, migration)
        except Exception as exc:
            msg = f"Migration {migration.name} failed: {exc}"
            raise MigrationError(msg) from exc
        applied_names.append(migration.name)
        logger.info("Applied migration %s", migration.name)

    return MigrationResult(
        applied=applied_names,
        already_applied=len(applied_versions),
        total_available=len(migrations),
    )
