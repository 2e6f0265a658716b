"""Application configuration.

AppConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

from pico.errors import ConfigurationError

_ENV_PREFIX = "PICO_"

# Matches the secret the original runtime fell back to when unset.
DEFAULT_SECRET_KEY = "default_secret"


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(port=3000, secret_key="s3cr3t", db="sqlite:///app.db")
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8080
    debug: bool = False

    # Security
    secret_key: str = DEFAULT_SECRET_KEY
    cookie_name: str = "pico_token"
    cookie_max_age: int = 7 * 24 * 3600
    cookie_secure: bool = False

    # Data
    db: str | None = None
    functions_dir: str | Path | None = "functions"
    migrations_dir: str | Path | None = "migrations"

    # Static files
    static_dir: str | Path | None = "public"
    static_index: str = "index.html"

    # Views
    title: str = "pico"

    # Limits
    max_content_length: int = 16 * 1024 * 1024  # 16 MB

    # Logging
    log_level: str = "info"

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> AppConfig:
        """Build a config from ``PICO_*`` environment variables.

        Explicit *overrides* win over the environment. Unknown override
        names raise ``ConfigurationError``::

            # PICO_SECRET_KEY=abc PICO_PORT=9000
            config = AppConfig.from_env(debug=True)
        """
        env = os.environ if environ is None else environ
        known = {f.name: f for f in fields(cls)}

        unknown = set(overrides) - set(known)
        if unknown:
            msg = f"Unknown config option(s): {', '.join(sorted(unknown))}"
            raise ConfigurationError(msg)

        values: dict[str, Any] = {}
        for name, f in known.items():
            raw = env.get(_ENV_PREFIX + name.upper())
            if raw is None:
                continue
            values[name] = _coerce(name, raw, f.default)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def with_overrides(self, **changes: Any) -> AppConfig:
        """Return a copy with the non-``None`` *changes* applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def _coerce(name: str, raw: str, default: Any) -> Any:
    """Convert an environment string to the type of the field default."""
    if isinstance(default, bool):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(default, int):
        try:
            return int(raw)
        except ValueError:
            msg = f"{_ENV_PREFIX}{name.upper()} must be an integer, got {raw!r}"
            raise ConfigurationError(msg) from None
    return raw
