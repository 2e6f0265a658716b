"""Credential manager — session claims in a signed cookie token.

Claims are serialized as JSON and signed with ``itsdangerous``; the
token carries its own timestamp so expiry needs no server-side state.
An absent, tampered, foreign, or expired token decodes to ``None`` and
is never an error.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from itsdangerous import BadData, URLSafeTimedSerializer

from pico.errors import ConfigurationError
from pico.http.cookies import SetCookie
from pico.http.request import Request

logger = logging.getLogger("pico.credentials")

_SALT = "pico.credentials"


@dataclass(frozen=True, slots=True)
class CredentialConfig:
    """Cookie and signing settings.

    ``secret_key`` is required — tokens are signed, not encrypted.
    """

    secret_key: str
    cookie_name: str = "pico_token"
    max_age: int = 7 * 24 * 3600
    path: str = "/"
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"


class CredentialManager:
    """Decode inbound claims and produce outbound cookie instructions.

    Usage::

        manager = CredentialManager(CredentialConfig(secret_key="s3cr3t"))
        token = manager.encode({"user": 1})
        manager.decode(token)   # {"user": 1}
        manager.decode("junk")  # None
    """

    __slots__ = ("_config", "_serializer")

    def __init__(self, config: CredentialConfig) -> None:
        if not config.secret_key:
            msg = "CredentialConfig.secret_key must not be empty."
            raise ConfigurationError(msg)
        self._config = config
        self._serializer = URLSafeTimedSerializer(config.secret_key, salt=_SALT)

    @property
    def cookie_name(self) -> str:
        return self._config.cookie_name

    def decode(self, token: str | None) -> dict[str, Any] | None:
        """Verify *token* and return its claims, or ``None``."""
        if not token:
            return None
        try:
            data = self._serializer.loads(token, max_age=self._config.max_age)
        except BadData as exc:
            logger.debug("Discarding credential token: %s", type(exc).__name__)
            return None
        if not isinstance(data, dict):
            return None
        return data

    def encode(self, claims: Mapping[str, Any]) -> str:
        """Sign *claims* into a token string."""
        return self._serializer.dumps(dict(claims))

    def read(self, request: Request) -> tuple[dict[str, Any] | None, bool]:
        """Decode the request's cookie.

        Returns ``(claims, presented)`` where *presented* says whether a
        cookie was sent at all, so invalid cookies can be cleared.
        """
        token = request.cookies.get(self._config.cookie_name)
        return self.decode(token), bool(token)

    def issue(self, claims: Mapping[str, Any]) -> SetCookie:
        """Cookie instruction carrying a fresh token for *claims*."""
        cfg = self._config
        return SetCookie(
            name=cfg.cookie_name,
            value=self.encode(claims),
            max_age=cfg.max_age,
            path=cfg.path,
            secure=cfg.secure,
            httponly=cfg.httponly,
            samesite=cfg.samesite,
        )

    def clear(self) -> SetCookie:
        """Cookie instruction that removes the token (``Max-Age=0``)."""
        cfg = self._config
        return SetCookie(
            name=cfg.cookie_name,
            value="",
            max_age=0,
            path=cfg.path,
            secure=cfg.secure,
            httponly=cfg.httponly,
            samesite=cfg.samesite,
        )

    def outbound(
        self,
        inbound: Mapping[str, Any] | None,
        outbound: Mapping[str, Any] | None,
        *,
        presented: bool = False,
    ) -> SetCookie | None:
        """The cookie instruction for a finished request, if any.

        A token is written only when the claims changed by value. Clearing
        happens when claims were dropped, or when a cookie was presented
        but failed to decode.
        """
        if outbound:
            if inbound is not None and dict(outbound) == dict(inbound):
                return None
            return self.issue(outbound)
        if inbound is not None or presented:
            return self.clear()
        return None
