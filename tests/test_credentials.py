"""Tests for pico.credentials — signed claim tokens in a cookie."""

import time

import pytest
from itsdangerous import TimestampSigner

from pico.credentials import CredentialConfig, CredentialManager
from pico.errors import ConfigurationError
from pico.http.cookies import parse_cookies
from pico.http.headers import Headers
from pico.http.query import QueryParams
from pico.http.request import Request


def _manager(**overrides) -> CredentialManager:
    return CredentialManager(CredentialConfig(secret_key="test-secret", **overrides))


def _request(cookie: str = "") -> Request:
    async def receive():
        return {"type": "http.request", "body": b"", "more_body": False}

    return Request(
        method="GET",
        path="/",
        raw_path="/",
        headers=Headers(),
        query=QueryParams(),
        cookies=parse_cookies(cookie),
        client=None,
        _receive=receive,
    )


class TestTokens:
    def test_round_trip(self) -> None:
        manager = _manager()
        token = manager.encode({"user_id": 1, "roles": ["admin"]})
        assert manager.decode(token) == {"user_id": 1, "roles": ["admin"]}

    def test_token_is_cookie_safe(self) -> None:
        token = _manager().encode({"name": "ann; path=/"})
        assert ";" not in token
        assert " " not in token

    @pytest.mark.parametrize("token", [None, "", "garbage", "a.b.c"])
    def test_invalid_tokens_decode_to_none(self, token) -> None:
        assert _manager().decode(token) is None

    def test_tampered_token(self) -> None:
        manager = _manager()
        token = manager.encode({"user_id": 1})
        tampered = token[:-2] + ("AA" if not token.endswith("AA") else "BB")
        assert manager.decode(tampered) is None

    def test_foreign_secret(self) -> None:
        token = CredentialManager(CredentialConfig(secret_key="other")).encode({"user_id": 1})
        assert _manager().decode(token) is None

    def test_expired_token(self, monkeypatch: pytest.MonkeyPatch) -> None:
        manager = _manager(max_age=60)
        token = manager.encode({"user_id": 1})
        later = int(time.time()) + 3600
        monkeypatch.setattr(TimestampSigner, "get_timestamp", lambda self: later)
        assert manager.decode(token) is None

    def test_empty_secret_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            CredentialManager(CredentialConfig(secret_key=""))


class TestRead:
    def test_no_cookie(self) -> None:
        assert _manager().read(_request()) == (None, False)

    def test_valid_cookie(self) -> None:
        manager = _manager()
        token = manager.encode({"user_id": 5})
        assert manager.read(_request(f"pico_token={token}")) == ({"user_id": 5}, True)

    def test_invalid_cookie_is_presented(self) -> None:
        assert _manager().read(_request("pico_token=junk")) == (None, True)

    def test_custom_cookie_name(self) -> None:
        manager = _manager(cookie_name="sid")
        token = manager.encode({"a": 1})
        assert manager.read(_request(f"pico_token=x; sid={token}")) == ({"a": 1}, True)


class TestOutbound:
    def test_nothing_in_nothing_out(self) -> None:
        assert _manager().outbound(None, None) is None

    def test_issue_new_claims(self) -> None:
        manager = _manager(max_age=120)
        cookie = manager.outbound(None, {"user_id": 1})
        assert cookie is not None
        assert cookie.name == "pico_token"
        assert cookie.max_age == 120
        assert manager.decode(cookie.value) == {"user_id": 1}

    def test_unchanged_claims_are_not_reissued(self) -> None:
        assert _manager().outbound({"user_id": 1}, {"user_id": 1}) is None

    def test_changed_claims_are_reissued(self) -> None:
        manager = _manager()
        cookie = manager.outbound({"user_id": 1}, {"user_id": 2})
        assert manager.decode(cookie.value) == {"user_id": 2}

    def test_dropped_claims_clear_cookie(self) -> None:
        cookie = _manager().outbound({"user_id": 1}, None)
        assert cookie is not None
        assert cookie.is_deletion
        assert cookie.value == ""

    def test_empty_claims_clear_cookie(self) -> None:
        assert _manager().outbound({"user_id": 1}, {}).is_deletion

    def test_invalid_presented_cookie_is_cleared(self) -> None:
        assert _manager().outbound(None, None, presented=True).is_deletion

    def test_header_attributes(self) -> None:
        cookie = _manager(secure=True).issue({"a": 1})
        header = cookie.to_header_value()
        assert header.startswith("pico_token=")
        assert "HttpOnly" in header
        assert "Secure" in header
        assert "SameSite=Lax" in header
        assert "Path=/" in header
