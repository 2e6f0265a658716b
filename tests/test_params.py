"""Tests for pico.pipeline.params — query, path, and body overlay."""

import json

import pytest

from pico.errors import BadRequest
from pico.http.request import Request
from pico.pipeline.params import assemble_params, body_params


def _request(
    *,
    query: bytes = b"",
    body: bytes = b"",
    content_type: str | None = None,
    method: str = "POST",
) -> Request:
    headers = []
    if content_type is not None:
        headers.append((b"content-type", content_type.encode("latin-1")))
    scope = {
        "type": "http",
        "method": method,
        "path": "/",
        "raw_path": b"/",
        "query_string": query,
        "headers": headers,
        "client": ("127.0.0.1", 0),
    }

    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}

    return Request.from_asgi(scope, receive)


class TestAssembleParams:
    async def test_query_only(self) -> None:
        req = _request(query=b"a=1&b=two", method="GET")
        assert await assemble_params(req, {}) == {"a": "1", "b": "two"}

    async def test_first_query_value_wins(self) -> None:
        req = _request(query=b"tag=x&tag=y", method="GET")
        assert await assemble_params(req, {}) == {"tag": "x"}

    async def test_path_overrides_query(self) -> None:
        req = _request(query=b"id=9&q=hi", method="GET")
        assert await assemble_params(req, {"id": "42"}) == {"id": "42", "q": "hi"}

    async def test_body_overrides_path_and_query(self) -> None:
        req = _request(
            query=b"id=1&name=q",
            body=json.dumps({"id": 3, "extra": [1, 2]}).encode(),
            content_type="application/json",
        )
        params = await assemble_params(req, {"id": "2", "name": "p"})
        assert params == {"id": 3, "name": "p", "extra": [1, 2]}

    async def test_path_values_are_raw(self) -> None:
        req = _request(method="GET")
        assert await assemble_params(req, {"name": "a%20b"}) == {"name": "a%20b"}

    async def test_empty_request(self) -> None:
        assert await assemble_params(_request(method="GET"), {}) == {}


class TestBodyParams:
    async def test_json(self) -> None:
        req = _request(body=b'{"user": {"name": "ann"}}', content_type="application/json; charset=utf-8")
        assert await body_params(req) == {"user": {"name": "ann"}}

    async def test_json_suffix_type(self) -> None:
        req = _request(body=b'{"a": 1}', content_type="application/vnd.api+json")
        assert await body_params(req) == {"a": 1}

    async def test_missing_content_type_reads_json(self) -> None:
        req = _request(body=b'{"a": true}')
        assert await body_params(req) == {"a": True}

    async def test_form(self) -> None:
        req = _request(body=b"user=ann&pass=s%3Dcret&user=bob", content_type="application/x-www-form-urlencoded")
        assert await body_params(req) == {"user": "ann", "pass": "s=cret"}

    async def test_blank_body_contributes_nothing(self) -> None:
        req = _request(body=b"  \n", content_type="application/json")
        assert await body_params(req) == {}

    async def test_invalid_json(self) -> None:
        req = _request(body=b"{not json", content_type="application/json")
        with pytest.raises(BadRequest, match="not valid JSON"):
            await body_params(req)

    @pytest.mark.parametrize("body", [b"[1, 2]", b'"text"', b"42", b"null"])
    async def test_json_must_be_object(self, body: bytes) -> None:
        req = _request(body=body, content_type="application/json")
        with pytest.raises(BadRequest, match="must be an object"):
            await body_params(req)

    async def test_unsupported_content_type(self) -> None:
        req = _request(body=b"<x/>", content_type="application/xml")
        with pytest.raises(BadRequest, match="Unsupported content type"):
            await body_params(req)

    async def test_bad_request_status(self) -> None:
        req = _request(body=b"{", content_type="application/json")
        with pytest.raises(BadRequest) as info:
            await body_params(req)
        assert info.value.status == 400
