"""Tests for pico.server.negotiation — content negotiation dispatch."""

import pytest

from pico.http.request import Request
from pico.server.negotiation import negotiate, wants_json
from pico.view.entities import ObjectEntity
from pico.view.renderer import ViewRenderer


def _request(**headers: str) -> Request:
    raw = [(k.replace("_", "-").encode("latin-1"), v.encode("latin-1")) for k, v in headers.items()]

    async def receive():
        return {"type": "http.request", "body": b"", "more_body": False}

    return Request.from_asgi({"method": "GET", "path": "/", "headers": raw}, receive)


@pytest.fixture
def renderer() -> ViewRenderer:
    return ViewRenderer(title="T")


class TestWantsJson:
    @pytest.mark.parametrize(
        ("accept", "expected"),
        [
            ("application/json", True),
            ("Application/JSON; q=1", True),
            ("text/html,application/json", False),
            ("*/*", False),
            ("", False),
        ],
    )
    def test_accept(self, accept: str, expected: bool) -> None:
        assert wants_json(_request(accept=accept)) is expected


class TestNegotiateWithoutView:
    def test_string_is_plain_text(self) -> None:
        response = negotiate("pong", request=_request())
        assert response.content_type == "text/plain; charset=utf-8"
        assert response.text == "pong"

    def test_bytes_are_plain_text(self) -> None:
        assert negotiate(b"raw", request=_request()).text == "raw"

    @pytest.mark.parametrize("result", [{"a": 1}, [1, 2], 3, True, None])
    def test_everything_else_is_json(self, result) -> None:
        response = negotiate(result, request=_request())
        assert response.content_type == "application/json"
        assert response.json() == result


class TestNegotiateWithView:
    def test_full_page(self, renderer: ViewRenderer) -> None:
        response = negotiate({"a": 1}, request=_request(), view=(ObjectEntity(),), renderer=renderer)
        assert response.content_type.startswith("text/html")
        assert response.text.startswith("<!DOCTYPE html>")

    def test_htmx_gets_fragment(self, renderer: ViewRenderer) -> None:
        response = negotiate(
            {"a": 1}, request=_request(hx_request="true"), view=(ObjectEntity(),), renderer=renderer
        )
        assert "<!DOCTYPE html>" not in response.text
        assert "<dt>a</dt>" in response.text

    def test_json_client_skips_view(self, renderer: ViewRenderer) -> None:
        response = negotiate(
            {"a": 1},
            request=_request(accept="application/json"),
            view=(ObjectEntity(),),
            renderer=renderer,
        )
        assert response.json() == {"a": 1}

    def test_string_result_with_view_renders_html(self, renderer: ViewRenderer) -> None:
        response = negotiate("hi", request=_request(), view=(ObjectEntity(),), renderer=renderer)
        assert response.content_type.startswith("text/html")
