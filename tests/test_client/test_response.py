"""Tests for the response wrapper and body parsing."""

from __future__ import annotations

import httpx
import pytest

from onionhttp.client.response import Response, ResponseHeaders, parse_body


def _wrap(status: int = 200, **kwargs) -> Response:
    return Response(httpx.Response(status, **kwargs))


class TestResponseHeaders:
    def test_lookup_is_case_insensitive(self) -> None:
        headers = ResponseHeaders(httpx.Headers({"Content-Type": "application/json"}))
        assert headers.get("content-type") == "application/json"
        assert "CONTENT-TYPE" in headers
        assert headers.get("missing", "fallback") == "fallback"

    def test_append_keeps_existing_values(self) -> None:
        headers = ResponseHeaders(httpx.Headers({"x-tag": "a"}))
        headers.append("x-tag", "b")
        assert headers.get_list("x-tag") == ["a", "b"]
        assert headers.get("x-tag") == "a, b"

    def test_set_and_delete(self) -> None:
        headers = ResponseHeaders(httpx.Headers([("x-tag", "a"), ("x-tag", "b")]))
        headers.set("x-tag", "c")
        assert headers.get_list("x-tag") == ["c"]
        headers.delete("x-tag")
        headers.delete("x-tag")
        assert "x-tag" not in headers
        assert len(headers) == 0

    def test_changes_do_not_touch_raw_response(self) -> None:
        response = _wrap(headers={"x-a": "1"})
        response.headers.append("x-b", "2")
        assert "x-b" not in response.raw.headers
        assert response.headers.to_httpx()["x-b"] == "2"


class TestResponse:
    def test_status_and_ok(self) -> None:
        assert _wrap(204).ok is True
        assert _wrap(301).ok is False
        assert _wrap(404).status == 404
        assert _wrap(404).reason == "Not Found"

    def test_url_without_request(self) -> None:
        assert _wrap().url == ""

    def test_url_with_request(self) -> None:
        raw = httpx.Response(200, request=httpx.Request("GET", "https://api.example.com/a"))
        assert Response(raw).url == "https://api.example.com/a"

    @pytest.mark.asyncio
    async def test_body_accessors(self) -> None:
        response = _wrap(json={"a": 1})
        assert await response.json() == {"a": 1}
        assert (await response.text()).replace(" ", "") == '{"a":1}'
        assert isinstance(await response.read(), bytes)


class TestParseBody:
    @pytest.mark.asyncio
    async def test_json(self) -> None:
        assert await parse_body(_wrap(json=[1, 2])) == [1, 2]

    @pytest.mark.asyncio
    async def test_invalid_json_falls_back_to_text(self) -> None:
        assert await parse_body(_wrap(text="not json")) == "not json"

    @pytest.mark.asyncio
    async def test_empty_body_is_none(self) -> None:
        assert await parse_body(_wrap(204)) is None

    @pytest.mark.asyncio
    async def test_text_and_bytes(self) -> None:
        assert await parse_body(_wrap(json={"a": 1}), "text") in ('{"a":1}', '{"a": 1}')
        assert await parse_body(_wrap(content=b"\x00\x01"), "bytes") == b"\x00\x01"

    @pytest.mark.asyncio
    async def test_unknown_response_type(self) -> None:
        with pytest.raises(ValueError):
            await parse_body(_wrap(), "xml")
