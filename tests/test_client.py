from __future__ import annotations

import asyncio
import base64

import httpx

from fragmentctl.client import FragmentsClient, build_base_url
from fragmentctl.results import (
    Content,
    Deleted,
    NotFound,
    Stored,
    TransportError,
    UnsupportedConversion,
)
from fragmentctl.types import Credentials

API_URL = "http://fragments.test"
CREDENTIALS = Credentials(username="user1@email.com", password="password1")


def test_build_base_url_adds_scheme_and_strips_slash() -> None:
    assert build_base_url("localhost:8080/") == "http://localhost:8080"
    assert build_base_url("https://api.example.com/") == "https://api.example.com"
    assert build_base_url("https://x") == "https://x"
    assert build_base_url("localhost") == "http://localhost"
    assert build_base_url("api.example.com:8443") == "http://api.example.com:8443"
    assert build_base_url("  ") == ""


def test_list_returns_full_metadata(server, client) -> None:
    fragment_id = server.add("text/plain", "hello")

    result = asyncio.run(client.list(CREDENTIALS))

    assert isinstance(result, list)
    assert [meta.id for meta in result] == [fragment_id]
    assert result[0].type == "text/plain"
    assert result[0].size == 5
    assert result[0].exact_type is None
    assert server.requests == [("GET", "/v1/fragments")]


def test_list_normalizes_bare_ids(server, client) -> None:
    server.bare_ids = True
    server.add("text/markdown", "# hi")

    result = asyncio.run(client.list(CREDENTIALS))

    assert isinstance(result, list)
    assert result[0].type is None
    assert result[0].display_type == "unknown"


def test_list_sends_expand_and_basic_auth() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"fragments": []})

    client = FragmentsClient(API_URL, transport=httpx.MockTransport(handler))
    asyncio.run(client.list(Credentials(username="a@b.c", password="pw")))

    expected = base64.b64encode(b"a@b.c:pw").decode("ascii")
    assert seen[0].url.params["expand"] == "1"
    assert seen[0].headers["authorization"] == f"Basic {expected}"


def test_list_error_status_is_transport_error(client) -> None:
    result = asyncio.run(client.list(Credentials()))

    assert isinstance(result, TransportError)
    assert result.status == 401


def test_list_malformed_payload_is_transport_error() -> None:
    client = FragmentsClient(
        API_URL, transport=httpx.MockTransport(lambda r: httpx.Response(200, json=["x"]))
    )

    result = asyncio.run(client.list(CREDENTIALS))

    assert isinstance(result, TransportError)
    assert result.reason == "malformed fragment list"


def test_network_failure_becomes_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = FragmentsClient(API_URL, transport=httpx.MockTransport(handler))

    result = asyncio.run(client.get_raw(CREDENTIALS, "abc"))

    assert isinstance(result, TransportError)
    assert result.status is None
    assert "connection refused" in result.reason


def test_get_raw_text_keeps_header_and_decodes(server, client) -> None:
    fragment_id = server.add("text/plain", "héllo")

    result = asyncio.run(client.get_raw(CREDENTIALS, fragment_id))

    assert result == Content(content_type="text/plain; charset=utf-8", body="héllo")


def test_get_raw_image_is_binary(server, client) -> None:
    fragment_id = server.add("image/png", b"\x89PNG")

    result = asyncio.run(client.get_raw(CREDENTIALS, fragment_id))

    assert isinstance(result, Content)
    assert result.body == b"\x89PNG"


def test_get_raw_svg_image_is_binary(server, client) -> None:
    svg = b"<svg xmlns=\"http://www.w3.org/2000/svg\"/>"
    fragment_id = server.add("image/svg+xml", svg)

    result = asyncio.run(client.get_raw(CREDENTIALS, fragment_id))

    assert isinstance(result, Content)
    assert result.body == svg


def test_get_raw_missing_is_not_found(client) -> None:
    assert asyncio.run(client.get_raw(CREDENTIALS, "nope")) == NotFound("nope")


def test_get_raw_quotes_fragment_id() -> None:
    seen: list[bytes] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.raw_path)
        return httpx.Response(404)

    client = FragmentsClient(API_URL, transport=httpx.MockTransport(handler))

    result = asyncio.run(client.get_raw(CREDENTIALS, "a/b"))

    assert result == NotFound("a/b")
    assert seen == [b"/v1/fragments/a%2Fb"]


def test_get_converted_classifies_415(server, client) -> None:
    fragment_id = server.add("text/plain", "plain")

    result = asyncio.run(client.get_converted(CREDENTIALS, fragment_id, "html"))

    assert result == UnsupportedConversion(fragment_id, "html")
    assert server.requests[-1] == ("GET", f"/v1/fragments/{fragment_id}.html")


def test_get_converted_markdown_to_html(server, client) -> None:
    fragment_id = server.add("text/markdown", "# Title")

    result = asyncio.run(client.get_converted(CREDENTIALS, fragment_id, "html"))

    assert isinstance(result, Content)
    assert result.body == "<p>Title</p>"


def test_get_converted_other_error_keeps_status(server, client) -> None:
    fragment_id = server.add("text/markdown", "# Title")
    server.fail_status[f"GET /v1/fragments/{fragment_id}.html"] = 500

    result = asyncio.run(client.get_converted(CREDENTIALS, fragment_id, "html"))

    assert isinstance(result, TransportError)
    assert result.status == 500
    assert str(result) == "500 Internal Server Error"


def test_create_returns_fragment_and_location(server, client) -> None:
    result = asyncio.run(client.create(CREDENTIALS, "text/plain", "body"))

    assert isinstance(result, Stored)
    assert result.fragment is not None
    assert result.fragment.type == "text/plain"
    assert result.location == f"{API_URL}/v1/fragments/{result.fragment.id}"
    assert server.fragments[result.fragment.id].data == b"body"


def test_create_without_fragment_in_response() -> None:
    client = FragmentsClient(
        API_URL, transport=httpx.MockTransport(lambda r: httpx.Response(201, json={}))
    )

    result = asyncio.run(client.create(CREDENTIALS, "text/plain", "body"))

    assert result == Stored(fragment=None, location=None)


def test_update_missing_fragment_is_transport_error(client) -> None:
    result = asyncio.run(client.update(CREDENTIALS, "nope", "text/plain", "x"))

    assert isinstance(result, TransportError)
    assert result.status == 404


def test_delete_outcomes(server, client) -> None:
    fragment_id = server.add("text/plain", "x")

    first = asyncio.run(client.delete(CREDENTIALS, fragment_id))
    second = asyncio.run(client.delete(CREDENTIALS, fragment_id))

    assert first == Deleted(fragment_id)
    assert second == NotFound(fragment_id)
