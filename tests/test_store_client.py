"""
Tests for RemoteStoreClient over a mocked HTTP transport.

Tests cover:
- Request shape (auth header, paths, asset key params)
- Decoding of target and item payloads
- Classification of HTTP failures into the error taxonomy
- Per-item results from download_target
"""

import base64
import json

import httpx
import pytest

from themesafe.core.store import (
    AuthError,
    ForbiddenError,
    Item,
    MalformedResponseError,
    NoPacer,
    NotFoundError,
    RateLimitedError,
    RemoteStore,
    RemoteStoreClient,
    TargetRole,
    TransientError,
    ValidationError,
)

BASE_URL = "https://test-shop.myshopify.com/admin/api/2024-01/"


def make_client(handler) -> RemoteStoreClient:
    return RemoteStoreClient(
        BASE_URL,
        "shpat_test",
        pacer=NoPacer(),
        transport=httpx.MockTransport(handler),
    )


def json_response(status: int, body: object, **headers: str) -> httpx.Response:
    return httpx.Response(status, json=body, headers=headers)


class TestRequests:
    """Tests for what the client sends."""

    def test_auth_header_and_path(self) -> None:
        """Every call carries the access token header."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return json_response(200, {"theme": {"id": 5, "name": "Dev", "role": "unpublished"}})

        with make_client(handler) as client:
            info = client.get_target_info(5)

        assert info.role is TargetRole.MUTABLE
        assert seen[0].headers["X-Shopify-Access-Token"] == "shpat_test"
        assert seen[0].url.path == "/admin/api/2024-01/themes/5.json"

    def test_get_item_passes_key_param(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["asset[key]"] == "sections/header.liquid"
            return json_response(
                200, {"asset": {"key": "sections/header.liquid", "value": "<header>"}}
            )

        with make_client(handler) as client:
            item = client.get_item(5, "sections/header.liquid")

        assert item == Item(key="sections/header.liquid", content="<header>")

    def test_put_binary_item_sends_attachment(self) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "PUT"
            bodies.append(json.loads(request.content))
            return json_response(200, {"asset": {"key": "assets/a.png"}})

        with make_client(handler) as client:
            client.put_item(5, Item(key="assets/a.png", content=b"\x89PNG"))

        assert bodies[0] == {
            "asset": {"key": "assets/a.png", "attachment": base64.b64encode(b"\x89PNG").decode()}
        }

    def test_delete_item(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b"")

        with make_client(handler) as client:
            client.delete_item(5, "sections/old.liquid")

        assert seen[0].method == "DELETE"
        assert seen[0].url.params["asset[key]"] == "sections/old.liquid"

    def test_list_items(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return json_response(
                200,
                {
                    "assets": [
                        {"key": "assets/a.css", "content_type": "text/css"},
                        {"key": "assets/b.png", "content_type": "image/png"},
                    ]
                },
            )

        with make_client(handler) as client:
            refs = client.list_items(5)

        assert [ref.key for ref in refs] == ["assets/a.css", "assets/b.png"]
        assert refs[0].content_type == "text/css"

    def test_pacer_sees_call_limit_header(self) -> None:
        """A nearly full bucket doubles the next spacing."""
        pacer = NoPacer()
        pacer.interval = 0.5

        def handler(request: httpx.Request) -> httpx.Response:
            return json_response(
                200,
                {"themes": []},
                **{"X-Shopify-Shop-Api-Call-Limit": "38/40"},
            )

        client = RemoteStoreClient(
            BASE_URL, "t", pacer=pacer, transport=httpx.MockTransport(handler)
        )
        client.list_targets()

        assert pacer.next_spacing == 1.0

    def test_client_satisfies_protocol(self) -> None:
        client = make_client(lambda request: httpx.Response(200))
        assert isinstance(client, RemoteStore)


class TestErrorClassification:
    """Tests for mapping HTTP failures to typed errors."""

    def test_401_is_auth_error(self) -> None:
        client = make_client(lambda r: json_response(401, {"errors": "Invalid API key"}))
        with pytest.raises(AuthError) as exc_info:
            client.list_items(5)
        assert exc_info.value.fatal

    def test_403_names_capability(self) -> None:
        client = make_client(lambda r: json_response(403, {"errors": "Forbidden"}))
        with pytest.raises(ForbiddenError) as exc_info:
            client.put_item(5, Item(key="assets/a.css", content=""))
        assert exc_info.value.capability == "write_themes"

    def test_403_on_read_names_read_capability(self) -> None:
        client = make_client(lambda r: json_response(403, {"errors": "Forbidden"}))
        with pytest.raises(ForbiddenError) as exc_info:
            client.list_items(5)
        assert exc_info.value.capability == "read_themes"

    def test_404_is_not_found(self) -> None:
        client = make_client(lambda r: json_response(404, {"errors": "Not Found"}))
        with pytest.raises(NotFoundError):
            client.get_target_info(5)

    def test_find_item_returns_none_when_missing(self) -> None:
        client = make_client(lambda r: json_response(404, {"errors": "Not Found"}))
        assert client.find_item(5, "assets/new.css") is None

    def test_422_is_validation_error_with_details(self) -> None:
        errors = {"asset": ["Liquid syntax error"]}
        client = make_client(lambda r: json_response(422, {"errors": errors}))
        with pytest.raises(ValidationError) as exc_info:
            client.put_item(5, Item(key="sections/a.liquid", content="{% if %}"))
        assert exc_info.value.errors == errors
        assert not exc_info.value.fatal

    def test_429_carries_retry_after(self) -> None:
        """Rate-limited calls surface the advised wait and are not retried."""
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return json_response(429, {"errors": "Throttled"}, **{"Retry-After": "4.0"})

        client = make_client(handler)
        with pytest.raises(RateLimitedError) as exc_info:
            client.list_items(5)

        assert exc_info.value.retry_after == 4.0
        assert len(calls) == 1

    def test_429_without_header_uses_default(self) -> None:
        client = make_client(lambda r: json_response(429, {}))
        with pytest.raises(RateLimitedError) as exc_info:
            client.list_items(5)
        assert exc_info.value.retry_after == 2.0

    def test_5xx_is_transient(self) -> None:
        client = make_client(lambda r: httpx.Response(503, text="unavailable"))
        with pytest.raises(TransientError):
            client.list_items(5)

    def test_timeout_is_transient(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        client = make_client(handler)
        with pytest.raises(TransientError):
            client.get_item(5, "assets/a.css")

    def test_non_json_is_malformed(self) -> None:
        client = make_client(lambda r: httpx.Response(200, text="<html>"))
        with pytest.raises(MalformedResponseError):
            client.list_items(5)

    def test_missing_section_is_malformed(self) -> None:
        client = make_client(lambda r: json_response(200, {"unexpected": []}))
        with pytest.raises(MalformedResponseError):
            client.list_items(5)

    def test_undecodable_asset_is_malformed(self) -> None:
        client = make_client(
            lambda r: json_response(200, {"asset": {"key": "assets/a.png", "attachment": "%%"}})
        )
        with pytest.raises(MalformedResponseError):
            client.get_item(5, "assets/a.png")


class TestDownloadTarget:
    """Tests for download_target."""

    def test_yields_items_and_errors_per_key(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            key = request.url.params.get("asset[key]")
            if key is None:
                return json_response(
                    200, {"assets": [{"key": "assets/a.css"}, {"key": "assets/b.css"}]}
                )
            if key == "assets/b.css":
                return httpx.Response(500, text="boom")
            return json_response(200, {"asset": {"key": key, "value": "a"}})

        with make_client(handler) as client:
            results = dict(client.download_target(5))

        assert isinstance(results["assets/a.css"], Item)
        assert isinstance(results["assets/b.css"], TransientError)

    def test_fatal_error_propagates(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if "asset[key]" not in request.url.params:
                return json_response(200, {"assets": [{"key": "assets/a.css"}]})
            return json_response(401, {"errors": "bad token"})

        with make_client(handler) as client:
            with pytest.raises(AuthError):
                list(client.download_target(5))
