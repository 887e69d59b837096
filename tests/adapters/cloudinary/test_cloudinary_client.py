from __future__ import annotations

import asyncio
import base64
import hashlib
from collections.abc import Callable  # noqa: TC003
from urllib.parse import parse_qs

import httpx
import pytest

from assetsweep.adapters.cloudinary import (
    CloudinaryAPIError,
    CloudinaryObjectStore,
    ResourceListResponse,
    sign_params,
)
from assetsweep.adapters.http_resilience import ResilienceConfig, ResilientClient, RetryPolicy
from assetsweep.config import CloudinaryConfig, MissingConfigurationError, get_cloudinary_config
from assetsweep.domain.enumeration import enumerate_namespace
from assetsweep.domain.types import ResourceType, StoredObject

BASE_URL = "https://api.cloudinary.test/v1_1"

type Handler = Callable[[httpx.Request], httpx.Response]


def _config(*, retry: RetryPolicy | None = None) -> CloudinaryConfig:
    return CloudinaryConfig(
        cloud_name="demo",
        api_key="key-123",
        api_secret="secret-xyz",
        resilience=ResilienceConfig(
            name="cloudinary-test",
            base_url=BASE_URL,
            retry=retry or RetryPolicy(total=0),
        ),
    )


def _make_client_factory(handler: Handler) -> Callable[[ResilienceConfig], ResilientClient]:
    def factory(resilience: ResilienceConfig) -> ResilientClient:
        return ResilientClient(resilience, transport=httpx.MockTransport(handler))

    return factory


def _store(handler: Handler, *, retry: RetryPolicy | None = None) -> CloudinaryObjectStore:
    return CloudinaryObjectStore(
        config=_config(retry=retry),
        client_factory=_make_client_factory(handler),
        clock=lambda: 1_700_000_000.0,
    )


def _resource(public_id: str, resource_type: str = "image") -> dict[str, object]:
    return {
        "public_id": public_id,
        "resource_type": resource_type,
        "type": "upload",
        "format": "jpg",
        "bytes": 1024,
        "created_at": "2024-05-01T10:00:00Z",
    }


def test_sign_params_follows_cloudinary_signing_rule() -> None:
    params = {
        "timestamp": "1700000000",
        "public_id": "peakmode/products/a",
        "invalidate": "true",
        "api_key": "key-123",
        "empty": "",
    }

    expected = hashlib.sha1(
        b"invalidate=true&public_id=peakmode/products/a&timestamp=1700000000secret-xyz",
        usedforsecurity=False,
    ).hexdigest()

    assert sign_params(params, "secret-xyz") == expected


def test_list_objects_sends_prefix_cursor_and_basic_auth() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(
            200,
            json={
                "resources": [
                    _resource("peakmode/products/a"),
                    _resource("peakmode/products-old/x"),
                ],
                "next_cursor": "cursor-2",
            },
        )

    async def run() -> None:
        async with _store(handler) as store:
            page = await store.list_objects(
                namespace="peakmode/products",
                resource_type=ResourceType.IMAGE,
                cursor="cursor-1",
                max_results=200,
            )
            assert page.objects == (StoredObject("peakmode/products/a"),)
            assert page.next_cursor == "cursor-2"

    asyncio.run(run())

    request = captured[0]
    assert request.method == "GET"
    assert request.url.path == "/v1_1/demo/resources/image/upload"
    assert request.url.params["prefix"] == "peakmode/products/"
    assert request.url.params["max_results"] == "200"
    assert request.url.params["next_cursor"] == "cursor-1"
    credentials = base64.b64encode(b"key-123:secret-xyz").decode()
    assert request.headers["User-Agent"].startswith("assetsweep/")
    assert request.headers["Authorization"] == f"Basic {credentials}"


def test_enumeration_through_cloudinary_pages() -> None:
    pages = {
        None: {"resources": [_resource("peakmode/reviews/a")], "next_cursor": "c1"},
        "c1": {"resources": [_resource("peakmode/reviews/b")], "next_cursor": ""},
    }
    video_page = {"resources": [_resource("peakmode/reviews/clip", "video")]}

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/resources/video/upload"):
            return httpx.Response(200, json=video_page)
        return httpx.Response(200, json=pages[request.url.params.get("next_cursor")])

    async def run() -> list[StoredObject]:
        async with _store(handler) as store:
            return await enumerate_namespace(
                store,
                "peakmode/reviews",
                resource_types=(ResourceType.IMAGE, ResourceType.VIDEO),
            )

    objects = asyncio.run(run())

    assert objects == [
        StoredObject("peakmode/reviews/a"),
        StoredObject("peakmode/reviews/b"),
        StoredObject("peakmode/reviews/clip", ResourceType.VIDEO),
    ]


def test_delete_object_posts_signed_destroy_request() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json={"result": "ok"})

    async def run() -> str:
        async with _store(handler) as store:
            return await store.delete_object(
                StoredObject("peakmode/reviews/clip", ResourceType.VIDEO)
            )

    assert asyncio.run(run()) == "ok"

    request = captured[0]
    assert request.method == "POST"
    assert request.url.path == "/v1_1/demo/video/destroy"
    form = {key: values[0] for key, values in parse_qs(request.content.decode()).items()}
    assert form["public_id"] == "peakmode/reviews/clip"
    assert form["timestamp"] == "1700000000"
    assert form["api_key"] == "key-123"
    assert form["invalidate"] == "true"
    assert form["signature"] == sign_params(
        {"public_id": "peakmode/reviews/clip", "invalidate": "true", "timestamp": "1700000000"},
        "secret-xyz",
    )


def test_delete_object_passes_not_found_through() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"result": "not found"})

    async def run() -> str:
        async with _store(handler) as store:
            return await store.delete_object(StoredObject("peakmode/products/gone"))

    assert asyncio.run(run()) == "not found"


def test_error_payload_raises_with_status() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(420, json={"error": {"message": "Rate Limit Exceeded"}})

    async def run() -> None:
        async with _store(handler) as store:
            await store.list_objects(
                namespace="peakmode/products", resource_type=ResourceType.IMAGE
            )

    with pytest.raises(CloudinaryAPIError, match="HTTP 420: Rate Limit Exceeded") as excinfo:
        asyncio.run(run())
    assert excinfo.value.status_code == 420


def test_transport_errors_become_store_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async def run() -> None:
        async with _store(handler) as store:
            await store.delete_object(StoredObject("peakmode/products/a"))

    with pytest.raises(CloudinaryAPIError, match="connection refused"):
        asyncio.run(run())


def test_unexpected_payload_is_rejected() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"resources": "nope"})

    async def run() -> None:
        async with _store(handler) as store:
            await store.list_objects(
                namespace="peakmode/products", resource_type=ResourceType.IMAGE
            )

    with pytest.raises(CloudinaryAPIError, match="Unexpected Cloudinary listing payload"):
        asyncio.run(run())


def test_listing_is_retried_but_destroy_is_not() -> None:
    calls = {"GET": 0, "POST": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls[request.method] += 1
        if calls[request.method] == 1:
            return httpx.Response(503, json={"error": {"message": "busy"}})
        if request.method == "GET":
            return httpx.Response(200, json={"resources": []})
        return httpx.Response(200, json={"result": "ok"})

    retry = RetryPolicy(
        total=2,
        backoff_factor=0.0,
        backoff_jitter=0.0,
        allowed_methods=frozenset({"GET"}),
    )

    async def run() -> None:
        async with _store(handler, retry=retry) as store:
            page = await store.list_objects(
                namespace="peakmode/products", resource_type=ResourceType.IMAGE
            )
            assert page.objects == ()
            with pytest.raises(CloudinaryAPIError, match="HTTP 503"):
                await store.delete_object(StoredObject("peakmode/products/a"))

    asyncio.run(run())

    assert calls == {"GET": 2, "POST": 1}


def test_blank_cursor_is_treated_as_last_page() -> None:
    listing = ResourceListResponse.model_validate({"resources": [], "next_cursor": "  "})

    assert listing.next_cursor is None


def test_get_cloudinary_config_reads_environment(cloudinary_env: None) -> None:
    config = get_cloudinary_config()

    assert config.cloud_name == "demo"
    assert config.api_secret == "secret-xyz"
    assert "secret-xyz" not in repr(config)
    assert config.resilience.retry.allowed_methods == frozenset({"GET"})
    assert config.resilience.retry.retries("get")
    assert not config.resilience.retry.retries("POST")
    assert 420 in config.resilience.retry.status_forcelist


def test_get_cloudinary_config_requires_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLOUDINARY_CLOUD_NAME", "demo")
    monkeypatch.delenv("CLOUDINARY_API_KEY", raising=False)
    monkeypatch.setenv("CLOUDINARY_API_SECRET", "   ")

    with pytest.raises(
        MissingConfigurationError, match="CLOUDINARY_API_KEY, CLOUDINARY_API_SECRET"
    ):
        get_cloudinary_config()
