"""HTTP client for the Cloudinary Admin and Upload APIs."""

from __future__ import annotations

import hashlib
import time
from contextlib import suppress
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from assetsweep.adapters.http_resilience import ResilientClient
from assetsweep.domain.errors import ObjectStoreError
from assetsweep.domain.ports.object_store import ObjectPage

from .schema import DestroyResponse, ErrorResponse, ResourceListResponse
from .translator import parse_stored_object

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from types import TracebackType

    from assetsweep.config.cloudinary import CloudinaryConfig
    from assetsweep.config.http_resilience import ResilienceConfig
    from assetsweep.domain.types import ResourceType, StoredObject

log = getLogger(__name__)

UPLOAD_DELIVERY_TYPE = "upload"
# parameters Cloudinary leaves out of the signature base string
_UNSIGNED_PARAMS = frozenset({"api_key", "cloud_name", "file", "resource_type", "signature"})


class CloudinaryAPIError(ObjectStoreError):
    """Raised when Cloudinary rejects a request or returns an unexpected payload."""


def sign_params(params: Mapping[str, str], api_secret: str) -> str:
    """Return the SHA-1 request signature Cloudinary expects for signed uploads."""

    to_sign = "&".join(
        f"{key}={value}"
        for key, value in sorted(params.items())
        if key not in _UNSIGNED_PARAMS and value != ""
    )
    return hashlib.sha1(f"{to_sign}{api_secret}".encode(), usedforsecurity=False).hexdigest()


class CloudinaryObjectStore:
    """Object store adapter listing and destroying Cloudinary resources.

    One HTTP client is shared by every call made through the store so the rate limit
    applies across the whole run; use it as an async context manager or call
    :meth:`aclose`.
    """

    def __init__(
        self,
        *,
        config: CloudinaryConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._clock = clock
        self._client: ResilientClient | None = None

    async def __aenter__(self) -> CloudinaryObjectStore:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> ResilientClient:
        if self._client is None:
            self._client = self._client_factory(self._resilience)
        return self._client

    async def list_objects(
        self,
        *,
        namespace: str,
        resource_type: ResourceType,
        cursor: str | None = None,
        max_results: int = 500,
    ) -> ObjectPage:
        prefix = f"{namespace.strip('/')}/"
        params: dict[str, str] = {"prefix": prefix, "max_results": str(max_results)}
        if cursor:
            params["next_cursor"] = cursor

        payload = await self._perform_request(
            "GET",
            f"{self._config.cloud_name}/resources/{resource_type}/{UPLOAD_DELIVERY_TYPE}",
            params=params,
            auth=httpx.BasicAuth(self._config.api_key, self._config.api_secret),
        )
        try:
            listing = ResourceListResponse.model_validate(payload)
        except ValidationError as exc:
            raise CloudinaryAPIError(f"Unexpected Cloudinary listing payload: {exc}") from exc

        objects: list[StoredObject] = []
        for resource in listing.resources:
            if not resource.public_id.startswith(prefix):
                log.warning(f"Ignoring {resource.public_id!r} listed outside prefix {prefix!r}")
                continue
            objects.append(parse_stored_object(resource, requested=resource_type))
        return ObjectPage(objects=tuple(objects), next_cursor=listing.next_cursor)

    async def delete_object(self, obj: StoredObject) -> str:
        params = {
            "public_id": obj.object_id,
            "invalidate": "true",
            "timestamp": str(int(self._clock())),
        }
        form = {
            **params,
            "api_key": self._config.api_key,
            "signature": sign_params(params, self._config.api_secret),
        }
        payload = await self._perform_request(
            "POST",
            f"{self._config.cloud_name}/{obj.resource_type}/destroy",
            data=form,
        )
        try:
            return DestroyResponse.model_validate(payload).result
        except ValidationError as exc:
            raise CloudinaryAPIError(f"Unexpected Cloudinary destroy payload: {exc}") from exc

    async def _perform_request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        data: dict[str, str] | None = None,
        auth: httpx.Auth | None = None,
    ) -> object:
        try:
            if method == "GET":
                response = await self.client.get(path, params=params, auth=auth)
            else:
                response = await self.client.post(path, data=data)
        except httpx.HTTPError as exc:
            raise CloudinaryAPIError(f"{method} {path} failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.is_error:
            message = response.reason_phrase or "request failed"
            if isinstance(payload, dict) and "error" in payload:
                with suppress(ValidationError):
                    message = ErrorResponse.model_validate(payload).error.message
            log.error(f"Cloudinary API error {response.status_code} on {path}: {message}")
            raise CloudinaryAPIError(
                f"HTTP {response.status_code}: {message}", status_code=response.status_code
            )

        if not isinstance(payload, dict):
            raise CloudinaryAPIError(f"Unexpected Cloudinary response payload from {path}")
        return payload
