"""
HTTP client for the remote theme store.

Wraps the store's Admin REST API with typed operations. Calls are issued
one at a time, each paced by a RequestPacer, and every non-2xx response is
classified into the error taxonomy in ``themesafe.core.store.exceptions``.
Rate-limited calls are never retried here.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from typing import Any

import httpx

from themesafe.core.config.models import ProjectConfig
from themesafe.core.store.exceptions import (
    AuthError,
    ForbiddenError,
    MalformedResponseError,
    NotFoundError,
    RateLimitedError,
    StoreError,
    TransientError,
    ValidationError,
)
from themesafe.core.store.models import Item, RemoteItemRef, TargetInfo
from themesafe.core.store.pacing import RequestPacer

logger = logging.getLogger(__name__)

AUTH_HEADER = "X-Shopify-Access-Token"
CALL_LIMIT_HEADER = "X-Shopify-Shop-Api-Call-Limit"
DEFAULT_RETRY_AFTER = 2.0


def _capability_for(method: str) -> str:
    return "read_themes" if method == "GET" else "write_themes"


def _parse_retry_after(value: str | None) -> float:
    if not value:
        return DEFAULT_RETRY_AFTER
    try:
        return max(0.0, float(value))
    except ValueError:
        return DEFAULT_RETRY_AFTER


def _error_detail(response: httpx.Response) -> object:
    try:
        body = response.json()
    except (json.JSONDecodeError, ValueError):
        return response.text.strip()
    if isinstance(body, dict) and "errors" in body:
        return body["errors"]
    return body


class RemoteStoreClient:
    """
    Typed operations over the remote theme store.

    Example:
        >>> client = RemoteStoreClient.from_config(config)
        >>> info = client.get_target_info(config.mutable_target_id)
        >>> info.role
        <TargetRole.MUTABLE: 'mutable'>
        >>> client.put_item(info.id, Item(key="assets/base.css", content="..."))
    """

    def __init__(
        self,
        base_url: str,
        access_token: str,
        *,
        pacer: RequestPacer | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: API root, e.g. https://shop.myshopify.com/admin/api/2024-01/
            access_token: Admin API access token
            pacer: Pacer shared by every call (default: 0.55s spacing)
            timeout: Per-call timeout in seconds
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.pacer = pacer or RequestPacer()
        self._http = httpx.Client(
            base_url=base_url.rstrip("/") + "/",
            headers={AUTH_HEADER: access_token, "Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(
        cls,
        config: ProjectConfig,
        *,
        pacer: RequestPacer | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> RemoteStoreClient:
        return cls(
            config.api_base_url,
            config.access_token.get_secret_value(),
            pacer=pacer or RequestPacer(interval=config.request_interval),
            timeout=config.request_timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> RemoteStoreClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Issue one paced call and return the decoded JSON body.

        Raises:
            StoreError: Classified failure (see module docstring)
        """
        self.pacer.wait()
        logger.debug("%s %s %s", method, path, params or "")

        try:
            response = self._http.request(method, path, params=params, json=payload)
        except httpx.TimeoutException as e:
            raise TransientError(f"Timed out: {method} {path}", path=path) from e
        except httpx.HTTPError as e:
            raise TransientError(f"Request failed: {method} {path}: {e}", path=path) from e

        self.pacer.observe_limit_header(response.headers.get(CALL_LIMIT_HEADER))

        status = response.status_code
        if status >= 400:
            self._raise_for_status(method, path, response)

        if status == 204 or not response.content:
            return {}
        try:
            body = response.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise MalformedResponseError(
                f"Response for {method} {path} is not JSON", path=path
            ) from e
        if not isinstance(body, dict):
            raise MalformedResponseError(
                f"Response for {method} {path} is not a JSON object", path=path
            )
        return body

    def _raise_for_status(self, method: str, path: str, response: httpx.Response) -> None:
        status = response.status_code
        detail = _error_detail(response)
        context = {"status_code": status, "path": path}

        if status == 401:
            raise AuthError(f"Access token rejected: {detail}", **context)
        if status == 403:
            raise ForbiddenError(
                f"Access denied for {method} {path}",
                capability=_capability_for(method),
                **context,
            )
        if status == 404:
            raise NotFoundError(f"Not found: {path}", **context)
        if status in (400, 406, 422):
            raise ValidationError(
                f"Store rejected {method} {path}: {detail}", errors=detail, **context
            )
        if status == 429:
            retry_after = _parse_retry_after(response.headers.get("Retry-After"))
            raise RateLimitedError("Store rate limit exceeded", retry_after=retry_after, **context)
        if status >= 500:
            raise TransientError(f"Store error (HTTP {status}) on {path}", **context)
        raise StoreError(f"Unexpected HTTP {status} on {path}: {detail}", **context)

    @staticmethod
    def _section(body: dict[str, Any], name: str, path: str) -> Any:
        if name not in body:
            raise MalformedResponseError(f"Response for {path} has no '{name}'", path=path)
        return body[name]

    # ------------------------------------------------------------------
    # Targets
    # ------------------------------------------------------------------

    def list_targets(self) -> list[TargetInfo]:
        """List every target (theme) in the store."""
        path = "themes.json"
        themes = self._section(self._request("GET", path), "themes", path)
        try:
            return [TargetInfo.from_wire(theme) for theme in themes]
        except (TypeError, KeyError, ValueError) as e:
            raise MalformedResponseError(f"Unexpected theme listing: {e}", path=path) from e

    def get_target_info(self, target_id: int) -> TargetInfo:
        """
        Fetch authoritative metadata for one target.

        Raises:
            NotFoundError: If the target does not exist
        """
        path = f"themes/{target_id}.json"
        theme = self._section(self._request("GET", path), "theme", path)
        try:
            return TargetInfo.from_wire(theme)
        except (TypeError, KeyError, ValueError) as e:
            raise MalformedResponseError(f"Unexpected theme payload: {e}", path=path) from e

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def list_items(self, target_id: int) -> list[RemoteItemRef]:
        """List every item key on a target with its reported content kind."""
        path = f"themes/{target_id}/assets.json"
        assets = self._section(self._request("GET", path), "assets", path)
        try:
            return [
                RemoteItemRef(key=asset["key"], content_type=asset.get("content_type") or "")
                for asset in assets
            ]
        except (TypeError, KeyError, ValueError) as e:
            raise MalformedResponseError(f"Unexpected asset listing: {e}", path=path) from e

    def get_item(self, target_id: int, key: str) -> Item:
        """
        Fetch one item, decoding base64 attachments.

        Raises:
            NotFoundError: If the item does not exist on the target
            MalformedResponseError: If the payload cannot be decoded
        """
        path = f"themes/{target_id}/assets.json"
        body = self._request("GET", path, params={"asset[key]": key})
        asset = self._section(body, "asset", path)
        if not isinstance(asset, dict):
            raise MalformedResponseError(f"Asset payload for {key} is not an object", key=key)
        try:
            return Item.from_wire(asset)
        except ValueError as e:
            raise MalformedResponseError(str(e), key=key) from e

    def find_item(self, target_id: int, key: str) -> Item | None:
        """Like get_item, but a missing item returns None."""
        try:
            return self.get_item(target_id, key)
        except NotFoundError:
            return None

    def put_item(self, target_id: int, item: Item) -> None:
        """Create or replace one item on a target."""
        path = f"themes/{target_id}/assets.json"
        self._request("PUT", path, payload={"asset": item.to_wire()})

    def delete_item(self, target_id: int, key: str) -> None:
        """Delete one item from a target."""
        path = f"themes/{target_id}/assets.json"
        self._request("DELETE", path, params={"asset[key]": key})

    def download_target(self, target_id: int) -> Iterator[tuple[str, Item | StoreError]]:
        """
        Fetch every item on a target.

        Yields ``(key, item)`` or ``(key, error)`` per listed key so the
        caller decides per-item policy. A failed listing raises.
        """
        for ref in self.list_items(target_id):
            try:
                yield ref.key, self.get_item(target_id, ref.key)
            except StoreError as e:
                if e.fatal:
                    raise
                yield ref.key, e


__all__ = ["RemoteStoreClient"]
