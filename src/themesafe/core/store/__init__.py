"""
Remote theme store access.

Typed, paced operations over the store's Admin API, with HTTP failures
classified into a small error taxonomy.

Example:
    >>> from themesafe.core.store import RemoteStoreClient, Item
    >>> with RemoteStoreClient.from_config(config) as client:
    ...     client.put_item(config.mutable_target_id, Item(key="assets/a.css", content=""))
"""

from themesafe.core.store.backend import RemoteStore
from themesafe.core.store.client import RemoteStoreClient
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
from themesafe.core.store.models import (
    Item,
    MediaKind,
    RemoteItemRef,
    TargetInfo,
    TargetRole,
    is_binary_key,
)
from themesafe.core.store.pacing import NoPacer, RequestPacer

__all__ = [
    "RemoteStore",
    "RemoteStoreClient",
    "RequestPacer",
    "NoPacer",
    "Item",
    "MediaKind",
    "RemoteItemRef",
    "TargetInfo",
    "TargetRole",
    "is_binary_key",
    "StoreError",
    "AuthError",
    "ForbiddenError",
    "NotFoundError",
    "ValidationError",
    "RateLimitedError",
    "MalformedResponseError",
    "TransientError",
]
