"""
Remote store protocol.

Orchestrators and the safety guard depend on this protocol rather than on
the HTTP client, so an in-memory store can stand in for the real one.
"""

from typing import Protocol, runtime_checkable

from .models import Item, RemoteItemRef, TargetInfo


@runtime_checkable
class RemoteStore(Protocol):
    """
    Protocol for remote theme store implementations.

    Implementations raise the exceptions in
    ``themesafe.core.store.exceptions`` on failure.
    """

    def list_items(self, target_id: int) -> list[RemoteItemRef]:
        """List every item key on a target."""
        ...

    def get_item(self, target_id: int, key: str) -> Item:
        """
        Fetch one item.

        Raises:
            NotFoundError: If the item does not exist
        """
        ...

    def put_item(self, target_id: int, item: Item) -> None:
        """Create or replace one item."""
        ...

    def delete_item(self, target_id: int, key: str) -> None:
        """Delete one item."""
        ...

    def get_target_info(self, target_id: int) -> TargetInfo:
        """
        Fetch fresh metadata for a target.

        Raises:
            NotFoundError: If the target does not exist
        """
        ...
