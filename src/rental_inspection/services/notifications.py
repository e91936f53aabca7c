"""Completion notification contract."""

from typing import Protocol


class NotificationClient(Protocol):
    """Interface for announcing a completed inspection."""

    async def notify(self, order_id: str, store_id: str) -> None:
        """Announce that all evidence for an order has been stored."""
