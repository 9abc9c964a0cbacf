from __future__ import annotations

from typing import Protocol

from url_dispatcher.domain.entities import WorkItem


class WorkItemStorePort(Protocol):
    async def fetch_pending(self, limit: int) -> list[WorkItem]:
        """
        Return up to `limit` work items that are not delivered yet.
        Raises StoreUnavailable when the store cannot be queried.
        """

    async def mark_delivered(self, payload: str) -> None:
        """
        Flag the item(s) carrying `payload` as delivered. Marking an already
        delivered item is a no-op. Raises StoreUnavailable on connectivity errors.
        """
