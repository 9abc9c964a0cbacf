from __future__ import annotations

from typing import Protocol, Sequence

from url_dispatcher.domain.entities import BatchEntry


class QueuePort(Protocol):
    async def submit_batch(self, entries: Sequence[BatchEntry]) -> None:
        """
        Submit one batch. Raises QueueError if the batch (or any part of it)
        was not accepted; the caller then treats the whole batch as unsent.
        """
