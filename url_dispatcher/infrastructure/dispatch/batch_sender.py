from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from url_dispatcher.domain.entities import BatchEntry
from url_dispatcher.domain.errors import BatchFailed
from url_dispatcher.domain.ports.queue_port import QueuePort
from url_dispatcher.infrastructure.dispatch.lifecycle import wait_for_stop

logger = logging.getLogger(__name__)

WaitFn = Callable[[asyncio.Event, float], Awaitable[bool]]


@dataclass(frozen=True)
class SendResult:
    attempts: int
    error: BatchFailed | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BatchSender:
    """
    Submits one batch with a bounded number of attempts and linear backoff
    (retry_backoff * attempt) between them. Failures come back as a
    SendResult, never as an exception.
    """

    def __init__(
        self,
        queue: QueuePort,
        *,
        retry_attempts: int = 3,
        retry_backoff: float = 2.0,
        wait: WaitFn = wait_for_stop,
    ) -> None:
        if retry_attempts < 1:
            raise ValueError("retry_attempts must be >= 1")
        self.queue = queue
        self.retry_attempts = retry_attempts
        self.retry_backoff = retry_backoff
        self._wait = wait

    def backoff_for(self, attempt: int) -> float:
        return self.retry_backoff * attempt

    async def send(
        self, entries: Sequence[BatchEntry], stop: asyncio.Event
    ) -> SendResult:
        last_error: Exception | None = None
        for attempt in range(1, self.retry_attempts + 1):
            try:
                await self.queue.submit_batch(entries)
            except Exception as e:  # noqa: BLE001
                last_error = e
                logger.warning(
                    "send batch attempt failed",
                    extra={
                        "attempt": attempt,
                        "max_attempts": self.retry_attempts,
                        "size": len(entries),
                        "error": str(e),
                    },
                )
            else:
                logger.info(
                    "batch sent", extra={"size": len(entries), "attempt": attempt}
                )
                return SendResult(attempts=attempt)

            if attempt == self.retry_attempts:
                break

            delay = self.backoff_for(attempt)
            if await self._wait(stop, delay):
                logger.info(
                    "stop requested during backoff; abandoning batch",
                    extra={"attempt": attempt, "size": len(entries)},
                )
                return SendResult(
                    attempts=attempt,
                    error=BatchFailed(attempt, last_error, cancelled=True),
                )

        return SendResult(
            attempts=self.retry_attempts,
            error=BatchFailed(self.retry_attempts, last_error),
        )
