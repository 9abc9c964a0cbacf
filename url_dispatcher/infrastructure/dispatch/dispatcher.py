from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Literal

from url_dispatcher.domain.entities import MessageCounter, WorkItem, chunked
from url_dispatcher.domain.errors import StoreUnavailable
from url_dispatcher.domain.ports.work_item_store import WorkItemStorePort
from url_dispatcher.infrastructure.dispatch.batch_sender import BatchSender, WaitFn
from url_dispatcher.infrastructure.dispatch.lifecycle import wait_for_stop

logger = logging.getLogger(__name__)


@dataclass
class TickReport:
    fetched: int = 0
    batches_sent: int = 0
    batches_failed: int = 0
    marked: int = 0
    mark_failures: int = 0


class UrlDispatcher:
    """
    Polls the store for undelivered work items, sends them to the queue in
    batches and marks each batch delivered once the queue accepted it.

    Everything runs sequentially on one task. A record is only marked after
    its batch was accepted; if marking fails the record is sent again on a
    later tick (at-least-once).
    """

    def __init__(
        self,
        *,
        store: WorkItemStorePort,
        sender: BatchSender,
        stop: asyncio.Event,
        batch_size: int = 10,
        database_limit: int = 100,
        polling_interval: float = 10.0,
        wait: WaitFn = wait_for_stop,
    ) -> None:
        self.store = store
        self.sender = sender
        self.stop = stop
        self.batch_size = batch_size
        self.database_limit = database_limit
        self.polling_interval = polling_interval
        self.state: Literal["running", "stopped"] = "running"
        self._wait = wait
        self._counter = MessageCounter()

    @property
    def messages_built(self) -> int:
        return self._counter.value

    async def run_forever(self) -> None:
        logger.info(
            "dispatcher started",
            extra={
                "batch_size": self.batch_size,
                "database_limit": self.database_limit,
                "polling_interval": self.polling_interval,
            },
        )
        while not self.stop.is_set():
            try:
                await self.tick()
            except Exception:  # noqa: BLE001
                logger.exception("tick failed unexpectedly")
            if await self._wait(self.stop, self.polling_interval):
                break

        self.state = "stopped"
        logger.info("dispatcher stopped", extra={"messages": self.messages_built})

    async def tick(self) -> TickReport:
        """
        One fetch -> batch -> send -> mark pass. Store and queue failures are
        logged here and never escape.
        """
        report = TickReport()
        try:
            items = await self.store.fetch_pending(self.database_limit)
        except StoreUnavailable as e:
            logger.warning("fetch pending failed", extra={"error": str(e)})
            return report

        if not items:
            logger.info("no pending work items")
            return report

        report.fetched = len(items)
        logger.info("processing work items", extra={"count": len(items)})

        chunks = list(chunked(items, self.batch_size))
        for index, chunk in enumerate(chunks):
            if self.stop.is_set():
                logger.info(
                    "stop requested; leaving remaining batches",
                    extra={"remaining": len(chunks) - index},
                )
                break
            await self._dispatch_chunk(chunk, report)

        logger.info("tick finished", extra=asdict(report))
        return report

    async def _dispatch_chunk(self, chunk: list[WorkItem], report: TickReport) -> None:
        entries = [self._counter.next_entry(item.payload) for item in chunk]
        result = await self.sender.send(entries, self.stop)
        if not result.ok:
            report.batches_failed += 1
            logger.error(
                "failed to send batch",
                extra={"size": len(chunk), "error": str(result.error)},
            )
            return

        report.batches_sent += 1
        # the chunk is finished even if a stop arrives meanwhile
        for item in chunk:
            try:
                await self.store.mark_delivered(item.payload)
            except StoreUnavailable as e:
                report.mark_failures += 1
                logger.warning(
                    "mark delivered failed; item will be sent again",
                    extra={"id": item.id, "error": str(e)},
                )
            else:
                item.mark_delivered()
                report.marked += 1
