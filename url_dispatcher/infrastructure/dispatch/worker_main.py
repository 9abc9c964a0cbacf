from __future__ import annotations

import asyncio
import logging
import os
from contextlib import AsyncExitStack, contextmanager
from typing import Any

import uvicorn
from psycopg_pool import AsyncConnectionPool

from url_dispatcher.domain.errors import ConfigurationMissing
from url_dispatcher.infrastructure.db.pool import open_pool
from url_dispatcher.infrastructure.db.work_item_store import PgWorkItemStore
from url_dispatcher.infrastructure.dispatch.batch_sender import BatchSender
from url_dispatcher.infrastructure.dispatch.dispatcher import UrlDispatcher
from url_dispatcher.infrastructure.dispatch.lifecycle import ShutdownController
from url_dispatcher.infrastructure.queue.sqs_gateway import (
    SqsQueueGateway,
    open_sqs_client,
)
from url_dispatcher.logging import setup_logging
from url_dispatcher.main import create_app
from url_dispatcher.settings import Settings, load_settings

logger = logging.getLogger(__name__)


class StatusServer(uvicorn.Server):
    """uvicorn server that leaves SIGINT/SIGTERM to the ShutdownController."""

    def install_signal_handlers(self) -> None:
        pass

    @contextmanager
    def capture_signals(self):
        yield


def build_dispatcher(
    settings: Settings,
    pool: AsyncConnectionPool,
    sqs_client: Any,
    stop: asyncio.Event,
) -> UrlDispatcher:
    sender = BatchSender(
        SqsQueueGateway(sqs_client, settings.sqs_url),
        retry_attempts=settings.retry_attempts,
        retry_backoff=settings.retry_backoff_seconds,
    )
    return UrlDispatcher(
        store=PgWorkItemStore(pool),
        sender=sender,
        stop=stop,
        batch_size=settings.batch_size,
        database_limit=settings.database_limit,
        polling_interval=settings.polling_interval_seconds,
    )


async def _run(settings: Settings) -> None:
    controller = ShutdownController()
    controller.install()
    try:
        async with AsyncExitStack() as stack:
            pool = await stack.enter_async_context(open_pool(settings))
            sqs_client = await stack.enter_async_context(open_sqs_client(settings))
            dispatcher = build_dispatcher(settings, pool, sqs_client, controller.stop)

            server = StatusServer(
                uvicorn.Config(
                    create_app(),
                    host="0.0.0.0",
                    port=settings.port,
                    log_config=None,
                )
            )

            logger.info("worker: starting", extra={"port": settings.port})
            worker_task = asyncio.create_task(dispatcher.run_forever())
            server_task = asyncio.create_task(server.serve())
            stop_task = asyncio.create_task(controller.wait())

            await asyncio.wait(
                {worker_task, server_task, stop_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
            if not stop_task.done():
                controller.request_stop("worker or status server exited")
                stop_task.cancel()

            # let the current tick finish instead of cancelling it
            server.should_exit = True
            try:
                await worker_task
            finally:
                await server_task
    finally:
        controller.uninstall()
    logger.info("worker: stopped cleanly")


def main() -> None:
    try:
        settings = load_settings()
    except ConfigurationMissing as e:
        setup_logging(os.environ.get("LOG_LEVEL", "INFO"))
        logger.critical(str(e), extra={"fields": e.fields})
        raise SystemExit(2)

    setup_logging(settings.log_level)
    asyncio.run(_run(settings))


if __name__ == "__main__":
    main()
