from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Sequence

from aiobotocore.config import AioConfig
from aiobotocore.session import get_session
from botocore.exceptions import BotoCoreError, ClientError

from url_dispatcher.domain.entities import BatchEntry
from url_dispatcher.domain.errors import QueueError
from url_dispatcher.domain.ports.queue_port import QueuePort
from url_dispatcher.settings import MAX_BATCH_SIZE, Settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def open_sqs_client(settings: Settings) -> AsyncIterator[Any]:
    """
    SQS client scoped to the block. botocore's own retries are disabled:
    retrying is the BatchSender's job.
    """
    config = AioConfig(
        connect_timeout=settings.sqs_timeout_seconds,
        read_timeout=settings.sqs_timeout_seconds,
        retries={"max_attempts": 1, "mode": "standard"},
    )
    session = get_session()
    async with session.create_client(
        "sqs",
        region_name=settings.aws_region,
        endpoint_url=settings.sqs_endpoint_url,
        aws_access_key_id=settings.iam_access_key,
        aws_secret_access_key=settings.iam_secret,
        config=config,
    ) as client:
        logger.info("sqs client opened", extra={"region": settings.aws_region})
        yield client
    logger.info("sqs client closed")


class SqsQueueGateway(QueuePort):
    def __init__(self, client: Any, queue_url: str) -> None:
        self._client = client
        self._queue_url = queue_url
        self._fifo = queue_url.endswith(".fifo")

    def _to_request_entry(self, entry: BatchEntry) -> dict[str, str]:
        request = {"Id": entry.entry_id, "MessageBody": entry.payload}
        # standard queues have no use for a group id
        if self._fifo:
            request["MessageGroupId"] = entry.group_key
        return request

    async def submit_batch(self, entries: Sequence[BatchEntry]) -> None:
        if not entries:
            raise ValueError("cannot submit an empty batch")
        if len(entries) > MAX_BATCH_SIZE:
            raise ValueError(
                f"batch of {len(entries)} exceeds the queue limit of {MAX_BATCH_SIZE}"
            )

        try:
            resp = await self._client.send_message_batch(
                QueueUrl=self._queue_url,
                Entries=[self._to_request_entry(e) for e in entries],
            )
        except (BotoCoreError, ClientError) as e:
            raise QueueError(f"SendMessageBatch failed: {e}") from e

        failed = resp.get("Failed") or []
        if failed:
            # partial acceptance still counts as a failed batch
            first = failed[0]
            raise QueueError(
                f"{len(failed)} of {len(entries)} entries rejected "
                f"(first: {first.get('Id')} {first.get('Code')}: {first.get('Message', '')})"
            )
