from __future__ import annotations

import logging
from typing import Sequence

import psycopg
from psycopg.rows import tuple_row
from psycopg_pool import AsyncConnectionPool

from url_dispatcher.domain.entities import WorkItem
from url_dispatcher.domain.errors import StoreUnavailable
from url_dispatcher.domain.ports.work_item_store import WorkItemStorePort

logger = logging.getLogger(__name__)


class PgWorkItemStore(WorkItemStorePort):
    """
    Postgres implementation of the work item store. Each call borrows its own
    connection from the injected pool and commits before returning.
    """

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool

    async def fetch_pending(self, limit: int) -> list[WorkItem]:
        sql = """
        SELECT id, payload, delivered
        FROM work_items
        WHERE delivered = false AND payload <> ''
        ORDER BY id
        LIMIT %s
        """
        try:
            async with self._pool.connection() as conn:
                async with conn.cursor(row_factory=tuple_row) as cur:
                    await cur.execute(sql, (limit,))
                    rows: Sequence[tuple] = await cur.fetchall()
        except psycopg.Error as e:
            raise StoreUnavailable(f"fetch pending failed: {e}") from e

        items: list[WorkItem] = []
        for id_, payload, delivered in rows:
            if not payload:
                # SQS rejects empty bodies; sending it would sink its whole batch
                logger.warning(
                    "skipping work item with empty payload", extra={"id": id_}
                )
                continue
            items.append(
                WorkItem(id=int(id_), payload=str(payload), delivered=bool(delivered))
            )
        return items

    async def mark_delivered(self, payload: str) -> None:
        # no status filter on the WHERE: re-marking a delivered row is harmless
        sql = """
        UPDATE work_items
        SET delivered = true
        WHERE payload = %s
        """
        try:
            async with self._pool.connection() as conn:
                async with conn.transaction():
                    async with conn.cursor() as cur:
                        await cur.execute(sql, (payload,))
        except psycopg.Error as e:
            raise StoreUnavailable(f"mark delivered failed: {e}") from e
