import asyncio

import pytest

from tests.fakes import FakeQueue, RecordingWait
from tests.integration.db_fixtures import delivered_flags, insert_items
from url_dispatcher.infrastructure.db.work_item_store import PgWorkItemStore
from url_dispatcher.infrastructure.dispatch.batch_sender import BatchSender
from url_dispatcher.infrastructure.dispatch.dispatcher import UrlDispatcher

pytest_plugins = ["tests.integration.db_fixtures"]
pytestmark = [pytest.mark.integration, pytest.mark.usefixtures("truncate_work_items")]


@pytest.mark.asyncio
async def test_fetch_pending_skips_delivered_and_respects_limit(pool):
    await insert_items(pool, ["https://a", "https://b", "https://c"])
    await insert_items(pool, ["https://done"], delivered=True)
    store = PgWorkItemStore(pool)

    items = await store.fetch_pending(2)

    assert [i.payload for i in items] == ["https://a", "https://b"]
    assert all(not i.delivered for i in items)


@pytest.mark.asyncio
async def test_mark_delivered_twice_is_a_noop(pool):
    await insert_items(pool, ["https://a"])
    store = PgWorkItemStore(pool)

    await store.mark_delivered("https://a")
    await store.mark_delivered("https://a")

    assert await delivered_flags(pool) == {"https://a": True}
    assert await store.fetch_pending(10) == []


@pytest.mark.asyncio
async def test_dispatcher_tick_against_postgres(pool):
    payloads = [f"https://example.com/{i}" for i in range(25)]
    await insert_items(pool, payloads)
    queue = FakeQueue()
    wait = RecordingWait()
    dispatcher = UrlDispatcher(
        store=PgWorkItemStore(pool),
        sender=BatchSender(queue, wait=wait),
        stop=asyncio.Event(),
        batch_size=10,
        wait=wait,
    )

    report = await dispatcher.tick()

    assert [len(c) for c in queue.calls] == [10, 10, 5]
    assert report.marked == 25
    assert all((await delivered_flags(pool)).values())



@pytest.mark.asyncio
async def test_empty_payloads_never_fill_the_page(pool):
    await insert_items(pool, ["", "", "https://a"])
    store = PgWorkItemStore(pool)

    items = await store.fetch_pending(2)

    assert [i.payload for i in items] == ["https://a"]
