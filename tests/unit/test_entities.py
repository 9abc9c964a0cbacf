import math

import pytest

from url_dispatcher.domain.entities import MessageCounter, WorkItem, chunked


def test_work_item_defaults_to_undelivered():
    item = WorkItem(id=1, payload="https://example.com")
    assert item.delivered is False


def test_work_item_accepts_any_payload_string():
    item = WorkItem(id=1, payload="")
    assert item.payload == ""
    assert item.delivered is False


def test_mark_delivered_is_idempotent():
    item = WorkItem(id=1, payload="https://example.com")
    item.mark_delivered()
    item.mark_delivered()
    assert item.delivered is True


def test_delivered_cannot_go_back_to_false():
    item = WorkItem(id=1, payload="https://example.com", delivered=True)
    with pytest.raises(AttributeError):
        item.delivered = False


def test_payload_is_immutable():
    item = WorkItem(id=1, payload="https://example.com")
    with pytest.raises(AttributeError):
        item.payload = "https://other.example.com"


@pytest.mark.parametrize("n,size", [(0, 10), (1, 10), (10, 10), (25, 10), (7, 3)])
def test_chunked_covers_everything_once(n, size):
    items = list(range(n))
    chunks = list(chunked(items, size))

    assert len(chunks) == math.ceil(n / size)
    assert all(1 <= len(c) <= size for c in chunks)
    assert [x for c in chunks for x in c] == items


def test_chunked_rejects_non_positive_size():
    with pytest.raises(ValueError):
        list(chunked([1, 2], 0))


def test_counter_builds_sequential_entries():
    counter = MessageCounter()
    a = counter.next_entry("https://a")
    b = counter.next_entry("https://b")

    assert (a.entry_id, a.group_key, a.payload) == ("msg-1", "group-1", "https://a")
    assert (b.entry_id, b.group_key) == ("msg-2", "group-2")
    assert counter.value == 2
