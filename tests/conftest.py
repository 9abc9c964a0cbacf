import asyncio

import pytest

from tests.fakes import FakeQueue, FakeStore, RecordingWait
from url_dispatcher.infrastructure.dispatch.batch_sender import BatchSender
from url_dispatcher.infrastructure.dispatch.dispatcher import UrlDispatcher


@pytest.fixture()
def stop():
    return asyncio.Event()


@pytest.fixture()
def store():
    return FakeStore()


@pytest.fixture()
def queue():
    return FakeQueue()


@pytest.fixture()
def wait():
    return RecordingWait()


@pytest.fixture()
def make_dispatcher(store, queue, stop, wait):
    """
    Build a dispatcher over the fakes. Sleeps are recorded, not performed.
    """

    def _make(*, batch_size=10, database_limit=100, retry_attempts=3):
        sender = BatchSender(
            queue,
            retry_attempts=retry_attempts,
            retry_backoff=2.0,
            wait=wait,
        )
        return UrlDispatcher(
            store=store,
            sender=sender,
            stop=stop,
            batch_size=batch_size,
            database_limit=database_limit,
            polling_interval=10.0,
            wait=wait,
        )

    return _make


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """
    Baseline configuration so Settings() validates; tests that check missing
    config delete what they need.
    """
    monkeypatch.setenv("DATABASE_URL", "postgresql://app:app@db:5432/app")
    monkeypatch.setenv("SQS_URL", "https://sqs.eu-west-1.amazonaws.com/123/urls")
    monkeypatch.setenv("AWS_REGION", "eu-west-1")
    from url_dispatcher.settings import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
