from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Sequence, TypeVar

T = TypeVar("T")


@dataclass
class WorkItem:
    id: int
    payload: str
    delivered: bool = False

    def __setattr__(self, name, value):
        # payload is fixed once set; delivered only ever goes False -> True
        if name == "payload" and "payload" in self.__dict__:
            raise AttributeError("payload is immutable")
        if name == "delivered" and self.__dict__.get("delivered") and not value:
            raise AttributeError("delivered cannot be reset")
        super().__setattr__(name, value)

    def mark_delivered(self) -> None:
        self.delivered = True


@dataclass(frozen=True)
class BatchEntry:
    """One queue message. entry_id and group_key only identify it on the queue side."""

    entry_id: str
    payload: str
    group_key: str


@dataclass
class MessageCounter:
    """
    Sequence source for batch entry identifiers. One instance per dispatcher;
    it is never shared between components.
    """

    value: int = 0

    def next_entry(self, payload: str) -> BatchEntry:
        self.value += 1
        return BatchEntry(
            entry_id=f"msg-{self.value}",
            payload=payload,
            group_key=f"group-{self.value}",
        )


def chunked(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """Consecutive chunks of at most `size`, in order; the last may be shorter."""
    if size < 1:
        raise ValueError("chunk size must be >= 1")
    for start in range(0, len(items), size):
        yield list(items[start : start + size])
