from __future__ import annotations


class DispatcherError(Exception):
    """Base class for all dispatcher errors."""

    pass


class StoreUnavailable(DispatcherError):
    """The work item store could not be reached or the query failed."""

    pass


class QueueError(DispatcherError):
    """A single batch submission attempt was rejected or did not reach the queue."""

    pass


class BatchFailed(DispatcherError):
    """Every submission attempt for a batch failed (or the rest were abandoned)."""

    def __init__(
        self,
        attempts: int,
        last_error: BaseException | None = None,
        *,
        cancelled: bool = False,
    ) -> None:
        self.attempts = attempts
        self.last_error = last_error
        self.cancelled = cancelled
        reason = "abandoned on shutdown" if cancelled else "attempts exhausted"
        super().__init__(f"batch failed after {attempts} attempt(s): {reason}")


class ConfigurationMissing(DispatcherError):
    """Required configuration is absent or invalid at startup."""

    def __init__(self, fields: list[str]) -> None:
        self.fields = fields
        super().__init__(f"missing or invalid configuration: {', '.join(fields)}")
