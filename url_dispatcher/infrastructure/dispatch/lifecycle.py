from __future__ import annotations

import asyncio
import logging
import signal
from contextlib import suppress

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


async def wait_for_stop(stop: asyncio.Event, timeout: float) -> bool:
    """
    Sleep for `timeout` seconds unless `stop` fires first.
    Returns True if the stop event is set.
    """
    if stop.is_set():
        return True
    if timeout <= 0:
        return False
    try:
        await asyncio.wait_for(stop.wait(), timeout)
    except asyncio.TimeoutError:
        return False
    return True


class ShutdownController:
    """
    Turns SIGINT/SIGTERM into a one-shot stop event. Shutdown is cooperative:
    nothing is cancelled here, the dispatcher notices the event and returns.
    """

    def __init__(self, stop: asyncio.Event | None = None) -> None:
        self.stop = stop or asyncio.Event()
        self._installed: list[signal.Signals] = []
        self._loop: asyncio.AbstractEventLoop | None = None

    def install(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in SHUTDOWN_SIGNALS:
            with suppress(NotImplementedError):
                loop.add_signal_handler(sig, self.request_stop, sig.name)
                self._installed.append(sig)
        self._loop = loop

    def uninstall(self) -> None:
        if self._loop is None:
            return
        for sig in self._installed:
            self._loop.remove_signal_handler(sig)
        self._installed.clear()
        self._loop = None

    def request_stop(self, reason: str = "requested") -> bool:
        """Set the stop event. Returns False if it was already set."""
        if self.stop.is_set():
            logger.debug("stop already requested", extra={"reason": reason})
            return False
        logger.info("stop requested", extra={"reason": reason})
        self.stop.set()
        return True

    async def wait(self) -> None:
        await self.stop.wait()
