"""Block until the process is asked to stop, then wait a grace period."""

from __future__ import annotations

import logging
import signal
import threading
import time
from collections.abc import Iterable

_log = logging.getLogger(__name__)

_POLL = 0.1


def _wait_for_signals(signals: Iterable[int]) -> signal.Signals:
    """Install handlers for ``signals``, wait for one, restore the old handlers."""
    received: list[int] = []
    event = threading.Event()

    def handler(signum: int, frame: object) -> None:
        received.append(signum)
        event.set()

    previous = {sig: signal.signal(sig, handler) for sig in signals}
    try:
        while not event.wait(_POLL):
            pass
    finally:
        for sig, old in previous.items():
            signal.signal(sig, old)
    return signal.Signals(received[0])


def wait_for_shutdown(timeout: float, stop: threading.Event | None = None) -> signal.Signals | None:
    """Wait for SIGINT/SIGTERM (or ``stop`` when given), then sleep ``timeout`` seconds.

    Returns the signal received, or None when ``stop`` ended the wait.
    """
    received: signal.Signals | None = None
    if stop is not None:
        stop.wait()
    else:
        received = _wait_for_signals((signal.SIGINT, signal.SIGTERM))
    _log.info("Shutdown timeout: %ss", timeout)
    time.sleep(timeout)
    _log.info("Exiting gracefully")
    return received