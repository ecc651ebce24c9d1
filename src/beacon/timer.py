"""Cancellable repeating timer backed by a single daemon thread."""

import logging
import threading
from typing import Callable, Optional


logger = logging.getLogger(__name__)


class RetryTimer:
    """Call *callback* immediately, then every *interval* seconds until cancelled.

    All calls happen on one thread, so two invocations never overlap.
    ``cancel()`` is idempotent and may be called from inside the callback.
    """

    def __init__(self, interval: float, callback: Callable[[], object],
                 name: str = "beacon-retry"):
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")
        self.interval = interval
        self._callback = callback
        self._name = name
        self._cancelled = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def active(self) -> bool:
        return self._thread is not None and not self._cancelled.is_set()

    def start(self) -> None:
        if self._thread is not None or self._cancelled.is_set():
            return
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()

    def cancel(self) -> None:
        self._cancelled.set()

    def join(self, timeout: Optional[float] = None) -> None:
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _run(self) -> None:
        while not self._cancelled.is_set():
            try:
                self._callback()
            except Exception:
                logger.exception("[%s] tick failed", self._name)
            if self._cancelled.wait(self.interval):
                break
