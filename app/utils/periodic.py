"""Background thread that runs a callback at a fixed interval.

Used by the in-memory cache and rate limiter to reclaim expired entries
without relying on request traffic.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class PeriodicSweeper:
    """Invoke ``callback`` every ``interval_seconds`` on a daemon thread.

    The thread sleeps on a ``threading.Event`` so that ``stop()`` wakes it up
    immediately. Once ``stop()`` returns the callback will not run again.
    """

    def __init__(
        self,
        name: str,
        interval_seconds: float,
        callback: Callable[[], object],
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")

        self._name = name
        self._interval = interval_seconds
        self._callback = callback
        self._stop_event = threading.Event()
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self) -> None:
        """Start the background thread. No-op if already started or stopped."""

        with self._lock:
            if self._thread is not None or self._stop_event.is_set():
                return
            self._thread = threading.Thread(
                target=self._run,
                name=f"sweeper-{self._name}",
                daemon=True,
            )
            self._thread.start()

        logger.debug(
            "sweeper.started",
            extra={"sweeper": self._name, "interval_s": self._interval},
        )

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop the thread and wait for an in-flight callback to finish.

        Safe to call more than once and from any thread, including the
        sweeper thread itself (in which case it does not join).
        """

        with self._lock:
            already_stopped = self._stop_event.is_set()
            self._stop_event.set()
            thread = self._thread

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

        if not already_stopped:
            logger.debug("sweeper.stopped", extra={"sweeper": self._name})

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval):
            try:
                self._callback()
            except Exception:
                logger.exception("sweeper.failed", extra={"sweeper": self._name})
