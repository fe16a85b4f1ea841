"""Tick schedulers for the simulation engine.

The engine never talks to timers directly; it hands a callback to a
``TickScheduler``. ``ThreadingTickScheduler`` fires the callback periodically
from a background timer thread, ``ManualTickScheduler`` only fires when a test
calls :meth:`ManualTickScheduler.fire`.
"""

import threading
from abc import ABC, abstractmethod
from collections.abc import Callable

from solarsense.utils.logger import logger

TickCallback = Callable[[], object]


class TickScheduler(ABC):
    """Starts and cancels the periodic tick."""

    @abstractmethod
    def start(self, callback: TickCallback) -> None:
        """Begin invoking ``callback`` periodically."""

    @abstractmethod
    def cancel(self) -> None:
        """Stop invoking the callback. Must be idempotent."""

    @property
    @abstractmethod
    def is_active(self) -> bool:
        """True between :meth:`start` and :meth:`cancel`."""


class ThreadingTickScheduler(TickScheduler):
    """Periodic scheduler backed by a re-arming ``threading.Timer``.

    Each run re-arms the timer only after the callback returns, so ticks never
    overlap. A pending timer is cancelled on :meth:`cancel`; a callback that
    is already running is not interrupted, but it belongs to a stale
    generation and never re-arms once :meth:`cancel` or :meth:`start` has
    moved the generation on.
    """

    def __init__(self, interval_seconds: float):
        if interval_seconds <= 0:
            raise ValueError("Tick interval must be positive")
        self.interval_seconds = interval_seconds
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._callback: TickCallback | None = None
        self._active = False
        self._generation = 0

    @property
    def is_active(self) -> bool:
        return self._active

    def start(self, callback: TickCallback) -> None:
        with self._lock:
            if self._active:
                return
            self._generation += 1
            self._callback = callback
            self._active = True
            self._arm(self._generation)
        logger.debug(f"Tick scheduler started with {self.interval_seconds}s interval")

    def cancel(self) -> None:
        with self._lock:
            self._generation += 1
            self._active = False
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._callback = None

    def _arm(self, generation: int) -> None:
        self._timer = threading.Timer(self.interval_seconds, self._run, args=(generation,))
        self._timer.daemon = True
        self._timer.start()

    def _run(self, generation: int) -> None:
        with self._lock:
            current = self._active and generation == self._generation
            callback = self._callback if current else None
        if callback is None:
            return

        try:
            callback()
        except Exception:
            logger.exception("Scheduled tick raised an unexpected error")

        with self._lock:
            if self._active and generation == self._generation:
                self._arm(generation)


class ManualTickScheduler(TickScheduler):
    """Scheduler driven explicitly by the caller; used in tests."""

    def __init__(self) -> None:
        self._callback: TickCallback | None = None
        self.fired = 0

    @property
    def is_active(self) -> bool:
        return self._callback is not None

    def start(self, callback: TickCallback) -> None:
        self._callback = callback

    def cancel(self) -> None:
        self._callback = None

    def fire(self, times: int = 1) -> None:
        """Invoke the callback ``times`` times; does nothing once cancelled."""
        for _ in range(times):
            if self._callback is None:
                return
            self.fired += 1
            self._callback()


__all__ = ["ManualTickScheduler", "ThreadingTickScheduler", "TickScheduler"]
