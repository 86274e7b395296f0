"""Periodic driver for expiry sweeps, health decay and reconnect retries."""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

_LOGGER = logging.getLogger("Augmenta.Receiver.Clock")

DEFAULT_TICK_INTERVAL = 0.05

TickFn = Callable[[float], None]


class LifecycleClock:
    """Calls ``tick_fn(elapsed)`` from a background thread at a fixed cadence.

    ``elapsed`` is the measured time since the previous tick, so expiry stays
    close to wall-clock even when a tick runs late.
    """

    def __init__(
        self,
        tick_fn: TickFn,
        *,
        interval: float = DEFAULT_TICK_INTERVAL,
        time_source: Callable[[], float] = time.monotonic,
    ) -> None:
        self._tick_fn = tick_fn
        self._interval = max(0.001, float(interval))
        self._time = time_source
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="Augmenta-Clock", daemon=True)
        self._thread.start()
        _LOGGER.debug("Lifecycle clock started (interval=%.3fs)", self._interval)

    def stop(self, timeout: float = 2.0) -> bool:
        self._stop_event.set()
        thread = self._thread
        joined = True
        if thread and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            joined = not thread.is_alive()
            if not joined:
                _LOGGER.warning("Thread %s did not exit cleanly within %.1fs", thread.name, timeout)
        self._thread = None
        return joined

    def _run(self) -> None:
        last = self._time()
        while not self._stop_event.wait(self._interval):
            now = self._time()
            elapsed = max(0.0, now - last)
            last = now
            try:
                self._tick_fn(elapsed)
            except Exception:
                _LOGGER.exception("Lifecycle tick failed")
