from __future__ import annotations

import logging
from typing import Optional

_LOGGER = logging.getLogger("Augmenta.Receiver.Connectivity")

RECEIVING_DATA_WINDOW = 2.0
AUTO_CONNECT_INTERVAL = 5.0


class ConnectivityMonitor:
    """Port-bound state, receiving-data health flag and reconnect timer.

    Time only advances through :meth:`advance`, so the flags follow the
    lifecycle clock rather than wall-clock reads.
    """

    def __init__(
        self,
        *,
        receiving_window: float = RECEIVING_DATA_WINDOW,
        reconnect_interval: float = AUTO_CONNECT_INTERVAL,
    ) -> None:
        self._receiving_window = receiving_window
        self._reconnect_interval = reconnect_interval
        self._port_bound = False
        self._receiving_timer: Optional[float] = None
        self._reconnect_timer = 0.0
        self._receiving_data = False

    @property
    def port_bound(self) -> bool:
        return self._port_bound

    @property
    def receiving_data(self) -> bool:
        return self._receiving_data

    def mark_bound(self, port: int) -> None:
        if not self._port_bound:
            _LOGGER.info("Listening for Augmenta data on port %d", port)
        self._port_bound = True
        self._reconnect_timer = 0.0

    def mark_unbound(self) -> None:
        if self._port_bound:
            _LOGGER.info("Augmenta port released")
        self._port_bound = False
        self._reconnect_timer = 0.0

    def mark_message(self) -> None:
        if not self._receiving_data:
            _LOGGER.info("Receiving Augmenta data")
        self._receiving_timer = 0.0
        self._receiving_data = True

    def advance(self, elapsed: float) -> bool:
        """Advance the timers; return True when a reconnect attempt is due."""
        if self._receiving_timer is not None:
            self._receiving_timer += elapsed
            receiving = self._receiving_timer <= self._receiving_window
            if self._receiving_data and not receiving:
                _LOGGER.info("No Augmenta data for %.1fs", self._receiving_window)
            self._receiving_data = receiving

        if self._port_bound:
            self._reconnect_timer = 0.0
            return False
        self._reconnect_timer += elapsed
        if self._reconnect_timer > self._reconnect_interval:
            self._reconnect_timer = 0.0
            return True
        return False
