"""OSC-over-UDP transport shim built on python-osc."""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional, Protocol

from pythonosc.dispatcher import Dispatcher
from pythonosc.osc_server import BlockingOSCUDPServer

_LOGGER = logging.getLogger("Augmenta.Receiver.Transport")

MessageCallback = Callable[..., Any]


class MessageReceiver(Protocol):
    port: int

    def start(self) -> None: ...
    def stop(self) -> None: ...


ReceiverFactory = Callable[[str, int, MessageCallback], MessageReceiver]


class OscReceiver:
    """Binds a UDP port and forwards every OSC message to ``callback(address, *args)``.

    Messages are handled one at a time on a single background thread, so the
    callback is never re-entered. :meth:`start` raises ``OSError`` when the
    port cannot be bound.
    """

    def __init__(self, host: str, port: int, callback: MessageCallback) -> None:
        self.host = host
        self.port = int(port)
        self._callback = callback
        self._server: Optional[BlockingOSCUDPServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        dispatcher = Dispatcher()
        dispatcher.set_default_handler(self._dispatch)
        server = BlockingOSCUDPServer((self.host, self.port), dispatcher)
        self._server = server
        self.port = server.server_address[1]
        self._thread = threading.Thread(
            target=server.serve_forever,
            kwargs={"poll_interval": 0.25},
            name=f"Augmenta-OSC-{self.port}",
            daemon=True,
        )
        self._thread.start()
        _LOGGER.debug("OSC receiver bound to %s:%d", self.host, self.port)

    def stop(self) -> None:
        server = self._server
        thread = self._thread
        self._server = None
        self._thread = None
        if server is None:
            return
        if thread is threading.current_thread():
            # shutdown() blocks until serve_forever returns; hand it to another thread.
            closer = threading.Thread(target=self._shutdown_server, args=(server,), name="Augmenta-OSC-close", daemon=True)
            closer.start()
            return
        if thread is not None and thread.is_alive():
            server.shutdown()
            thread.join(timeout=2.0)
            if thread.is_alive():
                _LOGGER.warning("Thread %s did not exit cleanly within %.1fs", thread.name, 2.0)
        server.server_close()
        _LOGGER.debug("OSC receiver on port %d closed", self.port)

    def _shutdown_server(self, server: BlockingOSCUDPServer) -> None:
        server.shutdown()
        server.server_close()
        _LOGGER.debug("OSC receiver on port %d closed", self.port)

    def _dispatch(self, address: str, *args: Any) -> None:
        try:
            self._callback(address, *args)
        except Exception:
            _LOGGER.exception("Unhandled error while processing %s", address)
