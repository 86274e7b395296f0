"""Threaded JSON-over-TCP relay that streams notifications to other processes."""
from __future__ import annotations

import asyncio
import json
import logging
import queue
import threading
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from augmenta_receiver.event_dispatcher import EventDispatcher, Notification, NotificationKind, SubscriptionHandle

_LOGGER = logging.getLogger("Augmenta.Receiver.Relay")


def notification_to_payload(notification: Notification) -> Dict[str, Any]:
    """Flatten a notification into JSON-serialisable primitives."""
    payload: Dict[str, Any] = {"event": notification.kind.value}
    if notification.obj is not None:
        obj = asdict(notification.obj)
        for key, value in obj.items():
            if isinstance(value, tuple):
                obj[key] = list(value)
        payload["object"] = obj
        payload["channel"] = notification.channel.value
    if notification.scene is not None:
        payload["scene"] = asdict(notification.scene)
    if notification.output is not None:
        output = notification.output
        payload["output"] = {
            "offset": list(output.effective_offset),
            "size_in_meters": list(output.effective_size_in_meters),
            "size_in_pixels": list(output.effective_size_in_pixels),
        }
    return payload


@dataclass
class NotificationRelay:
    """Runs a background TCP server that streams one JSON notification per line."""

    host: str = "127.0.0.1"
    port: int = 0
    _loop: Optional[asyncio.AbstractEventLoop] = field(default=None, init=False)
    _thread: Optional[threading.Thread] = field(default=None, init=False)
    _stop_event: threading.Event = field(default_factory=threading.Event, init=False)
    _ready_event: threading.Event = field(default_factory=threading.Event, init=False)
    _queue: "queue.Queue[Optional[str]]" = field(default_factory=queue.Queue, init=False)
    _clients: Set[Tuple[asyncio.StreamReader, asyncio.StreamWriter]] = field(default_factory=set, init=False)
    _handles: List[SubscriptionHandle] = field(default_factory=list, init=False)
    _dispatcher: Optional[EventDispatcher] = field(default=None, init=False)
    _start_error: Optional[OSError] = field(default=None, init=False)

    def start(self) -> None:
        """Start the relay server on a background thread."""
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._ready_event.clear()
        self._start_error = None
        self._thread = threading.Thread(target=self._run, name="Augmenta-Relay", daemon=True)
        self._thread.start()
        if not self._ready_event.wait(timeout=5.0):
            raise RuntimeError("Notification relay failed to start in time")
        if self._start_error is not None:
            self._thread = None
            raise self._start_error

    def stop(self) -> None:
        """Detach from the dispatcher, stop the server and release resources."""
        self.detach()
        self._stop_event.set()
        self._queue.put_nowait(None)
        if self._loop and self._loop.is_running():
            self._loop.call_soon_threadsafe(lambda: None)
        if self._thread:
            self._thread.join(timeout=5.0)
        self._loop = None
        self._thread = None
        self._clients.clear()

    def attach(self, dispatcher: EventDispatcher) -> None:
        self.detach()
        self._dispatcher = dispatcher
        self._handles = [dispatcher.subscribe(kind, self.publish) for kind in NotificationKind]

    def detach(self) -> None:
        if self._dispatcher is not None:
            for handle in self._handles:
                self._dispatcher.unsubscribe(handle)
        self._handles = []
        self._dispatcher = None

    def publish(self, notification: Notification) -> None:
        """Queue a notification for every connected client."""
        if self._stop_event.is_set():
            return
        try:
            message = json.dumps(notification_to_payload(notification))
        except (TypeError, ValueError) as exc:
            _LOGGER.warning("Failed to encode notification to JSON: %s", exc)
            return
        self._queue.put_nowait(message)

    @property
    def client_count(self) -> int:
        return len(self._clients)

    # Internal helpers -----------------------------------------------------

    def _run(self) -> None:
        loop = asyncio.new_event_loop()
        self._loop = loop
        asyncio.set_event_loop(loop)
        try:
            loop.run_until_complete(self._server_main())
        except OSError as exc:
            _LOGGER.error("Notification relay could not listen on %s:%d: %s", self.host, self.port, exc)
            self._start_error = exc
        finally:
            self._ready_event.set()
            pending = asyncio.all_tasks(loop)
            for task in pending:
                task.cancel()
            if pending:
                loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.close()

    async def _server_main(self) -> None:
        server = await asyncio.start_server(self._handle_client, self.host, self.port)
        sockets = server.sockets or []
        if sockets:
            self.port = sockets[0].getsockname()[1]
        _LOGGER.info("Notification relay listening on %s:%d", self.host, self.port)
        self._ready_event.set()

        loop = asyncio.get_running_loop()
        async with server:
            while not self._stop_event.is_set():
                message = await loop.run_in_executor(None, self._queue.get)
                if message is None:
                    continue
                await self._broadcast(message)

            # Server.__aexit__ waits for open connections on 3.12+.
            server.close()
            for _reader, writer in list(self._clients):
                await self._close_writer(writer)
            self._clients.clear()

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        peer = writer.get_extra_info("peername")
        self._clients.add((reader, writer))
        _LOGGER.info("Relay client connected (%d active) %s", len(self._clients), peer)
        try:
            await reader.read()  # Drain until client disconnects; we are write-only.
        except (ConnectionError, OSError) as exc:
            _LOGGER.debug("Relay client %s read error: %s", peer, exc)
        finally:
            self._clients.discard((reader, writer))
            await self._close_writer(writer)
        _LOGGER.info("Relay client disconnected (%d active) %s", len(self._clients), peer)

    async def _broadcast(self, message: str) -> None:
        if not self._clients:
            return
        stale = []
        payload = (message + "\n").encode("utf-8")
        for reader_writer in list(self._clients):
            _reader, writer = reader_writer
            try:
                writer.write(payload)
                await writer.drain()
            except (ConnectionError, OSError):
                stale.append(reader_writer)
        for reader_writer in stale:
            self._clients.discard(reader_writer)
            await self._close_writer(reader_writer[1])

    @staticmethod
    async def _close_writer(writer: asyncio.StreamWriter) -> None:
        try:
            writer.close()
            await writer.wait_closed()
        except (ConnectionError, OSError) as exc:
            _LOGGER.debug("Error closing relay client: %s", exc)
