"""Synchronous fan-out of lifecycle and geometry notifications."""
from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, TYPE_CHECKING

from augmenta_receiver.protocol import DataChannel

if TYPE_CHECKING:  # pragma: no cover - typing only
    from augmenta_receiver.scene_state import OutputState, SceneState
    from augmenta_receiver.tracked_object import TrackedObject

_LOGGER = logging.getLogger("Augmenta.Receiver.Dispatcher")


class NotificationKind(str, Enum):
    OBJECT_ENTER = "object_enter"
    OBJECT_UPDATE = "object_update"
    OBJECT_LEAVE = "object_leave"
    SCENE_UPDATED = "scene_updated"
    OUTPUT_UPDATED = "output_updated"


@dataclass(frozen=True)
class Notification:
    """One outbound event. Object notifications carry a snapshot of the object."""

    kind: NotificationKind
    obj: Optional["TrackedObject"] = None
    channel: DataChannel = DataChannel.MAIN
    scene: Optional["SceneState"] = None
    output: Optional["OutputState"] = None


Subscriber = Callable[[Notification], None]


@dataclass(frozen=True)
class SubscriptionHandle:
    kind: NotificationKind
    token: int


class EventDispatcher:
    """Ordered observer registry keyed by notification kind.

    Subscribers run on the thread that emits, in subscription order, before
    :meth:`emit` returns. A failing subscriber is logged and skipped.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tokens = itertools.count(1)
        self._subscribers: Dict[NotificationKind, Dict[int, Subscriber]] = {kind: {} for kind in NotificationKind}

    def subscribe(self, kind: NotificationKind, callback: Subscriber) -> SubscriptionHandle:
        if not callable(callback):
            raise TypeError("Subscriber must be callable")
        kind = NotificationKind(kind)
        with self._lock:
            token = next(self._tokens)
            self._subscribers[kind][token] = callback
        return SubscriptionHandle(kind=kind, token=token)

    def unsubscribe(self, handle: SubscriptionHandle) -> bool:
        with self._lock:
            return self._subscribers[handle.kind].pop(handle.token, None) is not None

    def subscriber_count(self, kind: NotificationKind) -> int:
        with self._lock:
            return len(self._subscribers[NotificationKind(kind)])

    def clear(self) -> None:
        with self._lock:
            for bucket in self._subscribers.values():
                bucket.clear()

    def emit(self, notification: Notification) -> None:
        with self._lock:
            callbacks: List[Subscriber] = list(self._subscribers[notification.kind].values())
        for callback in callbacks:
            try:
                callback(notification)
            except Exception:
                _LOGGER.exception("Subscriber %r failed while handling %s", callback, notification.kind.value)
