from __future__ import annotations

import logging
from typing import Callable, Dict, Iterator, List, Optional

from augmenta_receiver.event_dispatcher import Notification, NotificationKind
from augmenta_receiver.protocol import DataChannel, ObjectAction, ObjectEvent
from augmenta_receiver.tracked_object import TrackedObject

_LOGGER = logging.getLogger("Augmenta.Receiver.Registry")

DesiredPredicate = Callable[[int], bool]


def _accept_all(_oid: int) -> bool:
    return True


class ObjectRegistry:
    """Container for tracked objects with inactivity-based expiry.

    Not thread-safe on its own; the manager serialises access.
    """

    def __init__(self) -> None:
        self._objects: Dict[int, TrackedObject] = {}

    def __len__(self) -> int:
        return len(self._objects)

    def __contains__(self, object_id: object) -> bool:
        return object_id in self._objects

    def __iter__(self) -> Iterator[int]:
        return iter(self.ids())

    def get(self, object_id: int) -> Optional[TrackedObject]:
        return self._objects.get(object_id)

    def ids(self) -> List[int]:
        return sorted(self._objects)

    def objects(self) -> Dict[int, TrackedObject]:
        """Snapshot of every tracked object keyed by id."""
        return {key: self._objects[key].copy() for key in sorted(self._objects)}

    def apply_event(
        self,
        event: ObjectEvent,
        desired: DesiredPredicate = _accept_all,
    ) -> Optional[Notification]:
        if not desired(event.oid):
            return None

        if event.action is ObjectAction.LEAVE:
            obj = self._objects.pop(event.object_id, None)
            if obj is None:
                return None
            _LOGGER.debug("Object %d left (oid=%d)", event.object_id, event.oid)
            return Notification(NotificationKind.OBJECT_LEAVE, obj=obj, channel=event.channel)

        obj = self._objects.get(event.object_id)
        if obj is None:
            obj = TrackedObject(object_id=event.object_id, oid=event.oid)
            self._merge(obj, event)
            self._objects[event.object_id] = obj
            _LOGGER.debug("Object %d entered (oid=%d, channel=%s)", event.object_id, event.oid, event.channel.value)
            return Notification(NotificationKind.OBJECT_ENTER, obj=obj.copy(), channel=event.channel)

        self._merge(obj, event)
        return Notification(NotificationKind.OBJECT_UPDATE, obj=obj.copy(), channel=event.channel)

    def sweep_expired(self, timeout_seconds: float, elapsed: float) -> List[Notification]:
        """Age every object by ``elapsed`` and drop those already at the timeout.

        An object whose inactive time is below the timeout is aged; one at or
        above it is removed. Removal runs in ascending id order.
        """
        expired: List[int] = []
        for key in sorted(self._objects):
            obj = self._objects[key]
            if obj.inactive_time < timeout_seconds:
                obj.inactive_time += elapsed
            else:
                expired.append(key)

        notifications = []
        for key in expired:
            obj = self._objects.pop(key)
            _LOGGER.debug("Object %d timed out after %.3fs", key, obj.inactive_time)
            notifications.append(Notification(NotificationKind.OBJECT_LEAVE, obj=obj))
        return notifications

    def remove(self, object_id: int) -> Optional[Notification]:
        obj = self._objects.pop(object_id, None)
        if obj is None:
            return None
        return Notification(NotificationKind.OBJECT_LEAVE, obj=obj)

    def remove_all(self) -> List[Notification]:
        notifications = []
        for key in sorted(self._objects):
            notifications.append(Notification(NotificationKind.OBJECT_LEAVE, obj=self._objects[key]))
        self._objects.clear()
        return notifications

    @staticmethod
    def _merge(obj: TrackedObject, event: ObjectEvent) -> None:
        obj.oid = event.oid
        if event.channel is DataChannel.EXTRA:
            if event.extra is not None:
                obj.apply_extra(event.extra)
        elif event.main is not None:
            obj.apply_main(event.main)
        obj.inactive_time = 0.0
