from __future__ import annotations

import logging
from typing import Callable, Dict, List, Protocol

from augmenta_receiver.event_dispatcher import EventDispatcher, Notification, NotificationKind, SubscriptionHandle
from augmenta_receiver.tracked_object import TrackedObject

_LOGGER = logging.getLogger("Augmenta.Receiver.Behaviour")


class AugmentaObjectBehaviour(Protocol):
    """Presentation-side hooks for one tracked object."""

    def spawn(self, obj: TrackedObject) -> None: ...
    def destroy(self, obj: TrackedObject) -> None: ...


BehaviourFactory = Callable[[TrackedObject], AugmentaObjectBehaviour]


class BehaviourBinder:
    """Creates one behaviour per entering object and destroys it when the object leaves."""

    def __init__(self, dispatcher: EventDispatcher, factory: BehaviourFactory) -> None:
        self._dispatcher = dispatcher
        self._factory = factory
        self._behaviours: Dict[int, AugmentaObjectBehaviour] = {}
        self._last_seen: Dict[int, TrackedObject] = {}
        self._handles: List[SubscriptionHandle] = [
            dispatcher.subscribe(NotificationKind.OBJECT_ENTER, self._on_enter),
            dispatcher.subscribe(NotificationKind.OBJECT_UPDATE, self._on_update),
            dispatcher.subscribe(NotificationKind.OBJECT_LEAVE, self._on_leave),
        ]

    @property
    def behaviours(self) -> Dict[int, AugmentaObjectBehaviour]:
        return dict(self._behaviours)

    def detach(self) -> None:
        """Unsubscribe and destroy every live behaviour."""
        for handle in self._handles:
            self._dispatcher.unsubscribe(handle)
        self._handles = []
        for object_id in list(self._behaviours):
            self._destroy(object_id, self._last_seen.get(object_id))

    def _on_enter(self, notification: Notification) -> None:
        obj = notification.obj
        if obj is None or obj.object_id in self._behaviours:
            return
        behaviour = self._factory(obj)
        self._behaviours[obj.object_id] = behaviour
        self._last_seen[obj.object_id] = obj
        behaviour.spawn(obj)

    def _on_update(self, notification: Notification) -> None:
        obj = notification.obj
        if obj is not None and obj.object_id in self._behaviours:
            self._last_seen[obj.object_id] = obj

    def _on_leave(self, notification: Notification) -> None:
        obj = notification.obj
        if obj is None:
            return
        self._destroy(obj.object_id, obj)

    def _destroy(self, object_id: int, obj: TrackedObject | None) -> None:
        behaviour = self._behaviours.pop(object_id, None)
        last = self._last_seen.pop(object_id, None)
        if behaviour is None:
            return
        target = obj or last
        if target is None:
            _LOGGER.debug("No object state recorded for behaviour %d", object_id)
            return
        behaviour.destroy(target)
