"""Owner of the Augmenta ingestion pipeline.

Wires transport, decoder, registry, scene/output state, health monitor and
dispatcher together. State is mutated under one lock that is never held while
subscribers run. A second, re-entrant lock spans each mutate-then-dispatch
sequence so notifications reach subscribers in mutation order across threads.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

from augmenta_receiver.connectivity import ConnectivityMonitor
from augmenta_receiver.desired_filter import DesiredObjectMode, is_desired
from augmenta_receiver.event_dispatcher import (
    EventDispatcher,
    Notification,
    NotificationKind,
    Subscriber,
    SubscriptionHandle,
)
from augmenta_receiver.lifecycle_clock import DEFAULT_TICK_INTERVAL, LifecycleClock
from augmenta_receiver.mirroring import mirror_event
from augmenta_receiver.object_registry import ObjectRegistry
from augmenta_receiver.osc_receiver import MessageReceiver, OscReceiver, ReceiverFactory
from augmenta_receiver.protocol import DecodeError, OutputUpdate, ProtocolVersion, SceneUpdate, decode
from augmenta_receiver.scene_state import OutputState, SceneState
from augmenta_receiver.settings import AugmentaSettings
from augmenta_receiver.tracked_object import TrackedObject

_LOGGER = logging.getLogger("Augmenta.Receiver.Manager")


class AugmentaManager:
    """Receives Augmenta messages and keeps the tracked-object registry current."""

    def __init__(
        self,
        settings: Optional[AugmentaSettings] = None,
        *,
        receiver_factory: ReceiverFactory = OscReceiver,
        dispatcher: Optional[EventDispatcher] = None,
        clock_interval: float = DEFAULT_TICK_INTERVAL,
    ) -> None:
        self._settings = settings or AugmentaSettings()
        self._receiver_factory = receiver_factory
        self._dispatcher = dispatcher or EventDispatcher()
        self._lock = threading.Lock()
        self._dispatch_lock = threading.RLock()
        self._bind_lock = threading.Lock()
        self._registry = ObjectRegistry()
        self._scene = SceneState()
        self._output = OutputState()
        self._connectivity = ConnectivityMonitor()
        self._clock = LifecycleClock(self.tick, interval=clock_interval)
        self._receiver: Optional[MessageReceiver] = None
        self._started = False
        self._decode_errors = 0

    # Lifecycle -------------------------------------------------------------

    def start(self, *, run_clock: bool = True) -> bool:
        """Bind the receiver and start ticking. Returns the bound state."""
        self._started = True
        bound = self.rebind()
        if run_clock:
            self._clock.start()
        return bound

    def stop(self) -> None:
        self._started = False
        self._clock.stop()
        with self._bind_lock:
            self._release_receiver()
        with self._lock:
            self._connectivity.mark_unbound()

    def __enter__(self) -> "AugmentaManager":
        self.start()
        return self

    def __exit__(self, *_exc: Any) -> None:
        self.stop()

    def rebind(self) -> bool:
        """(Re)create the receiver on the configured port."""
        with self._bind_lock:
            self._release_receiver()
            host = self._settings.host
            port = self._settings.input_port
            receiver = self._receiver_factory(host, port, self.handle_message)
            try:
                receiver.start()
            except OSError as exc:
                _LOGGER.error("Could not create Augmenta receiver on %s:%d: %s", host, port, exc)
                with self._lock:
                    self._connectivity.mark_unbound()
                return False
            self._receiver = receiver
            with self._lock:
                self._connectivity.mark_bound(receiver.port)
            return True

    def _release_receiver(self) -> None:
        receiver = self._receiver
        self._receiver = None
        if receiver is not None:
            receiver.stop()

    # Ingestion -------------------------------------------------------------

    def handle_message(self, address: str, *args: Any) -> int:
        """Process one wire message; return the number of notifications emitted."""
        settings = self._settings
        if settings.mute:
            return 0
        try:
            event = decode(settings.protocol_version, address, args, pixel_size=settings.pixel_size)
        except DecodeError as exc:
            with self._lock:
                self._decode_errors += 1
            _LOGGER.warning("Dropped malformed Augmenta message %s", exc)
            return 0
        if event is None:
            _LOGGER.debug("Ignoring unrecognised address %s (%s)", address, settings.protocol_version.value)
            return 0
        event = mirror_event(event, settings.flip_x, settings.flip_y)

        notifications: List[Notification] = []
        with self._dispatch_lock:
            with self._lock:
                self._connectivity.mark_message()
                if isinstance(event, SceneUpdate):
                    self._scene.apply(event)
                    notifications.append(Notification(NotificationKind.SCENE_UPDATED, scene=self._scene.copy()))
                elif isinstance(event, OutputUpdate):
                    self._output.apply(event)
                    notifications.append(Notification(NotificationKind.OUTPUT_UPDATED, output=self._output.copy()))
                else:
                    notification = self._registry.apply_event(event, self._is_desired)
                    if notification is not None:
                        notifications.append(notification)
            self._emit(notifications)
        return len(notifications)

    def tick(self, elapsed: float) -> None:
        """Advance inactivity timers, expire stale objects and retry binding when due."""
        with self._dispatch_lock:
            with self._lock:
                notifications = self._registry.sweep_expired(self._settings.object_timeout, elapsed)
                reconnect_due = self._connectivity.advance(elapsed)
            self._emit(notifications)
        if reconnect_due and self._started:
            _LOGGER.info("Retrying Augmenta receiver on port %d", self._settings.input_port)
            self.rebind()

    def remove_all_objects(self) -> None:
        with self._dispatch_lock:
            with self._lock:
                notifications = self._registry.remove_all()
            self._emit(notifications)

    def _is_desired(self, oid: int) -> bool:
        return is_desired(
            oid,
            self._settings.desired_object_mode,
            self._settings.desired_object_count,
            self._scene.reported_object_count,
        )

    def _emit(self, notifications: List[Notification]) -> None:
        for notification in notifications:
            self._dispatcher.emit(notification)

    # Subscriptions ---------------------------------------------------------

    @property
    def dispatcher(self) -> EventDispatcher:
        return self._dispatcher

    def subscribe(self, kind: NotificationKind, callback: Subscriber) -> SubscriptionHandle:
        return self._dispatcher.subscribe(kind, callback)

    def unsubscribe(self, handle: SubscriptionHandle) -> bool:
        return self._dispatcher.unsubscribe(handle)

    # Read side -------------------------------------------------------------

    @property
    def settings(self) -> AugmentaSettings:
        return self._settings

    @property
    def objects(self) -> Dict[int, TrackedObject]:
        with self._lock:
            return self._registry.objects()

    def get_object(self, object_id: int) -> Optional[TrackedObject]:
        with self._lock:
            obj = self._registry.get(object_id)
            return obj.copy() if obj is not None else None

    @property
    def scene(self) -> SceneState:
        with self._lock:
            return self._scene.copy()

    @property
    def output(self) -> OutputState:
        with self._lock:
            return self._output.copy()

    def configure_output(self, **fields: Any) -> None:
        """Set auto flags or manual values on the output state (e.g. ``auto_offset=False``)."""
        with self._lock:
            for name, value in fields.items():
                if not hasattr(self._output, name) or not (name.startswith("auto_") or name.startswith("manual_")):
                    raise AttributeError(f"Unknown output setting: {name}")
                setattr(self._output, name, value)

    @property
    def port_bound(self) -> bool:
        with self._lock:
            return self._connectivity.port_bound

    @property
    def receiving_data(self) -> bool:
        with self._lock:
            return self._connectivity.receiving_data

    @property
    def decode_error_count(self) -> int:
        with self._lock:
            return self._decode_errors

    # Configuration ---------------------------------------------------------

    @property
    def input_port(self) -> int:
        return self._settings.input_port

    @input_port.setter
    def input_port(self, value: int) -> None:
        self._settings.input_port = int(value)
        if self._started:
            self.rebind()

    @property
    def protocol_version(self) -> ProtocolVersion:
        return self._settings.protocol_version

    @protocol_version.setter
    def protocol_version(self, value: Any) -> None:
        self._settings.protocol_version = ProtocolVersion.parse(value)

    @property
    def pixel_size(self) -> float:
        return self._settings.pixel_size

    @pixel_size.setter
    def pixel_size(self, value: float) -> None:
        if value <= 0:
            raise ValueError("pixel_size must be positive")
        self._settings.pixel_size = float(value)

    @property
    def scaling(self) -> float:
        return self._settings.scaling

    @scaling.setter
    def scaling(self, value: float) -> None:
        self._settings.scaling = float(value)

    @property
    def flip_x(self) -> bool:
        return self._settings.flip_x

    @flip_x.setter
    def flip_x(self, value: bool) -> None:
        self._settings.flip_x = bool(value)

    @property
    def flip_y(self) -> bool:
        return self._settings.flip_y

    @flip_y.setter
    def flip_y(self, value: bool) -> None:
        self._settings.flip_y = bool(value)

    @property
    def object_timeout(self) -> float:
        return self._settings.object_timeout

    @object_timeout.setter
    def object_timeout(self, value: float) -> None:
        self._settings.object_timeout = max(0.0, float(value))

    @property
    def desired_object_mode(self) -> DesiredObjectMode:
        return self._settings.desired_object_mode

    @desired_object_mode.setter
    def desired_object_mode(self, value: Any) -> None:
        self._settings.desired_object_mode = DesiredObjectMode.parse(value)

    @property
    def desired_object_count(self) -> int:
        return self._settings.desired_object_count

    @desired_object_count.setter
    def desired_object_count(self, value: int) -> None:
        self._settings.desired_object_count = max(0, int(value))

    @property
    def mute(self) -> bool:
        return self._settings.mute

    @mute.setter
    def mute(self, value: bool) -> None:
        self._settings.mute = bool(value)
