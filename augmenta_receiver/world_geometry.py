"""Pure scene-plane math for presentation adapters (no engine types).

World axes: x to the right, y up (object height), z forward. The scene centre
sits at the origin and normalised scene y grows towards -z.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, NamedTuple, Optional

from augmenta_receiver.event_dispatcher import EventDispatcher, Notification, NotificationKind, SubscriptionHandle
from augmenta_receiver.protocol import Vec2, Vec3
from augmenta_receiver.scene_state import OutputState, SceneState
from augmenta_receiver.settings import AugmentaSettings
from augmenta_receiver.tracked_object import TrackedObject

_MIN_SMOOTHING = 0.001


def world_position(obj: TrackedObject, scene: SceneState, scaling: float = 1.0, *, with_height: bool = False) -> Vec3:
    """Object centre on the scene plane, lifted by half its height when ``with_height``."""
    return Vec3(
        (obj.centroid.x - 0.5) * scene.width * scaling,
        obj.highest.z * 0.5 * scaling if with_height else 0.0,
        -(obj.centroid.y - 0.5) * scene.height * scaling,
    )


def world_scale(obj: TrackedObject, scene: SceneState, scaling: float = 1.0) -> Vec3:
    return Vec3(
        obj.bounding_box.width * scene.width * scaling,
        obj.highest.z * scaling,
        obj.bounding_box.height * scene.height * scaling,
    )


def _lerp(start: Vec3, end: Vec3, t: float) -> Vec3:
    t = max(0.0, min(1.0, t))
    return Vec3(
        start.x + (end.x - start.x) * t,
        start.y + (end.y - start.y) * t,
        start.z + (end.z - start.z) * t,
    )


def _add_scaled(base: Vec3, delta: Vec3, factor: float) -> Vec3:
    return Vec3(base.x + delta.x * factor, base.y + delta.y * factor, base.z + delta.z * factor)


class WorldKinematics(NamedTuple):
    position_2d: Vec3
    position_3d: Vec3
    velocity_2d: Vec3
    velocity_3d: Vec3
    scale: Vec3


@dataclass
class _SmootherState:
    position_2d: Vec3
    position_3d: Vec3
    velocity_2d: Vec3 = Vec3()
    velocity_3d: Vec3 = Vec3()


class VelocitySmoother:
    """Per-object world velocity estimate with exponential smoothing.

    State is kept per object id until :meth:`forget` runs; :meth:`attach`
    wires that to leave notifications.

    Positions can be pushed ahead along the smoothed velocity by
    ``position_offset_from_velocity`` seconds to hide network latency.
    """

    def __init__(self, velocity_smoothing: float = 0.5, position_offset_from_velocity: float = 0.0) -> None:
        self.velocity_smoothing = velocity_smoothing
        self.position_offset_from_velocity = position_offset_from_velocity
        self._states: Dict[int, _SmootherState] = {}

    @classmethod
    def from_settings(cls, settings: AugmentaSettings) -> "VelocitySmoother":
        return cls(settings.velocity_smoothing, settings.position_offset_from_velocity)

    def update(self, obj: TrackedObject, scene: SceneState, elapsed: float, scaling: float = 1.0) -> WorldKinematics:
        position_2d = world_position(obj, scene, scaling)
        position_3d = world_position(obj, scene, scaling, with_height=True)
        state: Optional[_SmootherState] = self._states.get(obj.object_id)
        if state is None:
            state = _SmootherState(position_2d=position_2d, position_3d=position_3d)
            self._states[obj.object_id] = state
        elif elapsed > 0:
            factor = elapsed / max(self.velocity_smoothing, _MIN_SMOOTHING)
            raw_2d = Vec3(*((now - prev) / elapsed for now, prev in zip(position_2d, state.position_2d)))
            raw_3d = Vec3(*((now - prev) / elapsed for now, prev in zip(position_3d, state.position_3d)))
            state.velocity_2d = _lerp(state.velocity_2d, raw_2d, factor)
            state.velocity_3d = _lerp(state.velocity_3d, raw_3d, factor)
            state.position_2d = position_2d
            state.position_3d = position_3d

        offset = self.position_offset_from_velocity
        return WorldKinematics(
            position_2d=_add_scaled(position_2d, state.velocity_2d, offset),
            position_3d=_add_scaled(position_3d, state.velocity_3d, offset),
            velocity_2d=state.velocity_2d,
            velocity_3d=state.velocity_3d,
            scale=world_scale(obj, scene, scaling),
        )

    def attach(self, dispatcher: EventDispatcher) -> SubscriptionHandle:
        """Drop per-object state whenever an object leaves. Unsubscribe with the returned handle."""
        return dispatcher.subscribe(NotificationKind.OBJECT_LEAVE, self._on_leave)

    def forget(self, object_id: int) -> None:
        self._states.pop(object_id, None)

    def _on_leave(self, notification: Notification) -> None:
        if notification.obj is not None:
            self.forget(notification.obj.object_id)

    def clear(self) -> None:
        self._states.clear()


class OutputCorners(NamedTuple):
    top_left: Vec2
    top_right: Vec2
    bottom_right: Vec2
    bottom_left: Vec2


def output_corners(output: OutputState, scene: SceneState, scaling: float = 1.0) -> OutputCorners:
    """Corners of the output rectangle in scene-plane coordinates (x right, y towards scene top).

    The offset is measured from the scene's top-left corner, y pointing down.
    """
    offset = output.effective_offset
    size = output.effective_size_in_meters
    left = (-0.5 * scene.width + offset.x) * scaling
    top = (0.5 * scene.height - offset.y) * scaling
    right = left + size.x * scaling
    bottom = top - size.y * scaling
    return OutputCorners(
        top_left=Vec2(left, top),
        top_right=Vec2(right, top),
        bottom_right=Vec2(right, bottom),
        bottom_left=Vec2(left, bottom),
    )
