from __future__ import annotations

import copy
from dataclasses import dataclass, field

from augmenta_receiver.protocol import BoundingBox, ExtraPayload, MainPayload, Vec2, Vec3


@dataclass
class TrackedObject:
    """Live state of one object reported by the sensor.

    ``age`` is in frames for protocol V1 and in seconds for V2. Extra-channel
    fields stay at their defaults until an extra message arrives for the id.
    """

    object_id: int
    oid: int
    age: float = 0.0
    centroid: Vec2 = field(default_factory=Vec2)
    velocity: Vec2 = field(default_factory=Vec2)
    orientation: float = 0.0
    bounding_box: BoundingBox = field(default_factory=BoundingBox)
    bounding_box_rotation: float = 0.0
    highest: Vec3 = field(default_factory=Vec3)
    depth: float = 0.0
    distance_to_sensor: float = 0.0
    reflectivity: float = 0.0
    inactive_time: float = 0.0

    def apply_main(self, payload: MainPayload) -> None:
        self.age = payload.age
        self.centroid = payload.centroid
        self.velocity = payload.velocity
        self.orientation = payload.orientation
        self.bounding_box = payload.bounding_box
        self.bounding_box_rotation = payload.bounding_box_rotation
        highest_x = self.highest.x if payload.highest_x is None else payload.highest_x
        highest_y = self.highest.y if payload.highest_y is None else payload.highest_y
        self.highest = Vec3(highest_x, highest_y, payload.highest_z)
        if payload.depth is not None:
            self.depth = payload.depth

    def apply_extra(self, payload: ExtraPayload) -> None:
        self.highest = Vec3(payload.highest_x, payload.highest_y, self.highest.z)
        self.distance_to_sensor = payload.distance_to_sensor
        self.reflectivity = payload.reflectivity

    def copy(self) -> "TrackedObject":
        return copy.copy(self)
