"""Post-decode flipX/flipY normalisation of object events."""
from __future__ import annotations

from dataclasses import replace
from typing import Optional

from augmenta_receiver.protocol import BoundingBox, ObjectEvent, ProtocolEvent, Vec2


def mirror_angle_x(angle: float) -> float:
    """Horizontal mirror of a heading in degrees.

    Involution on [0, 180]; angles above 180 fold to ``360 - angle``.
    """
    return 360.0 - angle if angle > 180.0 else 180.0 - angle


def mirror_angle_y(angle: float) -> float:
    return 360.0 - angle


def _mirror_coord(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return 1.0 - value


def mirror_event(event: ProtocolEvent, flip_x: bool, flip_y: bool) -> ProtocolEvent:
    """Return ``event`` with the requested axis mirroring applied.

    Only object events carry mirrored fields; scene and output updates pass
    through unchanged.
    """
    if not isinstance(event, ObjectEvent) or not (flip_x or flip_y):
        return event

    main = event.main
    if main is not None:
        centroid = main.centroid
        velocity = main.velocity
        box = main.bounding_box
        orientation = main.orientation
        rotation = main.bounding_box_rotation
        highest_x = main.highest_x
        highest_y = main.highest_y
        if flip_x:
            centroid = Vec2(1.0 - centroid.x, centroid.y)
            velocity = Vec2(-velocity.x, velocity.y)
            box = BoundingBox(1.0 - box.x, box.y, box.width, box.height)
            orientation = mirror_angle_x(orientation)
            rotation = mirror_angle_x(rotation)
            highest_x = _mirror_coord(highest_x)
        if flip_y:
            centroid = Vec2(centroid.x, 1.0 - centroid.y)
            velocity = Vec2(velocity.x, -velocity.y)
            box = BoundingBox(box.x, 1.0 - box.y, box.width, box.height)
            orientation = mirror_angle_y(orientation)
            rotation = mirror_angle_y(rotation)
            highest_y = _mirror_coord(highest_y)
        main = replace(
            main,
            centroid=centroid,
            velocity=velocity,
            bounding_box=box,
            orientation=orientation,
            bounding_box_rotation=rotation,
            highest_x=highest_x,
            highest_y=highest_y,
        )

    extra = event.extra
    if extra is not None:
        extra = replace(
            extra,
            highest_x=1.0 - extra.highest_x if flip_x else extra.highest_x,
            highest_y=1.0 - extra.highest_y if flip_y else extra.highest_y,
        )

    return replace(event, main=main, extra=extra)
