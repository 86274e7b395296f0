"""Augmenta wire protocol decoding (V1 and V2 address vocabularies).

Decoding is pure: a message address plus its OSC argument list map to one
typed event, or raise :class:`DecodeError` when the arguments do not fit the
layout of the resolved address. Unknown addresses decode to ``None``.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, NamedTuple, Optional, Sequence, Tuple, Union

DEFAULT_PIXEL_SIZE = 0.005


class ProtocolVersion(str, Enum):
    V1 = "V1"
    V2 = "V2"

    @classmethod
    def parse(cls, value: Any) -> "ProtocolVersion":
        if isinstance(value, cls):
            return value
        token = str(value or "").strip().upper()
        if token in {"1", "V1"}:
            return cls.V1
        if token in {"2", "V2"}:
            return cls.V2
        raise ValueError(f"Unsupported Augmenta protocol version: {value!r}")


class DataChannel(str, Enum):
    MAIN = "main"
    EXTRA = "extra"


class ObjectAction(str, Enum):
    ENTER = "enter"
    UPDATE = "update"
    LEAVE = "leave"


class Vec2(NamedTuple):
    x: float = 0.0
    y: float = 0.0


class Vec3(NamedTuple):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class BoundingBox(NamedTuple):
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0


class DecodeError(ValueError):
    """Raised when a recognised address carries arguments that do not fit its layout."""

    def __init__(self, address: str, reason: str) -> None:
        super().__init__(f"{address}: {reason}")
        self.address = address
        self.reason = reason


@dataclass(frozen=True)
class MainPayload:
    """Primary per-frame object data.

    ``highest_x``/``highest_y`` are ``None`` for V2, where only the height of the
    highest point travels on the main channel.
    """

    age: float
    centroid: Vec2
    velocity: Vec2
    orientation: float
    bounding_box: BoundingBox
    bounding_box_rotation: float
    highest_z: float
    highest_x: Optional[float] = None
    highest_y: Optional[float] = None
    depth: Optional[float] = None


@dataclass(frozen=True)
class ExtraPayload:
    highest_x: float
    highest_y: float
    distance_to_sensor: float
    reflectivity: float


@dataclass(frozen=True)
class ObjectEvent:
    action: ObjectAction
    object_id: int
    oid: int
    channel: DataChannel = DataChannel.MAIN
    main: Optional[MainPayload] = None
    extra: Optional[ExtraPayload] = None


@dataclass(frozen=True)
class SceneUpdate:
    object_count: int
    width: float
    height: float


@dataclass(frozen=True)
class OutputUpdate:
    offset: Vec2
    size_in_meters: Vec2
    size_in_pixels: Tuple[int, int]


ProtocolEvent = Union[ObjectEvent, SceneUpdate, OutputUpdate]


# Argument helpers --------------------------------------------------------


def normalise_address(address: str) -> str:
    if len(address) > 1 and address.endswith("/"):
        return address[:-1]
    return address


def _require_length(address: str, args: Sequence[Any], expected: int) -> None:
    if len(args) < expected:
        raise DecodeError(address, f"expected at least {expected} arguments, got {len(args)}")


def _int_at(address: str, args: Sequence[Any], index: int) -> int:
    value = args[index]
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(address, f"argument {index} must be int, got {type(value).__name__}")
    return value


def _float_at(address: str, args: Sequence[Any], index: int) -> float:
    value = args[index]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(address, f"argument {index} must be float, got {type(value).__name__}")
    return float(value)


# V1 ----------------------------------------------------------------------

_V1_MAIN_LENGTH = 15
_V1_LEAVE_LENGTH = 2
_V1_SCENE_LENGTH = 7


def _decode_v1_main(address: str, action: ObjectAction, args: Sequence[Any]) -> ObjectEvent:
    _require_length(address, args, _V1_MAIN_LENGTH)
    payload = MainPayload(
        age=_int_at(address, args, 2),
        centroid=Vec2(_float_at(address, args, 3), _float_at(address, args, 4)),
        velocity=Vec2(_float_at(address, args, 5), _float_at(address, args, 6)),
        orientation=0.0,
        depth=_float_at(address, args, 7),
        bounding_box=BoundingBox(
            _float_at(address, args, 8),
            _float_at(address, args, 9),
            _float_at(address, args, 10),
            _float_at(address, args, 11),
        ),
        bounding_box_rotation=0.0,
        highest_x=_float_at(address, args, 12),
        highest_y=_float_at(address, args, 13),
        highest_z=_float_at(address, args, 14),
    )
    return ObjectEvent(
        action=action,
        object_id=_int_at(address, args, 0),
        oid=_int_at(address, args, 1),
        main=payload,
    )


def _decode_v1_leave(address: str, args: Sequence[Any]) -> ObjectEvent:
    _require_length(address, args, _V1_LEAVE_LENGTH)
    return ObjectEvent(
        action=ObjectAction.LEAVE,
        object_id=_int_at(address, args, 0),
        oid=_int_at(address, args, 1),
    )


def _decode_v1_scene(address: str, args: Sequence[Any], pixel_size: float) -> SceneUpdate:
    _require_length(address, args, _V1_SCENE_LENGTH)
    return SceneUpdate(
        object_count=_int_at(address, args, 2),
        width=_int_at(address, args, 5) * pixel_size,
        height=_int_at(address, args, 6) * pixel_size,
    )


# V2 ----------------------------------------------------------------------

_V2_MAIN_LENGTH = 15
_V2_EXTRA_LENGTH = 7
_V2_LEAVE_LENGTH = 3
_V2_SCENE_LENGTH = 4
_V2_FUSION_LENGTH = 6


def _decode_v2_main(address: str, action: ObjectAction, args: Sequence[Any]) -> ObjectEvent:
    _require_length(address, args, _V2_MAIN_LENGTH)
    payload = MainPayload(
        age=_float_at(address, args, 3),
        centroid=Vec2(_float_at(address, args, 4), _float_at(address, args, 5)),
        velocity=Vec2(_float_at(address, args, 6), _float_at(address, args, 7)),
        orientation=_float_at(address, args, 8),
        bounding_box=BoundingBox(
            _float_at(address, args, 9),
            _float_at(address, args, 10),
            _float_at(address, args, 11),
            _float_at(address, args, 12),
        ),
        bounding_box_rotation=_float_at(address, args, 13),
        highest_z=_float_at(address, args, 14),
    )
    return ObjectEvent(
        action=action,
        object_id=_int_at(address, args, 1),
        oid=_int_at(address, args, 2),
        main=payload,
    )


def _decode_v2_extra(address: str, action: ObjectAction, args: Sequence[Any]) -> ObjectEvent:
    if action is ObjectAction.LEAVE:
        _require_length(address, args, _V2_LEAVE_LENGTH)
        return ObjectEvent(
            action=action,
            object_id=_int_at(address, args, 1),
            oid=_int_at(address, args, 2),
            channel=DataChannel.EXTRA,
        )
    _require_length(address, args, _V2_EXTRA_LENGTH)
    payload = ExtraPayload(
        highest_x=_float_at(address, args, 3),
        highest_y=_float_at(address, args, 4),
        distance_to_sensor=_float_at(address, args, 5),
        reflectivity=_float_at(address, args, 6),
    )
    return ObjectEvent(
        action=action,
        object_id=_int_at(address, args, 1),
        oid=_int_at(address, args, 2),
        channel=DataChannel.EXTRA,
        extra=payload,
    )


def _decode_v2_leave(address: str, args: Sequence[Any]) -> ObjectEvent:
    _require_length(address, args, _V2_LEAVE_LENGTH)
    return ObjectEvent(
        action=ObjectAction.LEAVE,
        object_id=_int_at(address, args, 1),
        oid=_int_at(address, args, 2),
    )


def _decode_v2_scene(address: str, args: Sequence[Any]) -> SceneUpdate:
    _require_length(address, args, _V2_SCENE_LENGTH)
    return SceneUpdate(
        object_count=_int_at(address, args, 1),
        width=_float_at(address, args, 2),
        height=_float_at(address, args, 3),
    )


def _decode_v2_fusion(address: str, args: Sequence[Any]) -> OutputUpdate:
    _require_length(address, args, _V2_FUSION_LENGTH)
    return OutputUpdate(
        offset=Vec2(_float_at(address, args, 0), _float_at(address, args, 1)),
        size_in_meters=Vec2(_float_at(address, args, 2), _float_at(address, args, 3)),
        size_in_pixels=(_int_at(address, args, 4), _int_at(address, args, 5)),
    )


_Decoder = Callable[[str, Sequence[Any], float], ProtocolEvent]

_V1_DECODERS: Dict[str, _Decoder] = {
    "/au/personEntered": lambda a, args, _px: _decode_v1_main(a, ObjectAction.ENTER, args),
    "/au/personUpdated": lambda a, args, _px: _decode_v1_main(a, ObjectAction.UPDATE, args),
    "/au/personWillLeave": lambda a, args, _px: _decode_v1_leave(a, args),
    "/au/scene": _decode_v1_scene,
}

_V2_DECODERS: Dict[str, _Decoder] = {
    "/object/enter": lambda a, args, _px: _decode_v2_main(a, ObjectAction.ENTER, args),
    "/object/update": lambda a, args, _px: _decode_v2_main(a, ObjectAction.UPDATE, args),
    "/object/leave": lambda a, args, _px: _decode_v2_leave(a, args),
    "/object/enter/extra": lambda a, args, _px: _decode_v2_extra(a, ObjectAction.ENTER, args),
    "/object/update/extra": lambda a, args, _px: _decode_v2_extra(a, ObjectAction.UPDATE, args),
    "/object/leave/extra": lambda a, args, _px: _decode_v2_extra(a, ObjectAction.LEAVE, args),
    "/scene": lambda a, args, _px: _decode_v2_scene(a, args),
    "/fusion": lambda a, args, _px: _decode_v2_fusion(a, args),
}

_DECODERS = {
    ProtocolVersion.V1: _V1_DECODERS,
    ProtocolVersion.V2: _V2_DECODERS,
}


def is_known_address(version: ProtocolVersion, address: str) -> bool:
    return normalise_address(address) in _DECODERS[ProtocolVersion.parse(version)]


def decode(
    version: ProtocolVersion,
    address: str,
    args: Sequence[Any],
    *,
    pixel_size: float = DEFAULT_PIXEL_SIZE,
) -> Optional[ProtocolEvent]:
    """Decode one Augmenta message.

    Returns ``None`` for addresses outside the vocabulary of ``version`` and
    raises :class:`DecodeError` when the arguments do not match the layout.
    """

    handler = _DECODERS[ProtocolVersion.parse(version)].get(normalise_address(address))
    if handler is None:
        return None
    return handler(normalise_address(address), list(args), pixel_size)
