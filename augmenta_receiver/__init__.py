"""Augmenta tracking protocol receiver: decoding, object registry and lifecycle events."""
from __future__ import annotations

from augmenta_receiver.desired_filter import DesiredObjectMode, is_desired
from augmenta_receiver.event_dispatcher import EventDispatcher, Notification, NotificationKind, SubscriptionHandle
from augmenta_receiver.manager import AugmentaManager
from augmenta_receiver.object_registry import ObjectRegistry
from augmenta_receiver.protocol import (
    DataChannel,
    DecodeError,
    ObjectAction,
    ObjectEvent,
    OutputUpdate,
    ProtocolVersion,
    SceneUpdate,
    decode,
)
from augmenta_receiver.scene_state import OutputState, SceneState
from augmenta_receiver.settings import AugmentaSettings
from augmenta_receiver.tracked_object import TrackedObject
from augmenta_receiver.version import __version__

__all__ = [
    "AugmentaManager",
    "AugmentaSettings",
    "DataChannel",
    "DecodeError",
    "DesiredObjectMode",
    "EventDispatcher",
    "Notification",
    "NotificationKind",
    "ObjectAction",
    "ObjectEvent",
    "ObjectRegistry",
    "OutputState",
    "OutputUpdate",
    "ProtocolVersion",
    "SceneState",
    "SceneUpdate",
    "SubscriptionHandle",
    "TrackedObject",
    "decode",
    "is_desired",
    "__version__",
]
