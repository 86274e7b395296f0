from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Tuple

from augmenta_receiver.protocol import OutputUpdate, SceneUpdate, Vec2


@dataclass
class SceneState:
    """Scene geometry in metres.

    ``reported_object_count`` comes straight from the wire and can differ from
    the registry size (timeouts, desired-object filtering).
    """

    width: float = 1.0
    height: float = 1.0
    reported_object_count: int = 0

    def apply(self, update: SceneUpdate) -> None:
        self.reported_object_count = update.object_count
        self.width = update.width
        self.height = update.height

    def copy(self) -> "SceneState":
        return copy.copy(self)


@dataclass
class OutputState:
    """Fusion output rectangle, with optional manual pins per field."""

    offset: Vec2 = field(default_factory=Vec2)
    size_in_meters: Vec2 = field(default_factory=Vec2)
    size_in_pixels: Tuple[int, int] = (0, 0)
    auto_offset: bool = True
    auto_size_in_meters: bool = True
    auto_size_in_pixels: bool = True
    manual_offset: Vec2 = field(default_factory=Vec2)
    manual_size_in_meters: Vec2 = field(default_factory=Vec2)
    manual_size_in_pixels: Tuple[int, int] = (0, 0)

    def apply(self, update: OutputUpdate) -> None:
        self.offset = update.offset
        self.size_in_meters = update.size_in_meters
        self.size_in_pixels = update.size_in_pixels

    @property
    def effective_offset(self) -> Vec2:
        return self.offset if self.auto_offset else self.manual_offset

    @property
    def effective_size_in_meters(self) -> Vec2:
        return self.size_in_meters if self.auto_size_in_meters else self.manual_size_in_meters

    @property
    def effective_size_in_pixels(self) -> Tuple[int, int]:
        return self.size_in_pixels if self.auto_size_in_pixels else self.manual_size_in_pixels

    def copy(self) -> "OutputState":
        return copy.copy(self)
