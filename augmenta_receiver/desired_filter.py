from __future__ import annotations

from enum import Enum
from typing import Any


class DesiredObjectMode(str, Enum):
    ALL = "all"
    OLDEST = "oldest"
    NEWEST = "newest"

    @classmethod
    def parse(cls, value: Any) -> "DesiredObjectMode":
        if isinstance(value, cls):
            return value
        token = str(value or "").strip().lower()
        for mode in cls:
            if mode.value == token:
                return mode
        raise ValueError(f"Unknown desired object mode: {value!r}")


def is_desired(oid: int, mode: DesiredObjectMode, count: int, reported_count: int) -> bool:
    """Return True when an object of rank ``oid`` should be tracked.

    ``reported_count`` is the live object count from the last scene message, so
    NEWEST selection shifts as the scene population changes.
    """
    if mode is DesiredObjectMode.OLDEST:
        return oid < count
    if mode is DesiredObjectMode.NEWEST:
        return oid >= reported_count - count
    return True
