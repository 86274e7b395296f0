from __future__ import annotations

from typing import Any, Callable, List

import pytest

from augmenta_receiver.event_dispatcher import Notification
from augmenta_receiver.manager import AugmentaManager
from augmenta_receiver.settings import AugmentaSettings


class StubReceiver:
    def __init__(self, host: str, port: int, callback: Callable[..., Any], fail: bool = False) -> None:
        self.host = host
        self.port = port
        self.callback = callback
        self.fail = fail
        self.started = False
        self.stopped = False

    def start(self) -> None:
        if self.fail:
            raise OSError(98, "Address already in use")
        self.started = True

    def stop(self) -> None:
        self.stopped = True


class StubReceiverFactory:
    """Records every receiver the manager asks for; ``fail_next`` makes binds fail."""

    def __init__(self) -> None:
        self.created: List[StubReceiver] = []
        self.fail_next = 0

    def __call__(self, host: str, port: int, callback: Callable[..., Any]) -> StubReceiver:
        fail = self.fail_next > 0
        if fail:
            self.fail_next -= 1
        receiver = StubReceiver(host, port, callback, fail=fail)
        self.created.append(receiver)
        return receiver


class Recorder:
    def __init__(self) -> None:
        self.seen: List[Notification] = []

    def __call__(self, notification: Notification) -> None:
        self.seen.append(notification)

    @property
    def kinds(self) -> List[str]:
        return [item.kind.value for item in self.seen]


def v2_object_args(
    object_id: int = 1,
    oid: int = 0,
    *,
    age: float = 0.0,
    centroid=(0.5, 0.5),
    velocity=(0.0, 0.0),
    orientation: float = 0.0,
    box=(0.4, 0.4, 0.2, 0.2),
    rotation: float = 0.0,
    highest_z: float = 1.8,
) -> list:
    return [0, object_id, oid, age, *centroid, *velocity, orientation, *box, rotation, highest_z]


def v2_extra_args(object_id: int = 1, oid: int = 0, *, highest=(0.3, 0.6), distance: float = 4.0, reflectivity: float = 0.7) -> list:
    return [0, object_id, oid, *highest, distance, reflectivity]


def v1_person_args(
    object_id: int = 7,
    oid: int = 0,
    *,
    age: int = 12,
    centroid=(0.25, 0.75),
    velocity=(0.1, -0.2),
    depth: float = 0.0,
    box=(0.2, 0.7, 0.1, 0.1),
    highest=(0.26, 0.74, 1.7),
) -> list:
    return [object_id, oid, age, *centroid, *velocity, depth, *box, *highest]


@pytest.fixture
def receiver_factory() -> StubReceiverFactory:
    return StubReceiverFactory()


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def manager(receiver_factory) -> AugmentaManager:
    return AugmentaManager(AugmentaSettings(input_port=12000), receiver_factory=receiver_factory)
