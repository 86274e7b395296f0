from __future__ import annotations

import threading

import pytest
from pythonosc.udp_client import SimpleUDPClient

from augmenta_receiver.event_dispatcher import NotificationKind
from augmenta_receiver.manager import AugmentaManager
from augmenta_receiver.osc_receiver import OscReceiver
from augmenta_receiver.settings import AugmentaSettings

OBJECT_ARGS = [0, 1, 0, 0.0, 0.5, 0.5, 0.0, 0.0, 0.0, 0.4, 0.4, 0.2, 0.2, 0.0, 1.8]


def test_osc_receiver_forwards_messages():
    received = []
    got = threading.Event()

    def callback(address, *args):
        received.append((address, args))
        got.set()

    receiver = OscReceiver("127.0.0.1", 0, callback)
    receiver.start()
    try:
        assert receiver.port != 0
        SimpleUDPClient("127.0.0.1", receiver.port).send_message("/scene", [0, 2, 4.0, 3.0])
        assert got.wait(2.0)
    finally:
        receiver.stop()

    address, args = received[0]
    assert address == "/scene"
    assert args[1] == 2
    assert args[2] == pytest.approx(4.0)


def test_second_receiver_on_same_port_fails():
    first = OscReceiver("127.0.0.1", 0, lambda *a: None)
    first.start()
    try:
        with pytest.raises(OSError):
            OscReceiver("127.0.0.1", first.port, lambda *a: None).start()
    finally:
        first.stop()


def test_manager_tracks_objects_over_udp():
    occupied = OscReceiver("127.0.0.1", 0, lambda *a: None)
    occupied.start()
    port = occupied.port
    occupied.stop()

    entered = threading.Event()
    left = threading.Event()
    settings = AugmentaSettings(host="127.0.0.1", input_port=port, object_timeout=0.1)
    with AugmentaManager(settings, clock_interval=0.02) as manager:
        manager.subscribe(NotificationKind.OBJECT_ENTER, lambda n: entered.set())
        manager.subscribe(NotificationKind.OBJECT_LEAVE, lambda n: left.set())
        assert manager.port_bound

        SimpleUDPClient("127.0.0.1", port).send_message("/object/enter", OBJECT_ARGS)
        assert entered.wait(2.0)
        assert manager.receiving_data
        assert left.wait(2.0)
        assert manager.objects == {}
