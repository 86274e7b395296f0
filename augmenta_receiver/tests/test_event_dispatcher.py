from __future__ import annotations

import logging

import pytest

from augmenta_receiver.event_dispatcher import EventDispatcher, Notification, NotificationKind


def test_subscribers_run_in_subscription_order():
    dispatcher = EventDispatcher()
    calls = []
    dispatcher.subscribe(NotificationKind.OBJECT_ENTER, lambda n: calls.append("first"))
    dispatcher.subscribe(NotificationKind.OBJECT_ENTER, lambda n: calls.append("second"))
    dispatcher.subscribe(NotificationKind.OBJECT_LEAVE, lambda n: calls.append("leave"))

    dispatcher.emit(Notification(NotificationKind.OBJECT_ENTER))

    assert calls == ["first", "second"]


def test_unsubscribe_stops_delivery():
    dispatcher = EventDispatcher()
    calls = []
    handle = dispatcher.subscribe(NotificationKind.SCENE_UPDATED, calls.append)

    assert dispatcher.unsubscribe(handle) is True
    assert dispatcher.unsubscribe(handle) is False
    dispatcher.emit(Notification(NotificationKind.SCENE_UPDATED))

    assert calls == []
    assert dispatcher.subscriber_count(NotificationKind.SCENE_UPDATED) == 0


def test_failing_subscriber_does_not_block_others(caplog):
    dispatcher = EventDispatcher()
    calls = []

    def boom(_notification):
        raise RuntimeError("boom")

    dispatcher.subscribe(NotificationKind.OBJECT_UPDATE, boom)
    dispatcher.subscribe(NotificationKind.OBJECT_UPDATE, calls.append)

    with caplog.at_level(logging.ERROR, logger="Augmenta.Receiver.Dispatcher"):
        dispatcher.emit(Notification(NotificationKind.OBJECT_UPDATE))

    assert len(calls) == 1
    assert "failed while handling object_update" in caplog.text


def test_subscriber_may_unsubscribe_during_emit():
    dispatcher = EventDispatcher()
    calls = []
    handles = {}

    def once(notification):
        calls.append(notification.kind)
        dispatcher.unsubscribe(handles["once"])

    handles["once"] = dispatcher.subscribe(NotificationKind.OBJECT_ENTER, once)
    dispatcher.emit(Notification(NotificationKind.OBJECT_ENTER))
    dispatcher.emit(Notification(NotificationKind.OBJECT_ENTER))

    assert calls == [NotificationKind.OBJECT_ENTER]


def test_subscribe_rejects_non_callable():
    with pytest.raises(TypeError):
        EventDispatcher().subscribe(NotificationKind.OBJECT_ENTER, "nope")


def test_clear_removes_everything():
    dispatcher = EventDispatcher()
    dispatcher.subscribe(NotificationKind.OBJECT_ENTER, lambda n: None)
    dispatcher.clear()
    assert dispatcher.subscriber_count(NotificationKind.OBJECT_ENTER) == 0
