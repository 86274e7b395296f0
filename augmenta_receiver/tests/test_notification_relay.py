from __future__ import annotations

import json

from augmenta_receiver.event_dispatcher import EventDispatcher, Notification, NotificationKind
from augmenta_receiver.notification_relay import NotificationRelay, notification_to_payload
from augmenta_receiver.protocol import DataChannel, Vec2
from augmenta_receiver.scene_state import OutputState, SceneState
from augmenta_receiver.tracked_object import TrackedObject


def test_object_payload_is_json_ready():
    obj = TrackedObject(object_id=3, oid=1, centroid=Vec2(0.25, 0.5))
    payload = notification_to_payload(Notification(NotificationKind.OBJECT_UPDATE, obj=obj, channel=DataChannel.EXTRA))

    assert payload["event"] == "object_update"
    assert payload["channel"] == "extra"
    assert payload["object"]["object_id"] == 3
    assert payload["object"]["centroid"] == [0.25, 0.5]
    json.dumps(payload)


def test_scene_and_output_payloads():
    scene_payload = notification_to_payload(Notification(NotificationKind.SCENE_UPDATED, scene=SceneState(4.0, 3.0, 2)))
    assert scene_payload["scene"] == {"width": 4.0, "height": 3.0, "reported_object_count": 2}

    output = OutputState(offset=Vec2(1.0, 2.0), auto_offset=False, manual_offset=Vec2(0.5, 0.5))
    output_payload = notification_to_payload(Notification(NotificationKind.OUTPUT_UPDATED, output=output))
    assert output_payload["output"]["offset"] == [0.5, 0.5]


def test_attach_and_detach_track_subscriptions():
    dispatcher = EventDispatcher()
    relay = NotificationRelay()
    relay.attach(dispatcher)
    assert all(dispatcher.subscriber_count(kind) == 1 for kind in NotificationKind)
    relay.detach()
    assert all(dispatcher.subscriber_count(kind) == 0 for kind in NotificationKind)


def test_publish_after_stop_is_dropped():
    relay = NotificationRelay()
    relay.stop()
    relay.publish(Notification(NotificationKind.SCENE_UPDATED, scene=SceneState()))
    assert relay._queue.get_nowait() is None
    assert relay._queue.empty()
