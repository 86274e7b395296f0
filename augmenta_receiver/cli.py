#!/usr/bin/env python3
"""Run an Augmenta receiver from the command line and log lifecycle events."""
from __future__ import annotations

import argparse
import logging
import sys
import threading
from pathlib import Path
from typing import Optional

from augmenta_receiver.desired_filter import DesiredObjectMode
from augmenta_receiver.event_dispatcher import Notification, NotificationKind
from augmenta_receiver.logging_utils import LOGGER_NAME, configure_logging, resolve_logs_dir
from augmenta_receiver.manager import AugmentaManager
from augmenta_receiver.notification_relay import NotificationRelay
from augmenta_receiver.protocol import ProtocolVersion
from augmenta_receiver.settings import AugmentaSettings
from augmenta_receiver.version import DEV_MODE_ENV_VAR, __version__, is_dev_build

_LOGGER = logging.getLogger(f"{LOGGER_NAME}.CLI")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Receive Augmenta tracking data over OSC and log object lifecycle events")
    parser.add_argument("--config-dir", type=Path, help="Directory holding augmenta_settings.json")
    parser.add_argument("--host", help="Interface to bind (default from settings, 0.0.0.0)")
    parser.add_argument("--port", type=int, help="OSC input port (default 12000)")
    parser.add_argument("--protocol", choices=[v.value for v in ProtocolVersion], help="Augmenta protocol version")
    parser.add_argument("--pixel-size", type=float, help="Metres per pixel for V1 scene messages")
    parser.add_argument("--timeout", type=float, help="Seconds without updates before an object is dropped")
    parser.add_argument("--flip-x", action="store_true", default=None, help="Mirror data horizontally")
    parser.add_argument("--flip-y", action="store_true", default=None, help="Mirror data vertically")
    parser.add_argument("--desired", choices=[m.value for m in DesiredObjectMode], help="Which objects to track")
    parser.add_argument("--desired-count", type=int, help="Object count for oldest/newest tracking")
    parser.add_argument("--relay-port", type=int, help="Stream notifications as JSON lines on this TCP port")
    parser.add_argument("--log-updates", action="store_true", help="Also log every object update (verbose)")
    parser.add_argument("--log-dir", type=Path, help="Directory for rotating log files")
    parser.add_argument("--debug", action="store_true", help=f"Enable debug logging (or set {DEV_MODE_ENV_VAR}=1)")
    parser.add_argument("--save", action="store_true", help="Persist the effective settings to --config-dir")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> AugmentaSettings:
    settings = AugmentaSettings(config_dir=args.config_dir)
    overrides = {
        "host": args.host,
        "input_port": args.port,
        "protocol_version": args.protocol,
        "pixel_size": args.pixel_size,
        "object_timeout": args.timeout,
        "flip_x": args.flip_x,
        "flip_y": args.flip_y,
        "desired_object_mode": args.desired,
        "desired_object_count": args.desired_count,
    }
    settings.update({key: value for key, value in overrides.items() if value is not None})
    return settings


def _log_notification(notification: Notification) -> None:
    obj = notification.obj
    if notification.kind is NotificationKind.SCENE_UPDATED and notification.scene is not None:
        scene = notification.scene
        _LOGGER.debug("Scene %.2fm x %.2fm, %d objects reported", scene.width, scene.height, scene.reported_object_count)
    elif notification.kind is NotificationKind.OUTPUT_UPDATED and notification.output is not None:
        output = notification.output
        _LOGGER.info("Output %s m / %s px at offset %s", tuple(output.size_in_meters), output.size_in_pixels, tuple(output.offset))
    elif obj is not None:
        _LOGGER.info(
            "%s id=%d oid=%d centroid=(%.3f, %.3f) channel=%s",
            notification.kind.value,
            obj.object_id,
            obj.oid,
            obj.centroid.x,
            obj.centroid.y,
            notification.channel.value,
        )


def main(argv: Optional[list[str]] = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    settings = build_settings(args)

    if args.save:
        if settings.path is None:
            print("error: --save requires --config-dir", file=sys.stderr)
            return 2
        settings.save()

    debug_enabled = args.debug or is_dev_build()
    log_dir = args.log_dir or (resolve_logs_dir() if args.config_dir else None)
    configure_logging(debug_enabled=debug_enabled, log_dir=log_dir, retention=settings.log_retention)

    manager = AugmentaManager(settings)
    for kind in (NotificationKind.OBJECT_ENTER, NotificationKind.OBJECT_LEAVE, NotificationKind.SCENE_UPDATED, NotificationKind.OUTPUT_UPDATED):
        manager.subscribe(kind, _log_notification)
    if args.log_updates:
        manager.subscribe(NotificationKind.OBJECT_UPDATE, _log_notification)

    relay: Optional[NotificationRelay] = None
    if args.relay_port is not None:
        relay = NotificationRelay(port=args.relay_port)
        try:
            relay.start()
        except (OSError, RuntimeError) as exc:
            print(f"error: notification relay failed: {exc}", file=sys.stderr)
            return 1
        relay.attach(manager.dispatcher)

    stop = threading.Event()
    manager.start()
    _LOGGER.info(
        "Augmenta receiver %s running (protocol %s, port %d); Ctrl+C to stop",
        __version__,
        settings.protocol_version.value,
        settings.input_port,
    )
    try:
        while not stop.wait(1.0):
            pass
    except KeyboardInterrupt:
        _LOGGER.info("Stopping Augmenta receiver")
    finally:
        manager.stop()
        if relay is not None:
            relay.stop()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
