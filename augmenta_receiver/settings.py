"""JSON-backed settings for the Augmenta receiver."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from augmenta_receiver.desired_filter import DesiredObjectMode
from augmenta_receiver.protocol import DEFAULT_PIXEL_SIZE, ProtocolVersion

SETTINGS_FILE = "augmenta_settings.json"
DEFAULT_INPUT_PORT = 12000

_LOGGER = logging.getLogger("Augmenta.Receiver.Settings")


def _coerce_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _coerce_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _coerce_bool(value: Any, default: bool) -> bool:
    if isinstance(value, str):
        token = value.strip().lower()
        if token in {"1", "true", "yes", "on"}:
            return True
        if token in {"0", "false", "no", "off", ""}:
            return False
        return default
    if value is None:
        return default
    return bool(value)


@dataclass
class AugmentaSettings:
    """Receiver configuration.

    When ``config_dir`` is given the values are loaded from
    ``<config_dir>/augmenta_settings.json`` and :meth:`save` writes them back.
    Missing or unreadable files leave the defaults in place.
    """

    config_dir: Optional[Path] = None
    host: str = "0.0.0.0"
    input_port: int = DEFAULT_INPUT_PORT
    protocol_version: ProtocolVersion = ProtocolVersion.V2
    pixel_size: float = DEFAULT_PIXEL_SIZE
    scaling: float = 1.0
    flip_x: bool = False
    flip_y: bool = False
    object_timeout: float = 1.0
    desired_object_mode: DesiredObjectMode = DesiredObjectMode.ALL
    desired_object_count: int = 1
    mute: bool = False
    velocity_smoothing: float = 0.5
    position_offset_from_velocity: float = 0.0
    log_retention: int = 5

    def __post_init__(self) -> None:
        self.protocol_version = ProtocolVersion.parse(self.protocol_version)
        self.desired_object_mode = DesiredObjectMode.parse(self.desired_object_mode)
        if self.config_dir is not None:
            self.config_dir = Path(self.config_dir)
            self._load()

    @property
    def path(self) -> Optional[Path]:
        if self.config_dir is None:
            return None
        return self.config_dir / SETTINGS_FILE

    # Persistence ---------------------------------------------------------

    def _load(self) -> None:
        path = self.path
        assert path is not None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, json.JSONDecodeError) as exc:
            _LOGGER.warning("Ignoring unreadable settings file %s: %s", path, exc)
            return
        if not isinstance(data, dict):
            _LOGGER.warning("Ignoring settings file %s: expected a JSON object", path)
            return
        self.update(data)

    def update(self, data: Dict[str, Any]) -> None:
        """Apply known keys from ``data``, coercing and clamping each value."""
        if "host" in data:
            self.host = str(data.get("host") or "0.0.0.0")
        if "input_port" in data:
            port = _coerce_int(data.get("input_port"), DEFAULT_INPUT_PORT)
            self.input_port = max(0, min(port, 65535))
        if "protocol_version" in data:
            try:
                self.protocol_version = ProtocolVersion.parse(data.get("protocol_version"))
            except ValueError:
                _LOGGER.warning("Unknown protocol version %r; keeping %s", data.get("protocol_version"), self.protocol_version.value)
        if "pixel_size" in data:
            pixel_size = _coerce_float(data.get("pixel_size"), DEFAULT_PIXEL_SIZE)
            self.pixel_size = pixel_size if pixel_size > 0 else DEFAULT_PIXEL_SIZE
        if "scaling" in data:
            self.scaling = _coerce_float(data.get("scaling"), 1.0)
        if "flip_x" in data:
            self.flip_x = _coerce_bool(data.get("flip_x"), self.flip_x)
        if "flip_y" in data:
            self.flip_y = _coerce_bool(data.get("flip_y"), self.flip_y)
        if "object_timeout" in data:
            self.object_timeout = max(0.0, _coerce_float(data.get("object_timeout"), 1.0))
        if "desired_object_mode" in data:
            try:
                self.desired_object_mode = DesiredObjectMode.parse(data.get("desired_object_mode"))
            except ValueError:
                self.desired_object_mode = DesiredObjectMode.ALL
        if "desired_object_count" in data:
            self.desired_object_count = max(0, _coerce_int(data.get("desired_object_count"), 1))
        if "mute" in data:
            self.mute = _coerce_bool(data.get("mute"), self.mute)
        if "velocity_smoothing" in data:
            self.velocity_smoothing = max(0.0, _coerce_float(data.get("velocity_smoothing"), 0.5))
        if "position_offset_from_velocity" in data:
            self.position_offset_from_velocity = _coerce_float(data.get("position_offset_from_velocity"), 0.0)
        if "log_retention" in data:
            self.log_retention = max(1, _coerce_int(data.get("log_retention"), 5))

    def as_dict(self) -> Dict[str, Any]:
        return {
            "host": str(self.host),
            "input_port": int(self.input_port),
            "protocol_version": self.protocol_version.value,
            "pixel_size": float(self.pixel_size),
            "scaling": float(self.scaling),
            "flip_x": bool(self.flip_x),
            "flip_y": bool(self.flip_y),
            "object_timeout": float(self.object_timeout),
            "desired_object_mode": self.desired_object_mode.value,
            "desired_object_count": int(self.desired_object_count),
            "mute": bool(self.mute),
            "velocity_smoothing": float(self.velocity_smoothing),
            "position_offset_from_velocity": float(self.position_offset_from_velocity),
            "log_retention": int(self.log_retention),
        }

    def save(self) -> None:
        path = self.path
        if path is None:
            raise ValueError("AugmentaSettings.save() requires a config_dir")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.as_dict(), indent=2), encoding="utf-8")
