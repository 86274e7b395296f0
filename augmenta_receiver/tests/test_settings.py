from __future__ import annotations

import json

from augmenta_receiver.desired_filter import DesiredObjectMode
from augmenta_receiver.protocol import DEFAULT_PIXEL_SIZE, ProtocolVersion
from augmenta_receiver.settings import DEFAULT_INPUT_PORT, SETTINGS_FILE, AugmentaSettings


def test_defaults_without_config_dir():
    settings = AugmentaSettings()
    assert settings.path is None
    assert settings.input_port == DEFAULT_INPUT_PORT
    assert settings.protocol_version is ProtocolVersion.V2
    assert settings.object_timeout == 1.0
    assert settings.desired_object_mode is DesiredObjectMode.ALL


def test_missing_file_keeps_defaults(tmp_path):
    settings = AugmentaSettings(config_dir=tmp_path)
    assert settings.path == tmp_path / SETTINGS_FILE
    assert settings.input_port == DEFAULT_INPUT_PORT


def test_save_and_reload_round_trip(tmp_path):
    settings = AugmentaSettings(config_dir=tmp_path)
    settings.input_port = 9000
    settings.protocol_version = ProtocolVersion.V1
    settings.flip_y = True
    settings.desired_object_mode = DesiredObjectMode.NEWEST
    settings.save()

    stored = json.loads((tmp_path / SETTINGS_FILE).read_text(encoding="utf-8"))
    assert stored["protocol_version"] == "V1"
    assert stored["desired_object_mode"] == "newest"

    reloaded = AugmentaSettings(config_dir=tmp_path)
    assert reloaded.input_port == 9000
    assert reloaded.protocol_version is ProtocolVersion.V1
    assert reloaded.flip_y is True
    assert reloaded.desired_object_mode is DesiredObjectMode.NEWEST


def test_load_clamps_and_coerces(tmp_path):
    (tmp_path / SETTINGS_FILE).write_text(
        json.dumps(
            {
                "input_port": 70000,
                "pixel_size": -1,
                "object_timeout": "-3",
                "desired_object_count": "4",
                "desired_object_mode": "sideways",
                "protocol_version": "v9",
                "log_retention": 0,
                "scaling": "not-a-number",
            }
        ),
        encoding="utf-8",
    )
    settings = AugmentaSettings(config_dir=tmp_path)

    assert settings.input_port == 65535
    assert settings.pixel_size == DEFAULT_PIXEL_SIZE
    assert settings.object_timeout == 0.0
    assert settings.desired_object_count == 4
    assert settings.desired_object_mode is DesiredObjectMode.ALL
    assert settings.protocol_version is ProtocolVersion.V2
    assert settings.log_retention == 1
    assert settings.scaling == 1.0


def test_unreadable_file_is_ignored(tmp_path, caplog):
    (tmp_path / SETTINGS_FILE).write_text("{not json", encoding="utf-8")
    settings = AugmentaSettings(config_dir=tmp_path)
    assert settings.input_port == DEFAULT_INPUT_PORT
    assert "Ignoring unreadable settings file" in caplog.text


def test_non_object_file_is_ignored(tmp_path):
    (tmp_path / SETTINGS_FILE).write_text("[1, 2]", encoding="utf-8")
    settings = AugmentaSettings(config_dir=tmp_path)
    assert settings.as_dict() == AugmentaSettings().as_dict()


def test_save_requires_config_dir():
    settings = AugmentaSettings()
    try:
        settings.save()
    except ValueError as exc:
        assert "config_dir" in str(exc)
    else:
        raise AssertionError("save() should fail without a config_dir")


def test_string_flags_are_parsed_as_tokens(tmp_path):
    (tmp_path / SETTINGS_FILE).write_text(
        json.dumps({"flip_x": "false", "flip_y": "Yes", "mute": "0"}),
        encoding="utf-8",
    )
    settings = AugmentaSettings(config_dir=tmp_path)
    assert settings.flip_x is False
    assert settings.flip_y is True
    assert settings.mute is False

    settings.update({"mute": "on", "flip_y": "maybe", "flip_x": None})
    assert settings.mute is True
    assert settings.flip_y is True
    assert settings.flip_x is False
