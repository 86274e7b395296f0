from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

import pytest

from augmenta_receiver import logging_utils
from augmenta_receiver.version import DEV_MODE_ENV_VAR, is_dev_build


@pytest.fixture
def restore_receiver_logger():
    logger = logging.getLogger(logging_utils.LOGGER_NAME)
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate


def test_resolve_logs_dir_prefers_env_override(monkeypatch, tmp_path):
    monkeypatch.setenv(logging_utils.LOG_DIR_ENV_VAR, str(tmp_path))
    target = logging_utils.resolve_logs_dir("Receiver")
    assert target == tmp_path / "Receiver"
    assert target.is_dir()


def test_rotating_handler_uses_retention(tmp_path):
    handler = logging_utils.build_rotating_file_handler(tmp_path, "test.log", retention=3)
    try:
        assert isinstance(handler, RotatingFileHandler)
        assert handler.backupCount == 2
    finally:
        handler.close()


def test_configure_logging_writes_file(tmp_path, restore_receiver_logger):
    logger = logging_utils.configure_logging(debug_enabled=True, log_dir=tmp_path, console=False)
    assert logger.level == logging.DEBUG
    logging.getLogger("Augmenta.Receiver.Test").debug("hello from the receiver")
    for handler in logger.handlers:
        handler.flush()
    assert "hello from the receiver" in (tmp_path / "augmenta-receiver.log").read_text(encoding="utf-8")


def test_configure_logging_replaces_handlers(tmp_path, restore_receiver_logger):
    logging_utils.configure_logging(debug_enabled=False, log_dir=tmp_path)
    logger = logging_utils.configure_logging(debug_enabled=False, log_dir=tmp_path)
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 2


@pytest.mark.parametrize(
    "env, version, expected",
    [
        (None, "0.3.0", False),
        (None, "0.4.0-dev", True),
        ("1", "0.3.0", True),
        ("off", "0.4.0-dev", False),
    ],
)
def test_is_dev_build(monkeypatch, env, version, expected):
    if env is None:
        monkeypatch.delenv(DEV_MODE_ENV_VAR, raising=False)
    else:
        monkeypatch.setenv(DEV_MODE_ENV_VAR, env)
    assert is_dev_build(version) is expected
