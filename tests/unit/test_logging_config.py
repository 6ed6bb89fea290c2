"""Tests for logging configuration."""

import logging.config

import pytest

from cpr_recorder import config, logging_config
from cpr_recorder.logging_config import FileLogSettings


@pytest.fixture(autouse=True)
def isolated_logs(tmp_path, monkeypatch, isolated_config):
    log_dir = tmp_path / "logs"
    monkeypatch.setattr(logging_config, "DEFAULT_LOG_DIR", log_dir)
    return log_dir


def test_defaults(isolated_logs):
    built = logging_config._build_logging_config(FileLogSettings())

    assert built["handlers"]["console"]["level"] == "INFO"
    assert built["root"]["handlers"] == ["console", "file"]
    assert built["handlers"]["file"]["filename"] == str(
        isolated_logs / "cpr_recorder.log"
    )
    assert built["handlers"]["file"]["maxBytes"] == 10 * 1024 * 1024
    assert isolated_logs.is_dir()


def test_verbose_overrides_console_level():
    built = logging_config._build_logging_config(
        FileLogSettings(), verbose=True, console_level="WARNING"
    )

    assert built["handlers"]["console"]["level"] == "DEBUG"


def test_quiet_console_level():
    built = logging_config._build_logging_config(
        FileLogSettings(), console_level="WARNING"
    )

    assert built["handlers"]["console"]["level"] == "WARNING"


def test_user_settings_from_config():
    config.save_config(
        {"logging": {"level": "info", "max_size_mb": 2, "backup_count": 1}}
    )

    settings, warning = logging_config.load_file_settings()
    file_handler = logging_config._build_logging_config(settings)["handlers"]["file"]

    assert warning is None
    assert file_handler["level"] == "INFO"
    assert file_handler["maxBytes"] == 2 * 1024 * 1024
    assert file_handler["backupCount"] == 1


def test_file_logging_can_be_disabled():
    config.save_config({"logging": {"enabled": False}})

    settings, _ = logging_config.load_file_settings()
    built = logging_config._build_logging_config(settings)

    assert "file" not in built["handlers"]
    assert built["root"]["handlers"] == ["console"]


@pytest.mark.parametrize(
    "table",
    [
        {"level": "LOUD"},
        {"backup_count": "many"},
    ],
)
def test_invalid_settings_fall_back_to_defaults(table):
    config.save_config({"logging": table})

    settings, warning = logging_config.load_file_settings()

    assert settings == FileLogSettings()
    assert "Invalid [logging] settings" in warning


def test_non_table_logging_setting():
    config.save_config({"logging": "verbose"})

    settings, warning = logging_config.load_file_settings()

    assert settings == FileLogSettings()
    assert "not a table" in warning


def test_setup_logging_runs_once(monkeypatch):
    calls = []
    monkeypatch.setattr(logging_config, "_logging_configured", False)
    monkeypatch.setattr(logging.config, "dictConfig", calls.append)

    logging_config.setup_logging(console_level="WARNING")
    logging_config.setup_logging(verbose=True)

    assert len(calls) == 1
    assert calls[0]["handlers"]["console"]["level"] == "WARNING"
