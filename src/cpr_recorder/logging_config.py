"""
Logging setup for the CPR recorder.

The console handler writes to stderr so command output stays clean; the
rotating file handler keeps a full DEBUG trail of every logged action under
~/.cpr_recorder/logs. The file handler is tuned by the [logging] config table.
"""

import logging
import logging.config
import os
import sys

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError, field_validator

from cpr_recorder.constants import (
    DEFAULT_LOG_BACKUP_COUNT,
    DEFAULT_LOG_DIR,
    DEFAULT_LOG_FILE,
    DEFAULT_LOG_MAX_BYTES,
)

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_logging_configured = False


class FileLogSettings(BaseModel):
    """The [logging] config table."""

    enabled: bool = True
    level: str = "DEBUG"
    max_size_mb: float = DEFAULT_LOG_MAX_BYTES / (1024 * 1024)
    backup_count: int = DEFAULT_LOG_BACKUP_COUNT

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level {value!r}")
        return level


def load_file_settings() -> tuple[FileLogSettings, str | None]:
    """
    Read [logging] from the config file.

    Returns:
        Settings, and a warning to log once logging is up when the table was
        invalid and defaults were used instead
    """
    from cpr_recorder.config import load_config

    table = load_config().get("logging", {})
    if not isinstance(table, dict):
        return FileLogSettings(), "[logging] is not a table; using defaults"
    try:
        return FileLogSettings.model_validate(table), None
    except ValidationError as e:
        return FileLogSettings(), (
            f"Invalid [logging] settings ({e.error_count()} error(s)); using defaults"
        )


def log_file_path() -> Path:
    """Path of the active log file. Creates the log directory."""
    os.makedirs(DEFAULT_LOG_DIR, mode=0o700, exist_ok=True)
    return Path(DEFAULT_LOG_DIR) / DEFAULT_LOG_FILE


def _build_logging_config(
    settings: FileLogSettings,
    verbose: bool = False,
    console_format: str | None = None,
    console_level: str = "INFO",
) -> dict[str, Any]:
    handlers: dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": "DEBUG" if verbose else console_level,
            "formatter": "console",
            "stream": "ext://sys.stderr",
        },
    }
    if settings.enabled:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": settings.level,
            "formatter": "file",
            "filename": str(log_file_path()),
            "maxBytes": int(settings.max_size_mb * 1024 * 1024),
            "backupCount": settings.backup_count,
            "encoding": "utf-8",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": console_format or FILE_FORMAT},
            "file": {"format": FILE_FORMAT},
        },
        "handlers": handlers,
        "root": {"level": "DEBUG", "handlers": list(handlers)},
    }


def setup_logging(
    *,
    verbose: bool = False,
    console_format: str | None = None,
    console_level: str = "INFO",
) -> None:
    """
    Configure the root logger once per process.

    Args:
        verbose: Log DEBUG to the console
        console_format: Console format string; defaults to the file format
        console_level: Console level when not verbose
    """
    global _logging_configured

    if _logging_configured:
        return

    settings, warning = load_file_settings()
    try:
        logging.config.dictConfig(
            _build_logging_config(
                settings,
                verbose=verbose,
                console_format=console_format,
                console_level=console_level,
            )
        )
    except (ValueError, OSError) as e:
        sys.stderr.write(f"WARNING: Failed to configure logging: {e}\n")
        logging.basicConfig(
            level=logging.DEBUG if verbose else console_level,
            format=console_format or "%(levelname)s: %(message)s",
        )

    _logging_configured = True
    if warning:
        logging.getLogger(__name__).warning(warning)
