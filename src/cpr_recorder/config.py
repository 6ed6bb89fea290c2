"""Configuration management for the CPR recorder."""

import logging
import os
import tomllib

from pathlib import Path
from typing import Any

import tomli_w

from cpr_recorder.constants import DEFAULT_DATABASE_PATH, DEFAULT_SHOCK_ENERGY

logger = logging.getLogger(__name__)


def get_config_path() -> Path:
    """
    Get the path to the configuration file.

    Returns:
        Path to ~/.cpr_recorder/config.toml
    """
    return Path.home() / ".cpr_recorder" / "config.toml"


def load_config() -> dict[str, Any]:
    """
    Load configuration from TOML file.

    Returns:
        Configuration dictionary. Returns empty dict if file doesn't exist
        or is corrupted.
    """
    config_path = get_config_path()

    if not config_path.exists():
        return {}

    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except Exception as e:
        logger.warning(f"Failed to load config from {config_path}: {e}")
        logger.warning("Treating config as empty. Fix or delete the file to resolve.")
        return {}


def save_config(config: dict[str, Any]) -> None:
    """
    Save configuration to TOML file using atomic write.

    Creates the parent directory if it doesn't exist.
    Uses temp file + rename for atomic operation.

    Args:
        config: Configuration dictionary to save

    Raises:
        PermissionError: If directory cannot be created or file cannot be written
    """
    config_path = get_config_path()

    config_dir = config_path.parent
    try:
        os.makedirs(config_dir, exist_ok=True)
    except PermissionError as e:
        raise PermissionError(
            f"Cannot create config directory {config_dir}: {e}"
        ) from e

    temp_path = config_path.with_suffix(".toml.tmp")

    try:
        with open(temp_path, "wb") as f:
            tomli_w.dump(config, f)

        os.replace(temp_path, config_path)

    except Exception:
        if temp_path.exists():
            temp_path.unlink()
        raise


def get_default_energy() -> int | float:
    """
    Get the default defibrillation energy in joules.

    Returns:
        Configured [recorder] default_energy, or DEFAULT_SHOCK_ENERGY
    """
    config = load_config()
    energy = config.get("recorder", {}).get("default_energy")
    if isinstance(energy, bool) or not isinstance(energy, int | float):
        return DEFAULT_SHOCK_ENERGY
    return energy


def set_default_energy(energy: int | float) -> None:
    config = load_config()
    config.setdefault("recorder", {})["default_energy"] = energy
    save_config(config)


def unset_default_energy() -> None:
    """
    Remove the default energy setting from config.

    Empty sections are dropped; an empty config deletes the file.
    """
    config = load_config()

    if "recorder" in config and "default_energy" in config["recorder"]:
        del config["recorder"]["default_energy"]

        if not config["recorder"]:
            del config["recorder"]

        if not config:
            config_path = get_config_path()
            if config_path.exists():
                config_path.unlink()
        else:
            save_config(config)


def get_default_location() -> str | None:
    """Location prefilled into a new patient record, if configured."""
    location = load_config().get("recorder", {}).get("location")
    return location if isinstance(location, str) else None


def get_database_path() -> str:
    """
    Resolve the database path from [storage] database.

    Returns:
        Configured path with ~ expanded, or DEFAULT_DATABASE_PATH
    """
    database = load_config().get("storage", {}).get("database")
    if isinstance(database, str) and database:
        return str(Path(database).expanduser())
    return DEFAULT_DATABASE_PATH
