"""
Best-effort key-value store for recorder state.

Every failure (unavailable database, unreadable or malformed data, failed
write) is logged and absorbed: loads fall back to a default, saves and
removals become no-ops. Callers treat every load as "may return default".
"""

import logging

from collections.abc import Callable
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from cpr_recorder.database.models import KeyValueEntry
from cpr_recorder.database.session import init_database, session_scope

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class KeyValueStore:
    """
    Named, JSON-serialized pydantic values in a SQLite table.

    Example:
        >>> store = KeyValueStore("/tmp/cpr.db")
        >>> store.save("cpr.meta", PatientMeta(patient_id="A1"))
        >>> store.load("cpr.meta", PatientMeta).patient_id
        'A1'
    """

    def __init__(self, database_path: str | None = None):
        """
        Initialize the store.

        Args:
            database_path: SQLite file path. Defaults to DEFAULT_DATABASE_PATH.
        """
        self.database_path = database_path
        self._available: bool | None = None

    def is_available(self) -> bool:
        """Whether the database could be opened. Checked once per store."""
        return self._ensure_database()

    def _ensure_database(self) -> bool:
        if self._available is None:
            try:
                init_database(self.database_path)
                self._available = True
            except Exception as e:
                logger.warning(
                    f"Storage unavailable at {self.database_path}: {e}. "
                    "State will not be persisted."
                )
                self._available = False
        return self._available

    def load_raw(self, key: str) -> str | None:
        """Return the stored string for ``key``, or None when absent or unreadable."""
        if not self._ensure_database():
            return None
        try:
            # The engine is shared; re-point it if another store moved it
            init_database(self.database_path)
            with session_scope() as session:
                entry = session.get(KeyValueEntry, key)
                return entry.value if entry is not None else None
        except Exception as e:
            logger.error(f"Error reading '{key}' from store: {e}", exc_info=True)
            return None

    def load(
        self, key: str, model: type[ModelT], default: Callable[[], ModelT] | None = None
    ) -> ModelT:
        """
        Load and validate a stored value.

        Args:
            key: Storage key
            model: Pydantic model class to validate into
            default: Factory for the fallback value. Defaults to ``model()``.

        Returns:
            The stored value, or the default when missing or malformed
        """
        fallback = default or model
        raw = self.load_raw(key)
        if raw is None:
            return fallback()
        try:
            return model.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(
                f"Discarding malformed '{key}' from store: {e.error_count()} error(s). "
                "Using default."
            )
            return fallback()

    def save(self, key: str, value: BaseModel) -> bool:
        """
        Serialize and write a value, replacing any previous one.

        Returns:
            True when the write succeeded
        """
        if not self._ensure_database():
            return False
        try:
            payload = value.model_dump_json()
            init_database(self.database_path)
            with session_scope() as session:
                entry = session.get(KeyValueEntry, key)
                if entry is None:
                    session.add(KeyValueEntry(key=key, value=payload))
                else:
                    entry.value = payload
            logger.debug(f"Saved '{key}' ({len(payload)} bytes)")
            return True
        except Exception as e:
            logger.error(f"Error saving '{key}' to store: {e}", exc_info=True)
            return False

    def remove(self, key: str) -> bool:
        """
        Delete a stored value. Missing keys are not an error.

        Returns:
            True when the delete succeeded
        """
        if not self._ensure_database():
            return False
        try:
            init_database(self.database_path)
            with session_scope() as session:
                entry = session.get(KeyValueEntry, key)
                if entry is not None:
                    session.delete(entry)
            logger.debug(f"Removed '{key}' from store")
            return True
        except Exception as e:
            logger.error(f"Error removing '{key}' from store: {e}", exc_info=True)
            return False
