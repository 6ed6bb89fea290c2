"""Database layer for the CPR recorder."""

from cpr_recorder.database.models import Base, KeyValueEntry
from cpr_recorder.database.session import (
    cleanup_database,
    current_database_path,
    init_database,
    session_scope,
)

__all__ = [
    "Base",
    "KeyValueEntry",
    "cleanup_database",
    "current_database_path",
    "init_database",
    "session_scope",
]
