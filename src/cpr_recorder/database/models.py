"""
SQLAlchemy ORM models for the CPR recorder database.

The database stands in for a browser's local storage: a single table of
named, serialized values.
"""

from datetime import UTC, datetime

from sqlalchemy import CheckConstraint, DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""

    pass


def utc_now() -> datetime:
    """Return current UTC timestamp for database defaults."""
    return datetime.now(UTC)


class KeyValueEntry(Base):
    """A named value stored as its JSON serialization."""

    __tablename__ = "kv_entries"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (CheckConstraint("length(key) > 0", name="chk_key"),)

    def __repr__(self) -> str:
        return f"<KeyValueEntry(key={self.key}, bytes={len(self.value or '')})>"
