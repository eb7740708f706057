from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    # naive UTC, matching SQLite's CURRENT_TIMESTAMP
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


class SchemaMigration(Base):
    """
    Bookkeeping row per applied application migration version.
    Tables are created by the versioned SQL in app.htmxspa.db, not by metadata.create_all().
    """

    __tablename__ = "schema_migrations"

    version: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    applied_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=utcnow)


# Ensure module models are imported so Base.metadata includes their tables.
# (Kept at bottom to avoid circular imports.)
from app.htmxspa.modules.todos.models import Todo  # noqa: E402,F401
from app.htmxspa.modules.users.models import User  # noqa: E402,F401
