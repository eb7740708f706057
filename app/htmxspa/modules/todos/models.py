from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.htmxspa.models import Base, utcnow


class Todo(Base):
    __tablename__ = "todos"
    __table_args__ = (
        Index("idx_todos_completed", "completed"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Todo id={self.id} completed={self.completed}>"
