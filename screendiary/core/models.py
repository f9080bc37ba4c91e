"""
Database models for ScreenDiary.

Models: User, Entry.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from screendiary.core.utils import utcnow


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class User(Base):
    """
    A registered journal owner.

    Password is stored hashed, never in plain text.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    # Relationship
    entries: Mapped[list["Entry"]] = relationship(
        "Entry", back_populates="user", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.name} <{self.email}>>"


class Entry(Base):
    """
    A single journal entry.

    Apps and tags are stored as JSON array text.
    Rows are never updated after insert.
    """

    __tablename__ = "entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )
    apps: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    screen_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    reflection: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tags: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)

    # Relationship
    user: Mapped["User"] = relationship("User", back_populates="entries")

    def __repr__(self) -> str:
        return f"<Entry {self.id}: user_id={self.user_id} {self.screen_time} min>"
