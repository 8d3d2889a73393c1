"""
SQLAlchemy models for the AI Companion server.
Defines all database tables for users, companions, memories, messages and recaps.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp, the format every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    """User table - identified by email."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    companions = relationship("Companion", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"


class Companion(Base):
    """Companion table - a named persona bound to a user."""

    __tablename__ = "companions"
    __table_args__ = (
        CheckConstraint("tone_level >= 0 AND tone_level <= 100", name="ck_companions_tone_level"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(40), nullable=False)
    tone_level = Column(Integer, default=20, nullable=False)
    persona = Column(JSON, default=dict, nullable=False)  # Opaque, never interpreted
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="companions")
    memories = relationship("Memory", back_populates="companion", cascade="all, delete-orphan")
    recaps = relationship("Recap", back_populates="companion", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Companion(id={self.id}, name='{self.name}', tone_level={self.tone_level})>"


class Memory(Base):
    """Memory table - user-editable facts, one row per (companion, key)."""

    __tablename__ = "memories"
    __table_args__ = (
        UniqueConstraint("companion_id", "key", name="uq_memories_companion_key"),
        Index("idx_memories_companion_importance", "companion_id", "importance"),
    )

    id = Column(Integer, primary_key=True, index=True)
    companion_id = Column(Integer, ForeignKey("companions.id"), nullable=False, index=True)
    key = Column(String(60), nullable=False)
    value = Column(String(500), nullable=False)
    importance = Column(Integer, default=50, nullable=False)  # 0-100, ranking only
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    companion = relationship("Companion", back_populates="memories")

    def __repr__(self):
        return f"<Memory(companion_id={self.companion_id}, key='{self.key}', importance={self.importance})>"


class Message(Base):
    """Message table - append-only conversation turns."""

    __tablename__ = "messages"
    __table_args__ = (
        Index("idx_messages_pair_created", "user_id", "companion_id", "created_at"),
        Index("idx_messages_companion_created", "companion_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    companion_id = Column(Integer, ForeignKey("companions.id"), nullable=False)
    role = Column(String(20), nullable=False)  # "user" or "assistant"
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Message(companion_id={self.companion_id}, role='{self.role}', created_at={self.created_at})>"


class Recap(Base):
    """Recap table - append-only summaries of a message window."""

    __tablename__ = "recaps"
    __table_args__ = (
        # Not unique: single-companion recaps may repeat a window
        Index("idx_recaps_companion_range", "companion_id", "range_start", "range_end"),
    )

    id = Column(Integer, primary_key=True, index=True)
    companion_id = Column(Integer, ForeignKey("companions.id"), nullable=False, index=True)
    summary = Column(Text, nullable=False)
    range_start = Column(DateTime, nullable=False)
    range_end = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    companion = relationship("Companion", back_populates="recaps")

    def __repr__(self):
        return f"<Recap(companion_id={self.companion_id}, range_start={self.range_start}, range_end={self.range_end})>"
