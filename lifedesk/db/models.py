# =============================================================================
# Database Models — SQLAlchemy ORM
# =============================================================================
#
# One flat table per productivity domain. There are no relationships
# between tables; the dashboard aggregates across them in application code.
#
# SCHEMA OVERVIEW:
#
#   documents      — knowledge base rows (content + pseudo-embedding)
#   chat_messages  — RAG chat transcript (role, content, sources)
#   todos          — to-do items
#   events         — calendar events
#   notes          — free-form notes with tags
#   goals          — numeric goals with progress
#   habits         — recurring habits with a streak counter
#   expenses       — income/expense transactions
#
# DESIGN DECISIONS:
#
# 1. UUID primary keys generated in Python (uuid4). The same value works on
#    PostgreSQL (native UUID) and SQLite (CHAR(32)) through SQLAlchemy's
#    generic `Uuid` type.
#
# 2. JSON columns (`JSONType`) are JSONB on PostgreSQL and plain JSON
#    elsewhere. Embedding vectors are stored as JSON float arrays: retrieval
#    is a full scan in Python, so no vector column type is needed.
#
# 3. Timestamps carry both a Python default and a server default. The
#    Python default keeps the attribute loaded after flush, so async code
#    never triggers a lazy refresh.
#
# 4. Enum-like columns are plain strings guarded by CHECK constraints.
# =============================================================================

import datetime as dt
import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

JSONType = JSON().with_variant(JSONB(), "postgresql")


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base class for all LifeDesk tables."""

    pass


def _id_column() -> Mapped[uuid.UUID]:
    return mapped_column(Uuid, primary_key=True, default=uuid.uuid4)


def _created_at_column() -> Mapped[dt.datetime]:
    return mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        nullable=False,
    )


# =============================================================================
# Knowledge Base
# =============================================================================


class Document(Base):
    """
    A document in the personal knowledge base.

    Created from an uploaded file (file_path set) or from typed/dictated
    text (file_path null, file_type "text/plain"). The embedding is computed
    from the full content at insert time and never updated.
    """

    __tablename__ = "documents"

    id: Mapped[uuid.UUID] = _id_column()
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    # Relative path inside the storage area ("documents/<name>")
    file_path: Mapped[str | None] = mapped_column(Text, nullable=True)

    # MIME type as reported by the client ("application/pdf", "text/plain")
    file_type: Mapped[str] = mapped_column(String(255), nullable=False)

    # tiktoken cl100k_base count of `content`, for display and context budgeting
    token_count: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Fixed-length float vector (pseudo-embedding by default)
    embedding: Mapped[list[float] | None] = mapped_column(JSONType, nullable=True)

    upload_date: Mapped[dt.datetime] = _created_at_column()

    def __repr__(self) -> str:
        return f"<Document(id={self.id}, title='{self.title}', type={self.file_type})>"


class ChatMessage(Base):
    """One turn of the RAG chat transcript."""

    __tablename__ = "chat_messages"
    __table_args__ = (
        CheckConstraint("role IN ('user', 'assistant')", name="ck_chat_messages_role"),
    )

    id: Mapped[uuid.UUID] = _id_column()
    content: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)

    # Search results shown alongside an assistant answer:
    # [{content, score, metadata: {title, upload_date, type, document_id}}]
    sources: Mapped[list | None] = mapped_column(JSONType, nullable=True)

    created_at: Mapped[dt.datetime] = _created_at_column()

    def __repr__(self) -> str:
        return f"<ChatMessage(id={self.id}, role='{self.role}')>"


# =============================================================================
# Productivity Domains
# =============================================================================


class Todo(Base):
    """A to-do item."""

    __tablename__ = "todos"
    __table_args__ = (
        CheckConstraint(
            "priority IN ('low', 'medium', 'high')", name="ck_todos_priority",
        ),
    )

    id: Mapped[uuid.UUID] = _id_column()
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    priority: Mapped[str] = mapped_column(String(10), nullable=False, default="medium")
    due_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[dt.datetime] = _created_at_column()

    def __repr__(self) -> str:
        return f"<Todo(id={self.id}, title='{self.title}', completed={self.completed})>"


class Event(Base):
    """A calendar event."""

    __tablename__ = "events"

    id: Mapped[uuid.UUID] = _id_column()
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[dt.datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[dt.datetime] = _created_at_column()

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title='{self.title}', start={self.start_date})>"


class Note(Base):
    """A free-form note. `updated_at` is set explicitly on every edit."""

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = _id_column()
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    tags: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    created_at: Mapped[dt.datetime] = _created_at_column()
    updated_at: Mapped[dt.datetime] = _created_at_column()

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, title='{self.title}')>"


class Goal(Base):
    """
    A numeric goal (e.g. "read 12 books").

    status flips to "completed" when current_value reaches target_value.
    """

    __tablename__ = "goals"
    __table_args__ = (
        CheckConstraint("status IN ('active', 'completed')", name="ck_goals_status"),
    )

    id: Mapped[uuid.UUID] = _id_column()
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    target_value: Mapped[float] = mapped_column(Float, nullable=False)
    current_value: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    unit: Mapped[str | None] = mapped_column(String(50), nullable=True)
    deadline: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    created_at: Mapped[dt.datetime] = _created_at_column()

    def __repr__(self) -> str:
        return (
            f"<Goal(id={self.id}, title='{self.title}', "
            f"{self.current_value}/{self.target_value})>"
        )


class Habit(Base):
    """A recurring habit with a streak counter."""

    __tablename__ = "habits"
    __table_args__ = (
        CheckConstraint(
            "frequency IN ('daily', 'weekly', 'monthly')", name="ck_habits_frequency",
        ),
    )

    id: Mapped[uuid.UUID] = _id_column()
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    frequency: Mapped[str] = mapped_column(String(10), nullable=False, default="daily")
    streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[dt.datetime] = _created_at_column()

    def __repr__(self) -> str:
        return f"<Habit(id={self.id}, name='{self.name}', streak={self.streak})>"


class Expense(Base):
    """An income or expense transaction."""

    __tablename__ = "expenses"
    __table_args__ = (
        CheckConstraint("type IN ('income', 'expense')", name="ck_expenses_type"),
    )

    id: Mapped[uuid.UUID] = _id_column()
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    type: Mapped[str] = mapped_column(String(10), nullable=False, default="expense")
    created_at: Mapped[dt.datetime] = _created_at_column()

    def __repr__(self) -> str:
        return f"<Expense(id={self.id}, {self.type} {self.amount} {self.category})>"


# =============================================================================
# Database Indexes
# =============================================================================
# Every list endpoint sorts by a timestamp; these back those sorts.
# =============================================================================

document_upload_date_idx = Index("idx_documents_upload_date", Document.upload_date)
chat_message_created_idx = Index("idx_chat_messages_created_at", ChatMessage.created_at)
event_start_date_idx = Index("idx_events_start_date", Event.start_date)
note_updated_at_idx = Index("idx_notes_updated_at", Note.updated_at)
expense_date_idx = Index("idx_expenses_date", Expense.date)
