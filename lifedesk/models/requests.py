# =============================================================================
# API Request Models — Pydantic V2 Schemas
# =============================================================================
#
# These models define the shape of data coming INTO the API. FastAPI uses
# them for body validation (automatic 422 errors) and the OpenAPI docs.
#
# Conventions:
# - `XCreate` bodies carry required fields; `XUpdate` bodies make every
#   field optional and routes apply only the fields the client sent
#   (`model_dump(exclude_unset=True)`).
# - Titles and names are trimmed; a blank value is rejected.
# - Enum-like fields use `Literal` and mirror the table CHECK constraints.
# =============================================================================

import datetime as dt
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from lifedesk.services.stats import parse_tags, utc_today

# Trimmed, non-blank text
NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)]

Priority = Literal["low", "medium", "high"]
Frequency = Literal["daily", "weekly", "monthly"]
TransactionType = Literal["income", "expense"]


# ---------------------------------------------------------------------------
# Chat & Documents
# ---------------------------------------------------------------------------


class ChatRequest(BaseModel):
    """
    Request body for POST /chat.

    Example:
        {"message": "What did I write about the kitchen renovation?"}
    """

    message: NonBlank = Field(
        ...,
        max_length=4000,
        description="The question to answer from the knowledge base",
        examples=["What did I write about the kitchen renovation?"],
    )


class TextDocumentCreate(BaseModel):
    """Request body for POST /documents/text — a typed or dictated document."""

    title: Title
    content: NonBlank

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"title": "Allergy list", "content": "Penicillin, peanuts."},
            ]
        }
    )


# ---------------------------------------------------------------------------
# Todos
# ---------------------------------------------------------------------------


class TodoCreate(BaseModel):
    title: Title
    description: str | None = None
    priority: Priority = "medium"
    due_date: dt.date | None = None


class TodoUpdate(BaseModel):
    title: Title | None = None
    description: str | None = None
    completed: bool | None = None
    priority: Priority | None = None
    due_date: dt.date | None = None


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class EventCreate(BaseModel):
    title: Title
    description: str | None = None
    start_date: dt.datetime
    end_date: dt.datetime | None = None
    location: str | None = None


class EventUpdate(BaseModel):
    title: Title | None = None
    description: str | None = None
    start_date: dt.datetime | None = None
    end_date: dt.datetime | None = None
    location: str | None = None


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


class NoteCreate(BaseModel):
    """
    Request body for POST /notes.

    `tags` accepts a list or a comma-separated string:
        {"title": "Ideas", "tags": "work, q3"}  →  tags ["work", "q3"]
    """

    title: Title
    content: str = ""
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, value):
        return parse_tags(value)


class NoteUpdate(BaseModel):
    title: Title | None = None
    content: str | None = None
    tags: list[str] | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, value):
        return None if value is None else parse_tags(value)


# ---------------------------------------------------------------------------
# Goals & Habits
# ---------------------------------------------------------------------------


class GoalCreate(BaseModel):
    title: Title
    description: str | None = None
    category: str | None = Field(default=None, max_length=100)
    target_value: float = Field(..., gt=0)
    unit: str | None = Field(default=None, max_length=50)
    deadline: dt.date | None = None


class GoalProgress(BaseModel):
    """Request body for POST /goals/{id}/progress — the new absolute value."""

    current_value: float = Field(..., ge=0)


class HabitCreate(BaseModel):
    name: Title
    description: str | None = None
    frequency: Frequency = "daily"


class HabitUpdate(BaseModel):
    name: Title | None = None
    description: str | None = None
    frequency: Frequency | None = None
    active: bool | None = None


# ---------------------------------------------------------------------------
# Finance
# ---------------------------------------------------------------------------


class ExpenseCreate(BaseModel):
    """
    Request body for POST /expenses.

    Example:
        {"amount": 42.5, "category": "Food & Dining", "type": "expense",
         "date": "2024-05-03", "description": "Groceries"}
    """

    amount: float = Field(..., gt=0)
    category: NonBlank = Field(..., max_length=100)
    description: str = ""
    date: dt.date = Field(default_factory=utc_today)
    type: TransactionType = "expense"
