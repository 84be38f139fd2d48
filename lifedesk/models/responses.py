# =============================================================================
# API Response Models — Pydantic V2 Schemas
# =============================================================================
#
# These models define the shape of data coming OUT of the API.
#
# DESIGN DECISION: Separate response models from DB models.
# Document rows carry the full text and a float vector; the document list
# exposes neither. Response models control exactly what is serialised.
#
# Row models use `from_attributes=True` so routes can return ORM objects
# directly (`TodoResponse.model_validate(todo)`).
# =============================================================================

import datetime as dt
import uuid

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    """Response for GET /health — confirms the API is running."""

    status: str = "ok"
    version: str
    service: str


# ---------------------------------------------------------------------------
# Documents & Chat
# ---------------------------------------------------------------------------


class DocumentResponse(BaseModel):
    """Document metadata. Never includes the content or the embedding."""

    id: uuid.UUID
    title: str
    file_type: str
    file_path: str | None = None
    token_count: int | None = None
    upload_date: dt.datetime

    model_config = ConfigDict(from_attributes=True)


class UploadResponse(BaseModel):
    """Response for POST /documents/upload — one entry per stored file."""

    documents: list[DocumentResponse]


class SourceMetadata(BaseModel):
    title: str
    upload_date: str | None = None
    type: str
    document_id: str | None = None


class Source(BaseModel):
    """
    A document used to answer a chat question.

    `score` is the cosine similarity between the question's and the
    document's pseudo-embedding, in [-1, 1].
    """

    content: str
    score: float
    metadata: SourceMetadata


class ChatResponse(BaseModel):
    response: str = Field(description="The assistant's answer (or an error explanation)")
    sources: list[Source] = Field(
        description="Documents considered for the answer, best match first"
    )


class ChatMessageResponse(BaseModel):
    id: uuid.UUID
    content: str
    role: str
    sources: list[Source] | None = None
    created_at: dt.datetime

    model_config = ConfigDict(from_attributes=True)


class ClearedResponse(BaseModel):
    deleted: int


# ---------------------------------------------------------------------------
# Productivity Domains
# ---------------------------------------------------------------------------


class TodoResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: str | None
    completed: bool
    priority: str
    due_date: dt.date | None
    created_at: dt.datetime

    model_config = ConfigDict(from_attributes=True)


class EventResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: str | None
    start_date: dt.datetime
    end_date: dt.datetime | None
    location: str | None
    created_at: dt.datetime

    model_config = ConfigDict(from_attributes=True)


class NoteResponse(BaseModel):
    id: uuid.UUID
    title: str
    content: str
    tags: list[str]
    created_at: dt.datetime
    updated_at: dt.datetime

    model_config = ConfigDict(from_attributes=True)


class GoalResponse(BaseModel):
    """A goal plus the values derived from it at read time."""

    id: uuid.UUID
    title: str
    description: str | None
    category: str | None
    target_value: float
    current_value: float
    unit: str | None
    deadline: dt.date | None
    status: str
    created_at: dt.datetime
    progress_percent: float = 0.0
    days_until_deadline: int | None = None

    model_config = ConfigDict(from_attributes=True)


class HabitResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None
    frequency: str
    streak: int
    active: bool
    created_at: dt.datetime

    model_config = ConfigDict(from_attributes=True)


class ExpenseResponse(BaseModel):
    id: uuid.UUID
    amount: float
    category: str
    description: str
    date: dt.date
    type: str
    created_at: dt.datetime

    model_config = ConfigDict(from_attributes=True)


class CategoryTotalResponse(BaseModel):
    category: str
    total: float
    count: int

    model_config = ConfigDict(from_attributes=True)


class FinanceSummaryResponse(BaseModel):
    month: str
    total_income: float
    total_expenses: float
    net: float
    categories: list[CategoryTotalResponse]

    model_config = ConfigDict(from_attributes=True)


class CategoriesResponse(BaseModel):
    expense: list[str]
    income: list[str]


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


class DashboardStats(BaseModel):
    total_todos: int
    completed_todos: int
    completion_rate: int = Field(description="Completed todos as a rounded percentage")
    upcoming_events: int = Field(description="Events starting within the next 7 days")
    total_goals: int
    active_habits: int
    monthly_expenses: float = Field(description="Sum of this month's expenses")
    total_notes: int


class Activity(BaseModel):
    type: str
    title: str
    date: dt.datetime


class DashboardResponse(BaseModel):
    stats: DashboardStats
    recent_activities: list[Activity]
