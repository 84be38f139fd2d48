# =============================================================================
# Todos API
# =============================================================================
#
#   GET    /todos?filter=all|active|completed — newest first
#   POST   /todos                             — create (priority defaults to medium)
#   PATCH  /todos/{id}                        — partial update
#   POST   /todos/{id}/toggle                 — flip `completed`
#   DELETE /todos/{id}
# =============================================================================

from __future__ import annotations

import logging
import uuid
from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lifedesk.api.deps import apply_updates, get_object_or_404
from lifedesk.db.engine import get_async_session
from lifedesk.db.models import Todo
from lifedesk.models.requests import TodoCreate, TodoUpdate
from lifedesk.models.responses import TodoResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Todos"])


@router.get("/todos", response_model=list[TodoResponse], summary="List todos")
async def list_todos(
    filter: Literal["all", "active", "completed"] = Query(default="all"),
    session: AsyncSession = Depends(get_async_session),
) -> list[TodoResponse]:
    stmt = select(Todo).order_by(Todo.created_at.desc())
    if filter == "active":
        stmt = stmt.where(Todo.completed.is_(False))
    elif filter == "completed":
        stmt = stmt.where(Todo.completed.is_(True))

    todos = (await session.execute(stmt)).scalars().all()
    return [TodoResponse.model_validate(t) for t in todos]


@router.post("/todos", response_model=TodoResponse, status_code=201, summary="Create a todo")
async def create_todo(
    request: TodoCreate,
    session: AsyncSession = Depends(get_async_session),
) -> TodoResponse:
    todo = Todo(**request.model_dump())
    session.add(todo)
    await session.flush()

    logger.info("Todo created: id=%s, title='%s'", todo.id, todo.title)
    return TodoResponse.model_validate(todo)


@router.patch("/todos/{todo_id}", response_model=TodoResponse, summary="Update a todo")
async def update_todo(
    todo_id: uuid.UUID,
    request: TodoUpdate,
    session: AsyncSession = Depends(get_async_session),
) -> TodoResponse:
    todo = await get_object_or_404(session, Todo, todo_id)
    apply_updates(todo, request)
    await session.flush()
    return TodoResponse.model_validate(todo)


@router.post(
    "/todos/{todo_id}/toggle", response_model=TodoResponse, summary="Toggle completion",
)
async def toggle_todo(
    todo_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
) -> TodoResponse:
    todo = await get_object_or_404(session, Todo, todo_id)
    todo.completed = not todo.completed
    await session.flush()

    logger.info("Todo toggled: id=%s, completed=%s", todo.id, todo.completed)
    return TodoResponse.model_validate(todo)


@router.delete("/todos/{todo_id}", status_code=204, summary="Delete a todo")
async def delete_todo(
    todo_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
) -> None:
    todo = await get_object_or_404(session, Todo, todo_id)
    await session.delete(todo)
