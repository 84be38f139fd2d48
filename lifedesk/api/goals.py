# =============================================================================
# Goals & Habits API
# =============================================================================
#
# GOALS:
#   GET    /goals                 — newest first, with derived progress
#   POST   /goals                 — starts at current_value 0, status active
#   POST   /goals/{id}/progress   — set current_value; status follows it
#   DELETE /goals/{id}
#
# HABITS:
#   GET    /habits                — newest first
#   POST   /habits                — starts with streak 0, active
#   PATCH  /habits/{id}
#   POST   /habits/{id}/track     — streak + 1
#   DELETE /habits/{id}
#
# `progress_percent` and `days_until_deadline` are computed per response
# and never stored.
# =============================================================================

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lifedesk.api.deps import apply_updates, get_object_or_404
from lifedesk.db.engine import get_async_session
from lifedesk.db.models import Goal, Habit
from lifedesk.models.requests import GoalCreate, GoalProgress, HabitCreate, HabitUpdate
from lifedesk.models.responses import GoalResponse, HabitResponse
from lifedesk.services.stats import days_until_deadline, goal_status, progress_percent

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Goals & Habits"])


def _to_goal_response(goal: Goal) -> GoalResponse:
    response = GoalResponse.model_validate(goal)
    response.progress_percent = progress_percent(goal.current_value, goal.target_value)
    response.days_until_deadline = days_until_deadline(goal.deadline)
    return response


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------


@router.get("/goals", response_model=list[GoalResponse], summary="List goals")
async def list_goals(
    session: AsyncSession = Depends(get_async_session),
) -> list[GoalResponse]:
    goals = (await session.execute(select(Goal).order_by(Goal.created_at.desc()))).scalars().all()
    return [_to_goal_response(g) for g in goals]


@router.post("/goals", response_model=GoalResponse, status_code=201, summary="Create a goal")
async def create_goal(
    request: GoalCreate,
    session: AsyncSession = Depends(get_async_session),
) -> GoalResponse:
    goal = Goal(**request.model_dump(), current_value=0, status="active")
    session.add(goal)
    await session.flush()

    logger.info("Goal created: id=%s, target=%s %s", goal.id, goal.target_value, goal.unit or "")
    return _to_goal_response(goal)


@router.post(
    "/goals/{goal_id}/progress", response_model=GoalResponse, summary="Update goal progress",
)
async def update_goal_progress(
    goal_id: uuid.UUID,
    request: GoalProgress,
    session: AsyncSession = Depends(get_async_session),
) -> GoalResponse:
    goal = await get_object_or_404(session, Goal, goal_id)
    goal.current_value = request.current_value
    goal.status = goal_status(goal.current_value, goal.target_value)
    await session.flush()

    logger.info(
        "Goal progress: id=%s, %s/%s (%s)",
        goal.id, goal.current_value, goal.target_value, goal.status,
    )
    return _to_goal_response(goal)


@router.delete("/goals/{goal_id}", status_code=204, summary="Delete a goal")
async def delete_goal(
    goal_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
) -> None:
    goal = await get_object_or_404(session, Goal, goal_id)
    await session.delete(goal)


# ---------------------------------------------------------------------------
# Habits
# ---------------------------------------------------------------------------


@router.get("/habits", response_model=list[HabitResponse], summary="List habits")
async def list_habits(
    session: AsyncSession = Depends(get_async_session),
) -> list[HabitResponse]:
    habits = (await session.execute(select(Habit).order_by(Habit.created_at.desc()))).scalars().all()
    return [HabitResponse.model_validate(h) for h in habits]


@router.post("/habits", response_model=HabitResponse, status_code=201, summary="Create a habit")
async def create_habit(
    request: HabitCreate,
    session: AsyncSession = Depends(get_async_session),
) -> HabitResponse:
    habit = Habit(**request.model_dump(), streak=0, active=True)
    session.add(habit)
    await session.flush()
    return HabitResponse.model_validate(habit)


@router.patch("/habits/{habit_id}", response_model=HabitResponse, summary="Update a habit")
async def update_habit(
    habit_id: uuid.UUID,
    request: HabitUpdate,
    session: AsyncSession = Depends(get_async_session),
) -> HabitResponse:
    habit = await get_object_or_404(session, Habit, habit_id)
    apply_updates(habit, request)
    await session.flush()
    return HabitResponse.model_validate(habit)


@router.post(
    "/habits/{habit_id}/track", response_model=HabitResponse, summary="Record a completion",
)
async def track_habit(
    habit_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
) -> HabitResponse:
    habit = await get_object_or_404(session, Habit, habit_id)
    habit.streak += 1
    await session.flush()

    logger.info("Habit tracked: id=%s, streak=%d", habit.id, habit.streak)
    return HabitResponse.model_validate(habit)


@router.delete("/habits/{habit_id}", status_code=204, summary="Delete a habit")
async def delete_habit(
    habit_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
) -> None:
    habit = await get_object_or_404(session, Habit, habit_id)
    await session.delete(habit)
