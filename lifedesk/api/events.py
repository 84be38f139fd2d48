# =============================================================================
# Calendar Events API
# =============================================================================
#
#   GET    /events?on=YYYY-MM-DD            — events starting that (UTC) day
#   GET    /events?start=...&end=...        — events starting in [start, end)
#   POST   /events
#   PATCH  /events/{id}
#   DELETE /events/{id}
#
# Lists are ordered by start_date ascending. An event's end_date, when
# present, must not precede its start_date (400).
# =============================================================================

from __future__ import annotations

import datetime as dt
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lifedesk.api.deps import apply_updates, get_object_or_404
from lifedesk.db.engine import get_async_session
from lifedesk.db.models import Event
from lifedesk.models.requests import EventCreate, EventUpdate
from lifedesk.models.responses import EventResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Calendar"])


def _as_utc(value: dt.datetime) -> dt.datetime:
    """Naive datetimes are taken as UTC."""
    return value.replace(tzinfo=dt.UTC) if value.tzinfo is None else value.astimezone(dt.UTC)


def _check_range(start: dt.datetime, end: dt.datetime | None) -> None:
    if end is not None and _as_utc(end) < _as_utc(start):
        raise HTTPException(status_code=400, detail="end_date must not precede start_date.")


@router.get("/events", response_model=list[EventResponse], summary="List events")
async def list_events(
    on: dt.date | None = Query(default=None, description="Only events starting on this day"),
    start: dt.datetime | None = Query(default=None, description="Range start (inclusive)"),
    end: dt.datetime | None = Query(default=None, description="Range end (exclusive)"),
    session: AsyncSession = Depends(get_async_session),
) -> list[EventResponse]:
    stmt = select(Event).order_by(Event.start_date.asc())

    if on is not None:
        start = dt.datetime.combine(on, dt.time.min, tzinfo=dt.UTC)
        end = start + dt.timedelta(days=1)
    if start is not None:
        stmt = stmt.where(Event.start_date >= _as_utc(start))
    if end is not None:
        stmt = stmt.where(Event.start_date < _as_utc(end))

    events = (await session.execute(stmt)).scalars().all()
    return [EventResponse.model_validate(e) for e in events]


@router.post("/events", response_model=EventResponse, status_code=201, summary="Create an event")
async def create_event(
    request: EventCreate,
    session: AsyncSession = Depends(get_async_session),
) -> EventResponse:
    _check_range(request.start_date, request.end_date)

    event = Event(**request.model_dump())
    event.start_date = _as_utc(event.start_date)
    if event.end_date is not None:
        event.end_date = _as_utc(event.end_date)
    session.add(event)
    await session.flush()

    logger.info("Event created: id=%s, start=%s", event.id, event.start_date)
    return EventResponse.model_validate(event)


@router.patch("/events/{event_id}", response_model=EventResponse, summary="Update an event")
async def update_event(
    event_id: uuid.UUID,
    request: EventUpdate,
    session: AsyncSession = Depends(get_async_session),
) -> EventResponse:
    event = await get_object_or_404(session, Event, event_id)
    changes = request.model_dump(exclude_unset=True)
    _check_range(
        changes.get("start_date") or event.start_date,
        changes["end_date"] if "end_date" in changes else event.end_date,
    )

    apply_updates(event, request)
    for column in ("start_date", "end_date"):
        value = getattr(event, column)
        if value is not None:
            setattr(event, column, _as_utc(value))
    await session.flush()
    return EventResponse.model_validate(event)


@router.delete("/events/{event_id}", status_code=204, summary="Delete an event")
async def delete_event(
    event_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
) -> None:
    event = await get_object_or_404(session, Event, event_id)
    await session.delete(event)
