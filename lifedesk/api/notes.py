# =============================================================================
# Notes API
# =============================================================================
#
#   GET    /notes?q=...   — most recently updated first, optional search
#   POST   /notes         — tags as a list or "a, b, c"
#   PUT    /notes/{id}    — edit; always bumps updated_at
#   DELETE /notes/{id}
#
# Search is a case-insensitive substring match over title, content and
# tags, done in Python after loading the rows (tags are a JSON column).
# =============================================================================

from __future__ import annotations

import datetime as dt
import logging
import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lifedesk.api.deps import apply_updates, get_object_or_404
from lifedesk.db.engine import get_async_session
from lifedesk.db.models import Note
from lifedesk.models.requests import NoteCreate, NoteUpdate
from lifedesk.models.responses import NoteResponse
from lifedesk.services.stats import note_matches

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Notes"])


@router.get("/notes", response_model=list[NoteResponse], summary="List notes")
async def list_notes(
    q: str | None = Query(default=None, description="Search title, content and tags"),
    session: AsyncSession = Depends(get_async_session),
) -> list[NoteResponse]:
    stmt = select(Note).order_by(Note.updated_at.desc())
    notes = (await session.execute(stmt)).scalars().all()
    if q:
        notes = [note for note in notes if note_matches(note, q)]
    return [NoteResponse.model_validate(n) for n in notes]


@router.post("/notes", response_model=NoteResponse, status_code=201, summary="Create a note")
async def create_note(
    request: NoteCreate,
    session: AsyncSession = Depends(get_async_session),
) -> NoteResponse:
    note = Note(**request.model_dump())
    session.add(note)
    await session.flush()

    logger.info("Note created: id=%s, tags=%s", note.id, note.tags)
    return NoteResponse.model_validate(note)


@router.put("/notes/{note_id}", response_model=NoteResponse, summary="Update a note")
async def update_note(
    note_id: uuid.UUID,
    request: NoteUpdate,
    session: AsyncSession = Depends(get_async_session),
) -> NoteResponse:
    note = await get_object_or_404(session, Note, note_id)
    apply_updates(note, request)
    note.updated_at = dt.datetime.now(dt.UTC)
    await session.flush()
    return NoteResponse.model_validate(note)


@router.delete("/notes/{note_id}", status_code=204, summary="Delete a note")
async def delete_note(
    note_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
) -> None:
    note = await get_object_or_404(session, Note, note_id)
    await session.delete(note)
