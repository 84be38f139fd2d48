# =============================================================================
# Shared Route Helpers
# =============================================================================
#
# Small helpers used by every CRUD router:
#
# 1. get_object_or_404() — load a row by primary key or raise 404
# 2. apply_updates()     — copy the fields a client actually sent onto a row
#
# Sessions come from `lifedesk.db.engine.get_async_session` via Depends.
# =============================================================================

from __future__ import annotations

import logging
import uuid
from typing import TypeVar

from fastapi import HTTPException
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from lifedesk.db.models import Base

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


async def get_object_or_404(
    session: AsyncSession,
    model: type[ModelT],
    object_id: uuid.UUID,
    label: str | None = None,
) -> ModelT:
    """Fetch `model` by id; raises HTTPException 404 when missing."""
    obj = await session.get(model, object_id)
    if obj is None:
        name = label or model.__name__
        raise HTTPException(status_code=404, detail=f"{name} {object_id} not found.")
    return obj


def apply_updates(obj: Base, update: BaseModel) -> dict:
    """
    Set every field present in the request body; return what changed.

    Fields the client omitted are left alone. An explicit null clears a
    nullable column and is rejected with 400 for a required one.
    """
    changes = update.model_dump(exclude_unset=True)
    columns = obj.__table__.columns
    for field_name, value in changes.items():
        if value is None and not columns[field_name].nullable:
            raise HTTPException(
                status_code=400, detail=f"'{field_name}' cannot be null.",
            )
    for field_name, value in changes.items():
        setattr(obj, field_name, value)
    return changes
