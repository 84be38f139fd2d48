# =============================================================================
# Chat API — RAG Question Answering and Transcript
# =============================================================================
#
# ENDPOINTS:
#   POST   /chat          — run one chat turn through the LangGraph pipeline
#   GET    /chat/history  — the most recent messages, oldest first
#   DELETE /chat/history  — clear the transcript
#
# The pipeline lives in agents/orchestrator.py; this module only validates
# input, translates failures to HTTP errors and maps the result.
#
# ERROR HANDLING:
#   - Generation failures come back as answer text (200), never as errors
#   - Missing embedding configuration → 503 Service Unavailable
#   - Embedding API / database errors during retrieval → 502 Bad Gateway
# =============================================================================

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from lifedesk.agents.orchestrator import clear_chat_history, get_chat_history, process_query
from lifedesk.db.engine import get_async_session
from lifedesk.models.requests import ChatRequest
from lifedesk.models.responses import ChatMessageResponse, ChatResponse, ClearedResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Chat"])

MAX_HISTORY_LIMIT = 500


@router.post(
    "/chat",
    response_model=ChatResponse,
    summary="Ask the assistant a question about your documents",
    description=(
        "Searches every stored document, passes the three best matches to "
        "the language model as context and returns its answer together "
        "with the top matches. Both the question and the answer are "
        "appended to the chat history."
    ),
)
async def chat(
    request: ChatRequest,
    session: AsyncSession = Depends(get_async_session),
) -> ChatResponse:
    try:
        result = await process_query(request.message, session)
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        raise HTTPException(
            status_code=503, detail=f"Service configuration error: {e}",
        ) from e
    except Exception as e:
        logger.exception("Chat pipeline failed: %s", e)
        raise HTTPException(
            status_code=502, detail=f"Retrieval service error: {e}",
        ) from e

    return ChatResponse(**result)


@router.get(
    "/chat/history",
    response_model=list[ChatMessageResponse],
    summary="Get chat history",
)
async def chat_history(
    limit: int | None = Query(
        default=None,
        ge=1,
        le=MAX_HISTORY_LIMIT,
        description="Number of most recent messages (default 50)",
    ),
    session: AsyncSession = Depends(get_async_session),
) -> list[ChatMessageResponse]:
    messages = await get_chat_history(session, limit)
    return [ChatMessageResponse.model_validate(m) for m in messages]


@router.delete(
    "/chat/history",
    response_model=ClearedResponse,
    summary="Clear chat history",
)
async def delete_chat_history(
    session: AsyncSession = Depends(get_async_session),
) -> ClearedResponse:
    deleted = await clear_chat_history(session)
    return ClearedResponse(deleted=deleted)
