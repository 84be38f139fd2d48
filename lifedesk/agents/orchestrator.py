# =============================================================================
# LangGraph Orchestrator — RAG Chat Pipeline
# =============================================================================
#
# Wires the chat turn into a LangGraph StateGraph:
#
#   START ──▶ save_question ──▶ retrieve ──┬──▶ generate ─────┬──▶ save_answer ──▶ END
#                                          └──▶ no_documents ─┘
#
# 1. save_question — persist the user's message
# 2. retrieve      — scan every document, keep the top K by cosine score
# 3. generate      — top-3 contents as context, one completion call
#    no_documents  — canned reply when the corpus is empty
# 4. save_answer   — persist the assistant's message (with sources)
#
# DESIGN DECISION: Message persistence is best-effort.
# Saving a chat message uses its own short-lived session and logs failures
# instead of raising. A broken transcript table must not stop the user
# from getting an answer.
#
# DESIGN DECISION: Graph compiled once at module level.
# The compiled graph is reused across requests. The request's database
# session travels in the state; there is no checkpointer, so the state
# never needs to be serialisable.
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

from langgraph.graph import END, START, StateGraph
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from typing_extensions import TypedDict

from lifedesk.agents.assistant import generate_response
from lifedesk.config import settings
from lifedesk.db.engine import async_session_factory
from lifedesk.db.models import ChatMessage
from lifedesk.services.llm import LLMProvider
from lifedesk.services.retrieval import SearchResult, build_context, search_documents

logger = logging.getLogger(__name__)

NO_DOCUMENTS_RESPONSE = (
    "I don't have any relevant documents to answer your question. "
    "Please upload some documents first."
)


# ---------------------------------------------------------------------------
# Agent State Schema
# ---------------------------------------------------------------------------


class ChatState(TypedDict, total=False):
    """
    State that flows through the chat graph.

    total=False so nodes only return the keys they update.
    """

    # --- Input ---
    question: str
    session: AsyncSession
    llm_override: LLMProvider | None

    # --- Intermediate ---
    results: list[SearchResult]
    context: str

    # --- Output ---
    response: str
    sources: list[dict[str, Any]]


# ---------------------------------------------------------------------------
# Chat Transcript
# ---------------------------------------------------------------------------


async def save_chat_message(
    content: str,
    role: str,
    sources: list[dict[str, Any]] | None = None,
) -> None:
    """Insert one chat message in its own transaction; failures are logged."""
    try:
        async with async_session_factory() as session:
            session.add(ChatMessage(content=content, role=role, sources=sources))
            await session.commit()
    except Exception as exc:
        logger.warning("Failed to save %s chat message: %s", role, exc)


async def get_chat_history(
    session: AsyncSession,
    limit: int | None = None,
) -> list[ChatMessage]:
    """The most recent `limit` messages, oldest first."""
    n = settings.chat_history_limit if limit is None else limit
    stmt = select(ChatMessage).order_by(ChatMessage.created_at.desc()).limit(n)
    rows = list((await session.execute(stmt)).scalars().all())
    rows.reverse()
    return rows


async def clear_chat_history(session: AsyncSession) -> int:
    """Delete every chat message; returns how many were removed."""
    result = await session.execute(delete(ChatMessage))
    logger.info("Cleared %d chat messages", result.rowcount)
    return result.rowcount or 0


# ---------------------------------------------------------------------------
# Node Functions
# ---------------------------------------------------------------------------


async def save_question_node(state: ChatState) -> dict:
    await save_chat_message(state["question"], "user")
    return {}


async def retrieve_node(state: ChatState) -> dict:
    results = await search_documents(state["session"], state["question"])
    logger.info("Found %d relevant documents", len(results))
    return {"results": results}


def route_after_retrieve(state: ChatState) -> str:
    """Skip generation when nothing was found."""
    return "generate" if state.get("results") else "no_documents"


async def no_documents_node(state: ChatState) -> dict:
    logger.info("No documents in the knowledge base; returning canned reply")
    return {"response": NO_DOCUMENTS_RESPONSE, "sources": []}


async def generate_node(state: ChatState) -> dict:
    results = state["results"]
    context = build_context(results)
    response = await generate_response(
        state["question"], context, llm=state.get("llm_override"),
    )
    return {
        "context": context,
        "response": response,
        "sources": [result.to_dict() for result in results],
    }


async def save_answer_node(state: ChatState) -> dict:
    # The canned reply is stored without a sources column value.
    await save_chat_message(
        state["response"], "assistant", state.get("sources") or None,
    )
    return {}


# ---------------------------------------------------------------------------
# Graph Assembly
# ---------------------------------------------------------------------------

_builder = StateGraph(ChatState)
_builder.add_node("save_question", save_question_node)
_builder.add_node("retrieve", retrieve_node)
_builder.add_node("generate", generate_node)
_builder.add_node("no_documents", no_documents_node)
_builder.add_node("save_answer", save_answer_node)

_builder.add_edge(START, "save_question")
_builder.add_edge("save_question", "retrieve")
_builder.add_conditional_edges(
    "retrieve",
    route_after_retrieve,
    {"generate": "generate", "no_documents": "no_documents"},
)
_builder.add_edge("generate", "save_answer")
_builder.add_edge("no_documents", "save_answer")
_builder.add_edge("save_answer", END)

graph = _builder.compile()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def process_query(
    question: str,
    session: AsyncSession,
    llm: LLMProvider | None = None,
) -> dict[str, Any]:
    """
    Run one chat turn and return `{"response": str, "sources": [...]}`.

    Raises whatever document retrieval raises (database or embedding
    provider errors); generation errors come back as the response text.
    """
    initial_state: ChatState = {"question": question, "session": session}
    if llm is not None:
        initial_state["llm_override"] = llm

    logger.info("Processing query: '%s'", question[:80])
    result = await graph.ainvoke(initial_state)
    logger.info(
        "Query complete: %d sources, response=%d chars",
        len(result.get("sources", [])), len(result.get("response", "")),
    )

    return {"response": result["response"], "sources": result.get("sources", [])}
