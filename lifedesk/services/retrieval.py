# =============================================================================
# Retrieval Service — Brute-Force Cosine Similarity Scan
# =============================================================================
#
# Stores documents with their embedding and finds the ones most similar to
# a query.
#
# DESIGN DECISION: Full scan, no index.
# Every search loads all (content, embedding) rows and scores them in
# Python. Cost is O(n) per query in the number of documents. A personal
# knowledge base holds tens to hundreds of rows, where a scan is
# instantaneous and needs no vector extension in the database.
#
# SEARCH PIPELINE:
#   1. Embed the query (same provider as the stored rows)
#   2. Load every document row
#   3. Score each row: cosine_similarity(query, row.embedding)
#   4. Stable sort by score, descending; keep the top K
#   5. (caller) Join the top 3 contents into the prompt context
# =============================================================================

from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lifedesk.config import settings
from lifedesk.db.models import Document
from lifedesk.services.embedder import generate_embedding
from lifedesk.services.tokens import count_tokens, truncate_to_tokens

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class SearchResult:
    """
    A single scored document from a similarity search.

    `metadata` holds title, upload_date (ISO string), type and document_id.
    """

    content: str
    score: float
    metadata: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"content": self.content, "score": self.score, "metadata": self.metadata}


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of `a` against `b`.

    - Either vector empty → 0.0
    - `b` shorter than `a` → missing components count as 0
    - Either magnitude zero → 0.0
    """
    if not a or not b:
        return 0.0

    dot = sum(value * (b[i] if i < len(b) else 0.0) for i, value in enumerate(a))
    magnitude_a = math.sqrt(sum(value * value for value in a))
    magnitude_b = math.sqrt(sum(value * value for value in b))
    if magnitude_a == 0 or magnitude_b == 0:
        return 0.0
    return dot / (magnitude_a * magnitude_b)


def rank_documents(
    query_embedding: Sequence[float],
    documents: Iterable[Document],
    top_k: int,
) -> list[SearchResult]:
    """Score every document against the query and keep the best `top_k`."""
    results = [
        SearchResult(
            content=doc.content,
            score=cosine_similarity(query_embedding, doc.embedding or []),
            metadata={
                "title": doc.title,
                "upload_date": doc.upload_date.isoformat() if doc.upload_date else None,
                "type": doc.file_type,
                "document_id": str(doc.id),
            },
        )
        for doc in documents
    ]
    results.sort(key=lambda r: r.score, reverse=True)
    return results[: max(top_k, 0)]


def build_context(
    results: Sequence[SearchResult],
    max_documents: int | None = None,
    max_tokens: int | None = None,
) -> str:
    """
    Join the contents of the best results into the prompt context.

    Blocks are separated by a blank line. The joined text is capped at
    `max_tokens` (default: settings.retrieval_context_max_tokens).
    """
    n = settings.retrieval_context_documents if max_documents is None else max_documents
    budget = settings.retrieval_context_max_tokens if max_tokens is None else max_tokens

    context = "\n\n".join(result.content for result in results[:n])
    return truncate_to_tokens(context, budget)


# ---------------------------------------------------------------------------
# Storage & Search
# ---------------------------------------------------------------------------


async def store_document(
    session: AsyncSession,
    title: str,
    content: str,
    file_type: str,
    file_path: str | None = None,
) -> Document:
    """Embed `content` and insert a document row (flushed, not committed)."""
    embedding = await generate_embedding(content)

    document = Document(
        title=title,
        content=content,
        file_path=file_path,
        file_type=file_type,
        token_count=count_tokens(content),
        embedding=embedding,
    )
    session.add(document)
    await session.flush()

    logger.info(
        "Stored document id=%s title='%s' (%d chars, %d dims)",
        document.id, title, len(content), len(embedding),
    )
    return document


async def search_documents(
    session: AsyncSession,
    query: str,
    top_k: int | None = None,
) -> list[SearchResult]:
    """Return the `top_k` documents most similar to `query`."""
    k = settings.retrieval_top_k if top_k is None else top_k
    query_embedding = await generate_embedding(query)

    rows = (await session.execute(select(Document))).scalars().all()
    if not rows:
        logger.info("No documents to search")
        return []

    results = rank_documents(query_embedding, rows, k)
    logger.info(
        "Scanned %d documents, returning %d (top score=%.4f)",
        len(rows), len(results), results[0].score if results else 0.0,
    )
    return results


async def list_documents(session: AsyncSession) -> list[Document]:
    """All documents, newest first."""
    stmt = select(Document).order_by(Document.upload_date.desc())
    return list((await session.execute(stmt)).scalars().all())


async def delete_document(session: AsyncSession, document_id: uuid.UUID) -> Document | None:
    """Delete a document row; returns the deleted row or None if missing."""
    document = await session.get(Document, document_id)
    if document is None:
        return None
    await session.delete(document)
    await session.flush()
    logger.info("Deleted document id=%s", document_id)
    return document
