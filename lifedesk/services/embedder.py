# =============================================================================
# Embedding Service — Pseudo-Embeddings and OpenAI-Compatible Embeddings
# =============================================================================
#
# Turns text into a fixed-length float vector for similarity search.
#
# Two providers, selected by `settings.embedding_provider`:
#
#   "hash" (default)
#     A deterministic pseudo-embedding derived from a rolling string hash.
#     It is NOT semantic: two texts score as similar only by accident of
#     their hash values. It needs no network access and no API key.
#
#   "openai"
#     Any OpenAI-compatible embeddings endpoint (OpenAI, DashScope, ...),
#     batched, via the OpenAI SDK with a configurable base_url.
#
# PSEUDO-EMBEDDING ALGORITHM:
#   1. h = 0; for each UTF-16 code unit c: h = int32((h << 5) - h + c)
#   2. hash = |h| / 1_000_000
#   3. v[i] = sin(hash * (i + 1)) * cos(hash * (i + 2)),  i = 0..dim-1
#
# The hash walks UTF-16 code units (not code points), so characters outside
# the Basic Multilingual Plane contribute two steps each.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Sequence

from openai import OpenAI

from lifedesk.config import settings

logger = logging.getLogger(__name__)

PSEUDO_EMBEDDING_DIMENSIONS = 384


# ---------------------------------------------------------------------------
# Pseudo-Embedding
# ---------------------------------------------------------------------------


def _to_int32(value: int) -> int:
    """Wrap an integer to a signed 32-bit value (JavaScript `x | 0`)."""
    value &= 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return value


def simple_hash(text: str) -> float:
    """
    Rolling hash of `text`, normalised to a non-negative float.

    The empty string hashes to 0.0.
    """
    encoded = text.encode("utf-16-le")
    h = 0
    for i in range(0, len(encoded), 2):
        code_unit = encoded[i] | (encoded[i + 1] << 8)
        h = _to_int32((h << 5) - h + code_unit)
    return abs(h) / 1_000_000


def pseudo_embedding(
    text: str,
    dimensions: int = PSEUDO_EMBEDDING_DIMENSIONS,
) -> list[float]:
    """Project the hash of `text` into a `dimensions`-long vector."""
    h = simple_hash(text)
    return [math.sin(h * (i + 1)) * math.cos(h * (i + 2)) for i in range(dimensions)]


# ---------------------------------------------------------------------------
# OpenAI-Compatible Client — Lazy Singleton
# ---------------------------------------------------------------------------
# API key resolution order:
#   1. OPENAI_API_KEY
#   2. LLM_API_KEY (one shared key for chat + embeddings)
# ---------------------------------------------------------------------------

_client: OpenAI | None = None


def _get_client() -> OpenAI:
    """Lazily initialize and cache the embedding client."""
    global _client
    if _client is None:
        resolved_key = settings.openai_api_key or settings.llm_api_key
        if not resolved_key:
            raise ValueError(
                "No API key configured for embeddings. "
                "Set OPENAI_API_KEY or LLM_API_KEY in .env"
            )

        client_kwargs: dict = {"api_key": resolved_key}
        if settings.embedding_base_url:
            client_kwargs["base_url"] = settings.embedding_base_url

        _client = OpenAI(**client_kwargs)

        logger.info(
            "Initialized embedding client (model=%s, base_url=%s)",
            settings.embedding_model,
            settings.embedding_base_url or "https://api.openai.com/v1",
        )
    return _client


def embed_batch(
    texts: Sequence[str],
    batch_size: int | None = None,
) -> list[list[float]]:
    """
    Generate embeddings for a batch of texts using an OpenAI-compatible API.

    Processes texts in sub-batches and returns embeddings in the SAME ORDER
    as the input texts.

    Raises:
        ValueError: If no API key is configured.
        openai.APIError: If the API call fails.
    """
    if not texts:
        return []

    client = _get_client()
    _batch_size = batch_size or settings.embedding_batch_size

    all_embeddings: list[list[float]] = [[] for _ in texts]

    for i in range(0, len(texts), _batch_size):
        batch = list(texts[i : i + _batch_size])
        logger.info(
            "Embedding batch %d–%d of %d texts (model=%s)",
            i + 1,
            min(i + _batch_size, len(texts)),
            len(texts),
            settings.embedding_model,
        )

        create_kwargs: dict = {
            "model": settings.embedding_model,
            "input": batch,
        }
        if settings.embedding_dimensions:
            create_kwargs["dimensions"] = settings.embedding_dimensions

        response = client.embeddings.create(**create_kwargs)

        # Items carry their input index; order by it explicitly.
        for item in sorted(response.data, key=lambda x: x.index):
            all_embeddings[i + item.index] = item.embedding

    return all_embeddings


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def generate_embedding(text: str) -> list[float]:
    """
    Embed a single document or query with the configured provider.

    The OpenAI client is synchronous; its call runs in a worker thread so
    the event loop stays free.
    """
    if settings.embedding_provider == "openai":
        result = await asyncio.to_thread(embed_batch, [text], 1)
        return result[0]

    return pseudo_embedding(text, settings.embedding_dimensions)
