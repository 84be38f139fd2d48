# =============================================================================
# Token Counting — tiktoken
# =============================================================================
#
# Counts and trims text by tokens rather than characters, so the numbers
# match what a language model sees. Used for:
#   - documents.token_count (shown in the document list)
#   - the token budget applied to the RAG prompt context
#
# cl100k_base is the encoding shared by current OpenAI chat and embedding
# models; for other providers it is a close approximation.
# =============================================================================

from __future__ import annotations

import logging

import tiktoken

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Tiktoken Encoder — Cached Singleton
# ---------------------------------------------------------------------------
# Loading the encoder reads a ~1.7MB BPE file from disk, so it is created
# once per process.
# ---------------------------------------------------------------------------

_encoder: tiktoken.Encoding | None = None


def _get_encoder() -> tiktoken.Encoding:
    """Lazily initialize and cache the tiktoken encoder."""
    global _encoder
    if _encoder is None:
        _encoder = tiktoken.get_encoding("cl100k_base")
    return _encoder


def count_tokens(text: str) -> int:
    """Number of cl100k_base tokens in `text`."""
    if not text:
        return 0
    return len(_get_encoder().encode(text))


def truncate_to_tokens(text: str, max_tokens: int) -> str:
    """
    Return `text` cut to at most `max_tokens` tokens.

    The text is returned unchanged when it already fits. The cut is at an
    exact token boundary, so the tail may end mid-word.
    """
    if max_tokens <= 0:
        return ""

    encoder = _get_encoder()
    tokens = encoder.encode(text)
    if len(tokens) <= max_tokens:
        return text

    logger.info(
        "Truncating text from %d to %d tokens", len(tokens), max_tokens,
    )
    return encoder.decode(tokens[:max_tokens])
