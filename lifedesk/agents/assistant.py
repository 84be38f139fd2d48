# =============================================================================
# Assistant Agent — Prompted Answer Generation
# =============================================================================
#
# Takes the joined document context and the user's question, fills the
# prompt template and makes one completion call.
#
# DESIGN DECISION: Generation never raises.
# Any provider failure (missing key, quota, safety block, network) is
# turned into a readable answer string. The chat transcript then records
# what the user saw, and the HTTP layer always returns 200 for a question
# that reached this step.
#
# ERROR MAPPING (substring match on the exception message):
#   "API_KEY" / "api key" → invalid key message
#   "quota"               → quota exceeded message
#   "SAFETY"              → safety block message
#   anything else         → generic apology quoting the message
# =============================================================================

from __future__ import annotations

import logging

from lifedesk.services.llm import LLMProvider, get_llm_provider

logger = logging.getLogger(__name__)


PROMPT_TEMPLATE = """
You are a helpful personal AI assistant with access to the user's documents and personal information. Answer the user's question based on the provided context from their personal documents.

Context from user's documents:
{context}

Question: {question}

Please provide a comprehensive and personalized answer based on the context provided. If the context doesn't contain enough information to answer the question, please say so.
"""

INVALID_KEY_MESSAGE = (
    "Error: Invalid API key. Please check your model API configuration."
)
QUOTA_MESSAGE = "Error: API quota exceeded. Please try again later."
SAFETY_MESSAGE = (
    "The content was blocked for safety reasons. "
    "Please try rephrasing your question."
)


def build_prompt(question: str, context: str) -> str:
    return PROMPT_TEMPLATE.format(context=context, question=question)


def error_to_message(exc: BaseException) -> str:
    """Map a provider failure to the text shown in place of an answer."""
    message = str(exc) or exc.__class__.__name__
    lowered = message.lower()

    if "API_KEY" in message or "api key" in lowered:
        return INVALID_KEY_MESSAGE
    if "quota" in lowered:
        return QUOTA_MESSAGE
    if "SAFETY" in message:
        return SAFETY_MESSAGE
    return (
        "I apologize, but I encountered an error while generating a "
        f"response: {message}. Please try again."
    )


async def generate_response(
    question: str,
    context: str,
    llm: LLMProvider | None = None,
) -> str:
    """
    Answer `question` from `context` with the configured model.

    Provider construction happens inside the guarded block, so a missing
    API key also comes back as a message rather than an exception.
    """
    logger.info(
        "Generating response: question='%s', context=%d chars",
        question[:80], len(context),
    )

    try:
        provider = llm or get_llm_provider()
        response = await provider.complete(build_prompt(question, context))
    except Exception as exc:
        logger.warning("Generation failed: %s", exc)
        return error_to_message(exc)

    logger.info(
        "Generation complete: model=%s, tokens=%d+%d",
        response.model, response.input_tokens, response.output_tokens,
    )
    return response.content
