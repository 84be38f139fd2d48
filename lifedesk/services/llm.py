# =============================================================================
# LLM Providers — Single-Turn Completions
# =============================================================================
#
# The chat assistant makes exactly one completion call per question. This
# module hides which vendor serves that call.
#
#   LLMProvider (Protocol)
#   ├── OpenAICompatibleProvider — default; Gemini via Google's
#   │                               OpenAI-compatible endpoint, or any other
#   │                               OpenAI-style API (OpenAI, DeepSeek, ...)
#   ├── AnthropicProvider        — Claude via the native Anthropic SDK
#   └── get_llm_provider()       — lazy singleton built from settings
#
# DESIGN DECISION: Native SDKs, async clients.
# Both SDKs ship async clients that fit FastAPI's event loop directly.
#
# DESIGN DECISION: No retry here.
# The SDKs' own retry defaults apply; callers turn any remaining failure
# into a user-facing message (see agents/assistant.py).
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from lifedesk.config import settings

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Completion text plus the usage numbers the vendor reported."""

    content: str
    model: str
    input_tokens: int
    output_tokens: int


class LLMProvider(Protocol):
    """Anything with an async `complete()` can answer chat questions."""

    async def complete(
        self,
        prompt: str,
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        ...


# ---------------------------------------------------------------------------
# OpenAI-Compatible (default: Gemini)
# ---------------------------------------------------------------------------


class OpenAICompatibleProvider:
    """
    Chat completions over the OpenAI wire format.

    API key resolution order:
      1. explicit `api_key` argument
      2. LLM_API_KEY
      3. GEMINI_API_KEY (the default base URL is Gemini's)
      4. OPENAI_API_KEY
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
    ) -> None:
        from openai import AsyncOpenAI

        resolved_key = (
            api_key
            or settings.llm_api_key
            or settings.gemini_api_key
            or settings.openai_api_key
        )
        if not resolved_key:
            raise ValueError(
                "No API key configured for the chat model. "
                "Set LLM_API_KEY or GEMINI_API_KEY in .env"
            )

        client_kwargs: dict = {"api_key": resolved_key}
        resolved_base_url = base_url or settings.llm_base_url
        if resolved_base_url:
            client_kwargs["base_url"] = resolved_base_url

        self._client = AsyncOpenAI(**client_kwargs)
        self._model = model or settings.llm_model

        logger.info(
            "Initialized OpenAICompatibleProvider (model=%s, base_url=%s)",
            self._model,
            resolved_base_url or "https://api.openai.com/v1",
        )

    async def complete(
        self,
        prompt: str,
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        response = await self._client.chat.completions.create(
            model=self._model,
            messages=messages,
            max_tokens=max_tokens or settings.llm_max_tokens,
            temperature=settings.llm_temperature if temperature is None else temperature,
        )

        usage = response.usage
        return LLMResponse(
            content=response.choices[0].message.content or "",
            model=response.model or self._model,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
        )


# ---------------------------------------------------------------------------
# Anthropic (Claude)
# ---------------------------------------------------------------------------


class AnthropicProvider:
    """
    Claude via AsyncAnthropic.

    Anthropic takes the system prompt as a top-level `system=` kwarg, not as
    a message with role "system".
    """

    def __init__(self, api_key: str | None = None, model: str | None = None) -> None:
        from anthropic import AsyncAnthropic

        resolved_key = api_key or settings.llm_api_key or settings.anthropic_api_key
        if not resolved_key:
            raise ValueError(
                "No Anthropic API key configured. Set LLM_API_KEY or "
                "ANTHROPIC_API_KEY in .env"
            )

        self._client = AsyncAnthropic(api_key=resolved_key)
        self._model = model or settings.llm_model

        logger.info("Initialized AnthropicProvider (model=%s)", self._model)

    async def complete(
        self,
        prompt: str,
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        kwargs: dict = {
            "model": self._model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens or settings.llm_max_tokens,
            "temperature": settings.llm_temperature if temperature is None else temperature,
        }
        if system:
            kwargs["system"] = system

        response = await self._client.messages.create(**kwargs)

        content = ""
        for block in response.content:
            if block.type == "text":
                content = block.text
                break

        return LLMResponse(
            content=content,
            model=response.model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

_provider: LLMProvider | None = None


def get_llm_provider() -> LLMProvider:
    """
    Return the configured provider, creating it on first use.

    Raises:
        ValueError: If the provider name is unknown or its API key is missing.
    """
    global _provider
    if _provider is None:
        if settings.llm_provider == "openai_compatible":
            _provider = OpenAICompatibleProvider()
        elif settings.llm_provider == "anthropic":
            _provider = AnthropicProvider()
        else:
            raise ValueError(
                f"Unknown LLM_PROVIDER '{settings.llm_provider}'. "
                "Supported: 'openai_compatible', 'anthropic'"
            )
    return _provider
