# =============================================================================
# Multi-Provider LLM Abstraction - Pluggable AI Backend
# =============================================================================
#
# Provides a common interface for LLM completions, with concrete
# implementations for Anthropic (Claude) and OpenAI-compatible APIs
# (OpenAI, Gemini's OpenAI endpoint, DeepSeek, Qwen, ...).
#
# The SDK clients are built with their own retries disabled: timeouts and
# retries for question analysis are applied uniformly by analysis.py.
#
# ARCHITECTURE:
#   LLMProvider (Protocol)
#   ├── AnthropicProvider        - Claude via native Anthropic SDK
#   │   └── complete()           - system prompt as top-level kwarg
#   ├── OpenAICompatibleProvider - Any OpenAI-compatible API
#   │   └── complete()           - system prompt as message role
#   └── get_llm_provider()       - Singleton factory, reads from config
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from studentqa.config import settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class LLMResponse:
    """
    Standardised response from any LLM provider.

    Normalises the Anthropic and OpenAI response formats into a single
    structure that the analysis collaborators consume.
    """

    content: str           # The generated text
    model: str             # Model identifier (e.g., "claude-sonnet-4-6")
    input_tokens: int      # Tokens consumed by the prompt
    output_tokens: int     # Tokens generated in the response


# ---------------------------------------------------------------------------
# Protocol Definition
# ---------------------------------------------------------------------------


class LLMProvider(Protocol):
    """
    Protocol defining the LLM provider interface.

    `name` identifies the provider in LLM analysis audit records.
    """

    name: str

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """
        Generate a completion from the LLM.

        Args:
            messages: Conversation messages as dicts with "role" and "content".
                Roles: "user", "assistant" (no "system" - use the system param).
            system: System prompt for the LLM. Handled differently per provider:
                - Anthropic: top-level `system=` kwarg
                - OpenAI: prepended as {"role": "system", ...} message
            temperature: Override sampling temperature (default from config).
            max_tokens: Override max output tokens (default from config).

        Returns:
            LLMResponse with generated text and usage metrics.
        """
        ...


# ---------------------------------------------------------------------------
# Implementation 1: Anthropic (Claude)
# ---------------------------------------------------------------------------


class AnthropicProvider:
    """
    Anthropic Claude provider using the native SDK.

    Anthropic takes system prompts as a top-level `system=` kwarg, NOT as a
    message with role "system".
    """

    name = "anthropic"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
    ) -> None:
        from anthropic import AsyncAnthropic

        resolved_key = api_key or settings.llm_api_key or settings.anthropic_api_key
        if not resolved_key:
            raise ValueError(
                "No Anthropic API key configured. Set LLM_API_KEY or "
                "ANTHROPIC_API_KEY in .env"
            )

        self._client = AsyncAnthropic(
            api_key=resolved_key,
            timeout=settings.llm_request_timeout_seconds,
            max_retries=0,
        )
        self._model = model or settings.llm_model
        self._temperature = settings.llm_temperature
        self._max_tokens = settings.llm_max_tokens

        logger.info(
            "Initialized AnthropicProvider (model=%s)", self._model
        )

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Generate a completion using Claude."""
        kwargs: dict = {
            "model": self._model,
            "messages": messages,
            "max_tokens": max_tokens or self._max_tokens,
            "temperature": temperature or self._temperature,
        }

        if system:
            kwargs["system"] = system

        response = await self._client.messages.create(**kwargs)

        # Extract text from the first content block
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
# Implementation 2: OpenAI-Compatible
# ---------------------------------------------------------------------------


class OpenAICompatibleProvider:
    """
    Provider for any API that follows the OpenAI chat completions API.

    Switching providers is a config change:
        LLM_PROVIDER=openai_compatible
        LLM_BASE_URL=https://generativelanguage.googleapis.com/v1beta/openai/
        LLM_API_KEY=your-key
        LLM_MODEL=gemini-1.5-flash
    """

    name = "openai_compatible"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
    ) -> None:
        from openai import AsyncOpenAI

        resolved_key = api_key or settings.llm_api_key or settings.openai_api_key
        if not resolved_key:
            raise ValueError(
                "No API key configured for OpenAI-compatible provider. "
                "Set LLM_API_KEY in .env"
            )

        client_kwargs: dict = {
            "api_key": resolved_key,
            "timeout": settings.llm_request_timeout_seconds,
            "max_retries": 0,
        }
        resolved_base_url = base_url or settings.llm_base_url
        if resolved_base_url:
            client_kwargs["base_url"] = resolved_base_url

        self._client = AsyncOpenAI(**client_kwargs)
        self._model = model or settings.llm_model
        self._temperature = settings.llm_temperature
        self._max_tokens = settings.llm_max_tokens

        logger.info(
            "Initialized OpenAICompatibleProvider (model=%s, base_url=%s)",
            self._model,
            resolved_base_url or "https://api.openai.com/v1",
        )

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Generate a completion using an OpenAI-compatible API."""
        # OpenAI: system prompt goes as the first message
        all_messages: list[dict[str, str]] = []
        if system:
            all_messages.append({"role": "system", "content": system})
        all_messages.extend(messages)

        response = await self._client.chat.completions.create(
            model=self._model,
            messages=all_messages,
            max_tokens=max_tokens or self._max_tokens,
            temperature=temperature or self._temperature,
        )

        content = response.choices[0].message.content or ""

        # Token counts: OpenAI uses different field names than Anthropic
        usage = response.usage
        input_tokens = usage.prompt_tokens if usage else 0
        output_tokens = usage.completion_tokens if usage else 0

        return LLMResponse(
            content=content,
            model=response.model or self._model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

# Lazy singleton - avoid re-creating client on every request
_provider: AnthropicProvider | OpenAICompatibleProvider | None = None


def get_llm_provider() -> AnthropicProvider | OpenAICompatibleProvider:
    """
    Factory that returns the configured LLM provider.

    Reads `llm_provider` from settings:
    - "anthropic" → AnthropicProvider (Claude)
    - "openai_compatible" → OpenAICompatibleProvider

    Raises:
        ValueError: The selected provider has no API key configured.
    """
    global _provider
    if _provider is None:
        if settings.llm_provider == "openai_compatible":
            _provider = OpenAICompatibleProvider()
        else:
            _provider = AnthropicProvider()
    return _provider
