"""
Homebase Assistant — Single-shot LLM completions.

One public coroutine, `complete()`, routed to the provider named by
LLM_PROVIDER (openai by default; gemini, anthropic and cohere also work).
Used for prompt-in/text-out jobs such as the daily AI insight pass. The
conversational assistant, which needs tool calling, goes through
ChatModelPort instead.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

# (api_key, model, system, user_message, max_tokens) -> text
_ProviderFn = Callable[[str, str, str, str, int], Awaitable[str]]

# ---------------------------------------------------------------------------
# Provider implementations
# ---------------------------------------------------------------------------


async def _complete_openai(api_key: str, model: str, system: str, user_message: str, max_tokens: int) -> str:
    from openai import AsyncOpenAI

    client = AsyncOpenAI(api_key=api_key)
    response = await client.chat.completions.create(
        model=model,
        max_tokens=max_tokens,
        messages=[
            {"role": "system", "content": system},
            {"role": "user", "content": user_message},
        ],
    )
    return response.choices[0].message.content or ""


async def _complete_anthropic(api_key: str, model: str, system: str, user_message: str, max_tokens: int) -> str:
    import anthropic

    client = anthropic.AsyncAnthropic(api_key=api_key)
    response = await client.messages.create(
        model=model,
        max_tokens=max_tokens,
        system=system,
        messages=[{"role": "user", "content": user_message}],
    )
    return response.content[0].text


async def _complete_gemini(api_key: str, model: str, system: str, user_message: str, max_tokens: int) -> str:
    import google.generativeai as genai

    genai.configure(api_key=api_key)
    gm = genai.GenerativeModel(model_name=model, system_instruction=system)
    response = await gm.generate_content_async(
        user_message,
        generation_config=genai.types.GenerationConfig(max_output_tokens=max_tokens),
    )
    return response.text


async def _complete_cohere(api_key: str, model: str, system: str, user_message: str, max_tokens: int) -> str:
    import cohere

    client = cohere.AsyncClientV2(api_key=api_key)
    response = await client.chat(
        model=model,
        max_tokens=max_tokens,
        messages=[
            {"role": "system", "content": system},
            {"role": "user", "content": user_message},
        ],
    )
    return response.message.content[0].text


_PROVIDERS: dict[str, tuple[_ProviderFn, str]] = {
    "openai":    (_complete_openai,    "gpt-4o-mini"),
    "anthropic": (_complete_anthropic, "claude-haiku-4-5-20251001"),
    "gemini":    (_complete_gemini,    "gemini-2.0-flash"),
    "cohere":    (_complete_cohere,    "command-a-03-2025"),
}


def default_model(provider_name: str) -> str:
    """Return the default model id for a provider, or '' if unknown."""
    entry = _PROVIDERS.get(provider_name.lower())
    return entry[1] if entry else ""


def is_configured() -> bool:
    """True when an API key for the configured provider is present."""
    from homebase.config import settings

    key = settings.LLM_API_KEY
    return bool(key) and not key.startswith("your-")


def _select_provider() -> tuple[_ProviderFn, str, str]:
    """Read settings and return (provider_fn, model, api_key)."""
    from homebase.config import settings

    provider_name = settings.LLM_PROVIDER.lower()
    if provider_name not in _PROVIDERS:
        raise ValueError(
            f"Unknown LLM_PROVIDER={provider_name!r}. "
            f"Supported: {', '.join(_PROVIDERS)}"
        )
    if not is_configured():
        raise ValueError("LLM_API_KEY is not set")

    fn, model = _PROVIDERS[provider_name]
    model = settings.LLM_MODEL or model

    logger.info("LLM provider: %s, model: %s", provider_name, model)
    return fn, model, settings.LLM_API_KEY


# Lazy, populated on first call to complete()
_provider: tuple[_ProviderFn, str, str] | None = None


async def complete(system: str, user_message: str, max_tokens: int = 256) -> str:
    """Send one prompt to the configured provider and return the response text.

    Raises on configuration and API errors; callers decide how to degrade.
    """
    global _provider

    if _provider is None:
        _provider = _select_provider()

    fn, model, api_key = _provider
    return await fn(api_key, model, system, user_message, max_tokens)


def clean_llm_response(raw_text: str) -> str:
    """Strip markdown code fences from a model response."""
    cleaned = raw_text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned.removeprefix("```json")
    elif cleaned.startswith("```"):
        cleaned = cleaned.removeprefix("```")
    if cleaned.endswith("```"):
        cleaned = cleaned.removesuffix("```")
    return cleaned.strip()
