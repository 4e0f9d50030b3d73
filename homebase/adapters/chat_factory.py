"""Chat model factory — creates the right adapter based on config."""

from __future__ import annotations

import logging

from homebase.config import settings
from homebase.core.llm import default_model
from homebase.ports.chat_port import ChatModelPort

logger = logging.getLogger(__name__)


def create_chat_model() -> ChatModelPort | None:
    """Return the tool-calling chat adapter for LLM_PROVIDER.

    Returns None when no API key is configured or the provider has no
    tool-calling adapter: the bot then answers every message through the
    quick-command path, and single-shot completions keep working.
    """
    if not settings.LLM_API_KEY or settings.LLM_API_KEY.startswith("your-"):
        return None

    provider = settings.LLM_PROVIDER.lower()

    if provider == "openai":
        from homebase.adapters.openai_chat import OpenAIChatModel

        return OpenAIChatModel(
            api_key=settings.LLM_API_KEY,
            model=settings.LLM_MODEL or default_model(provider),
        )

    logger.warning(
        "LLM_PROVIDER=%r has no tool-calling adapter; conversational assistant disabled", provider,
    )
    return None
