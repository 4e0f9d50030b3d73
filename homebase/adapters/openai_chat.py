"""OpenAI chat adapter — implements ChatModelPort.

Wraps the OpenAI chat-completions endpoint with function calling. Any SDK
error is re-raised as ChatModelError so the assistant can degrade cleanly.
"""

from __future__ import annotations

import logging

from openai import AsyncOpenAI, OpenAIError

from homebase.ports.chat_port import ChatModelError, ChatReply, ToolCall

logger = logging.getLogger(__name__)


class OpenAIChatModel:
    """OpenAI implementation of ChatModelPort."""

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", max_tokens: int = 600) -> None:
        self._client = AsyncOpenAI(api_key=api_key)
        self._model = model
        self._max_tokens = max_tokens

    async def chat(
        self,
        messages: list[dict],
        tools: list[dict] | None = None,
        tool_choice: str | None = None,
    ) -> ChatReply:
        kwargs: dict = {
            "model": self._model,
            "messages": messages,
            "max_tokens": self._max_tokens,
        }
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = tool_choice or "auto"

        try:
            response = await self._client.chat.completions.create(**kwargs)
        except OpenAIError as exc:
            raise ChatModelError(f"OpenAI request failed: {exc}") from exc

        if not response.choices:
            raise ChatModelError("No response from assistant")

        message = response.choices[0].message
        tool_calls = [
            ToolCall(id=tc.id, name=tc.function.name, arguments=tc.function.arguments or "")
            for tc in (message.tool_calls or [])
        ]
        logger.debug("Chat reply: content=%r, tool_calls=%d", message.content, len(tool_calls))
        return ChatReply(content=message.content, tool_calls=tool_calls)
