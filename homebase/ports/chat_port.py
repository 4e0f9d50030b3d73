"""Chat model port — abstract interface for a tool-calling chat completion.

The assistant depends on this protocol, never on a specific LLM vendor SDK.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


class ChatModelError(Exception):
    """Raised when the chat model is unreachable or answers with an error."""


@dataclass
class ToolCall:
    """A tool invocation requested by the model.

    `arguments` is the raw JSON string exactly as the model produced it.
    """

    id: str
    name: str
    arguments: str = "{}"


@dataclass
class ChatReply:
    content: str | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)


class ChatModelPort(Protocol):
    """Abstract chat interface used by the tool-calling assistant."""

    async def chat(
        self,
        messages: list[dict],
        tools: list[dict] | None = None,
        tool_choice: str | None = None,
    ) -> ChatReply: ...
