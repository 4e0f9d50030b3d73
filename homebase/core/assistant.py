"""
Homebase Assistant — Tool-calling loop.

Runs one conversational turn: send the conversation plus the household tool
catalog to the chat model, execute whatever tools it asks for, feed the
results back, and repeat until the model answers in plain text or the round
budget runs out.

All loop state lives in local variables, so concurrent turns never share
anything.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from homebase.core.household_tools import HOUSEHOLD_TOOLS
from homebase.ports.chat_port import ChatModelError

if TYPE_CHECKING:
    from homebase.ports.chat_port import ChatModelPort, ToolCall

logger = logging.getLogger(__name__)

MAX_TOOL_ROUNDS = 5
ROUND_LIMIT_MESSAGE = "I hit a limit on actions. Please try again with a shorter request."
MODEL_ERROR_MESSAGE = "Sorry, I couldn't reach the assistant right now. Please try again in a moment."
EMPTY_REPLY_TEXT = "Done."

ExecuteTool = Callable[[str, dict[str, Any]], Awaitable[str]]


class ReplyOutcome(Enum):
    ANSWERED = "answered"          # model replied with text
    EMPTY = "empty"                # model replied with nothing
    ROUND_LIMIT = "round_limit"
    MODEL_ERROR = "model_error"


@dataclass
class ToolUse:
    name: str
    args: dict[str, Any]
    result: str


@dataclass
class AssistantReply:
    outcome: ReplyOutcome
    content: str = ""
    tools_used: list[ToolUse] = field(default_factory=list)

    def display_text(self) -> str:
        """Text to show the user. An empty model reply reads as 'Done.'."""
        if self.outcome is ReplyOutcome.EMPTY:
            return EMPTY_REPLY_TEXT
        return self.content


def parse_tool_arguments(raw: str | None) -> dict[str, Any]:
    """Decode a tool call's JSON arguments; anything but a JSON object is {}."""
    try:
        args = json.loads(raw or "{}")
    except (TypeError, ValueError):
        logger.debug("Discarding malformed tool arguments: %r", raw)
        return {}
    return args if isinstance(args, dict) else {}


def _assistant_tool_message(content: str | None, tool_calls: list[ToolCall]) -> dict:
    return {
        "role": "assistant",
        "content": content,
        "tool_calls": [
            {
                "id": tc.id,
                "type": "function",
                "function": {"name": tc.name, "arguments": tc.arguments},
            }
            for tc in tool_calls
        ],
    }


async def run_tool_loop(
    chat_model: ChatModelPort,
    system_prompt: str,
    prior_messages: list[dict],
    user_message: str,
    execute_tool: ExecuteTool,
    max_rounds: int = MAX_TOOL_ROUNDS,
) -> AssistantReply:
    """Run one assistant turn. Never raises; failures come back as an outcome."""
    messages: list[dict] = [
        {"role": "system", "content": system_prompt},
        *prior_messages,
        {"role": "user", "content": user_message},
    ]
    tools_used: list[ToolUse] = []
    rounds_remaining = max_rounds

    while rounds_remaining > 0:
        try:
            reply = await chat_model.chat(messages, tools=HOUSEHOLD_TOOLS, tool_choice="auto")
        except ChatModelError as exc:
            logger.error("Chat model failed: %s", exc)
            return AssistantReply(ReplyOutcome.MODEL_ERROR, MODEL_ERROR_MESSAGE, tools_used)

        content = (reply.content or "").strip()
        if not reply.tool_calls:
            outcome = ReplyOutcome.ANSWERED if content else ReplyOutcome.EMPTY
            return AssistantReply(outcome, content, tools_used)

        messages.append(_assistant_tool_message(content or None, reply.tool_calls))
        for tc in reply.tool_calls:
            args = parse_tool_arguments(tc.arguments)
            result = await execute_tool(tc.name, args)
            logger.info("Tool %s -> %s", tc.name, result[:120])
            tools_used.append(ToolUse(name=tc.name, args=args, result=result))
            messages.append({"role": "tool", "tool_call_id": tc.id, "content": result})

        rounds_remaining -= 1

    logger.warning("Tool loop stopped after %d rounds", max_rounds)
    return AssistantReply(ReplyOutcome.ROUND_LIMIT, ROUND_LIMIT_MESSAGE, tools_used)
