"""
Homebase Assistant — Household Service.

UI-agnostic entry points. A UI adapter (the Telegram bot today) calls only
this service:

- quick_command / parse_and_execute: deterministic quick-command path.
- handle_turn / chat: open conversation through the tool-calling assistant.
- dispatch_action: perform a suggested action the user confirmed.

None of these raise; failures come back as answers.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import TYPE_CHECKING

from homebase.config import settings
from homebase.core.action_dispatcher import ActionDispatcher, DispatchResult
from homebase.core.assistant import AssistantReply, ReplyOutcome, run_tool_loop
from homebase.core.command_executor import (
    CommandData,
    CommandResult,
    build_search_result_answer,
    execute_command,
)
from homebase.core.command_parser import Intent, ParsedCommand, normalize_query, parse_command
from homebase.core.household_context import (
    build_household_context,
    make_household_system_prompt,
    month_bounds,
    read_category,
    summarize_spending,
)
from homebase.core.household_tools import HouseholdToolExecutor
from homebase.core.search import search_household
from homebase.data.models import Appointment, Bill, GrowthRecord, ServiceContact, Vehicle
from homebase.ports.store_port import StoreError

if TYPE_CHECKING:
    from homebase.core.command_executor import CommandAction
    from homebase.ports.chat_port import ChatModelPort
    from homebase.ports.device_port import DevicePort
    from homebase.ports.store_port import StorePort

logger = logging.getLogger(__name__)

NOT_CONFIGURED_MESSAGE = "The assistant isn't set up yet. Add an LLM_API_KEY to enable conversations."


def _previous_month(today: date) -> date:
    return today.replace(day=1) - timedelta(days=1)


class HouseholdService:
    """Stateless orchestration over the store, the chat model and the device."""

    def __init__(
        self,
        store: StorePort,
        chat_model: ChatModelPort | None = None,
        device: DevicePort | None = None,
        history_limit: int | None = None,
        max_tool_rounds: int | None = None,
    ) -> None:
        self._store = store
        self._chat_model = chat_model
        self._dispatcher = ActionDispatcher(store, device)
        self._history_limit = history_limit if history_limit is not None else settings.CHAT_HISTORY_LIMIT
        self._max_rounds = max_tool_rounds if max_tool_rounds is not None else settings.ASSISTANT_MAX_TOOL_ROUNDS

    @property
    def assistant_enabled(self) -> bool:
        return self._chat_model is not None

    # ------------------------------------------------------------------
    # Quick commands
    # ------------------------------------------------------------------

    @staticmethod
    def parse_and_execute(query: str, data: CommandData, today: date | None = None) -> CommandResult:
        """Pure quick-command path over caller-supplied data."""
        return execute_command(parse_command(query), data, today)

    def quick_command(self, user_id: str, query: str, today: date | None = None) -> CommandResult:
        """Parse query and answer it from this user's stored data."""
        today = today or settings.local_today()
        parsed = parse_command(query)

        if parsed.intent is Intent.SEARCH:
            if not normalize_query(query):
                return execute_command(parsed, CommandData(), today)
            results = search_household(self._store, user_id, query)
            summary = results.summary()
            return CommandResult(
                answer=build_search_result_answer(summary),
                actions=results.actions(),
                search_summary=summary,
            )

        data = self.load_command_data(user_id, parsed, today)
        return execute_command(parsed, data, today)

    def load_command_data(self, user_id: str, parsed: ParsedCommand, today: date) -> CommandData:
        """Read everything the executor may need. Failed reads come back empty."""
        store = self._store
        period_day = _previous_month(today) if parsed.entities.get("period") == "last_month" else today
        start, end = month_bounds(period_day)

        spending = read_category(
            "spending",
            lambda: summarize_spending(store.select(
                "transactions", user_id,
                where={"date": [(">=", start), ("<=", end)], "type": "expense"},
            )),
            summarize_spending([]),
        )
        return CommandData(
            bills=read_category(
                "bills",
                lambda: [Bill.from_row(r) for r in store.select(
                    "bills", user_id, where={"status": ("!=", "cancelled")}, order_by=["due_date"],
                )],
                [],
            ),
            growth_records=read_category(
                "growth records",
                lambda: [GrowthRecord.from_row(r) for r in store.select("growth_records", user_id)],
                [],
            ),
            vehicles=read_category(
                "vehicles",
                lambda: [Vehicle.from_row(r) for r in store.select("vehicles", user_id)],
                [],
            ),
            home_service_contacts=read_category(
                "home service contacts",
                lambda: [ServiceContact.from_row(r) for r in store.select("home_service_contacts", user_id)],
                [],
            ),
            appointments=read_category(
                "appointments",
                lambda: [Appointment.from_row(r) for r in store.select(
                    "appointments", user_id,
                    where={"appointment_date": (">=", today.isoformat())},
                    order_by=["appointment_date", "appointment_time"],
                )],
                [],
            ),
            spending_by_category=spending.by_category,
            spending_total=spending.total,
        )

    # ------------------------------------------------------------------
    # Conversation
    # ------------------------------------------------------------------

    async def handle_turn(
        self, user_id: str, prior_messages: list[dict], text: str, today: date | None = None,
    ) -> AssistantReply:
        """One assistant turn over a freshly built household snapshot."""
        if self._chat_model is None:
            return AssistantReply(ReplyOutcome.MODEL_ERROR, NOT_CONFIGURED_MESSAGE)

        today = today or settings.local_today()
        ctx = build_household_context(self._store, user_id, today)
        return await run_tool_loop(
            self._chat_model,
            make_household_system_prompt(ctx, today),
            prior_messages,
            text,
            HouseholdToolExecutor(self._store, user_id, today),
            max_rounds=self._max_rounds,
        )

    def load_history(self, user_id: str) -> list[dict]:
        """Last history_limit chat messages, oldest first."""
        rows = read_category(
            "chat history",
            lambda: self._store.select(
                "chat_messages", user_id, order_by=["-created_at"], limit=self._history_limit,
            ),
            [],
        )
        return [{"role": r["role"], "content": r["content"]} for r in reversed(rows)]

    def _save_message(self, user_id: str, role: str, content: str) -> None:
        try:
            self._store.insert("chat_messages", user_id, {"role": role, "content": content})
        except StoreError as exc:
            logger.warning("Could not save %s message for user %s: %s", role, user_id, exc)

    async def chat(self, user_id: str, text: str) -> AssistantReply:
        """handle_turn with history loaded from, and saved to, chat_messages."""
        history = self.load_history(user_id)
        self._save_message(user_id, "user", text)
        reply = await self.handle_turn(user_id, history, text)
        self._save_message(user_id, "assistant", reply.display_text())
        return reply

    # ------------------------------------------------------------------
    # Confirmed actions
    # ------------------------------------------------------------------

    async def dispatch_action(
        self, user_id: str, action: CommandAction, device: DevicePort | None = None,
    ) -> DispatchResult:
        """Perform a confirmed action. device overrides the default for this call."""
        dispatcher = self._dispatcher if device is None else ActionDispatcher(self._store, device)
        return await dispatcher.dispatch(user_id, action)
