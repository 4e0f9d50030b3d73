"""
Homebase Assistant — Household tools.

The four tools the conversational assistant may call, as an OpenAI-style
function catalog, and the executor that runs them against the store.

Every tool answers with a string that is fed back to the model. Bad input,
unresolvable bills and store failures all become explanatory strings; a
tool never raises into the tool loop.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Any

from homebase.data.models import Bill

if TYPE_CHECKING:
    from homebase.ports.store_port import StorePort

logger = logging.getLogger(__name__)

TOOL_NAMES = ("add_reminder", "add_to_list", "mark_paid", "schedule_appointment")


def _function(name: str, description: str, properties: dict, required: list[str]) -> dict:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {"type": "object", "properties": properties, "required": required},
        },
    }


HOUSEHOLD_TOOLS: list[dict] = [
    _function(
        "add_reminder",
        'Create a reminder for the user. Use for "remind me to X in Y time" or "don\'t forget to X".',
        {
            "title": {"type": "string", "description": "Short reminder text, e.g. Renew car registration"},
            "reminder_date": {"type": "string", "description": "Date in YYYY-MM-DD format"},
            "reminder_time": {"type": "string", "description": "Optional time, e.g. 09:00"},
        },
        ["title", "reminder_date"],
    ),
    _function(
        "add_to_list",
        "Add an item to the household shopping list.",
        {"item": {"type": "string", "description": "The item to add, e.g. milk"}},
        ["item"],
    ),
    _function(
        "mark_paid",
        "Mark a bill as paid. Use when the user says they paid a bill.",
        {
            "bill_id": {"type": "string", "description": "UUID of the bill if known"},
            "bill_name": {"type": "string", "description": "Name of the bill to mark paid, e.g. electric bill or TXU"},
        },
        [],
    ),
    _function(
        "schedule_appointment",
        "Schedule an appointment or event (e.g. haircut, dentist, meeting).",
        {
            "title": {"type": "string", "description": "Title of the appointment"},
            "appointment_date": {"type": "string", "description": "Date YYYY-MM-DD"},
            "appointment_time": {"type": "string", "description": "Optional time, e.g. 14:00"},
            "location": {"type": "string", "description": "Optional location"},
        },
        ["title", "appointment_date"],
    ),
]


def _text(args: dict, key: str) -> str:
    value = args.get(key)
    return value.strip() if isinstance(value, str) else ""


class HouseholdToolExecutor:
    """Runs assistant tool calls for one user.

    Usage:
        execute = HouseholdToolExecutor(store, user_id)
        result = await execute("add_to_list", {"item": "milk"})
    """

    def __init__(self, store: StorePort, user_id: str, today: date | None = None) -> None:
        self._store = store
        self._user_id = user_id
        self._today = today or date.today()
        self._tools = {
            "add_reminder": self._add_reminder,
            "add_to_list": self._add_to_list,
            "mark_paid": self._mark_paid,
            "schedule_appointment": self._schedule_appointment,
        }

    async def __call__(self, name: str, args: dict[str, Any]) -> str:
        tool = self._tools.get(name)
        if tool is None:
            return f"Unknown tool: {name}"
        try:
            return tool(args if isinstance(args, dict) else {})
        except Exception as exc:
            logger.error("Tool %s failed for user %s: %s", name, self._user_id, exc)
            return f"Error running {name}: {exc}"

    def _add_reminder(self, args: dict) -> str:
        title = _text(args, "title")
        when = _text(args, "reminder_date")
        if not title or not when:
            return "Missing title or reminder_date; reminder not added."
        time = _text(args, "reminder_time") or None
        self._store.insert("appointments", self._user_id, {
            "title": f"Reminder: {title}",
            "appointment_date": when,
            "appointment_time": time,
        })
        logger.info("Tool add_reminder: %r on %s for user %s", title, when, self._user_id)
        return f"Reminder added: {title} on {when}" + (f" at {time}." if time else ".")

    def _add_to_list(self, args: dict) -> str:
        item = _text(args, "item")
        if not item:
            return "No item given; nothing added to the shopping list."
        self._store.insert("shopping_list", self._user_id, {"item": item, "completed": 0})
        logger.info("Tool add_to_list: %r for user %s", item, self._user_id)
        return f'Added "{item}" to the shopping list.'

    def _resolve_bill(self, bill_id: str, bill_name: str) -> Bill | None:
        """Explicit id, then bill-name substring, then provider substring. First match wins."""
        rows = self._store.select(
            "bills", self._user_id,
            where={"status": [("!=", "paid"), ("!=", "cancelled")]},
            order_by=["due_date"],
        )
        bills = [Bill.from_row(r) for r in rows]
        if bill_id:
            match = next((b for b in bills if b.id == bill_id), None)
            if match:
                return match
        term = bill_name.lower()
        if not term:
            return None
        return (
            next((b for b in bills if term in b.bill_name.lower()), None)
            or next((b for b in bills if term in (b.provider_name or "").lower()), None)
        )

    def _mark_paid(self, args: dict) -> str:
        bill = self._resolve_bill(_text(args, "bill_id"), _text(args, "bill_name"))
        not_found = "Could not find a matching unpaid bill."
        if bill is None:
            return not_found
        updated = self._store.update(
            "bills", self._user_id,
            where={"id": bill.id, "status": ("!=", "paid")},
            patch={"status": "paid", "paid_date": self._today.isoformat(), "paid_amount": bill.amount},
        )
        if updated == 0:
            return not_found
        logger.info("Tool mark_paid: bill %s for user %s", bill.id, self._user_id)
        return f"Marked {bill.display_name} as paid (${bill.amount:.2f})."

    def _schedule_appointment(self, args: dict) -> str:
        title = _text(args, "title")
        when = _text(args, "appointment_date")
        if not title or not when:
            return "Missing title or appointment_date; appointment not scheduled."
        time = _text(args, "appointment_time") or None
        location = _text(args, "location") or None
        self._store.insert("appointments", self._user_id, {
            "title": title,
            "appointment_date": when,
            "appointment_time": time,
            "location": location,
        })
        logger.info("Tool schedule_appointment: %r on %s for user %s", title, when, self._user_id)
        details = when + (f" at {time}" if time else "") + (f" ({location})" if location else "")
        return f"Scheduled {title} on {details}."
