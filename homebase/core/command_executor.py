"""
Homebase Assistant — Command Executor.

Turns a ParsedCommand plus pre-loaded household data into an answer and up
to three suggested actions. Pure: nothing here reads or writes the store.
Mutating intents only *propose* an action; the Action Dispatcher performs it
once the user confirms.

Wherever several records match, the first one in input order wins.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any

from homebase.core.command_parser import Intent, ParsedCommand
from homebase.data.models import Appointment, Bill, GrowthRecord, ServiceContact, Vehicle

logger = logging.getLogger(__name__)

ACTION_TYPES = ("navigate", "open_url", "call", "create_reminder", "mark_bill_paid")

SEARCH_PROMPT = "Type to search across bills, documents, vehicles, pets, appointments, and more."
NOTHING_FOUND = "I didn't find anything matching that."

_PERIOD_LABELS = {"this_month": "this month", "last_month": "last month"}
_NON_DIGITS = re.compile(r"\D")


@dataclass(frozen=True)
class CommandAction:
    """A suggested follow-up the UI renders as a button."""

    label: str
    type: str                         # one of ACTION_TYPES
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class CommandResult:
    answer: str
    actions: list[CommandAction] = field(default_factory=list)
    search_summary: dict[str, int] | None = None


@dataclass
class CommandData:
    """Household data the executor works over, loaded by the caller."""

    bills: list[Bill] = field(default_factory=list)
    growth_records: list[GrowthRecord] = field(default_factory=list)
    vehicles: list[Vehicle] = field(default_factory=list)
    home_service_contacts: list[ServiceContact] = field(default_factory=list)
    appointments: list[Appointment] = field(default_factory=list)
    spending_by_category: dict[str, float] = field(default_factory=dict)
    spending_total: float = 0.0


def _navigate(label: str, route: str) -> CommandAction:
    return CommandAction(label=label, type="navigate", payload={"route": route, "params": {}})


def _fmt_date(iso: str, pattern: str) -> str:
    """Format an ISO date; leave unparseable values as they are."""
    try:
        d = date.fromisoformat(iso)
    except (TypeError, ValueError):
        return iso or "—"
    if pattern == "long":
        return f"{d:%B} {d.day}, {d.year}"
    if pattern == "weekday":
        return f"{d:%A, %b} {d.day}"
    return f"{d:%b} {d.day}, {d.year}"


def _matches(term: str, *values: str | None) -> bool:
    return any(term in (v or "").lower() for v in values)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def resolve_reminder_date(when: str | None, today: date | None = None) -> str:
    """Resolve a relative reminder slot to YYYY-MM-DD.

    'tomorrow' is today+1, 'next_week' is today+7, anything else today+1.
    """
    today = today or date.today()
    days = 7 if when == "next_week" else 1
    return (today + timedelta(days=days)).isoformat()


def bills_due_this_week(bills: list[Bill], today: date | None = None) -> list[Bill]:
    """Pending bills with due_date in [today, today+7], both ends inclusive."""
    today = today or date.today()
    start, end = today.isoformat(), (today + timedelta(days=7)).isoformat()
    return [b for b in bills if b.status == "pending" and start <= b.due_date <= end]


def build_search_result_answer(summary: dict[str, int]) -> str:
    """Render search counts: 'I found 2 bills, 1 pets.' (zero counts skipped)."""
    parts = [f"{n} {kind}" for kind, n in summary.items() if n > 0]
    if not parts:
        return NOTHING_FOUND
    return f"I found {', '.join(parts)}."


# ---------------------------------------------------------------------------
# Per-intent handlers
# ---------------------------------------------------------------------------


def _bills_due_week(entities: dict, data: CommandData, today: date) -> CommandResult:
    due = bills_due_this_week(data.bills, today)
    if not due:
        return CommandResult(answer="You have no bills due this week.")
    total = sum(b.amount for b in due)
    noun = "bill" if len(due) == 1 else "bills"
    return CommandResult(
        answer=f"I found {len(due)} {noun} due this week (${total:.2f} total).",
        actions=[_navigate("Show bills", "/bills")],
    )


def _shoe_size(entities: dict, data: CommandData, today: date) -> CommandResult:
    person = entities.get("person_name")
    name = (person or "").lower()
    records = [r for r in data.growth_records if not name or name in r.name.lower()]
    records.sort(key=lambda r: r.record_date, reverse=True)
    if not records:
        answer = (
            f"I don't have a shoe size on file for {person}."
            if person else "I don't have any growth records with shoe size."
        )
        return CommandResult(answer=answer, actions=[_navigate("Add growth record", "/growth-records/new")])

    latest = records[0]
    size = latest.shoe_size or "not recorded"
    return CommandResult(
        answer=(
            f"{latest.name}'s latest shoe size is {size} "
            f"(recorded {_fmt_date(latest.record_date, 'short')})."
        ),
        actions=[_navigate("View growth records", "/growth-records")],
    )


def _add_reminder(entities: dict, data: CommandData, today: date) -> CommandResult:
    title = entities.get("reminder_title") or "Reminder"
    when = resolve_reminder_date(entities.get("reminder_when") or "tomorrow", today)
    return CommandResult(
        answer=f'I\'ll add a reminder: "{title}" for {_fmt_date(when, "weekday")}.',
        actions=[
            CommandAction(
                label="Add reminder",
                type="create_reminder",
                payload={"title": title, "appointment_date": when},
            )
        ],
    )


def _spending_summary(entities: dict, data: CommandData, today: date) -> CommandResult:
    period = _PERIOD_LABELS.get(entities.get("period") or "", "this month")
    actions = [_navigate("View transactions", "/transactions")]
    category = (entities.get("category") or "").lower()

    if category:
        key = next((k for k in data.spending_by_category if category in k.lower()), None)
        amount = data.spending_by_category.get(key, 0.0) if key else 0.0
        if amount > 0:
            return CommandResult(answer=f"You spent ${amount:.2f} on {key} {period}.", actions=actions)
        return CommandResult(answer=f'I didn\'t find spending for "{category}" {period}.', actions=actions)

    if data.spending_total > 0:
        return CommandResult(answer=f"You spent ${data.spending_total:.2f} {period} total.", actions=actions)
    return CommandResult(answer=f"No spending data for {period}.", actions=actions)


def _registration_due(entities: dict, data: CommandData, today: date) -> CommandResult:
    with_reg = [v for v in data.vehicles if v.registration_expiry]
    if not with_reg:
        return CommandResult(
            answer="No vehicle registration dates on file.",
            actions=[_navigate("Vehicles", "/vehicles")],
        )
    lines = [f"{v.label}: {_fmt_date(v.registration_expiry, 'long')}" for v in with_reg]
    return CommandResult(
        answer="Registration due:\n" + "\n".join(lines),
        actions=[_navigate("View vehicles", "/vehicles")],
    )


def _call_contact(entities: dict, data: CommandData, today: date) -> CommandResult:
    kind = (entities.get("contact_type") or "").lower()
    with_phone = [
        c for c in data.home_service_contacts
        if _matches(kind, c.service_type, c.name) and (c.phone or "").strip()
    ]
    if not with_phone:
        answer = f"I don't have a phone number for {kind}." if kind else "I don't have that contact's number."
        return CommandResult(answer=answer, actions=[_navigate("Home services", "/home-services")])

    first = with_phone[0]
    digits = _NON_DIGITS.sub("", first.phone or "")
    name = first.name or kind
    return CommandResult(
        answer=f"I found {name}. Tap to call.",
        actions=[CommandAction(label=f"Call {name}", type="call", payload={"url": f"tel:{digits}" if digits else ""})],
    )


def _pay_bill(entities: dict, data: CommandData, today: date) -> CommandResult:
    bill_name = entities.get("bill_name")
    term = (bill_name or "").lower()
    match = next(
        (b for b in data.bills if b.payment_url and _matches(term, b.bill_name, b.provider_name)),
        None,
    )
    if match is None:
        return CommandResult(
            answer=f'I couldn\'t find a bill with a payment link for "{bill_name or "that"}".',
            actions=[_navigate("View bills", "/bills")],
        )
    return CommandResult(
        answer=f"Opening {match.display_name} payment link.",
        actions=[CommandAction(label=f"Pay {match.display_name}", type="open_url", payload={"url": match.payment_url})],
    )


def _mark_bill_paid(entities: dict, data: CommandData, today: date) -> CommandResult:
    bill_name = entities.get("bill_name")
    term = (bill_name or "").lower()
    match = next(
        (b for b in data.bills if b.status == "pending" and _matches(term, b.bill_name, b.provider_name)),
        None,
    )
    if match is None:
        answer = (
            f'I couldn\'t find a pending bill matching "{bill_name}".'
            if term else "I don't see a pending bill to mark paid."
        )
        return CommandResult(answer=answer, actions=[_navigate("View bills", "/bills")])
    return CommandResult(
        answer=f"I found {match.display_name}. Tap to mark it paid.",
        actions=[
            CommandAction(
                label=f"Mark {match.display_name} paid",
                type="mark_bill_paid",
                payload={"bill_id": match.id, "amount": match.amount},
            )
        ],
    )


def _search(entities: dict, data: CommandData, today: date) -> CommandResult:
    return CommandResult(answer=SEARCH_PROMPT, search_summary={})


_HANDLERS = {
    Intent.BILLS_DUE_WEEK: _bills_due_week,
    Intent.SHOE_SIZE: _shoe_size,
    Intent.ADD_REMINDER: _add_reminder,
    Intent.SPENDING_SUMMARY: _spending_summary,
    Intent.REGISTRATION_DUE: _registration_due,
    Intent.CALL_CONTACT: _call_contact,
    Intent.PAY_BILL: _pay_bill,
    Intent.MARK_BILL_PAID: _mark_bill_paid,
    Intent.SEARCH: _search,
}


def execute_command(parsed: ParsedCommand, data: CommandData, today: date | None = None) -> CommandResult:
    """Answer a parsed command from the given data. Deterministic for fixed today."""
    handler = _HANDLERS.get(parsed.intent, _search)
    result = handler(parsed.entities, data, today or date.today())
    logger.debug("Executed %s: %d action(s)", parsed.intent.value, len(result.actions))
    return result
