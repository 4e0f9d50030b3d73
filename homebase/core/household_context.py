"""
Homebase Assistant — Household Context Builder.

Reads a user's current household data into one immutable snapshot used by
both the rule executor and the assistant's system prompt.

Each category is read independently. A failing read leaves that category
empty and the build carries on: the consumer is a best-effort assistant,
so a partial snapshot beats no answer. Freshness is per category.
"""

from __future__ import annotations

import calendar
import logging
from collections.abc import Callable
from datetime import date
from typing import TYPE_CHECKING, TypeVar

from homebase.data.models import (
    Appointment,
    Bill,
    HouseholdContext,
    InsurancePolicy,
    MedicalRecord,
    MonthlySpending,
    Pet,
    ServiceContact,
    Vehicle,
)
from homebase.ports.store_port import StoreError

if TYPE_CHECKING:
    from homebase.ports.store_port import StorePort

logger = logging.getLogger(__name__)

T = TypeVar("T")


def month_bounds(today: date) -> tuple[str, str]:
    """Return the first and last ISO dates of today's calendar month."""
    last_day = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=1).isoformat(), today.replace(day=last_day).isoformat()


def summarize_spending(transactions: list[dict]) -> MonthlySpending:
    """Sum expense transactions by category (absolute amounts)."""
    by_category: dict[str, float] = {}
    total = 0.0
    for txn in transactions:
        if txn.get("type") != "expense":
            continue
        try:
            amount = abs(float(txn.get("amount") or 0))
        except (TypeError, ValueError):
            continue
        total += amount
        category = txn.get("category") or "other"
        by_category[category] = by_category.get(category, 0.0) + amount
    return MonthlySpending(total=total, by_category=by_category)


def read_category(label: str, reader: Callable[[], T], default: T) -> T:
    """Run one category read; on a store failure log it and return default."""
    try:
        return reader()
    except StoreError as exc:
        logger.warning("Household context: %s unavailable: %s", label, exc)
        return default


def build_household_context(
    store: StorePort, user_id: str, today: date | None = None,
) -> HouseholdContext:
    """Assemble the household snapshot for user_id. Never raises on store errors."""
    today = today or date.today()
    today_iso = today.isoformat()
    month_start, month_end = month_bounds(today)

    bills = read_category(
        "bills",
        lambda: tuple(
            Bill.from_row(r) for r in store.select(
                "bills", user_id,
                where={"status": ("!=", "cancelled")},
                order_by=["due_date"],
            )
        ),
        (),
    )
    vehicles = read_category(
        "vehicles",
        lambda: tuple(Vehicle.from_row(r) for r in store.select("vehicles", user_id)),
        (),
    )
    pets = read_category(
        "pets",
        lambda: tuple(Pet.from_row(r) for r in store.select("pets", user_id)),
        (),
    )
    appointments = read_category(
        "appointments",
        lambda: tuple(
            Appointment.from_row(r) for r in store.select(
                "appointments", user_id,
                where={"appointment_date": (">=", today_iso)},
                order_by=["appointment_date", "appointment_time"],
                limit=50,
            )
        ),
        (),
    )
    insurance = read_category(
        "insurance",
        lambda: tuple(
            InsurancePolicy.from_row(r) for r in store.select("insurance_policies", user_id)
        ),
        (),
    )
    medical = read_category(
        "medical records",
        lambda: tuple(
            MedicalRecord.from_row(r) for r in store.select(
                "medical_records", user_id, order_by=["-record_date"], limit=20,
            )
        ),
        (),
    )
    home_services = read_category(
        "home service contacts",
        lambda: tuple(
            ServiceContact.from_row(r) for r in store.select("home_service_contacts", user_id)
        ),
        (),
    )
    spending = read_category(
        "monthly spending",
        lambda: summarize_spending(
            store.select(
                "transactions", user_id,
                where={"date": [(">=", month_start), ("<=", month_end)], "type": "expense"},
            )
        ),
        MonthlySpending(),
    )
    shopping_list = read_category(
        "shopping list",
        lambda: tuple(
            r["item"] for r in store.select(
                "shopping_list", user_id,
                where={"completed": 0},
                order_by=["-created_at"],
            )
        ),
        (),
    )

    return HouseholdContext(
        bills=bills,
        vehicles=vehicles,
        pets=pets,
        appointments=appointments,
        insurance=insurance,
        medical=medical,
        home_services=home_services,
        monthly_spending=spending,
        shopping_list=shopping_list,
    )


# ---------------------------------------------------------------------------
# System prompt rendering
# ---------------------------------------------------------------------------

_PROMPT_HEADER = """\
You are a friendly, knowledgeable family assistant for this household. You have \
access to ALL of their data below. Use it to answer questions accurately (e.g. \
"When is Jake's dentist?" → find an appointment whose title mentions Jake and \
dentist). Be concise but warm. If the user asks you to DO something, use the \
provided tools (add_reminder, add_to_list, mark_paid, schedule_appointment).

Today's date is {today}.

When answering:
- Bills: use bill_name, provider_name, amount, due_date. "Bills due this week" = due_date in the next 7 days.
- Vehicles: registration_expiry and insurance_expiry are dates; say when they are due.
- Pets: vet_name and vet_phone for "dog's vet number".
- Appointments: title often includes who (e.g. "Jake - dentist"); use appointment_date and appointment_time.
- Spending: MONTHLY SPENDING lists categories (utilities, insurance, etc.).

Proactive suggestions: if you notice something important (e.g. car insurance \
expires next month, a bill due tomorrow), you may mention it briefly at the end \
of your reply.

--- HOUSEHOLD DATA ---"""


def _dash(value: object) -> str:
    return "—" if value in (None, "") else str(value)


def make_household_system_prompt(ctx: HouseholdContext, today: date | None = None) -> str:
    """Render the snapshot as the assistant's system prompt."""
    today = today or date.today()
    lines = [_PROMPT_HEADER.format(today=today.isoformat())]

    if ctx.bills:
        lines.append("BILLS (id, bill_name, provider_name, amount, due_date, status):")
        for b in ctx.bills:
            lines.append(
                f"  {b.id} | {b.bill_name} | {_dash(b.provider_name)} | "
                f"${b.amount:.2f} | due {b.due_date} | {b.status}"
            )
        lines.append("")

    if ctx.vehicles:
        lines.append("VEHICLES (make, model, year, registration_expiry, insurance_expiry):")
        for v in ctx.vehicles:
            lines.append(
                f"  {v.label} | reg {_dash(v.registration_expiry)} | ins {_dash(v.insurance_expiry)}"
            )
        lines.append("")

    if ctx.pets:
        lines.append("PETS (name, type, breed, vet_name, vet_phone, notes):")
        for p in ctx.pets:
            lines.append(
                f"  {p.name} | {_dash(p.type)} | {_dash(p.breed)} | "
                f"vet: {_dash(p.vet_name)} {p.vet_phone or ''} | {p.notes or ''}".rstrip()
            )
        lines.append("")

    if ctx.appointments:
        lines.append("APPOINTMENTS (title, date, time, location):")
        for a in ctx.appointments:
            lines.append(
                f"  {a.title} | {a.appointment_date} {a.appointment_time or ''} | {a.location or ''}".rstrip()
            )
        lines.append("")

    if ctx.insurance:
        lines.append("INSURANCE (provider, policy_number, renewal_date):")
        for i in ctx.insurance:
            lines.append(f"  {i.provider} | {_dash(i.policy_number)} | renewal {_dash(i.renewal_date)}")
        lines.append("")

    if ctx.medical:
        lines.append("MEDICAL RECORDS (provider, record_date, record_type, notes):")
        for m in ctx.medical[:10]:
            lines.append(
                f"  {_dash(m.provider)} | {_dash(m.record_date)} | "
                f"{_dash(m.record_type)} | {(m.notes or '')[:60]}".rstrip()
            )
        lines.append("")

    if ctx.home_services:
        lines.append("HOME SERVICE CONTACTS (name, service_type, phone):")
        for h in ctx.home_services:
            lines.append(f"  {h.name} | {h.service_type} | {_dash(h.phone)}")
        lines.append("")

    if ctx.monthly_spending.total > 0:
        lines.append("MONTHLY SPENDING (this month):")
        lines.append(f"  Total expenses: ${ctx.monthly_spending.total:.2f}")
        for category, amount in ctx.monthly_spending.by_category.items():
            lines.append(f"  {category}: ${amount:.2f}")
        lines.append("")

    if ctx.shopping_list:
        lines.append("SHOPPING LIST: " + ", ".join(ctx.shopping_list))
        lines.append("")

    lines.append("--- END HOUSEHOLD DATA ---")
    return "\n".join(lines)
