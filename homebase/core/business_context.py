"""
Homebase Assistant — Business context.

Money snapshot the daily insight rules run against: this month's income and
expenses, unpaid and overdue invoices, upcoming bills, and a trailing
7-day vs previous 7-day expense comparison. Like the household snapshot,
each part is read on its own and a failed read leaves it at its empty value.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import TYPE_CHECKING

from homebase.core.household_context import month_bounds, read_category
from homebase.data.models import Bill

if TYPE_CHECKING:
    from homebase.ports.store_port import StorePort

logger = logging.getLogger(__name__)

_UNPAID_INVOICE_STATUSES = {"sent", "viewed", "overdue"}


@dataclass(frozen=True)
class MonthlyStats:
    income: float = 0.0
    expenses: float = 0.0
    profit: float = 0.0
    has_data: bool = False


@dataclass(frozen=True)
class InvoiceSummary:
    invoice_number: str
    total: float
    due_date: str


@dataclass(frozen=True)
class BusinessContext:
    monthly_stats: MonthlyStats = field(default_factory=MonthlyStats)
    unpaid_invoice_count: int = 0
    unpaid_invoice_total: float = 0.0
    overdue_invoices: tuple[InvoiceSummary, ...] = ()
    upcoming_bills: tuple[Bill, ...] = ()
    upcoming_bill_count: int = 0
    upcoming_bills_total: float = 0.0
    last7_expense: float = 0.0
    prev7_expense: float = 0.0
    recent_transaction_count: int = 0


def _amount(row: dict) -> float:
    try:
        return float(row.get("amount") or 0)
    except (TypeError, ValueError):
        return 0.0


def monthly_stats(transactions: list[dict]) -> MonthlyStats:
    """Income minus absolute expenses. Any transaction at all means has_data."""
    if not transactions:
        return MonthlyStats()
    income = sum(_amount(t) for t in transactions if t.get("type") == "income")
    expenses = sum(abs(_amount(t)) for t in transactions if t.get("type") != "income")
    return MonthlyStats(income=income, expenses=expenses, profit=income - expenses, has_data=True)


def expense_windows(transactions: list[dict], today: date) -> tuple[float, float]:
    """Expense totals for [today-6, today] and [today-13, today-7]."""
    last_start = (today - timedelta(days=6)).isoformat()
    prev_start = (today - timedelta(days=13)).isoformat()
    today_iso = today.isoformat()
    last7 = prev7 = 0.0
    for t in transactions:
        if t.get("type") != "expense":
            continue
        day = (t.get("date") or "")[:10]
        if last_start <= day <= today_iso:
            last7 += abs(_amount(t))
        elif prev_start <= day < last_start:
            prev7 += abs(_amount(t))
    return last7, prev7


def build_business_context(
    store: StorePort, user_id: str, today: date | None = None,
) -> BusinessContext:
    today = today or date.today()
    today_iso = today.isoformat()
    month_start, month_end = month_bounds(today)

    stats = read_category(
        "monthly stats",
        lambda: monthly_stats(store.select(
            "transactions", user_id,
            where={"date": [(">=", month_start), ("<=", month_end)]},
        )),
        MonthlyStats(),
    )

    windows = read_category(
        "expense windows",
        lambda: expense_windows(
            store.select(
                "transactions", user_id,
                where={"date": [(">=", (today - timedelta(days=13)).isoformat()), ("<=", today_iso)]},
            ),
            today,
        ),
        (0.0, 0.0),
    )

    recent_count = read_category(
        "recent transactions",
        lambda: len(store.select("transactions", user_id, order_by=["-date", "-created_at"], limit=10)),
        0,
    )

    invoices = read_category(
        "invoices",
        lambda: [
            r for r in store.select("invoices", user_id, order_by=["due_date"])
            if r.get("status") in _UNPAID_INVOICE_STATUSES and r.get("due_date")
        ],
        [],
    )
    overdue = tuple(
        InvoiceSummary(
            invoice_number=r.get("invoice_number") or "",
            total=float(r.get("total") or 0),
            due_date=r["due_date"],
        )
        for r in invoices if r["due_date"] < today_iso
    )[:5]

    upcoming = read_category(
        "upcoming bills",
        lambda: tuple(
            Bill.from_row(r) for r in store.select(
                "bills", user_id,
                where={"status": [("!=", "paid"), ("!=", "cancelled")]},
                order_by=["due_date"],
                limit=10,
            )
        ),
        (),
    )

    return BusinessContext(
        monthly_stats=stats,
        unpaid_invoice_count=len(invoices),
        unpaid_invoice_total=sum(float(r.get("total") or 0) for r in invoices),
        overdue_invoices=overdue,
        upcoming_bills=upcoming[:5],
        upcoming_bill_count=len(upcoming),
        upcoming_bills_total=sum(b.amount for b in upcoming),
        last7_expense=windows[0],
        prev7_expense=windows[1],
        recent_transaction_count=recent_count,
    )
