"""
Homebase Assistant — Daily Insight Engine.

Computes at most three short dashboard insights per user per day:

1. If any insight row already exists for (user, today), today's set is
   final. Return the non-dismissed rows, nothing is regenerated.
2. Otherwise run the fixed rules over a BusinessContext (overdue invoices,
   bills due this week, spend spike, profitable month, "no data" tip),
   truncated to 3, with the quarterly-estimate reminder placed first.
3. When AI is configured, ask the LLM for up to 2 more drafts. Each draft
   is validated on its own; anything malformed is dropped.
4. Merge with first-title-wins dedupe, cap at 3, and upsert on
   (user_id, insight_date, title). A row that already exists is left
   untouched, so a dismissed insight is never resurrected.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import date, timedelta
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, Field, ValidationError

from homebase.core.business_context import BusinessContext, build_business_context
from homebase.core.household_context import read_category
from homebase.core.llm import clean_llm_response, complete
from homebase.core.quarterly import days_until, quarter_due_date
from homebase.ports.store_port import StoreError

if TYPE_CHECKING:
    from homebase.ports.store_port import StorePort

logger = logging.getLogger(__name__)

MAX_INSIGHTS = 3
MAX_AI_INSIGHTS = 2
SPEND_SPIKE_RATIO = 1.25
QUARTERLY_WINDOW_DAYS = 14

_TABLE = "dashboard_insights"
_JSON_ARRAY = re.compile(r"\[.*\]", re.DOTALL)


class InsightDraft(BaseModel):
    """An insight before it is stored.

    JSON example:
    {
        "type": "tip",
        "title": "Review subscriptions",
        "body": "Three subscriptions renew this week.",
        "cta_label": "View Bills",
        "cta_route": "/bills"
    }
    """
    type: Literal["win", "warning", "tip", "action"]
    title: str = Field(min_length=1, max_length=200)
    body: str = Field(min_length=1, max_length=500)
    cta_label: str | None = Field(default=None, max_length=50)
    cta_route: str | None = Field(default=None, max_length=200)


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" + ("" if count == 1 else "s")


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def generate_rule_insights(ctx: BusinessContext, today: date) -> list[InsightDraft]:
    """Fixed, ordered rules. At most three drafts."""
    drafts: list[InsightDraft] = []

    if ctx.overdue_invoices:
        total = sum(i.total for i in ctx.overdue_invoices)
        drafts.append(InsightDraft(
            type="warning",
            title="Overdue invoices",
            body=f"You have {_plural(len(ctx.overdue_invoices), 'overdue invoice')} totaling ${total:.2f}.",
            cta_label="View Invoices",
            cta_route="/invoices",
        ))

    week_start, week_end = today.isoformat(), (today + timedelta(days=7)).isoformat()
    due_week = [b for b in ctx.upcoming_bills if week_start <= b.due_date <= week_end]
    if due_week:
        total = sum(b.amount for b in due_week)
        drafts.append(InsightDraft(
            type="action",
            title="Bills due this week",
            body=f"{_plural(len(due_week), 'bill')} due in the next 7 days (${total:.2f}).",
            cta_label="View Bills",
            cta_route="/bills",
        ))

    if ctx.prev7_expense > 0 and ctx.last7_expense > ctx.prev7_expense * SPEND_SPIKE_RATIO:
        pct = round((ctx.last7_expense - ctx.prev7_expense) / ctx.prev7_expense * 100)
        drafts.append(InsightDraft(
            type="warning",
            title="Spend spike detected",
            body=(
                f"Expenses are up {pct}% vs the previous 7 days "
                f"(${ctx.last7_expense:.2f} vs ${ctx.prev7_expense:.2f})."
            ),
            cta_label="View Transactions",
            cta_route="/transactions",
        ))

    stats = ctx.monthly_stats
    if stats.has_data and stats.profit > 0 and stats.income >= stats.expenses:
        drafts.append(InsightDraft(
            type="win",
            title="You're profitable this month",
            body=f"Nice! Income ${stats.income:.2f} exceeds expenses ${stats.expenses:.2f}.",
        ))

    if not stats.has_data and ctx.recent_transaction_count == 0 and not drafts:
        drafts.append(InsightDraft(
            type="tip",
            title="Add your first transactions",
            body="Track income and expenses to see insights here.",
            cta_label="Add Transaction",
            cta_route="/transactions",
        ))

    return drafts[:MAX_INSIGHTS]


def quarterly_estimate_insight(store: StorePort, user_id: str, today: date) -> InsightDraft | None:
    """Action insight for the first unpaid quarterly estimate due within 14 days."""
    rows = read_category(
        "estimated tax payments",
        lambda: store.select(
            "estimated_tax_payments", user_id,
            where={"tax_year": [(">=", today.year - 1), ("<=", today.year)], "paid": 0},
            order_by=["tax_year", "quarter"],
        ),
        [],
    )
    for row in rows:
        try:
            due = date.fromisoformat(row["due_date"])
        except (KeyError, TypeError, ValueError):
            try:
                due = quarter_due_date(int(row["tax_year"]), int(row["quarter"]))
            except (KeyError, TypeError, ValueError):
                continue
        if 0 <= days_until(due, today) <= QUARTERLY_WINDOW_DAYS:
            return InsightDraft(
                type="action",
                title="Quarterly tax estimate due soon",
                body=(
                    f"Q{row['quarter']} estimate is due {due.isoformat()}. "
                    f"Estimated: ${float(row.get('total_estimated') or 0):.2f} (based on your transactions)."
                ),
                cta_label="View Estimates",
                cta_route="/estimates",
            )
    return None


# ---------------------------------------------------------------------------
# AI drafts
# ---------------------------------------------------------------------------

_AI_PROMPT = """\
You are a helpful household finance insights assistant. Based on the data \
below, suggest up to 2 short, actionable insights. Return ONLY a valid JSON \
array, no other text.

Return format (JSON array only):
[{"type":"tip","title":"...","body":"...","cta_label":"...","cta_route":"..."}]

Allowed types: win, warning, tip, action
cta_route examples: "/bills", "/transactions"
Keep title under 40 chars, body under 150 chars."""


def _ai_context_text(ctx: BusinessContext) -> str:
    stats = ctx.monthly_stats
    return "\n".join([
        (
            f"This month: Income ${stats.income:.2f}, Expenses ${stats.expenses:.2f}, Profit ${stats.profit:.2f}"
            if stats.has_data else "This month: No transaction data"
        ),
        f"Unpaid invoices: {ctx.unpaid_invoice_count} totaling ${ctx.unpaid_invoice_total:.2f}",
        f"Upcoming bills: {ctx.upcoming_bill_count} totaling ${ctx.upcoming_bills_total:.2f}",
        f"Recent transactions: {ctx.recent_transaction_count}",
    ])


def parse_ai_drafts(raw_text: str) -> list[InsightDraft]:
    """Extract valid drafts from a model reply. Invalid items are skipped."""
    match = _JSON_ARRAY.search(clean_llm_response(raw_text))
    if not match:
        return []
    try:
        items = json.loads(match.group(0))
    except json.JSONDecodeError:
        logger.debug("AI insights: unparseable reply %r", raw_text[:200])
        return []
    if not isinstance(items, list):
        return []

    drafts: list[InsightDraft] = []
    for item in items:
        try:
            drafts.append(InsightDraft.model_validate(item))
        except ValidationError as exc:
            logger.debug("AI insights: dropping invalid draft: %s", exc)
    return drafts[:MAX_AI_INSIGHTS]


async def generate_ai_insights(ctx: BusinessContext) -> list[InsightDraft]:
    """Up to two LLM-written drafts. Any failure yields []."""
    try:
        raw = await complete(system=_AI_PROMPT, user_message="Data:\n" + _ai_context_text(ctx), max_tokens=400)
    except Exception as exc:
        logger.warning("AI insights unavailable: %s", exc)
        return []
    return parse_ai_drafts(raw)


def merge_drafts(
    quarterly: InsightDraft | None,
    rules: list[InsightDraft],
    ai: list[InsightDraft],
) -> list[tuple[InsightDraft, str]]:
    """Quarterly, then rules, then AI. First title wins; at most three."""
    candidates = ([(quarterly, "rule")] if quarterly else []) + [(d, "rule") for d in rules]
    candidates += [(d, "ai") for d in ai[:MAX_AI_INSIGHTS]]

    merged: list[tuple[InsightDraft, str]] = []
    seen: set[str] = set()
    for draft, source in candidates:
        if draft.title in seen or len(merged) >= MAX_INSIGHTS:
            continue
        seen.add(draft.title)
        merged.append((draft, source))
    return merged


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class InsightEngine:
    """Per-user, per-day idempotent insight generation and dismissal."""

    def __init__(self, store: StorePort, ai_enabled: bool | None = None, today: date | None = None) -> None:
        self._store = store
        self._ai_enabled = ai_enabled
        self._today = today

    def _current_day(self) -> date:
        if self._today is not None:
            return self._today
        from homebase.config import settings
        return settings.local_today()

    def _ai_configured(self) -> bool:
        if self._ai_enabled is not None:
            return self._ai_enabled
        from homebase.config import settings
        return settings.ai_configured

    def _rows_for(self, user_id: str, day: date) -> list[dict]:
        return self._store.select(
            _TABLE, user_id, where={"insight_date": day.isoformat()}, order_by=["created_at"],
        )

    async def upsert_for_today(self, user_id: str) -> list[dict]:
        """Return today's non-dismissed insights, generating them once per day.

        A store failure is logged and yields [] for this run.
        """
        try:
            return await self._upsert_for_today(user_id)
        except StoreError as exc:
            logger.error("Insight generation failed for user %s: %s", user_id, exc)
            return []

    async def _upsert_for_today(self, user_id: str) -> list[dict]:
        today = self._current_day()
        existing = self._rows_for(user_id, today)
        if existing:
            return [r for r in existing if not r["dismissed"]]

        ctx = build_business_context(self._store, user_id, today)
        rules = generate_rule_insights(ctx, today)
        quarterly = quarterly_estimate_insight(self._store, user_id, today)
        ai = await generate_ai_insights(ctx) if self._ai_configured() else []

        for draft, source in merge_drafts(quarterly, rules, ai):
            self._store.upsert(
                _TABLE, user_id,
                {
                    "insight_date": today.isoformat(),
                    "title": draft.title,
                    "body": draft.body,
                    "insight_type": draft.type,
                    "source": source,
                    "cta_label": draft.cta_label,
                    "cta_route": draft.cta_route,
                    "dismissed": 0,
                },
                conflict=("user_id", "insight_date", "title"),
            )

        rows = [r for r in self._rows_for(user_id, today) if not r["dismissed"]]
        logger.info("Generated %d insight(s) for user %s on %s", len(rows), user_id, today)
        return rows

    def dismiss(self, user_id: str, insight_id: str) -> bool:
        """Dismiss one insight. True when a visible insight was hidden."""
        try:
            changed = self._store.update(
                _TABLE, user_id,
                where={"id": insight_id, "dismissed": 0},
                patch={"dismissed": 1},
            )
        except StoreError as exc:
            logger.error("Could not dismiss insight %s: %s", insight_id, exc)
            return False
        if changed:
            logger.info("Dismissed insight %s for user %s", insight_id, user_id)
        return changed > 0
