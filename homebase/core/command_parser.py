"""
Homebase Assistant — Command Parser.

Rule-based intent parser for the quick-command bar: free text in, one
intent plus loosely typed entities out. No I/O, no LLM, never raises.

Rules are tested in a fixed order and the first match wins. The order is
load-bearing: later rules match supersets of what earlier ones catch, so a
reminder phrase like "call the dentist tomorrow" must be claimed before the
generic "call <contact>" rule sees it. Anything unmatched is a `search`.
"""

from __future__ import annotations

import logging
import re
from enum import Enum

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class Intent(str, Enum):
    BILLS_DUE_WEEK = "bills_due_week"
    SHOE_SIZE = "shoe_size"
    ADD_REMINDER = "add_reminder"
    SPENDING_SUMMARY = "spending_summary"
    REGISTRATION_DUE = "registration_due"
    CALL_CONTACT = "call_contact"
    PAY_BILL = "pay_bill"
    MARK_BILL_PAID = "mark_bill_paid"
    SEARCH = "search"


class ParsedCommand(BaseModel):
    """Structured command extracted from a quick-command query.

    Example:
    {
        "intent": "add_reminder",
        "entities": {"reminder_title": "Call the dentist", "reminder_when": "tomorrow"}
    }

    Entity keys: person_name, category, period, contact_type, bill_name,
    reminder_title, reminder_when. Only extracted keys are present.
    """
    intent: Intent
    entities: dict[str, str | None] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Patterns (applied to the normalized, lowercased query)
# ---------------------------------------------------------------------------

_BILLS_DUE_WEEK = re.compile(
    r"\b(?:bills?|payments?)\s+due\s+(?:this\s+)?week\b"
    r"|\ball\s+bills?\s+due\s+this\s+week\b"
    r"|show\s+me\s+.*bills?\s+due"
)

_SHOE_SIZE = re.compile(r"\bshoe\s*size\b")
_SHOE_POSSESSIVE = re.compile(r"\b(\w+)(?:'s|s')\s+(?:shoe\s*size|shoes?)\b")
_SHOE_FOR = re.compile(r"\b(?:shoe\s*size|shoes?)\s+(?:for|of)\s+(\w+)\b")
_SHOE_STOPWORDS = {"what", "whats", "what's", "is", "the", "for", "of", "shoe", "shoes", "size", "my", "our", "current"}

_REMINDER = re.compile(
    r"\b(?:add|create|set)\s+(?:a\s+)?reminder\b"
    r"|\breminder\s+to\s+\w+"
    r"|\bremind\s+me\s+to\s+\w+"
)
_CALL_LATER = re.compile(r"\b(?:call|phone)\s+(.+?)\s+(?:tomorrow|next\s+week)\b")
_REMINDER_TO = re.compile(r"\b(?:reminder|remind\s+me)\s+to\s+(.+?)(?:\s+tomorrow|\s+next\s+week|\s+on\s+\w+|$)")
_REMINDER_PREFIX = re.compile(r"^(?:add|create|set)\s+(?:a\s+)?reminder\s*(?:to|for)?\s*")
_WHEN_SUFFIX = re.compile(r"\s*\b(?:tomorrow|next\s+week|on\s+\w+)\b.*$")
_NEXT_WEEK = re.compile(r"\bnext\s+week\b")

_SPENDING = re.compile(
    r"\bhow\s+much\s+(?:did\s+(?:we|i)\s+)?spen[dt]"
    r"|\bspent\s+on\s+\w+"
    r"|\bspending\s+(?:on\s+)?\w+"
)
_SPENDING_CATEGORY = re.compile(r"\b(?:on|for)\s+(\w+)")
_SPENDING_TRAILING = re.compile(r"\bspen(?:d|t|ding)\s+.*?(\w+)\s*\??$")
_PERIOD_WORDS = {"month", "week", "year", "last", "this", "total", "spend", "spent", "we", "i", "did"}
_LAST_MONTH = re.compile(r"\blast\s+month\b")

_REGISTRATION = re.compile(
    r"\b(?:when\s+is\s+)?(?:the\s+)?(?:car\s+)?registration\s+due\b"
    r"|\bregistration\s+(?:expir|due)"
)

_CALL_CONTACT = re.compile(r"\bcall\s+(?:the\s+|my\s+|our\s+)?(\w+)\b")
_LATER = re.compile(r"\btomorrow\b|\bnext\s+week\b")

_PAY_BILL = re.compile(r"\bpay\s+(?:the\s+|my\s+|our\s+)?(.+?)\s+bill\b")
_BILL_PAY = re.compile(r"\b(.+?)\s+bill\s+pay\b")

_MARK_PAID = re.compile(r"\bmark\s+(?:the\s+|my\s+|our\s+)?(.+?)\s+(?:bill\s+)?(?:as\s+)?paid\b")

_WHITESPACE = re.compile(r"\s+")


def normalize_query(query: str) -> str:
    """Trim, lowercase and collapse internal whitespace."""
    return _WHITESPACE.sub(" ", (query or "").strip().lower())


# ---------------------------------------------------------------------------
# Entity extraction helpers
# ---------------------------------------------------------------------------


def _shoe_person(q: str) -> str | None:
    for pattern in (_SHOE_POSSESSIVE, _SHOE_FOR):
        m = pattern.search(q)
        if m and m.group(1) not in _SHOE_STOPWORDS:
            return m.group(1)
    for word in q.split():
        word = word.strip("?!.,").removesuffix("'s")
        if len(word) > 2 and word not in _SHOE_STOPWORDS:
            return word
    return None


def _reminder_title(q: str) -> str:
    m = _REMINDER_TO.search(q)
    if m:
        return m.group(1).strip()
    m = _CALL_LATER.search(q)
    if m:
        return "Call " + m.group(1).strip()
    title = _WHEN_SUFFIX.sub("", _REMINDER_PREFIX.sub("", q)).strip()
    return title or "Reminder"


def _spending_category(q: str) -> str | None:
    for pattern in (_SPENDING_CATEGORY, _SPENDING_TRAILING):
        m = pattern.search(q)
        if m and m.group(1) not in _PERIOD_WORDS:
            return m.group(1)
    return None


def _strip_bill_word(name: str) -> str:
    return name.removesuffix(" bill").strip()


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def parse_command(query: str) -> ParsedCommand:
    """Classify a free-text query. Total: every input yields one command."""
    q = normalize_query(query)

    # 1. Bills due this week
    if _BILLS_DUE_WEEK.search(q):
        return ParsedCommand(intent=Intent.BILLS_DUE_WEEK, entities={"period": "this_week"})

    # 2. Shoe size
    if _SHOE_SIZE.search(q) or _SHOE_POSSESSIVE.search(q) or _SHOE_FOR.search(q):
        return ParsedCommand(intent=Intent.SHOE_SIZE, entities={"person_name": _shoe_person(q)})

    # 3. Reminder, including "call X tomorrow" (must run before call_contact)
    if _REMINDER.search(q) or _CALL_LATER.search(q):
        when = "next_week" if _NEXT_WEEK.search(q) else "tomorrow"
        return ParsedCommand(
            intent=Intent.ADD_REMINDER,
            entities={"reminder_title": _reminder_title(q), "reminder_when": when},
        )

    # 4. Spending summary
    if _SPENDING.search(q):
        period = "last_month" if _LAST_MONTH.search(q) else "this_month"
        return ParsedCommand(
            intent=Intent.SPENDING_SUMMARY,
            entities={"category": _spending_category(q), "period": period},
        )

    # 5. Vehicle registration
    if _REGISTRATION.search(q):
        return ParsedCommand(intent=Intent.REGISTRATION_DUE)

    # 6. Call a service contact (never a deferred call, see rule 3)
    m = _CALL_CONTACT.search(q)
    if m and not _LATER.search(q):
        return ParsedCommand(intent=Intent.CALL_CONTACT, entities={"contact_type": m.group(1)})

    # 7. Pay a bill
    m = _PAY_BILL.search(q) or _BILL_PAY.search(q)
    if m:
        return ParsedCommand(intent=Intent.PAY_BILL, entities={"bill_name": _strip_bill_word(m.group(1))})

    # 8. Mark a bill paid
    m = _MARK_PAID.search(q)
    if m:
        return ParsedCommand(
            intent=Intent.MARK_BILL_PAID, entities={"bill_name": _strip_bill_word(m.group(1))},
        )

    logger.debug("No command rule matched %r; falling back to search", q[:80])
    return ParsedCommand(intent=Intent.SEARCH)
