"""
Homebase Assistant — Daily insight job.

Runs the Insight Engine once a day for every allowed user and, when a
notifier is given, pushes a short digest of what was found. The engine is
idempotent per day, so running the job twice is harmless.

Depends on NotificationPort, not on any specific messenger.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from homebase.core.insights import InsightEngine
    from homebase.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)

_ICONS = {"win": "🎉", "warning": "⚠️", "tip": "💡", "action": "📌"}


def format_insight(insight: dict) -> str:
    icon = _ICONS.get(insight.get("insight_type", ""), "•")
    return f"{icon} {insight['title']}\n   {insight['body']}"


def format_insight_digest(insights: list[dict]) -> str:
    """Render today's insights as one message."""
    return "\n".join(["☀️ Today's household insights:", ""] + [format_insight(i) for i in insights])


async def run_daily_insights(
    engine: InsightEngine,
    user_ids: list[int],
    notifier: NotificationPort | None = None,
) -> dict[int, int]:
    """Generate today's insights for each user. Returns insight counts per user.

    A failure for one user is logged and the job moves on to the next.
    """
    counts: dict[int, int] = {}
    for user_id in user_ids:
        try:
            insights = await engine.upsert_for_today(str(user_id))
            counts[user_id] = len(insights)
            if notifier is not None and insights:
                await notifier.send_message(user_id, format_insight_digest(insights))
                logger.info("Insight digest sent to user %d", user_id)
        except Exception as exc:
            logger.error("Daily insights failed for user %d: %s", user_id, exc)
    return counts
