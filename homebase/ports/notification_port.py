"""Notification port — outbound messages to household members.

The daily insight job pushes its digest through this protocol; it never
talks to a messenger SDK directly. user_id is the messenger's chat id.
"""

from __future__ import annotations

from typing import Protocol


class NotificationPort(Protocol):
    """Push-only messaging used by scheduled jobs."""

    async def send_message(self, user_id: int, text: str) -> None: ...
