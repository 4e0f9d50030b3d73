"""Telegram device adapter — implements DevicePort for one chat.

A chat has no screens to open or dialer to launch, so device effects are
rendered as messages: navigation becomes a pointer to the right section,
web links become a URL button, and phone numbers are sent as text that
Telegram clients make tappable.
"""

from __future__ import annotations

import logging

from telegram import Bot, InlineKeyboardButton, InlineKeyboardMarkup
from telegram.error import TelegramError

logger = logging.getLogger(__name__)

_SECTION_NAMES = {
    "/bills": "Bills",
    "/transactions": "Transactions",
    "/vehicles": "Vehicles",
    "/pets": "Pets",
    "/home-services": "Home services",
    "/growth-records": "Growth records",
    "/growth-records/new": "New growth record",
}


class TelegramDevice:
    """DevicePort that answers into a single Telegram chat."""

    def __init__(self, bot: Bot, chat_id: int) -> None:
        self._bot = bot
        self._chat_id = chat_id

    async def navigate(self, route: str, params: dict | None = None) -> bool:
        section = _SECTION_NAMES.get(route, route)
        try:
            await self._bot.send_message(chat_id=self._chat_id, text=f"📂 {section}")
        except TelegramError as exc:
            logger.warning("Could not show %s in chat %d: %s", section, self._chat_id, exc)
            return False
        return True

    async def open_url(self, url: str) -> bool:
        try:
            if url.startswith("tel:"):
                await self._bot.send_message(chat_id=self._chat_id, text=f"📞 {url.removeprefix('tel:')}")
            else:
                await self._bot.send_message(
                    chat_id=self._chat_id,
                    text="Tap to open:",
                    reply_markup=InlineKeyboardMarkup([[InlineKeyboardButton("Open link", url=url)]]),
                )
        except TelegramError as exc:
            logger.warning("Could not open %s in chat %d: %s", url, self._chat_id, exc)
            return False
        return True
