"""
Homebase Assistant — Action Dispatcher.

Performs a suggested CommandAction once the user has explicitly confirmed
it (tapped the button). Device effects go through DevicePort, data effects
through StorePort. Every outcome, including bad payloads and store
failures, comes back as a DispatchResult; nothing raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from homebase.ports.store_port import StoreError

if TYPE_CHECKING:
    from homebase.core.command_executor import CommandAction
    from homebase.ports.device_port import DevicePort
    from homebase.ports.store_port import StorePort

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    ok: bool
    message: str = ""


class ActionDispatcher:
    """Executes confirmed actions against the device and the store."""

    def __init__(self, store: StorePort, device: DevicePort | None = None) -> None:
        self._store = store
        self._device = device

    async def dispatch(
        self, user_id: str, action: CommandAction, today: date | None = None,
    ) -> DispatchResult:
        if today is None:
            from homebase.config import settings
            today = settings.local_today()
        payload = action.payload if isinstance(action.payload, dict) else {}

        handler = {
            "navigate": self._navigate,
            "open_url": self._open_url,
            "call": self._call,
            "create_reminder": self._create_reminder,
            "mark_bill_paid": self._mark_bill_paid,
        }.get(action.type)
        if handler is None:
            return DispatchResult(ok=False, message=f"Unknown action: {action.type}")

        try:
            return await handler(user_id, payload, today)
        except StoreError as exc:
            logger.error("Action %s failed for user %s: %s", action.type, user_id, exc)
            return DispatchResult(ok=False, message="Something went wrong saving that. Please try again.")

    # --- device actions ---

    async def _navigate(self, user_id: str, payload: dict, today: date) -> DispatchResult:
        route = payload.get("route")
        if not route:
            return DispatchResult(ok=False, message="Nowhere to go.")
        if self._device is None:
            return DispatchResult(ok=False, message="Navigation isn't available here.")
        try:
            shown = await self._device.navigate(route, payload.get("params") or {})
        except Exception as exc:
            logger.error("Device failed to navigate to %s for user %s: %s", route, user_id, exc)
            shown = False
        return DispatchResult(ok=bool(shown), message="" if shown else f"Couldn't open {route}")

    async def _open_url(self, user_id: str, payload: dict, today: date) -> DispatchResult:
        url = payload.get("url") or ""
        if not url:
            return DispatchResult(ok=False, message="No link to open.")
        return await self._open(url)

    async def _call(self, user_id: str, payload: dict, today: date) -> DispatchResult:
        url = payload.get("url") or ""
        if not url:
            return DispatchResult(ok=False, message="No phone number to call.")
        return await self._open(url)

    async def _open(self, url: str) -> DispatchResult:
        if self._device is None:
            return DispatchResult(ok=False, message=f"Open this link: {url}")
        try:
            opened = await self._device.open_url(url)
        except Exception as exc:
            logger.error("Device failed to open %s: %s", url, exc)
            opened = False
        return DispatchResult(ok=bool(opened), message="" if opened else f"Couldn't open {url}")

    # --- data actions ---

    async def _create_reminder(self, user_id: str, payload: dict, today: date) -> DispatchResult:
        title = payload.get("title")
        when = payload.get("appointment_date")
        if not title or not when:
            return DispatchResult(ok=False, message="That reminder is missing a title or date.")
        self._store.insert("appointments", user_id, {
            "title": title,
            "appointment_date": when,
            "appointment_time": None,
        })
        logger.info("Created reminder %r on %s for user %s", title, when, user_id)
        return DispatchResult(ok=True, message=f'Reminder added: "{title}" on {when}.')

    async def _mark_bill_paid(self, user_id: str, payload: dict, today: date) -> DispatchResult:
        bill_id = payload.get("bill_id")
        if not bill_id:
            return DispatchResult(ok=False, message="Bill not found.")
        try:
            amount = float(payload.get("amount") or 0)
        except (TypeError, ValueError):
            amount = 0.0
        updated = self._store.update(
            "bills", user_id,
            where={"id": bill_id, "status": ("!=", "paid")},
            patch={"status": "paid", "paid_date": today.isoformat(), "paid_amount": amount},
        )
        if updated == 0:
            return DispatchResult(ok=False, message="Bill not found.")
        logger.info("Marked bill %s paid for user %s", bill_id, user_id)
        return DispatchResult(ok=True, message="Marked as paid.")
