"""Device port — abstract interface for on-device side effects.

Navigation, opening links and placing calls are performed by whichever UI
hosts the assistant; the action dispatcher only talks to this protocol.
Both methods return False when the effect could not be shown.
"""

from __future__ import annotations

from typing import Protocol


class DevicePort(Protocol):
    """Abstract device interface used by the action dispatcher."""

    async def navigate(self, route: str, params: dict | None = None) -> bool: ...

    async def open_url(self, url: str) -> bool: ...
