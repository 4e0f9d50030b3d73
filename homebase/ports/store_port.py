"""Store port — abstract interface for the household data store.

Core modules depend on this protocol, never on a specific database.
Every call is scoped by the owning user's id; the store is multi-tenant.
"""

from __future__ import annotations

from typing import Any, Protocol

# A filter maps column → value (equality) or column → (operator, value)
# where operator is one of "=", "!=", "<", "<=", ">", ">=", or a list of
# such tuples that must all hold (e.g. a date range).
Where = dict[str, Any]


class StoreError(Exception):
    """Raised when any store operation fails."""


class StorePort(Protocol):
    """Abstract store interface used by core modules."""

    def select(
        self,
        table: str,
        user_id: str,
        where: Where | None = None,
        order_by: list[str] | None = None,
        limit: int | None = None,
    ) -> list[dict]: ...

    def insert(self, table: str, user_id: str, row: dict) -> dict: ...

    def update(self, table: str, user_id: str, where: Where, patch: dict) -> int: ...

    def upsert(
        self,
        table: str,
        user_id: str,
        row: dict,
        conflict: tuple[str, ...],
        update_columns: tuple[str, ...] = (),
    ) -> None: ...

    def delete(self, table: str, user_id: str, where: Where) -> int: ...
