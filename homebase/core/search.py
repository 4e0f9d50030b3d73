"""
Homebase Assistant — Global search.

Substring search across every household table the quick-command bar knows
about. The searchable surface is declared up front in SEARCH_FIELDS; rows
are never scanned by arbitrary key.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from homebase.core.command_executor import CommandAction
from homebase.ports.store_port import StoreError

if TYPE_CHECKING:
    from homebase.ports.store_port import StorePort

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2


@dataclass(frozen=True)
class SearchField:
    """One column of one entity kind and whether free text is matched against it."""

    kind: str
    table: str
    field: str
    searchable: bool = True


SEARCH_FIELDS: tuple[SearchField, ...] = (
    SearchField("bills", "bills", "bill_name"),
    SearchField("bills", "bills", "provider_name"),
    SearchField("documents", "documents", "name"),
    SearchField("documents", "documents", "description"),
    SearchField("documents", "documents", "tags"),
    SearchField("vehicles", "vehicles", "make"),
    SearchField("vehicles", "vehicles", "model"),
    SearchField("vehicles", "vehicles", "vin"),
    SearchField("vehicles", "vehicles", "notes"),
    SearchField("pets", "pets", "name"),
    SearchField("pets", "pets", "type"),
    SearchField("pets", "pets", "breed"),
    SearchField("pets", "pets", "vet_name"),
    SearchField("pets", "pets", "notes"),
    SearchField("pets", "pets", "vet_phone", searchable=False),
    SearchField("insurance", "insurance_policies", "provider"),
    SearchField("insurance", "insurance_policies", "policy_number"),
    SearchField("insurance", "insurance_policies", "policy_type"),
    SearchField("insurance", "insurance_policies", "notes"),
    SearchField("medical", "medical_records", "provider"),
    SearchField("medical", "medical_records", "record_type"),
    SearchField("medical", "medical_records", "notes"),
    SearchField("contacts", "home_service_contacts", "name"),
    SearchField("contacts", "home_service_contacts", "service_type"),
    SearchField("contacts", "home_service_contacts", "notes"),
    SearchField("contacts", "home_service_contacts", "phone", searchable=False),
    SearchField("appointments", "appointments", "title"),
    SearchField("appointments", "appointments", "location"),
    SearchField("appointments", "appointments", "notes"),
)

# Base filters applied before matching
_KIND_FILTERS: dict[str, dict] = {
    "bills": {"status": ("!=", "cancelled")},
}

# Kinds that get a "view" button, in button order
_NAVIGABLE = (
    ("bills", "View bills", "/bills"),
    ("pets", "View pets", "/pets"),
    ("vehicles", "View vehicles", "/vehicles"),
)


@dataclass
class SearchResults:
    """Matching rows per kind, in SEARCH_FIELDS kind order."""

    matches: dict[str, list[dict]] = field(default_factory=dict)

    def summary(self) -> dict[str, int]:
        return {kind: len(rows) for kind, rows in self.matches.items()}

    def total(self) -> int:
        return sum(len(rows) for rows in self.matches.values())

    def actions(self) -> list[CommandAction]:
        """Up to three navigation buttons for kinds that have matches."""
        actions = [
            CommandAction(label=label, type="navigate", payload={"route": route, "params": {}})
            for kind, label, route in _NAVIGABLE
            if self.matches.get(kind)
        ]
        return actions[:3]


def _fields_by_kind() -> dict[str, tuple[str, list[str]]]:
    grouped: dict[str, tuple[str, list[str]]] = {}
    for f in SEARCH_FIELDS:
        if not f.searchable:
            continue
        table, columns = grouped.setdefault(f.kind, (f.table, []))
        columns.append(f.field)
    return grouped


def _row_matches(row: dict, columns: list[str], term: str) -> bool:
    for column in columns:
        value = row.get(column)
        if value is not None and term in str(value).lower():
            return True
    return False


def search_household(store: StorePort, user_id: str, query: str) -> SearchResults:
    """Search every declared kind for query. A failing kind counts as no matches."""
    term = (query or "").strip().lower()
    grouped = _fields_by_kind()
    results = SearchResults(matches={kind: [] for kind in grouped})
    if len(term) < MIN_QUERY_LENGTH:
        return results

    for kind, (table, columns) in grouped.items():
        try:
            rows = store.select(table, user_id, where=_KIND_FILTERS.get(kind))
        except StoreError as exc:
            logger.warning("Search: %s unavailable: %s", kind, exc)
            continue
        results.matches[kind] = [r for r in rows if _row_matches(r, columns, term)]

    logger.debug("Search %r matched %d row(s)", term, results.total())
    return results
