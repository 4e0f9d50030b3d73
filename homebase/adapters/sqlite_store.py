"""
Homebase Assistant — SQLite Store.

SQLite implementation of StorePort. Every table carries a `user_id` column
and every statement is scoped by it. Column names in filters, orderings and
patches are checked against the live schema before they reach SQL.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any

from homebase.ports.store_port import StoreError, Where

logger = logging.getLogger(__name__)

_SCHEMA = {
    "bills": """
        id              TEXT PRIMARY KEY,
        user_id         TEXT NOT NULL,
        bill_name       TEXT NOT NULL,
        provider_name   TEXT,
        payment_url     TEXT,
        due_date        TEXT NOT NULL,
        amount          REAL NOT NULL DEFAULT 0,
        status          TEXT NOT NULL DEFAULT 'pending',
        category        TEXT,
        paid_date       TEXT,
        paid_amount     REAL,
        notes           TEXT,
        created_at      TEXT NOT NULL
    """,
    "vehicles": """
        id                  TEXT PRIMARY KEY,
        user_id             TEXT NOT NULL,
        year                INTEGER,
        make                TEXT,
        model               TEXT,
        vin                 TEXT,
        registration_expiry TEXT,
        insurance_expiry    TEXT,
        notes               TEXT,
        created_at          TEXT NOT NULL
    """,
    "pets": """
        id          TEXT PRIMARY KEY,
        user_id     TEXT NOT NULL,
        name        TEXT NOT NULL,
        type        TEXT,
        breed       TEXT,
        vet_name    TEXT,
        vet_phone   TEXT,
        notes       TEXT,
        created_at  TEXT NOT NULL
    """,
    "appointments": """
        id                TEXT PRIMARY KEY,
        user_id           TEXT NOT NULL,
        title             TEXT NOT NULL,
        appointment_date  TEXT NOT NULL,
        appointment_time  TEXT,
        location          TEXT,
        notes             TEXT,
        created_at        TEXT NOT NULL
    """,
    "insurance_policies": """
        id             TEXT PRIMARY KEY,
        user_id        TEXT NOT NULL,
        provider       TEXT NOT NULL,
        policy_number  TEXT,
        policy_type    TEXT,
        renewal_date   TEXT,
        notes          TEXT,
        created_at     TEXT NOT NULL
    """,
    "medical_records": """
        id           TEXT PRIMARY KEY,
        user_id      TEXT NOT NULL,
        provider     TEXT,
        record_date  TEXT,
        record_type  TEXT,
        notes        TEXT,
        created_at   TEXT NOT NULL
    """,
    "home_service_contacts": """
        id            TEXT PRIMARY KEY,
        user_id       TEXT NOT NULL,
        name          TEXT NOT NULL,
        service_type  TEXT NOT NULL DEFAULT 'other',
        phone         TEXT,
        email         TEXT,
        notes         TEXT,
        created_at    TEXT NOT NULL
    """,
    "growth_records": """
        id             TEXT PRIMARY KEY,
        user_id        TEXT NOT NULL,
        name           TEXT NOT NULL,
        record_date    TEXT NOT NULL,
        shoe_size      TEXT,
        height_inches  REAL,
        notes          TEXT,
        created_at     TEXT NOT NULL
    """,
    "transactions": """
        id          TEXT PRIMARY KEY,
        user_id     TEXT NOT NULL,
        date        TEXT NOT NULL,
        vendor      TEXT,
        amount      REAL NOT NULL,
        type        TEXT NOT NULL,
        category    TEXT,
        created_at  TEXT NOT NULL
    """,
    "shopping_list": """
        id          TEXT PRIMARY KEY,
        user_id     TEXT NOT NULL,
        item        TEXT NOT NULL,
        completed   INTEGER NOT NULL DEFAULT 0,
        created_at  TEXT NOT NULL
    """,
    "documents": """
        id           TEXT PRIMARY KEY,
        user_id      TEXT NOT NULL,
        name         TEXT NOT NULL,
        description  TEXT,
        tags         TEXT,
        created_at   TEXT NOT NULL
    """,
    "invoices": """
        id              TEXT PRIMARY KEY,
        user_id         TEXT NOT NULL,
        invoice_number  TEXT NOT NULL,
        total           REAL NOT NULL DEFAULT 0,
        due_date        TEXT,
        status          TEXT NOT NULL DEFAULT 'draft',
        created_at      TEXT NOT NULL
    """,
    "estimated_tax_payments": """
        id               TEXT PRIMARY KEY,
        user_id          TEXT NOT NULL,
        tax_year         INTEGER NOT NULL,
        quarter          INTEGER NOT NULL,
        due_date         TEXT NOT NULL,
        total_estimated  REAL NOT NULL DEFAULT 0,
        paid             INTEGER NOT NULL DEFAULT 0,
        created_at       TEXT NOT NULL
    """,
    "dashboard_insights": """
        id            TEXT PRIMARY KEY,
        user_id       TEXT NOT NULL,
        insight_date  TEXT NOT NULL,
        title         TEXT NOT NULL,
        body          TEXT NOT NULL,
        insight_type  TEXT NOT NULL,
        source        TEXT NOT NULL,
        cta_label     TEXT,
        cta_route     TEXT,
        dismissed     INTEGER NOT NULL DEFAULT 0,
        created_at    TEXT NOT NULL,
        UNIQUE (user_id, insight_date, title)
    """,
    "chat_messages": """
        id          TEXT PRIMARY KEY,
        user_id     TEXT NOT NULL,
        role        TEXT NOT NULL,
        content     TEXT NOT NULL,
        created_at  TEXT NOT NULL
    """,
}

_BOOL_COLUMNS = {"completed", "dismissed", "paid"}
_OPERATORS = {"=", "!=", "<", "<=", ">", ">="}


class SqliteStore:
    """SQLite-backed storage for all household tables."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from homebase.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._columns: dict[str, set[str]] = {}
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        """Create all tables if they don't exist and cache their columns."""
        with self._connect() as conn:
            for table, columns in _SCHEMA.items():
                conn.execute(f"CREATE TABLE IF NOT EXISTS {table} ({columns})")
                self._columns[table] = {
                    row[1] for row in conn.execute(f"PRAGMA table_info({table})").fetchall()
                }
        logger.debug("Store initialized at %s (%d tables)", self._db_path, len(_SCHEMA))

    # ------------------------------------------------------------------
    # SQL building helpers
    # ------------------------------------------------------------------

    def _check_table(self, table: str) -> set[str]:
        columns = self._columns.get(table)
        if columns is None:
            raise StoreError(f"Unknown table: {table!r}")
        return columns

    @staticmethod
    def _check_column(table: str, columns: set[str], column: str) -> None:
        if column not in columns:
            raise StoreError(f"Unknown column {column!r} on table {table!r}")

    def _where_clause(self, table: str, user_id: str, where: Where | None) -> tuple[str, list]:
        columns = self._check_table(table)
        clauses = ["user_id = ?"]
        params: list[Any] = [user_id]
        for column, condition in (where or {}).items():
            self._check_column(table, columns, column)
            if isinstance(condition, list):
                conditions = condition
            elif isinstance(condition, tuple):
                conditions = [condition]
            else:
                conditions = [("=", condition)]
            for op, value in conditions:
                if op not in _OPERATORS:
                    raise StoreError(f"Unsupported operator {op!r}")
                if value is None and op in ("=", "!="):
                    clauses.append(f"{column} IS {'NOT ' if op == '!=' else ''}NULL")
                    continue
                clauses.append(f"{column} {op} ?")
                params.append(value)
        return " AND ".join(clauses), params

    def _order_clause(self, table: str, order_by: list[str] | None) -> str:
        columns = self._check_table(table)
        parts: list[str] = []
        for key in order_by or []:
            descending = key.startswith("-")
            column = key.lstrip("-")
            self._check_column(table, columns, column)
            # NULLs last in either direction
            parts.append(f"{column} IS NULL")
            parts.append(f"{column} {'DESC' if descending else 'ASC'}")
        parts.append("rowid ASC")
        return " ORDER BY " + ", ".join(parts)

    @staticmethod
    def _row_to_dict(row: sqlite3.Row) -> dict:
        data = dict(row)
        for column in _BOOL_COLUMNS & data.keys():
            data[column] = bool(data[column])
        return data

    # ------------------------------------------------------------------
    # StorePort implementation
    # ------------------------------------------------------------------

    def select(
        self,
        table: str,
        user_id: str,
        where: Where | None = None,
        order_by: list[str] | None = None,
        limit: int | None = None,
    ) -> list[dict]:
        """Return rows owned by user_id matching every filter."""
        clause, params = self._where_clause(table, user_id, where)
        query = f"SELECT * FROM {table} WHERE {clause}" + self._order_clause(table, order_by)
        if limit is not None:
            query += " LIMIT ?"
            params.append(int(limit))

        try:
            with self._connect() as conn:
                rows = conn.execute(query, params).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"select from {table} failed: {exc}") from exc

        return [self._row_to_dict(r) for r in rows]

    def insert(self, table: str, user_id: str, row: dict) -> dict:
        """Insert one row for user_id. Fills id and created_at when absent."""
        columns = self._check_table(table)
        data = dict(row)
        data["user_id"] = user_id
        data.setdefault("id", str(uuid.uuid4()))
        data.setdefault("created_at", datetime.now().isoformat())
        for column in data:
            self._check_column(table, columns, column)

        names = ", ".join(data)
        placeholders = ", ".join("?" for _ in data)
        try:
            with self._connect() as conn:
                conn.execute(
                    f"INSERT INTO {table} ({names}) VALUES ({placeholders})",
                    list(data.values()),
                )
        except sqlite3.Error as exc:
            raise StoreError(f"insert into {table} failed: {exc}") from exc

        logger.info("Inserted %s row %s for user %s", table, data["id"], user_id)
        return data

    def update(self, table: str, user_id: str, where: Where, patch: dict) -> int:
        """Apply patch to matching rows. Returns the number of rows changed."""
        columns = self._check_table(table)
        if not patch:
            return 0
        for column in patch:
            self._check_column(table, columns, column)
            if column in ("id", "user_id"):
                raise StoreError(f"Column {column!r} is immutable")

        clause, params = self._where_clause(table, user_id, where)
        assignments = ", ".join(f"{column} = ?" for column in patch)
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    f"UPDATE {table} SET {assignments} WHERE {clause}",
                    [*patch.values(), *params],
                )
        except sqlite3.Error as exc:
            raise StoreError(f"update of {table} failed: {exc}") from exc

        if cursor.rowcount:
            logger.info("Updated %d %s row(s) for user %s", cursor.rowcount, table, user_id)
        return cursor.rowcount

    def upsert(
        self,
        table: str,
        user_id: str,
        row: dict,
        conflict: tuple[str, ...],
        update_columns: tuple[str, ...] = (),
    ) -> None:
        """Insert a row, or on a unique-key conflict update only update_columns.

        With no update_columns an existing row is left exactly as it was.
        """
        columns = self._check_table(table)
        data = dict(row)
        data["user_id"] = user_id
        data.setdefault("id", str(uuid.uuid4()))
        data.setdefault("created_at", datetime.now().isoformat())
        for column in (*data, *conflict, *update_columns):
            self._check_column(table, columns, column)

        names = ", ".join(data)
        placeholders = ", ".join("?" for _ in data)
        target = ", ".join(conflict)
        if update_columns:
            action = "DO UPDATE SET " + ", ".join(f"{c} = excluded.{c}" for c in update_columns)
        else:
            action = "DO NOTHING"

        try:
            with self._connect() as conn:
                conn.execute(
                    f"INSERT INTO {table} ({names}) VALUES ({placeholders}) "
                    f"ON CONFLICT ({target}) {action}",
                    list(data.values()),
                )
        except sqlite3.Error as exc:
            raise StoreError(f"upsert into {table} failed: {exc}") from exc

    def delete(self, table: str, user_id: str, where: Where) -> int:
        """Permanently delete matching rows. Returns the number removed."""
        clause, params = self._where_clause(table, user_id, where)
        try:
            with self._connect() as conn:
                cursor = conn.execute(f"DELETE FROM {table} WHERE {clause}", params)
        except sqlite3.Error as exc:
            raise StoreError(f"delete from {table} failed: {exc}") from exc

        if cursor.rowcount:
            logger.info("Deleted %d %s row(s) for user %s", cursor.rowcount, table, user_id)
        return cursor.rowcount
