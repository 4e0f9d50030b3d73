"""Tests for homebase.adapters.sqlite_store — SqliteStore (SQLite storage)."""

import pytest

from homebase.adapters.sqlite_store import SqliteStore
from homebase.ports.store_port import StoreError


def _bill(store, user_id, name, due, **extra):
    return store.insert("bills", user_id, {"bill_name": name, "due_date": due, "amount": 10, **extra})


class TestSqliteStoreInsertAndSelect:
    def test_insert_fills_id_and_created_at(self, store, user_id):
        row = _bill(store, user_id, "Water", "2026-03-12")
        assert row["id"]
        assert row["created_at"]
        assert row["user_id"] == user_id

    def test_select_returns_defaults(self, store, user_id):
        _bill(store, user_id, "Water", "2026-03-12")
        rows = store.select("bills", user_id)
        assert len(rows) == 1
        assert rows[0]["status"] == "pending"

    def test_rows_are_scoped_by_user(self, store, user_id):
        _bill(store, user_id, "Mine", "2026-03-12")
        _bill(store, "other", "Theirs", "2026-03-12")
        assert [r["bill_name"] for r in store.select("bills", user_id)] == ["Mine"]
        assert [r["bill_name"] for r in store.select("bills", "other")] == ["Theirs"]

    def test_equality_and_operator_filters(self, store, user_id):
        _bill(store, user_id, "A", "2026-03-01", status="paid")
        _bill(store, user_id, "B", "2026-03-05")
        _bill(store, user_id, "C", "2026-03-20")

        pending = store.select("bills", user_id, where={"status": "pending"})
        assert {r["bill_name"] for r in pending} == {"B", "C"}

        not_paid = store.select("bills", user_id, where={"status": ("!=", "paid")})
        assert {r["bill_name"] for r in not_paid} == {"B", "C"}

        ranged = store.select(
            "bills", user_id, where={"due_date": [(">=", "2026-03-02"), ("<=", "2026-03-10")]},
        )
        assert [r["bill_name"] for r in ranged] == ["B"]

    def test_none_filter_is_null_check(self, store, user_id):
        _bill(store, user_id, "No URL", "2026-03-01")
        _bill(store, user_id, "URL", "2026-03-01", payment_url="https://x.example")
        assert [r["bill_name"] for r in store.select("bills", user_id, where={"payment_url": None})] == ["No URL"]
        assert [r["bill_name"] for r in store.select("bills", user_id, where={"payment_url": ("!=", None)})] == ["URL"]

    def test_ordering_and_limit(self, store, user_id):
        _bill(store, user_id, "Late", "2026-03-20")
        _bill(store, user_id, "Early", "2026-03-01")
        _bill(store, user_id, "Mid", "2026-03-10")

        asc = store.select("bills", user_id, order_by=["due_date"])
        assert [r["bill_name"] for r in asc] == ["Early", "Mid", "Late"]

        desc = store.select("bills", user_id, order_by=["-due_date"], limit=2)
        assert [r["bill_name"] for r in desc] == ["Late", "Mid"]

    def test_nulls_sort_last(self, store, user_id):
        store.insert("appointments", user_id, {"title": "No time", "appointment_date": "2026-03-11"})
        store.insert("appointments", user_id, {
            "title": "Morning", "appointment_date": "2026-03-11", "appointment_time": "09:00",
        })
        rows = store.select("appointments", user_id, order_by=["appointment_date", "appointment_time"])
        assert [r["title"] for r in rows] == ["Morning", "No time"]

    def test_bool_columns_come_back_as_bool(self, store, user_id):
        store.insert("shopping_list", user_id, {"item": "Milk"})
        assert store.select("shopping_list", user_id)[0]["completed"] is False


class TestSqliteStoreValidation:
    def test_unknown_table(self, store, user_id):
        with pytest.raises(StoreError):
            store.select("nope", user_id)

    def test_unknown_column_in_filter(self, store, user_id):
        with pytest.raises(StoreError):
            store.select("bills", user_id, where={"nope": 1})

    def test_unknown_column_in_order(self, store, user_id):
        with pytest.raises(StoreError):
            store.select("bills", user_id, order_by=["-nope"])

    def test_unsupported_operator(self, store, user_id):
        with pytest.raises(StoreError):
            store.select("bills", user_id, where={"amount": ("LIKE", "%")})

    def test_missing_required_column_is_store_error(self, store, user_id):
        with pytest.raises(StoreError):
            store.insert("bills", user_id, {"bill_name": "No due date"})


class TestSqliteStoreUpdateAndDelete:
    def test_update_returns_rowcount(self, store, user_id):
        row = _bill(store, user_id, "Water", "2026-03-12")
        assert store.update("bills", user_id, {"id": row["id"]}, {"status": "paid"}) == 1
        assert store.select("bills", user_id)[0]["status"] == "paid"

    def test_update_other_users_row_changes_nothing(self, store, user_id):
        row = _bill(store, user_id, "Water", "2026-03-12")
        assert store.update("bills", "other", {"id": row["id"]}, {"status": "paid"}) == 0
        assert store.select("bills", user_id)[0]["status"] == "pending"

    def test_update_empty_patch(self, store, user_id):
        row = _bill(store, user_id, "Water", "2026-03-12")
        assert store.update("bills", user_id, {"id": row["id"]}, {}) == 0

    def test_update_immutable_column(self, store, user_id):
        row = _bill(store, user_id, "Water", "2026-03-12")
        with pytest.raises(StoreError):
            store.update("bills", user_id, {"id": row["id"]}, {"user_id": "other"})

    def test_delete(self, store, user_id):
        row = _bill(store, user_id, "Water", "2026-03-12")
        _bill(store, user_id, "Gas", "2026-03-12")
        assert store.delete("bills", user_id, {"id": row["id"]}) == 1
        assert [r["bill_name"] for r in store.select("bills", user_id)] == ["Gas"]


class TestSqliteStoreUpsert:
    def _insight(self, title, body="body"):
        return {
            "insight_date": "2026-03-10",
            "title": title,
            "body": body,
            "insight_type": "tip",
            "source": "rule",
        }

    def test_conflict_leaves_existing_row(self, store, user_id):
        conflict = ("user_id", "insight_date", "title")
        store.upsert("dashboard_insights", user_id, self._insight("T", "first"), conflict=conflict)
        store.upsert("dashboard_insights", user_id, self._insight("T", "second"), conflict=conflict)

        rows = store.select("dashboard_insights", user_id)
        assert len(rows) == 1
        assert rows[0]["body"] == "first"

    def test_conflict_with_update_columns(self, store, user_id):
        conflict = ("user_id", "insight_date", "title")
        store.upsert("dashboard_insights", user_id, self._insight("T", "first"), conflict=conflict)
        store.upsert(
            "dashboard_insights", user_id, self._insight("T", "second"),
            conflict=conflict, update_columns=("body",),
        )
        assert store.select("dashboard_insights", user_id)[0]["body"] == "second"

    def test_same_title_for_another_user_is_separate(self, store, user_id):
        conflict = ("user_id", "insight_date", "title")
        store.upsert("dashboard_insights", user_id, self._insight("T"), conflict=conflict)
        store.upsert("dashboard_insights", "other", self._insight("T"), conflict=conflict)
        assert len(store.select("dashboard_insights", user_id)) == 1
        assert len(store.select("dashboard_insights", "other")) == 1


class TestSqliteStoreInit:
    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "homebase.db"
        SqliteStore(str(path))
        assert path.exists()
