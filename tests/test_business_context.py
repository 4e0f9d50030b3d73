"""Tests for homebase.core.business_context and homebase.core.quarterly."""

from datetime import date

from homebase.core.business_context import build_business_context, expense_windows, monthly_stats
from homebase.core.quarterly import days_until, quarter_due_date, quarter_ranges


def _txn(day, amount, kind="expense"):
    return {"date": day, "amount": amount, "type": kind}


class TestMonthlyStats:
    def test_no_transactions(self):
        stats = monthly_stats([])
        assert stats.has_data is False
        assert stats.profit == 0

    def test_profit_uses_absolute_expenses(self):
        stats = monthly_stats([_txn("2026-03-01", 1000, "income"), _txn("2026-03-02", -300)])
        assert (stats.income, stats.expenses, stats.profit) == (1000, 300, 700)
        assert stats.has_data is True


class TestExpenseWindows:
    def test_window_edges(self, today):
        txns = [
            _txn("2026-03-10", 10),   # today, last7
            _txn("2026-03-04", 20),   # today-6, last7
            _txn("2026-03-03", 40),   # today-7, prev7
            _txn("2026-02-25", 80),   # today-13, prev7
            _txn("2026-02-24", 160),  # today-14, neither
            _txn("2026-03-05", 999, "income"),
        ]
        assert expense_windows(txns, today) == (30, 120)


class TestBuildBusinessContext:
    def test_invoices_and_bills(self, store, user_id, today):
        store.insert("invoices", user_id, {"invoice_number": "INV-1", "total": 100, "due_date": "2026-03-01", "status": "sent"})
        store.insert("invoices", user_id, {"invoice_number": "INV-2", "total": 50, "due_date": "2026-03-20", "status": "viewed"})
        store.insert("invoices", user_id, {"invoice_number": "INV-3", "total": 75, "due_date": "2026-02-01", "status": "paid"})
        for i in range(7):
            store.insert("bills", user_id, {"bill_name": f"B{i}", "due_date": f"2026-03-1{i}", "amount": 10})
        store.insert("bills", user_id, {"bill_name": "Paid", "due_date": "2026-03-09", "amount": 10, "status": "paid"})

        ctx = build_business_context(store, user_id, today)

        assert ctx.unpaid_invoice_count == 2
        assert ctx.unpaid_invoice_total == 150
        assert [i.invoice_number for i in ctx.overdue_invoices] == ["INV-1"]
        assert [b.bill_name for b in ctx.upcoming_bills] == ["B0", "B1", "B2", "B3", "B4"]
        assert ctx.upcoming_bill_count == 7
        assert ctx.upcoming_bills_total == 70

    def test_store_failure_gives_empty_context(self, broken_store, user_id, today):
        ctx = build_business_context(broken_store, user_id, today)
        assert ctx.monthly_stats.has_data is False
        assert ctx.upcoming_bills == ()
        assert ctx.recent_transaction_count == 0


class TestQuarterly:
    def test_due_dates(self):
        assert quarter_due_date(2026, 1) == date(2026, 4, 15)
        assert quarter_due_date(2026, 2) == date(2026, 6, 15)
        assert quarter_due_date(2026, 3) == date(2026, 9, 15)
        assert quarter_due_date(2026, 4) == date(2027, 1, 15)

    def test_ranges_cover_the_year(self):
        ranges = quarter_ranges(2026)
        assert ranges[1].start == date(2026, 1, 1)
        assert ranges[4].end == date(2026, 12, 31)

    def test_days_until(self, today):
        assert days_until(date(2026, 3, 24), today) == 14
        assert days_until(date(2026, 3, 9), today) == -1
