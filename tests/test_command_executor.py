"""Tests for homebase.core.command_executor — deterministic quick-command answers."""

from datetime import date, timedelta

import pytest

from homebase.core.command_executor import (
    NOTHING_FOUND,
    SEARCH_PROMPT,
    CommandData,
    bills_due_this_week,
    build_search_result_answer,
    execute_command,
    resolve_reminder_date,
)
from homebase.core.command_parser import Intent, ParsedCommand, parse_command
from homebase.data.models import Bill, GrowthRecord, ServiceContact, Vehicle


def _bill(name, due, amount=10.0, status="pending", bill_id=None, provider=None, url=None):
    return Bill(
        id=bill_id or name.lower().replace(" ", "-"),
        bill_name=name,
        due_date=due.isoformat() if isinstance(due, date) else due,
        amount=amount,
        status=status,
        provider_name=provider,
        payment_url=url,
    )


def _cmd(intent, **entities):
    return ParsedCommand(intent=intent, entities=entities)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestResolveReminderDate:
    def test_tomorrow(self, today):
        assert resolve_reminder_date("tomorrow", today) == "2026-03-11"

    def test_next_week(self, today):
        assert resolve_reminder_date("next_week", today) == "2026-03-17"

    def test_unknown_defaults_to_tomorrow(self, today):
        assert resolve_reminder_date("someday", today) == "2026-03-11"
        assert resolve_reminder_date(None, today) == "2026-03-11"

    def test_crosses_month_end(self):
        assert resolve_reminder_date("next_week", date(2026, 2, 25)) == "2026-03-04"


class TestBillsDueThisWeek:
    def test_boundaries(self, today):
        bills = [
            _bill("Today", today),
            _bill("Plus seven", today + timedelta(days=7)),
            _bill("Plus eight", today + timedelta(days=8)),
            _bill("Yesterday", today - timedelta(days=1)),
        ]
        due = bills_due_this_week(bills, today)
        assert [b.bill_name for b in due] == ["Today", "Plus seven"]

    @pytest.mark.parametrize("status", ["paid", "overdue", "cancelled"])
    def test_non_pending_excluded(self, today, status):
        assert bills_due_this_week([_bill("X", today, status=status)], today) == []


class TestBuildSearchResultAnswer:
    def test_counts_in_order(self):
        assert build_search_result_answer({"bills": 2, "documents": 0, "pets": 1}) == "I found 2 bills, 1 pets."

    def test_all_zero(self):
        assert build_search_result_answer({"bills": 0, "pets": 0}) == NOTHING_FOUND

    def test_empty(self):
        assert build_search_result_answer({}) == NOTHING_FOUND


# ---------------------------------------------------------------------------
# Per-intent behavior
# ---------------------------------------------------------------------------


class TestBillsDueWeekIntent:
    def test_netflix_end_to_end(self, today):
        data = CommandData(bills=[_bill("Netflix", today + timedelta(days=3), amount=15.99)])
        result = execute_command(parse_command("bills due this week"), data, today)

        assert "1 bill" in result.answer
        assert "$15.99" in result.answer
        assert len(result.actions) == 1
        assert result.actions[0].type == "navigate"

    def test_plural_total(self, today):
        data = CommandData(bills=[_bill("A", today, 10), _bill("B", today, 5.5)])
        result = execute_command(_cmd(Intent.BILLS_DUE_WEEK), data, today)
        assert result.answer == "I found 2 bills due this week ($15.50 total)."

    def test_none_due(self, today):
        result = execute_command(_cmd(Intent.BILLS_DUE_WEEK), CommandData(), today)
        assert result.answer == "You have no bills due this week."
        assert result.actions == []


class TestShoeSizeIntent:
    def test_latest_record_for_person(self, today):
        data = CommandData(growth_records=[
            GrowthRecord(name="Emma", record_date="2025-09-01", shoe_size="12"),
            GrowthRecord(name="Emma", record_date="2026-01-15", shoe_size="13"),
            GrowthRecord(name="Jake", record_date="2026-02-01", shoe_size="5"),
        ])
        result = execute_command(_cmd(Intent.SHOE_SIZE, person_name="emma"), data, today)
        assert result.answer == "Emma's latest shoe size is 13 (recorded Jan 15, 2026)."

    def test_size_not_recorded(self, today):
        data = CommandData(growth_records=[GrowthRecord(name="Jake", record_date="2026-02-01")])
        result = execute_command(_cmd(Intent.SHOE_SIZE, person_name="jake"), data, today)
        assert "not recorded" in result.answer

    def test_no_record_offers_add_action(self, today):
        result = execute_command(_cmd(Intent.SHOE_SIZE, person_name="liam"), CommandData(), today)
        assert result.answer == "I don't have a shoe size on file for liam."
        assert result.actions[0].label == "Add growth record"


class TestAddReminderIntent:
    def test_proposes_without_writing(self, today):
        parsed = _cmd(Intent.ADD_REMINDER, reminder_title="Call the dentist", reminder_when="tomorrow")
        result = execute_command(parsed, CommandData(), today)

        assert result.answer == 'I\'ll add a reminder: "Call the dentist" for Wednesday, Mar 11.'
        assert len(result.actions) == 1
        action = result.actions[0]
        assert action.type == "create_reminder"
        assert action.payload == {"title": "Call the dentist", "appointment_date": "2026-03-11"}

    def test_next_week(self, today):
        parsed = _cmd(Intent.ADD_REMINDER, reminder_title="x", reminder_when="next_week")
        result = execute_command(parsed, CommandData(), today)
        assert result.actions[0].payload["appointment_date"] == "2026-03-17"


class TestSpendingIntent:
    def test_category_substring(self, today):
        data = CommandData(spending_by_category={"Groceries & Food": 210.5, "utilities": 90}, spending_total=300.5)
        parsed = _cmd(Intent.SPENDING_SUMMARY, category="groceries", period="last_month")
        result = execute_command(parsed, data, today)
        assert result.answer == "You spent $210.50 on Groceries & Food last month."

    def test_category_missing(self, today):
        parsed = _cmd(Intent.SPENDING_SUMMARY, category="travel", period="this_month")
        result = execute_command(parsed, CommandData(spending_total=50), today)
        assert result.answer == 'I didn\'t find spending for "travel" this month.'

    def test_period_total(self, today):
        parsed = _cmd(Intent.SPENDING_SUMMARY, category=None, period="this_month")
        result = execute_command(parsed, CommandData(spending_total=1234.5), today)
        assert result.answer == "You spent $1234.50 this month total."

    def test_no_data(self, today):
        parsed = _cmd(Intent.SPENDING_SUMMARY, period="last_month")
        assert execute_command(parsed, CommandData(), today).answer == "No spending data for last month."


class TestRegistrationIntent:
    def test_lists_vehicles_with_dates(self, today):
        data = CommandData(vehicles=[
            Vehicle(year=2020, make="Toyota", model="Camry", registration_expiry="2026-06-30"),
            Vehicle(make="Honda"),
        ])
        result = execute_command(_cmd(Intent.REGISTRATION_DUE), data, today)
        assert result.answer == "Registration due:\n2020 Toyota Camry: June 30, 2026"

    def test_empty_is_navigation_hint(self, today):
        result = execute_command(_cmd(Intent.REGISTRATION_DUE), CommandData(), today)
        assert result.answer == "No vehicle registration dates on file."
        assert result.actions[0].type == "navigate"


class TestCallContactIntent:
    def test_first_match_with_phone(self, today):
        data = CommandData(home_service_contacts=[
            ServiceContact(name="Joe's Plumbing", service_type="plumber", phone=""),
            ServiceContact(name="Ace Plumbing", service_type="plumber", phone="(555) 123-4567"),
            ServiceContact(name="Best Plumbing", service_type="plumber", phone="555 999 0000"),
        ])
        result = execute_command(_cmd(Intent.CALL_CONTACT, contact_type="plumber"), data, today)
        assert result.answer == "I found Ace Plumbing. Tap to call."
        assert result.actions[0].type == "call"
        assert result.actions[0].payload == {"url": "tel:5551234567"}

    def test_no_phone(self, today):
        data = CommandData(home_service_contacts=[ServiceContact(name="Dr. Lee", service_type="dentist")])
        result = execute_command(_cmd(Intent.CALL_CONTACT, contact_type="dentist"), data, today)
        assert result.answer == "I don't have a phone number for dentist."


class TestPayBillIntent:
    def test_requires_payment_url(self, today):
        data = CommandData(bills=[
            _bill("Electric", today, url=None),
            _bill("City Electric", today, url="https://pay.example/city"),
        ])
        result = execute_command(_cmd(Intent.PAY_BILL, bill_name="electric"), data, today)
        assert result.answer == "Opening City Electric payment link."
        assert result.actions[0].payload == {"url": "https://pay.example/city"}

    def test_matches_provider(self, today):
        data = CommandData(bills=[_bill("Power", today, provider="TXU Energy", url="https://txu.example")])
        result = execute_command(_cmd(Intent.PAY_BILL, bill_name="txu"), data, today)
        assert result.actions[0].type == "open_url"

    def test_not_found(self, today):
        result = execute_command(_cmd(Intent.PAY_BILL, bill_name="gas"), CommandData(), today)
        assert result.answer == 'I couldn\'t find a bill with a payment link for "gas".'


class TestMarkBillPaidIntent:
    def test_first_match_wins(self, today):
        data = CommandData(bills=[
            _bill("Electric Co", today, amount=80, bill_id="b1"),
            _bill("City Electric", today, amount=120, bill_id="b2"),
        ])
        parsed = _cmd(Intent.MARK_BILL_PAID, bill_name="electric")
        results = [execute_command(parsed, data, today) for _ in range(3)]

        for result in results:
            assert result.actions[0].payload == {"bill_id": "b1", "amount": 80}
            assert result.answer == "I found Electric Co. Tap to mark it paid."

    def test_skips_non_pending(self, today):
        data = CommandData(bills=[
            _bill("Electric Co", today, status="paid", bill_id="b1"),
            _bill("City Electric", today, bill_id="b2"),
        ])
        result = execute_command(_cmd(Intent.MARK_BILL_PAID, bill_name="electric"), data, today)
        assert result.actions[0].payload["bill_id"] == "b2"

    def test_not_found(self, today):
        result = execute_command(_cmd(Intent.MARK_BILL_PAID, bill_name="water"), CommandData(), today)
        assert result.answer == 'I couldn\'t find a pending bill matching "water".'


class TestSearchIntent:
    def test_static_prompt(self, today):
        result = execute_command(_cmd(Intent.SEARCH), CommandData(), today)
        assert result.answer == SEARCH_PROMPT
        assert result.actions == []
        assert result.search_summary == {}
