"""Tests for homebase.core.command_parser — ordered rule-based intent parsing."""

import pytest

from homebase.core.command_parser import Intent, ParsedCommand, normalize_query, parse_command


class TestNormalize:
    def test_trims_lowercases_and_collapses(self):
        assert normalize_query("  Bills   DUE\tthis  week ") == "bills due this week"

    def test_none_becomes_empty(self):
        assert normalize_query(None) == ""


class TestTotality:
    @pytest.mark.parametrize("query", [
        "", "   ", "🙂🙂", "こんにちは", "¿qué?", "\n\t", "a" * 5000, "((((", "[unclosed", "$$$ 100%",
    ])
    def test_any_input_yields_one_command(self, query):
        result = parse_command(query)
        assert isinstance(result, ParsedCommand)
        assert result.intent in set(Intent)

    def test_unmatched_falls_back_to_search(self):
        assert parse_command("passport renewal").intent == Intent.SEARCH

    def test_empty_is_search(self):
        assert parse_command("").intent == Intent.SEARCH


class TestBillsDueWeek:
    @pytest.mark.parametrize("query", [
        "bills due this week",
        "Payments due week",
        "show me all the bills due",
        "What are all bills due this week?",
    ])
    def test_matches(self, query):
        result = parse_command(query)
        assert result.intent == Intent.BILLS_DUE_WEEK
        assert result.entities["period"] == "this_week"


class TestShoeSize:
    def test_possessive_name(self):
        result = parse_command("What's Emma's shoe size?")
        assert result.intent == Intent.SHOE_SIZE
        assert result.entities["person_name"] == "emma"

    def test_for_name(self):
        result = parse_command("shoe size for jake")
        assert result.entities["person_name"] == "jake"

    def test_no_name(self):
        result = parse_command("what is the shoe size")
        assert result.intent == Intent.SHOE_SIZE
        assert result.entities["person_name"] is None


class TestReminder:
    def test_remind_me_to(self):
        result = parse_command("Remind me to renew the registration next week")
        assert result.intent == Intent.ADD_REMINDER
        assert result.entities["reminder_title"] == "renew the registration"
        assert result.entities["reminder_when"] == "next_week"

    def test_add_reminder_defaults_to_tomorrow(self):
        result = parse_command("add reminder pick up dry cleaning")
        assert result.intent == Intent.ADD_REMINDER
        assert result.entities["reminder_title"] == "pick up dry cleaning"
        assert result.entities["reminder_when"] == "tomorrow"

    def test_call_tomorrow_builds_call_title(self):
        result = parse_command("call the dentist tomorrow")
        assert result.entities["reminder_title"] == "Call the dentist"


class TestSpending:
    def test_category_and_last_month(self):
        result = parse_command("How much did we spend on groceries last month?")
        assert result.intent == Intent.SPENDING_SUMMARY
        assert result.entities == {"category": "groceries", "period": "last_month"}

    def test_period_defaults_to_this_month(self):
        result = parse_command("how much did we spend")
        assert result.entities == {"category": None, "period": "this_month"}

    def test_period_words_are_not_categories(self):
        result = parse_command("how much did we spend last month")
        assert result.entities["category"] is None
        assert result.entities["period"] == "last_month"

    def test_spent_on(self):
        result = parse_command("what we spent on utilities")
        assert result.intent == Intent.SPENDING_SUMMARY
        assert result.entities["category"] == "utilities"


class TestRegistration:
    @pytest.mark.parametrize("query", [
        "when is the car registration due", "registration expiring soon?", "registration due",
    ])
    def test_matches(self, query):
        assert parse_command(query).intent == Intent.REGISTRATION_DUE


class TestCallContact:
    def test_call_the_plumber(self):
        result = parse_command("call the plumber")
        assert result.intent == Intent.CALL_CONTACT
        assert result.entities["contact_type"] == "plumber"


class TestBills:
    def test_pay_bill(self):
        result = parse_command("pay the electric bill")
        assert result.intent == Intent.PAY_BILL
        assert result.entities["bill_name"] == "electric"

    def test_bill_pay_phrasing(self):
        result = parse_command("internet bill pay")
        assert result.intent == Intent.PAY_BILL
        assert result.entities["bill_name"] == "internet"

    def test_mark_paid(self):
        result = parse_command("mark the electric bill paid")
        assert result.intent == Intent.MARK_BILL_PAID
        assert result.entities["bill_name"] == "electric"

    def test_mark_as_paid(self):
        result = parse_command("hey mark TXU as paid")
        assert result.intent == Intent.MARK_BILL_PAID
        assert result.entities["bill_name"] == "txu"


class TestRuleOrder:
    """One regression test per ordering decision between overlapping rules."""

    def test_call_tomorrow_is_reminder_not_call_contact(self):
        assert parse_command("call the dentist tomorrow").intent == Intent.ADD_REMINDER

    def test_call_next_week_is_reminder_not_call_contact(self):
        assert parse_command("call mom next week").intent == Intent.ADD_REMINDER

    def test_plain_call_is_call_contact(self):
        assert parse_command("call the plumber").intent == Intent.CALL_CONTACT

    def test_bills_due_week_beats_pay_bill(self):
        assert parse_command("show me bills due so I can pay the electric bill").intent == Intent.BILLS_DUE_WEEK

    def test_shoe_size_beats_reminder(self):
        assert parse_command("remind me to check jake's shoe size").intent == Intent.SHOE_SIZE

    def test_reminder_beats_spending(self):
        result = parse_command("remind me to review spending on groceries")
        assert result.intent == Intent.ADD_REMINDER

    def test_spending_beats_registration(self):
        assert parse_command("how much did we spend on registration due fees").intent == Intent.SPENDING_SUMMARY

    def test_registration_beats_call_contact(self):
        assert parse_command("call about registration due date").intent == Intent.REGISTRATION_DUE

    def test_call_contact_beats_pay_bill(self):
        assert parse_command("call the electric company to pay the bill").intent == Intent.CALL_CONTACT

    def test_pay_bill_beats_mark_paid(self):
        assert parse_command("pay the water bill and mark it paid").intent == Intent.PAY_BILL
