"""Tests for derived field calculation, totals and amount parsing."""

from decimal import Decimal

from finance_grid.calculations import (
    calculate_totals,
    parse_amount,
    projected_annual_revenue,
    recompute_derived,
    recompute_summary_rows,
    round_money,
    summary_profits,
    yet_to_be_recovered,
)
from finance_grid.models import FINANCIAL_SUMMARY, PROJECTS, ProjectRecord


class TestDerivedFields:
    """Tests for per-row derived values."""

    def test_yet_to_be_recovered(self):
        """Test dev + extra + invest - gettingAmount."""
        assert yet_to_be_recovered(360000, 22000, 1, 2000) == Decimal("380001")

    def test_yet_to_be_recovered_can_go_negative(self):
        assert yet_to_be_recovered(100, 0, 0, 250) == Decimal("-150")

    def test_blank_inputs_count_as_zero(self):
        assert yet_to_be_recovered(None, "", 5, None) == Decimal("5")

    def test_projected_annual_revenue(self):
        assert projected_annual_revenue(Decimal("2999")) == Decimal("35988")

    def test_recompute_derived_returns_copy(self):
        """Test the original record is left alone."""
        record = ProjectRecord(dev=Decimal("100"), extra=Decimal("50"))
        updated = recompute_derived(record)
        assert updated.yet_to_be_recovered == Decimal("150")
        assert record.yet_to_be_recovered == Decimal("0")

    def test_recompute_derived_is_idempotent(self):
        record = ProjectRecord(dev=Decimal("100"), getting_amount=Decimal("30"))
        once = recompute_derived(record)
        twice = recompute_derived(once)
        assert once.yet_to_be_recovered == twice.yet_to_be_recovered == Decimal("70")


class TestSummaryProfits:
    """Tests for the financial summary's collection-level recomputation."""

    def test_summary_profits(self):
        """Test April25 profit and total profit from the four expense rows."""
        april25, total = summary_profits([22000, 2000, 700, 500])
        assert april25 == Decimal("1500")
        assert total == Decimal("-21200")

    def test_recompute_summary_rows_rewrites_profit_rows(self):
        records = FINANCIAL_SUMMARY.default_records()
        updated = recompute_summary_rows(records)
        assert updated[4].amount == Decimal("2000")
        assert updated[5].amount == Decimal("-20700")
        # Expense rows untouched
        assert [r.amount for r in updated[:4]] == [r.amount for r in records[:4]]

    def test_recompute_summary_rows_with_too_few_rows(self):
        records = FINANCIAL_SUMMARY.default_records()[:3]
        assert recompute_summary_rows(records) == records


class TestTotals:
    """Tests for field-wise totals."""

    def test_totals_over_project_defaults(self):
        totals = calculate_totals(PROJECTS.default_records(), PROJECTS.numeric_fields)
        assert totals["dev"] == Decimal("720000")
        assert totals["extra"] == Decimal("22000")
        assert totals["getting_amount"] == Decimal("2001")
        assert totals["yet_to_be_recovered"] == Decimal("739999")

    def test_totals_of_empty_collection_are_zero(self):
        totals = calculate_totals([], ["dev", "extra"])
        assert totals == {"dev": Decimal("0"), "extra": Decimal("0")}


class TestParsing:
    """Tests for amount parsing and rounding."""

    def test_round_money_half_up(self):
        assert round_money("450000.456") == Decimal("450000.46")
        assert round_money("0.005") == Decimal("0.01")

    def test_parse_amount_accepts_plain_numbers(self):
        assert parse_amount("12.5") == Decimal("12.5")
        assert parse_amount(" 7 ") == Decimal("7")

    def test_parse_amount_rejects_non_numbers(self):
        assert parse_amount("") is None
        assert parse_amount("abc") is None
        assert parse_amount("12abc") is None

    def test_parse_amount_rejects_negative_and_non_finite(self):
        assert parse_amount("-1") is None
        assert parse_amount("Infinity") is None
        assert parse_amount("NaN") is None

    def test_parse_amount_rejects_amounts_too_large_to_round(self):
        assert parse_amount("999999999999999.99") == Decimal("999999999999999.99")
        assert parse_amount("1" + "0" * 15) is None
        assert parse_amount("1e30") is None
        assert parse_amount("0.000") == Decimal("0.000")
