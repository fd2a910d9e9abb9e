"""
Derived Field Calculator and Totals Aggregator

Pure functions only. Nothing here reads or writes the Record Store;
callers pass records in and get new values (or new record copies) out.

DESIGN DECISION: Totals are always recomputed from the current records,
never maintained incrementally, so a missed update can't make them drift.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Optional, Sequence

CENT = Decimal("0.01")
ZERO = Decimal("0")
# Amounts below 10**15 round to cents well inside the decimal context precision
MAX_AMOUNT_EXPONENT = 15

# Financial summary row positions
SUMMARY_ANNUAL_EXPENSES = 0
SUMMARY_MONTHLY_EXPENSES = 1
SUMMARY_DEVELOPMENT_COST = 2
SUMMARY_APRIL25_EXPENSES = 3
SUMMARY_APRIL25_PROFIT = 4
SUMMARY_TOTAL_PROFIT = 5
SUMMARY_INPUT_ROWS = frozenset(range(SUMMARY_APRIL25_PROFIT))


def as_decimal(value: Any) -> Decimal:
    """Coerce a stored amount to Decimal, treating blanks as zero."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value: Any) -> Decimal:
    """Round half-up to whole cents."""
    return as_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def yet_to_be_recovered(
    dev: Any,
    extra: Any,
    invest: Any,
    getting_amount: Any,
) -> Decimal:
    """Outstanding project balance: everything spent minus what came back."""
    return (
        as_decimal(dev)
        + as_decimal(extra)
        + as_decimal(invest)
        - as_decimal(getting_amount)
    )


def projected_annual_revenue(projected_monthly_revenue: Any) -> Decimal:
    return as_decimal(projected_monthly_revenue) * 12


def recompute_derived(record):
    """
    Return a copy of record with its derived field recomputed.

    Records without a derived field are returned unchanged. Running this
    twice on unchanged inputs yields the same value.
    """
    field = record.DERIVED_FIELD
    if field is None:
        return record
    return record.model_copy(update={field: record.derived_value()})


def summary_profits(amounts: Sequence[Any]) -> tuple[Decimal, Decimal]:
    """
    Profit rows of the financial summary from its four expense rows.

    Returns (april25_profit, total_profit_2025).
    """
    annual = as_decimal(amounts[SUMMARY_ANNUAL_EXPENSES])
    monthly = as_decimal(amounts[SUMMARY_MONTHLY_EXPENSES])
    development = as_decimal(amounts[SUMMARY_DEVELOPMENT_COST])
    april25 = as_decimal(amounts[SUMMARY_APRIL25_EXPENSES])
    return monthly - april25, monthly - annual - development - april25


def recompute_summary_rows(records: list) -> list:
    """
    Rewrite the financial summary's profit rows in place on a list copy.

    Needs at least the four expense rows; profit rows that don't exist
    are skipped.
    """
    if len(records) <= SUMMARY_APRIL25_EXPENSES:
        return records
    april25_profit, total_profit = summary_profits([r.amount for r in records[:4]])
    updated = list(records)
    if len(updated) > SUMMARY_APRIL25_PROFIT:
        updated[SUMMARY_APRIL25_PROFIT] = updated[SUMMARY_APRIL25_PROFIT].model_copy(
            update={"amount": april25_profit}
        )
    if len(updated) > SUMMARY_TOTAL_PROFIT:
        updated[SUMMARY_TOTAL_PROFIT] = updated[SUMMARY_TOTAL_PROFIT].model_copy(
            update={"amount": total_profit}
        )
    return updated


def calculate_totals(
    records: Iterable[Any],
    fields: Iterable[str],
) -> dict[str, Decimal]:
    """
    Field-wise sums over records.

    Blank values count as zero. Single pass over the records.
    """
    field_names = list(fields)
    totals = {name: ZERO for name in field_names}
    for record in records:
        for name in field_names:
            totals[name] += as_decimal(getattr(record, name, None))
    return totals


def parse_amount(text: str) -> Optional[Decimal]:
    """
    Parse user input as a nonnegative finite number below 10**15.

    Returns None when the text isn't one. Empty text is not a number here;
    callers decide what empty means.
    """
    candidate = text.strip()
    if not candidate:
        return None
    try:
        value = Decimal(candidate)
    except ArithmeticError:
        return None
    if not value.is_finite() or value < 0:
        return None
    if value and value.adjusted() >= MAX_AMOUNT_EXPONENT:
        return None
    return value
