"""
Cell Value Validation

Two steps, mirroring how a cell edit behaves:

STEP 1 - LIVE VALIDATION (on every keystroke):
- Numeric cells accept an empty draft or a finite number >= 0 below 10**15
- Anything else sets an error that blocks Enter

STEP 2 - NORMALIZATION (on commit):
- Numeric: empty or "0" → 0, otherwise parse and round to cents
- Counts: must be whole numbers
- Text and status: trim surrounding whitespace

IMPORTANT: Normalization never guesses. A draft that doesn't parse is
refused, not coerced.
"""

from decimal import Decimal
from typing import Any, Optional

from finance_grid.calculations import ZERO, parse_amount, round_money
from finance_grid.models.records import FieldKind

INVALID_NUMBER = "Please enter a valid positive number"
INVALID_FORMAT = "Invalid number format"
INVALID_COUNT = "Please enter a whole number"


class CellValidationError(ValueError):
    """A draft value can't be committed to its cell."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class CellValidator:
    """Validates and normalizes draft cell values by field kind."""

    def validate_input(self, kind: FieldKind, draft: str) -> Optional[str]:
        """
        Live check of an in-progress draft.

        Returns:
            An error message, or None if the draft is acceptable so far
        """
        if not kind.is_numeric or draft == "":
            return None
        value = parse_amount(draft)
        if value is None:
            return INVALID_NUMBER
        if kind == FieldKind.COUNT and value != value.to_integral_value():
            return INVALID_COUNT
        return None

    def normalize(self, field: str, kind: FieldKind, draft: str) -> Any:
        """
        Turn a draft string into the value to store.

        Raises:
            CellValidationError: If a numeric draft doesn't parse
        """
        if not kind.is_numeric:
            return draft.strip()

        if draft in ("", "0"):
            return 0 if kind == FieldKind.COUNT else ZERO

        value = parse_amount(draft)
        if value is None:
            raise CellValidationError(field, INVALID_FORMAT)
        if kind == FieldKind.COUNT:
            if value != value.to_integral_value():
                raise CellValidationError(field, INVALID_COUNT)
            return int(value)
        try:
            return round_money(value)
        except ArithmeticError as e:
            raise CellValidationError(field, INVALID_FORMAT) from e

    @staticmethod
    def same_value(kind: FieldKind, original: Any, normalized: Any) -> bool:
        """Change detection: 360000 and 360000.00 are the same amount."""
        if kind.is_numeric:
            try:
                return Decimal(str(original if original not in (None, "") else 0)) == Decimal(
                    str(normalized)
                )
            except ArithmeticError:
                return False
        return original == normalized
