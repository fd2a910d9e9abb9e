"""Cell validation package."""

from finance_grid.validation.validator import CellValidationError, CellValidator

__all__ = ["CellValidationError", "CellValidator"]
