"""Field validation package."""

from finance_tracker.validation.validator import (
    VALIDATION_PATTERNS,
    ValidationEngine,
    validate_amount,
    validate_category,
    validate_date,
    validate_description,
)

__all__ = [
    "VALIDATION_PATTERNS",
    "ValidationEngine",
    "validate_amount",
    "validate_category",
    "validate_date",
    "validate_description",
]
