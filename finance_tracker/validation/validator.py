"""
Field Validation Rules

DESIGN DECISION: Every input field has its own ordered rule list and
the first failing rule wins. Rules are pure functions returning a
ValidationResult; nothing here raises for bad input.

FIELDS:
- description: required, single interior spaces only, no repeated
  consecutive word ("the the"), at most 100 characters
- amount: required, plain decimal with up to 2 places, > 0, <= 1,000,000
- date: required, strict YYYY-MM-DD, a real calendar day, not in the future
- category: required, letter runs joined by single spaces or hyphens,
  at most 30 characters

IMPORTANT: Validation NEVER silently fixes input.
Whitespace problems are reported, not trimmed away.
"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Iterable, Mapping, Optional

from finance_tracker.models.results import DraftValidation, ValidationResult
from finance_tracker.models.transaction import MAX_AMOUNT, TransactionDraft
from finance_tracker.queries.search import compile_pattern


MAX_DESCRIPTION_LENGTH = 100
MAX_CATEGORY_LENGTH = 30

# Patterns are applied with fullmatch unless noted
VALIDATION_PATTERNS = {
    # Non-space runs separated by exactly one whitespace character
    "description": re.compile(r"\S+(?:\s\S+)*"),
    # No leading zeros, no thousands separators, 1-2 decimals
    "amount": re.compile(r"(0|[1-9]\d*)(\.\d{1,2})?", re.ASCII),
    "date": re.compile(r"\d{4}-(0[1-9]|1[0-2])-(0[1-9]|[12]\d|3[01])", re.ASCII),
    "category": re.compile(r"[A-Za-z]+(?:[ -][A-Za-z]+)*"),
    # Back-reference; applied with search
    "duplicate_words": re.compile(r"\b(\w+)\s+\1\b", re.IGNORECASE),
}

FIELD_ORDER = ("description", "amount", "category", "date")


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def validate_description(value: Any) -> ValidationResult:
    description = _as_text(value)

    if not description.strip():
        return ValidationResult.fail("Description is required")

    if not VALIDATION_PATTERNS["description"].fullmatch(description):
        return ValidationResult.fail(
            "Description cannot have leading/trailing spaces or multiple consecutive spaces"
        )

    if VALIDATION_PATTERNS["duplicate_words"].search(description):
        return ValidationResult.fail("Description contains duplicate consecutive words")

    if len(description) > MAX_DESCRIPTION_LENGTH:
        return ValidationResult.fail(
            f"Description must be {MAX_DESCRIPTION_LENGTH} characters or less"
        )

    return ValidationResult.ok()


def validate_amount(value: Any) -> ValidationResult:
    amount = _as_text(value)

    if not amount.strip():
        return ValidationResult.fail("Amount is required")

    if not VALIDATION_PATTERNS["amount"].fullmatch(amount):
        return ValidationResult.fail(
            "Amount must be a positive number with up to 2 decimal places"
        )

    parsed = Decimal(amount)
    if parsed <= 0:
        return ValidationResult.fail("Amount must be greater than 0")

    if parsed > MAX_AMOUNT:
        return ValidationResult.fail("Amount is too large")

    return ValidationResult.ok()


def validate_date(value: Any, today: Optional[date] = None) -> ValidationResult:
    """
    Validate an expense date.

    The future check compares calendar days, which is the same as
    comparing against the last instant of today.
    """
    text = _as_text(value)

    if not text.strip():
        return ValidationResult.fail("Date is required")

    if not VALIDATION_PATTERNS["date"].fullmatch(text):
        return ValidationResult.fail("Date must be in YYYY-MM-DD format")

    try:
        parsed = date.fromisoformat(text)
    except ValueError:
        return ValidationResult.fail("Invalid date")

    if parsed > (today or date.today()):
        return ValidationResult.fail("Date cannot be in the future")

    return ValidationResult.ok()


def validate_category(value: Any) -> ValidationResult:
    category = _as_text(value)

    if not category.strip():
        return ValidationResult.fail("Category is required")

    if not VALIDATION_PATTERNS["category"].fullmatch(category):
        return ValidationResult.fail(
            "Category can only contain letters, spaces, and hyphens"
        )

    if len(category) > MAX_CATEGORY_LENGTH:
        return ValidationResult.fail(
            f"Category must be {MAX_CATEGORY_LENGTH} characters or less"
        )

    return ValidationResult.ok()


class ValidationEngine:
    """
    Applies the field rules to whole forms.

    Holds only a clock for the future-date rule, so tests can pin "today".
    """

    def __init__(self, today: Optional[Callable[[], date]] = None):
        self._today = today or date.today

    def validate_description(self, value: Any) -> ValidationResult:
        return validate_description(value)

    def validate_amount(self, value: Any) -> ValidationResult:
        return validate_amount(value)

    def validate_date(self, value: Any) -> ValidationResult:
        return validate_date(value, today=self._today())

    def validate_category(self, value: Any) -> ValidationResult:
        return validate_category(value)

    def validate_search_pattern(
        self,
        pattern: str,
        case_sensitive: bool = False,
    ) -> ValidationResult:
        """Check that a search pattern compiles."""
        compiled = compile_pattern(pattern, case_sensitive)
        if compiled.error:
            return ValidationResult.fail(compiled.error)
        return ValidationResult.ok()

    def validate_draft(
        self,
        fields: Mapping[str, Any],
        categories: Optional[Iterable[str]] = None,
    ) -> DraftValidation:
        """
        Validate every form field independently.

        Args:
            fields: Raw form values keyed by field name
            categories: When given, the category must also be one of these
                        (exact match)
        """
        results = {
            "description": self.validate_description(fields.get("description")),
            "amount": self.validate_amount(fields.get("amount")),
            "category": self.validate_category(fields.get("category")),
            "date": self.validate_date(fields.get("date")),
        }

        if categories is not None and results["category"].valid:
            allowed = list(categories)
            if fields.get("category") not in allowed:
                results["category"] = ValidationResult.fail(
                    f"Unknown category: {fields.get('category')}"
                )

        return DraftValidation(results=results)

    def parse_draft(
        self,
        fields: Mapping[str, Any],
        categories: Optional[Iterable[str]] = None,
    ) -> tuple[DraftValidation, Optional[TransactionDraft]]:
        """
        Validate a form and, when every field passes, build the draft.

        Returns: (validation, draft_or_None)
        """
        validation = self.validate_draft(fields, categories)
        if not validation.is_valid:
            return validation, None

        draft = TransactionDraft(
            description=_as_text(fields["description"]).strip(),
            amount=Decimal(_as_text(fields["amount"])),
            category=_as_text(fields["category"]).strip(),
            date=date.fromisoformat(_as_text(fields["date"])),
        )
        return validation, draft

    def get_user_friendly_summary(self, result: DraftValidation) -> str:
        """
        Summarize a form validation for display.
        """
        if result.is_valid:
            return "All fields look good."

        lines = ["Please fix the following:"]
        for field in FIELD_ORDER:
            field_result = result.results.get(field)
            if field_result is not None and not field_result.valid:
                lines.append(f"   • {field.capitalize()}: {field_result.message}")

        return "\n".join(lines)
