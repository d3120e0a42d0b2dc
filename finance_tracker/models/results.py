"""
Result Models

Values returned by validation, analytics, search and import/export.
None of these operations raise for user-correctable problems; they hand
back one of these models instead.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from finance_tracker.models.settings import Settings
from finance_tracker.models.transaction import Transaction, utcnow


# =============================================================================
# VALIDATION
# =============================================================================

class ValidationResult(BaseModel):
    """Outcome of one field rule. message is empty when valid."""

    valid: bool
    message: str = ""

    @classmethod
    def ok(cls) -> 'ValidationResult':
        return cls(valid=True)

    @classmethod
    def fail(cls, message: str) -> 'ValidationResult':
        return cls(valid=False, message=message)


class DraftValidation(BaseModel):
    """
    Field-by-field outcome for a whole transaction form.

    Every field is checked independently; one failing field never hides
    the result of another.
    """

    results: dict[str, ValidationResult] = Field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return all(result.valid for result in self.results.values())

    @property
    def errors(self) -> dict[str, str]:
        """Messages for failing fields only."""
        return {
            field: result.message
            for field, result in self.results.items()
            if not result.valid
        }


# =============================================================================
# ANALYTICS
# =============================================================================

class BudgetStatus(str, Enum):
    """Monthly spend versus budget."""
    OK = "ok"
    WARNING = "warning"   # at least 80% used
    DANGER = "danger"     # budget reached or exceeded


class BudgetReport(BaseModel):
    """Budget classification plus the numbers behind it."""

    status: BudgetStatus
    message: str
    percentage: float = Field(
        ...,
        description="Spent as a percentage of budget (100.0 when no budget is set)"
    )
    spent: Decimal
    remaining: Decimal
    budget: Decimal


class TrendPoint(BaseModel):
    """Spend on one calendar day."""

    date: dt.date
    amount: Decimal = Decimal("0")


class CategoryTotal(BaseModel):
    name: str
    amount: Decimal


class SpendingStats(BaseModel):
    """Dashboard summary figures."""

    transaction_count: int = Field(ge=0)
    total_spent: Decimal
    spent_this_month: Decimal
    spent_last_7_days: Decimal
    top_category: Optional[CategoryTotal] = None
    monthly_budget: Decimal
    remaining: Decimal
    percentage_used: float


# =============================================================================
# SEARCH
# =============================================================================

class SearchMatch(BaseModel):
    """Whether a pattern matched a text, or why it could not be used."""

    matches: bool = False
    error: Optional[str] = None


# =============================================================================
# IMPORT / EXPORT
# =============================================================================

class ExportDocument(BaseModel):
    """
    Full snapshot of the tracker, in the document shape import accepts.

    Keys are camelCase: transactions, settings, exportedAt.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    transactions: list[Transaction] = Field(default_factory=list)
    settings: Settings
    exported_at: dt.datetime = Field(default_factory=utcnow)


class ImportResult(BaseModel):
    """Outcome of an import attempt."""

    success: bool
    message: str
    transaction_count: int = 0
