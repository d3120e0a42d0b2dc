"""
Data Models Package

This package contains all Pydantic models used by the Finance Tracker.
Stored, exported and returned data conforms to these schemas.
"""

from finance_tracker.models.settings import DEFAULT_CATEGORY, Settings
from finance_tracker.models.transaction import (
    MAX_AMOUNT,
    Transaction,
    TransactionDraft,
    coerce_amount,
    merge_updates,
    utcnow,
)
from finance_tracker.models.results import (
    BudgetReport,
    BudgetStatus,
    CategoryTotal,
    DraftValidation,
    ExportDocument,
    ImportResult,
    SearchMatch,
    SpendingStats,
    TrendPoint,
    ValidationResult,
)
from finance_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Transaction models
    "MAX_AMOUNT",
    "Transaction",
    "TransactionDraft",
    "coerce_amount",
    "merge_updates",
    "utcnow",
    # Settings
    "DEFAULT_CATEGORY",
    "Settings",
    # Results
    "BudgetReport",
    "BudgetStatus",
    "CategoryTotal",
    "DraftValidation",
    "ExportDocument",
    "ImportResult",
    "SearchMatch",
    "SpendingStats",
    "TrendPoint",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
