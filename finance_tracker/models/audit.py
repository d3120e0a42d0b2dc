"""
Audit Models for Finance Tracker

Every change to the tracker's data is logged for audit purposes.
This provides:
1. Traceability of all edits, deletes and imports
2. Debugging information when a save fails
3. A record of listener failures that were isolated

DESIGN DECISION: Audit events are write-once log records. They carry
identifiers and small detail dicts, never whole collections.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from finance_tracker.models.transaction import utcnow


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Each mutation of the store has its own event type.
    """
    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"

    # Settings
    SETTINGS_UPDATED = "settings_updated"
    CATEGORY_ADDED = "category_added"
    CATEGORY_REMOVED = "category_removed"
    CATEGORY_PROTECTED = "category_protected"

    # Bulk data
    DATA_LOADED = "data_loaded"
    DATA_IMPORTED = "data_imported"
    IMPORT_REJECTED = "import_rejected"
    DATA_EXPORTED = "data_exported"

    # Failures
    SAVE_FAILED = "save_failed"
    LOAD_FAILED = "load_failed"
    LISTENER_FAILED = "listener_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """A single audit event."""

    timestamp: datetime = Field(
        default_factory=utcnow,
        description="When the event occurred (UTC)"
    )
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'settings')"
    )
    entity_id: Optional[str] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(txn_id, amount)
        event = AuditEventBuilder.save_failed("transactions", error)
    """

    @staticmethod
    def transaction_added(transaction_id: str, category: str, amount: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction added: {category} {amount}",
            details={"category": category, "amount": amount},
        )

    @staticmethod
    def transaction_updated(transaction_id: str, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction updated: {', '.join(fields) or 'no fields'}",
            details={"fields": fields},
        )

    @staticmethod
    def transaction_deleted(transaction_id: str, existed: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=(
                "Transaction deleted" if existed
                else "Delete requested for unknown transaction"
            ),
            details={"existed": existed},
        )

    @staticmethod
    def settings_updated(fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_UPDATED,
            entity_type="settings",
            description=f"Settings updated: {', '.join(fields) or 'no fields'}",
            details={"fields": fields},
        )

    @staticmethod
    def category_added(name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_ADDED,
            entity_type="category",
            entity_id=name,
            description=f"Category added: {name}",
        )

    @staticmethod
    def category_removed(name: str, existed: bool, reassigned: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_REMOVED,
            entity_type="category",
            entity_id=name,
            description=f"Category removed: {name}",
            details={"existed": existed, "reassigned_transactions": reassigned},
        )

    @staticmethod
    def category_protected(name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_PROTECTED,
            severity=AuditSeverity.WARNING,
            entity_type="category",
            entity_id=name,
            description=f"Refused to remove the catch-all category: {name}",
        )

    @staticmethod
    def data_loaded(transaction_count: int, skipped: int, settings_found: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_LOADED,
            severity=AuditSeverity.WARNING if skipped else AuditSeverity.INFO,
            description=f"Loaded {transaction_count} transactions from storage",
            details={
                "transaction_count": transaction_count,
                "skipped_records": skipped,
                "settings_found": settings_found,
            },
        )

    @staticmethod
    def data_imported(transaction_count: int, settings_replaced: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_IMPORTED,
            description=f"Imported {transaction_count} transactions",
            details={
                "transaction_count": transaction_count,
                "settings_replaced": settings_replaced,
            },
        )

    @staticmethod
    def import_rejected(reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_REJECTED,
            severity=AuditSeverity.WARNING,
            description="Import rejected",
            error_message=reason,
        )

    @staticmethod
    def data_exported(transaction_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_EXPORTED,
            description=f"Exported {transaction_count} transactions",
            details={"transaction_count": transaction_count},
        )

    @staticmethod
    def save_failed(kind: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="storage",
            entity_id=kind,
            description=f"Saving {kind} failed; memory is ahead of storage",
            error_message=error_message,
        )

    @staticmethod
    def load_failed(kind: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOAD_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="storage",
            entity_id=kind,
            description=f"Loading {kind} failed; starting from defaults",
            error_message=error_message,
        )

    @staticmethod
    def listener_failed(listener: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LISTENER_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="listener",
            entity_id=listener,
            description=f"Change listener raised: {listener}",
            error_message=error_message,
        )
