"""
Transaction Store

The single owner of the tracker's mutable state: the transaction
collection and the user settings.

DESIGN DECISION: Every mutation follows one strict sequence:

    1. change memory
    2. attempt to persist the changed collection(s)
    3. notify subscribers, in subscription order
    4. raise PersistenceError if step 2 failed

Step 4 comes after step 3 on purpose: subscribers always see the new
in-memory state, and the caller learns that durable storage is behind.
There is no rollback. `is_dirty` stays True until a later save of the
same collection succeeds (any mutation, or flush()).

Construct one store at startup and pass it to every consumer.
"""

import itertools
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Union
from uuid import uuid4

import structlog
from pydantic import BaseModel, ValidationError

from finance_tracker.audit import AuditLogger
from finance_tracker.config import get_config
from finance_tracker.models.audit import AuditEventBuilder
from finance_tracker.models.fields import resolve_field_name
from finance_tracker.models.results import ExportDocument, ImportResult
from finance_tracker.models.settings import DEFAULT_CATEGORY, Settings
from finance_tracker.models.transaction import (
    Transaction,
    TransactionDraft,
    merge_updates,
    utcnow,
)
from finance_tracker.services.storage import StorageError, StorageInterface, StorageKind
from finance_tracker.services.transfer import (
    ImportRejectedError,
    build_export_document,
    export_to_json,
    parse_import_document,
)


Listener = Callable[[], Any]

MAX_ID_ATTEMPTS = 100

logger = structlog.get_logger(__name__)


def new_transaction_id() -> str:
    return f"txn_{uuid4().hex}"


class PersistenceError(StorageError):
    """
    A mutation was applied in memory but could not be saved.

    Attributes:
        kinds: Collections whose save failed
        record: The transaction the mutation produced, if any
    """

    def __init__(
        self,
        kinds: list[StorageKind],
        cause: StorageError,
        record: Optional[Transaction] = None,
    ):
        names = ", ".join(kind.value for kind in kinds)
        super().__init__(f"Could not save {names}: {cause}")
        self.kinds = kinds
        self.cause = cause
        self.record = record


class Subscription:
    """Handle returned by TransactionStore.subscribe."""

    def __init__(self, store: 'TransactionStore', token: int, listener: Listener):
        self._store = store
        self.token = token
        self.listener = listener

    @property
    def active(self) -> bool:
        return self._store.is_subscribed(self)

    def unsubscribe(self) -> bool:
        return self._store.unsubscribe(self)


class TransactionStore:
    """
    Authoritative state with synchronous change notification.

    Args:
        storage: Key-value persistence collaborator
        audit_logger: Where audit events go (a default one if None)
        default_settings: First-run settings (built from config if None)
        now: Timestamp source for createdAt/updatedAt
        id_factory: Source of new transaction ids
    """

    def __init__(
        self,
        storage: StorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        default_settings: Optional[Settings] = None,
        now: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self._storage = storage
        self._audit = audit_logger or AuditLogger()
        self._now = now or utcnow
        self._id_factory = id_factory or new_transaction_id

        self._listeners: dict[int, Listener] = {}
        self._tokens = itertools.count()
        self._dirty: set[StorageKind] = set()

        self._transactions: list[Transaction] = []
        self._settings = default_settings or Settings.from_config(get_config().app)
        self._load()

    # =========================================================================
    # LOADING
    # =========================================================================

    def _load(self) -> None:
        raw_transactions = self._load_kind(StorageKind.TRANSACTIONS)
        skipped = 0
        if raw_transactions is not None:
            if isinstance(raw_transactions, list):
                skipped = self._load_transactions(raw_transactions)
            else:
                self._audit.log(AuditEventBuilder.load_failed(
                    StorageKind.TRANSACTIONS.value,
                    "Stored transactions are not a list",
                ))

        raw_settings = self._load_kind(StorageKind.SETTINGS)
        if raw_settings is not None:
            try:
                self._settings = Settings.model_validate(raw_settings)
            except ValidationError as e:
                self._audit.log(AuditEventBuilder.load_failed(
                    StorageKind.SETTINGS.value, str(e)
                ))

        self._audit.log(AuditEventBuilder.data_loaded(
            len(self._transactions), skipped, raw_settings is not None
        ))

    def _load_kind(self, kind: StorageKind) -> Optional[Any]:
        try:
            return self._storage.load(kind)
        except StorageError as e:
            self._audit.log(AuditEventBuilder.load_failed(kind.value, str(e)))
            return None

    def _load_transactions(self, records: list) -> int:
        """Keep every valid record with an unseen id; return how many were skipped."""
        skipped = 0
        seen: set[str] = set()
        for record in records:
            try:
                transaction = Transaction.model_validate(record)
            except ValidationError as e:
                logger.warning("stored_transaction_skipped", error=str(e))
                skipped += 1
                continue
            if transaction.id in seen:
                logger.warning("stored_transaction_duplicate", transaction_id=transaction.id)
                skipped += 1
                continue
            seen.add(transaction.id)
            self._transactions.append(transaction)
        return skipped

    # =========================================================================
    # READS
    # =========================================================================

    def __len__(self) -> int:
        return len(self._transactions)

    def list_transactions(self) -> tuple[Transaction, ...]:
        """Insertion-ordered snapshot. Records are immutable."""
        return tuple(self._transactions)

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        for transaction in self._transactions:
            if transaction.id == transaction_id:
                return transaction
        return None

    @property
    def settings(self) -> Settings:
        """A copy of the current settings."""
        return self._settings.model_copy(deep=True)

    @property
    def is_dirty(self) -> bool:
        """True while some collection in memory is ahead of storage."""
        return bool(self._dirty)

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    def add_transaction(self, data: Union[TransactionDraft, Mapping[str, Any]]) -> Transaction:
        """
        Record a new transaction from validated field values.

        Raises:
            PersistenceError: The transaction was added but not saved
                              (available as error.record)
        """
        draft = data if isinstance(data, TransactionDraft) else TransactionDraft.model_validate(data)

        transaction = Transaction.from_draft(draft, self._unique_id(), self._now())
        self._transactions.append(transaction)

        self._audit.log(AuditEventBuilder.transaction_added(
            transaction.id, transaction.category, str(transaction.amount)
        ))
        self._commit(StorageKind.TRANSACTIONS, record=transaction)
        return transaction

    def update_transaction(
        self,
        transaction_id: str,
        updates: Union[BaseModel, Mapping[str, Any]],
    ) -> Optional[Transaction]:
        """
        Merge updates onto an existing transaction.

        Unknown ids are a no-op returning None (no save, no notification).
        """
        index = self._index_of(transaction_id)
        if index is None:
            logger.debug("update_unknown_transaction", transaction_id=transaction_id)
            return None

        if isinstance(updates, BaseModel):
            fields = list(updates.model_dump(exclude_unset=True))
        else:
            fields = [str(key) for key in updates]

        updated = merge_updates(self._transactions[index], updates, self._now())
        self._transactions[index] = updated

        self._audit.log(AuditEventBuilder.transaction_updated(transaction_id, fields))
        self._commit(StorageKind.TRANSACTIONS, record=updated)
        return updated

    def delete_transaction(self, transaction_id: str) -> bool:
        """
        Remove a transaction.

        Saves and notifies even when the id is unknown; returns whether a
        record was removed.
        """
        before = len(self._transactions)
        self._transactions = [t for t in self._transactions if t.id != transaction_id]
        existed = len(self._transactions) != before

        self._audit.log(AuditEventBuilder.transaction_deleted(transaction_id, existed))
        self._commit(StorageKind.TRANSACTIONS)
        return existed

    def _index_of(self, transaction_id: str) -> Optional[int]:
        for index, transaction in enumerate(self._transactions):
            if transaction.id == transaction_id:
                return index
        return None

    def _unique_id(self) -> str:
        existing = {t.id for t in self._transactions}
        for _ in range(MAX_ID_ATTEMPTS):
            candidate = self._id_factory()
            if candidate not in existing:
                return candidate
        raise RuntimeError("Could not generate a unique transaction id")

    # =========================================================================
    # SETTINGS
    # =========================================================================

    def update_settings(self, partial: Mapping[str, Any]) -> Settings:
        """
        Shallow-merge partial into the settings.

        Supplied fields replace current values; absent fields are kept.
        Keys may be field names or camelCase aliases; unknown keys are
        ignored. The merged settings are validated before anything
        changes, so an invalid update raises ValidationError and leaves
        the settings untouched.
        """
        merged = self._settings.model_dump()
        fields = []
        for key, value in partial.items():
            name = resolve_field_name(Settings, key)
            if name is None:
                logger.debug("unknown_settings_key", key=key)
                continue
            merged[name] = value
            fields.append(name)

        self._settings = Settings.model_validate(merged)

        self._audit.log(AuditEventBuilder.settings_updated(fields))
        self._commit(StorageKind.SETTINGS)
        return self.settings

    def add_category(self, name: str) -> bool:
        """
        Append a category (exact, case-sensitive match).

        An existing name is a no-op: no save, no notification. Returns
        whether the category was added.
        """
        if self._settings.has_category(name):
            return False

        self._settings = self._settings.model_copy(
            update={"categories": [*self._settings.categories, name]}
        )

        self._audit.log(AuditEventBuilder.category_added(name))
        self._commit(StorageKind.SETTINGS)
        return True

    def remove_category(self, name: str, reassign: bool = False) -> bool:
        """
        Remove a category by exact match.

        Saves and notifies whether or not the category existed. The
        catch-all category is refused (no save, no notification).

        Args:
            name: Category to remove
            reassign: Move transactions in this category to the catch-all

        Returns:
            True if the category was in the list
        """
        if name == DEFAULT_CATEGORY:
            self._audit.log(AuditEventBuilder.category_protected(name))
            return False

        existed = self._settings.has_category(name)
        self._settings = self._settings.model_copy(
            update={"categories": [c for c in self._settings.categories if c != name]}
        )

        kinds = [StorageKind.SETTINGS]
        reassigned = 0
        if reassign:
            now = self._now()
            for index, transaction in enumerate(self._transactions):
                if transaction.category == name:
                    self._transactions[index] = merge_updates(
                        transaction, {"category": DEFAULT_CATEGORY}, now
                    )
                    reassigned += 1
            if reassigned:
                kinds.append(StorageKind.TRANSACTIONS)

        self._audit.log(AuditEventBuilder.category_removed(name, existed, reassigned))
        self._commit(*kinds)
        return existed

    # =========================================================================
    # IMPORT / EXPORT
    # =========================================================================

    def export_data(self) -> ExportDocument:
        """Snapshot of all transactions and settings with a timestamp."""
        document = build_export_document(
            self._transactions, self.settings, exported_at=self._now()
        )
        self._audit.log(AuditEventBuilder.data_exported(len(document.transactions)))
        return document

    def export_json(self, indent: Optional[int] = 2) -> str:
        return export_to_json(self.export_data(), indent=indent)

    def import_data(self, document: Union[str, bytes, Mapping[str, Any]]) -> ImportResult:
        """
        Replace all transactions (and settings, when present) from a document.

        A rejected document changes nothing and is reported in the
        result. A save failure after a successful import raises
        PersistenceError like any other mutation.
        """
        try:
            parsed = parse_import_document(document)
        except ImportRejectedError as e:
            self._audit.log(AuditEventBuilder.import_rejected(str(e)))
            return ImportResult(success=False, message=str(e))

        self._transactions = list(parsed.transactions)
        kinds = [StorageKind.TRANSACTIONS]
        if parsed.settings is not None:
            self._settings = parsed.settings
            kinds.append(StorageKind.SETTINGS)

        count = len(parsed.transactions)
        self._audit.log(AuditEventBuilder.data_imported(count, parsed.settings is not None))
        self._commit(*kinds)

        return ImportResult(
            success=True,
            message=f"Successfully imported {count} transactions",
            transaction_count=count,
        )

    # =========================================================================
    # SUBSCRIPTIONS
    # =========================================================================

    def subscribe(self, listener: Listener) -> Subscription:
        """
        Register a zero-argument callback run after every mutation.

        Listeners receive no payload; they re-read the store.
        """
        token = next(self._tokens)
        self._listeners[token] = listener
        return Subscription(self, token, listener)

    def unsubscribe(self, subscription: Subscription) -> bool:
        return self._listeners.pop(subscription.token, None) is not None

    def is_subscribed(self, subscription: Subscription) -> bool:
        return subscription.token in self._listeners

    def _notify(self) -> None:
        for listener in list(self._listeners.values()):
            try:
                listener()
            except Exception as e:
                # One failing listener must not starve the rest
                name = getattr(listener, "__qualname__", repr(listener))
                self._audit.log(
                    AuditEventBuilder.listener_failed(name, str(e)),
                    exc_info=True,
                )

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def flush(self) -> None:
        """
        Save every collection again.

        Raises:
            PersistenceError: If any save fails
        """
        self._persist_all(list(StorageKind))

    def _commit(self, *kinds: StorageKind, record: Optional[Transaction] = None) -> None:
        failure = self._persist_all(kinds, raise_errors=False)
        self._notify()
        if failure is not None:
            failure.record = record
            raise failure from failure.cause

    def _persist_all(
        self,
        kinds,
        raise_errors: bool = True,
    ) -> Optional[PersistenceError]:
        failed: list[StorageKind] = []
        first_error: Optional[StorageError] = None

        for kind in kinds:
            try:
                self._persist(kind)
            except StorageError as e:
                self._dirty.add(kind)
                failed.append(kind)
                first_error = first_error or e
                self._audit.log(AuditEventBuilder.save_failed(kind.value, str(e)))
            else:
                self._dirty.discard(kind)

        if first_error is None:
            return None

        error = PersistenceError(failed, first_error)
        if raise_errors:
            raise error from first_error
        return error

    def _persist(self, kind: StorageKind) -> None:
        if kind == StorageKind.TRANSACTIONS:
            data = [t.to_storage_dict() for t in self._transactions]
        else:
            data = self._settings.to_storage_dict()

        try:
            saved = self._storage.save(kind, data)
        except StorageError:
            raise
        except Exception as e:
            # Third-party backends may raise anything; report it like a failed save
            raise StorageError(f"Error saving {kind.value}: {e}") from e

        if not saved:
            raise StorageError(f"Storage reported a failed save for {kind.value}")
