"""
Tests for Finance Tracker

Test strategy:
1. Unit tests for individual components (models, validators, queries)
2. Store tests against in-memory storage with pinned clocks
3. No real files outside pytest's tmp_path
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from pydantic import ValidationError

from finance_tracker.config import AppSettings
from finance_tracker.models import (
    DEFAULT_CATEGORY,
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    DraftValidation,
    Settings,
    Transaction,
    TransactionDraft,
    ValidationResult,
    coerce_amount,
    merge_updates,
)


CREATED = datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc)


def make_transaction(**overrides) -> Transaction:
    fields = {
        "id": "txn_1",
        "description": "Coffee run",
        "amount": Decimal("12.50"),
        "category": "Food",
        "date": date(2026, 10, 1),
        "created_at": CREATED,
        "updated_at": CREATED,
    }
    fields.update(overrides)
    return Transaction(**fields)


class TestCoerceAmount:
    """Tests for the stored-amount policy."""

    @pytest.mark.parametrize("value, expected", [
        (12, Decimal("12")),
        (12.5, Decimal("12.5")),
        (0.1, Decimal("0.1")),
        ("40.25", Decimal("40.25")),
        (Decimal("7.10"), Decimal("7.10")),
    ])
    def test_numeric_values_kept(self, value, expected):
        """Test that numbers and numeric strings keep their value."""
        assert coerce_amount(value) == expected

    @pytest.mark.parametrize("value", [
        None, True, False, "abc", "", float("nan"), float("inf"),
        Decimal("NaN"), "Infinity", [1], {"amount": 1},
    ])
    def test_unusable_values_become_zero(self, value):
        """Test that missing or non-numeric values count as zero."""
        assert coerce_amount(value) == Decimal("0")


class TestTransactionDraft:
    """Tests for validated form input."""

    def test_draft_creation(self):
        """Test TransactionDraft creation with clean values."""
        draft = TransactionDraft(
            description="Train ticket",
            amount=Decimal("23.40"),
            category="Transport",
            date=date(2026, 10, 2),
        )
        assert draft.amount == Decimal("23.40")
        assert draft.date == date(2026, 10, 2)

    def test_draft_strips_whitespace(self):
        """Test that whitespace is stripped from text fields."""
        draft = TransactionDraft(
            description="  Lunch  ", amount="9", category=" Food ", date="2026-10-02"
        )
        assert draft.description == "Lunch"
        assert draft.category == "Food"

    @pytest.mark.parametrize("amount", ["0", "-1", "1000000.01", "1.234"])
    def test_draft_rejects_bad_amounts(self, amount):
        """Test the schema-level amount bounds."""
        with pytest.raises(ValidationError):
            TransactionDraft(
                description="Test", amount=amount, category="Food", date="2026-10-02"
            )

    def test_draft_rejects_long_description(self):
        """Test that descriptions over 100 characters are rejected."""
        with pytest.raises(ValidationError):
            TransactionDraft(
                description="x" * 101, amount="1", category="Food", date="2026-10-02"
            )


class TestTransaction:
    """Tests for the stored transaction record."""

    def test_storage_dict_uses_camel_case(self):
        """Test the persisted document shape."""
        data = make_transaction().to_storage_dict()

        assert set(data) == {
            "id", "description", "amount", "category", "date", "createdAt", "updatedAt",
        }
        assert data["date"] == "2026-10-01"
        assert data["amount"] == 12.5

    def test_whole_amount_serializes_as_int(self):
        """Test that 40.00 is written as 40."""
        data = make_transaction(amount=Decimal("40.00")).to_storage_dict()
        assert data["amount"] == 40
        assert isinstance(data["amount"], int)

    def test_python_dump_keeps_decimal(self):
        """Test that only JSON dumps convert the amount to a number."""
        assert make_transaction().model_dump()["amount"] == Decimal("12.50")

    def test_accepts_camel_case_input(self):
        """Test loading a stored document back."""
        stored = make_transaction().to_storage_dict()
        assert Transaction.model_validate(stored) == make_transaction()

    def test_corrupt_amount_reads_as_zero(self):
        """Test that a non-numeric stored amount loads as zero."""
        stored = make_transaction().to_storage_dict()
        stored["amount"] = "lots"
        assert Transaction.model_validate(stored).amount == Decimal("0")

    def test_missing_category_defaults_to_other(self):
        """Test that a stored record without a category lands in Other."""
        stored = make_transaction().to_storage_dict()
        del stored["category"]
        assert Transaction.model_validate(stored).category == DEFAULT_CATEGORY

    def test_transaction_is_frozen(self):
        """Test that records cannot be mutated in place."""
        transaction = make_transaction()
        with pytest.raises(ValidationError):
            transaction.amount = Decimal("1")

    def test_from_draft_sets_both_timestamps(self):
        """Test that createdAt and updatedAt start equal."""
        draft = TransactionDraft(
            description="Book", amount="15", category="Books", date="2026-10-03"
        )
        transaction = Transaction.from_draft(draft, "txn_9", CREATED)

        assert transaction.id == "txn_9"
        assert transaction.created_at == transaction.updated_at == CREATED


class TestMergeUpdates:
    """Tests for edit precedence."""

    def test_present_fields_replace(self):
        """Test that supplied fields take the new value."""
        later = datetime(2026, 10, 5, tzinfo=timezone.utc)
        updated = merge_updates(make_transaction(), {"amount": "20", "category": "Fees"}, later)

        assert updated.amount == Decimal("20")
        assert updated.category == "Fees"
        assert updated.description == "Coffee run"
        assert updated.updated_at == later

    def test_identity_fields_never_change(self):
        """Test that id and createdAt survive an update that names them."""
        later = datetime(2026, 10, 5, tzinfo=timezone.utc)
        updated = merge_updates(
            make_transaction(),
            {"id": "other", "createdAt": later, "created_at": later},
            later,
        )

        assert updated.id == "txn_1"
        assert updated.created_at == CREATED

    def test_aliases_and_unknown_keys(self):
        """Test that camelCase keys resolve and unknown keys are ignored."""
        later = datetime(2026, 10, 5, tzinfo=timezone.utc)
        updated = merge_updates(
            make_transaction(), {"description": "Tea", "colour": "red"}, later
        )
        assert updated.description == "Tea"

    def test_draft_updates_use_only_set_fields(self):
        """Test that a full draft replaces the editable fields."""
        later = datetime(2026, 10, 5, tzinfo=timezone.utc)
        draft = TransactionDraft(
            description="Taxi", amount="30", category="Transport", date="2026-10-04"
        )
        updated = merge_updates(make_transaction(), draft, later)

        assert updated.description == "Taxi"
        assert updated.date == date(2026, 10, 4)
        assert updated.id == "txn_1"


class TestSettings:
    """Tests for the settings model."""

    def test_defaults(self):
        """Test that bare settings are usable."""
        settings = Settings()
        assert settings.base_currency == "USD"
        assert settings.currencies == {"USD": Decimal("1")}
        assert settings.categories == [DEFAULT_CATEGORY]

    def test_other_is_always_present(self):
        """Test that the catch-all category is appended when missing."""
        settings = Settings(categories=["Food", "Food", "Books"])
        assert settings.categories == ["Food", "Books", DEFAULT_CATEGORY]

    def test_base_currency_rate_added(self):
        """Test that the base currency joins the rate table at 1."""
        settings = Settings(base_currency="EUR", currencies={"USD": "1.09"})
        assert settings.currencies["EUR"] == Decimal("1")

    def test_base_currency_rate_must_be_one(self):
        """Test that a base currency rate other than 1 is rejected."""
        with pytest.raises(ValidationError):
            Settings(base_currency="USD", currencies={"USD": "2"})

    @pytest.mark.parametrize("currencies", [
        {"usd": "1"}, {"EURO": "1"}, {"EUR": "0"}, {"EUR": "-1"},
    ])
    def test_bad_rates_rejected(self, currencies):
        """Test currency code and rate checks."""
        with pytest.raises(ValidationError):
            Settings(currencies=currencies)

    def test_negative_budget_rejected(self):
        """Test that the monthly budget cannot be negative."""
        with pytest.raises(ValidationError):
            Settings(monthly_budget="-5")

    def test_storage_dict_shape(self):
        """Test camelCase keys and numeric values."""
        data = Settings(
            currencies={"USD": "1", "EUR": "0.92"}, monthly_budget="1500"
        ).to_storage_dict()

        assert data == {
            "baseCurrency": "USD",
            "currencies": {"USD": 1, "EUR": 0.92},
            "categories": [DEFAULT_CATEGORY],
            "monthlyBudget": 1500,
        }

    def test_from_config(self):
        """Test first-run settings from the app configuration."""
        settings = Settings.from_config(AppSettings(
            default_categories="Food, Books",
            default_currency_rates="USD:1,GBP:0.79",
            default_monthly_budget="750",
        ))

        assert settings.categories == ["Food", "Books", DEFAULT_CATEGORY]
        assert settings.currencies == {"USD": Decimal("1"), "GBP": Decimal("0.79")}
        assert settings.monthly_budget == Decimal("750")

    def test_has_category_is_exact(self):
        """Test that membership is case-sensitive."""
        settings = Settings(categories=["Food"])
        assert settings.has_category("Food")
        assert not settings.has_category("food")


class TestResultModels:
    """Tests for returned result models."""

    def test_validation_result_helpers(self):
        """Test ok/fail constructors."""
        assert ValidationResult.ok() == ValidationResult(valid=True, message="")
        assert ValidationResult.fail("Nope").message == "Nope"

    def test_draft_validation_errors(self):
        """Test that only failing fields are listed."""
        result = DraftValidation(results={
            "description": ValidationResult.ok(),
            "amount": ValidationResult.fail("Amount is required"),
        })
        assert not result.is_valid
        assert result.errors == {"amount": "Amount is required"}


class TestAuditModels:
    """Tests for audit event models."""

    def test_audit_event_creation(self):
        """Test AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id="txn_1",
            description="Transaction added",
        )
        assert event.severity == AuditSeverity.INFO
        assert event.timestamp.tzinfo is not None

    def test_to_log_dict(self):
        """Test conversion to the structured log shape."""
        event = AuditEventBuilder.transaction_added("txn_1", "Food", "12.50")
        log_dict = event.to_log_dict()

        assert log_dict["event_type"] == "transaction_added"
        assert log_dict["entity_id"] == "txn_1"
        assert log_dict["details"] == {"category": "Food", "amount": "12.50"}

    def test_builder_severities(self):
        """Test that failures are errors and refusals are warnings."""
        assert AuditEventBuilder.save_failed("transactions", "disk").severity == AuditSeverity.ERROR
        assert AuditEventBuilder.listener_failed("render", "boom").severity == AuditSeverity.ERROR
        assert AuditEventBuilder.category_protected("Other").severity == AuditSeverity.WARNING
        assert AuditEventBuilder.import_rejected("bad").error_message == "bad"

    def test_data_loaded_warns_on_skipped_records(self):
        """Test that skipped stored records raise the severity."""
        assert AuditEventBuilder.data_loaded(3, 0, True).severity == AuditSeverity.INFO
        assert AuditEventBuilder.data_loaded(3, 1, True).severity == AuditSeverity.WARNING
