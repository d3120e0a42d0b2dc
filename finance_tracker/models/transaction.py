"""
Transaction Models for Finance Tracker

Two shapes exist for one recorded expense:
1. TransactionDraft - user input that has passed field validation
2. Transaction - the stored record with identity and timestamps

DESIGN DECISION: Stored records are frozen. An edit never mutates a record
in place; merge_updates builds a new one with documented precedence.
This keeps snapshots handed to analytics and search read-only.
"""

import datetime as dt
import math
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel

from finance_tracker.models.fields import resolve_field_name
from finance_tracker.models.settings import DEFAULT_CATEGORY


MAX_AMOUNT = Decimal("1000000")

# Never overwritten by an update
IMMUTABLE_FIELDS = frozenset({"id", "created_at"})


def utcnow() -> dt.datetime:
    """Timezone-aware current time, used for record timestamps."""
    return dt.datetime.now(dt.timezone.utc)


def coerce_amount(value: Any) -> Decimal:
    """
    Amount policy for data read back from storage or an import.

    Missing, boolean, non-numeric, NaN and infinite values count as zero
    so corrupt persisted data degrades to a zero amount instead of breaking
    every sum that touches it.
    """
    if value is None or isinstance(value, bool):
        return Decimal("0")

    if isinstance(value, Decimal):
        return value if value.is_finite() else Decimal("0")

    if isinstance(value, int):
        return Decimal(value)

    if isinstance(value, float):
        if not math.isfinite(value):
            return Decimal("0")
        return Decimal(str(value))

    if isinstance(value, str):
        try:
            parsed = Decimal(value.strip())
        except InvalidOperation:
            return Decimal("0")
        return parsed if parsed.is_finite() else Decimal("0")

    return Decimal("0")


class TransactionDraft(BaseModel):
    """
    Field values for a new or edited transaction.

    Callers run the field validation rules before building a draft;
    the constraints here are the schema-level backstop.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="What the money was spent on"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        le=MAX_AMOUNT,
        decimal_places=2,
        description="Amount spent"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=30,
        description="Category name from the settings category list"
    )
    date: dt.date = Field(
        ...,
        description="Calendar day of the expense"
    )


class Transaction(BaseModel):
    """
    A recorded expense.

    Serialized with camelCase keys (createdAt, updatedAt) and a numeric
    amount, matching the persisted and exported document format.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        str_strip_whitespace=True,
    )

    id: str = Field(
        ...,
        min_length=1,
        description="Unique transaction ID"
    )
    description: str = Field(
        ...,
        min_length=1,
        description="What the money was spent on"
    )
    amount: Decimal = Field(
        default=Decimal("0"),
        description="Amount spent"
    )
    category: str = Field(
        default=DEFAULT_CATEGORY,
        description="Category name"
    )
    date: dt.date = Field(
        ...,
        description="Calendar day of the expense"
    )
    created_at: dt.datetime = Field(
        default_factory=utcnow,
        description="When the transaction was recorded"
    )
    updated_at: dt.datetime = Field(
        default_factory=utcnow,
        description="Last mutation timestamp"
    )

    @field_validator('amount', mode='before')
    @classmethod
    def apply_amount_policy(cls, v: Any) -> Decimal:
        return coerce_amount(v)

    @field_serializer('amount', when_used='json')
    def serialize_amount(self, v: Decimal) -> Union[int, float]:
        return int(v) if v == v.to_integral_value() else float(v)

    @classmethod
    def from_draft(
        cls,
        draft: TransactionDraft,
        transaction_id: str,
        timestamp: dt.datetime,
    ) -> 'Transaction':
        """Stamp a validated draft with identity and creation time."""
        return cls(
            id=transaction_id,
            description=draft.description,
            amount=draft.amount,
            category=draft.category,
            date=draft.date,
            created_at=timestamp,
            updated_at=timestamp,
        )

    def to_storage_dict(self) -> dict:
        """Convert to the JSON-ready document shape."""
        return self.model_dump(mode="json", by_alias=True)


def merge_updates(
    existing: Transaction,
    updates: Union[Mapping[str, Any], BaseModel],
    updated_at: dt.datetime,
) -> Transaction:
    """
    Build the edited version of a transaction.

    Precedence, field by field:
    - id and created_at always keep the existing value
    - a field present in updates takes the new value
    - a field absent from updates keeps the existing value
    - updated_at is set to the given timestamp
    Keys that are not transaction fields are ignored.
    """
    if isinstance(updates, BaseModel):
        updates = updates.model_dump(exclude_unset=True)

    merged = existing.model_dump()
    for key, value in updates.items():
        name = resolve_field_name(Transaction, key)
        if name is None or name in IMMUTABLE_FIELDS:
            continue
        merged[name] = value

    merged["updated_at"] = updated_at
    return Transaction.model_validate(merged)
