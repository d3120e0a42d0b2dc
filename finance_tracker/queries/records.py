"""
Record View Ordering

Sorting for the records table. The store keeps insertion order; views
that need another order sort a copy.
"""

from enum import Enum
from typing import Any, Iterable, Union

from finance_tracker.models.transaction import Transaction


class SortField(str, Enum):
    DATE = "date"
    DESCRIPTION = "description"
    CATEGORY = "category"
    AMOUNT = "amount"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


def _sort_key(field: SortField):
    def key(transaction: Transaction) -> Any:
        value = getattr(transaction, field.value)
        # Text columns sort case-insensitively
        if field in (SortField.DESCRIPTION, SortField.CATEGORY):
            return value.lower()
        return value
    return key


def sort_transactions(
    transactions: Iterable[Transaction],
    field: Union[SortField, str] = SortField.DATE,
    direction: Union[SortDirection, str] = SortDirection.DESC,
) -> list[Transaction]:
    """
    Return a new, sorted list.

    Stable: equal keys keep their relative order in both directions.
    """
    field = SortField(field)
    direction = SortDirection(direction)

    return sorted(
        transactions,
        key=_sort_key(field),
        reverse=direction == SortDirection.DESC,
    )
