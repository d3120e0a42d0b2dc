"""
Import / Export Documents

DESIGN DECISION: An import is checked completely before anything is
applied. parse_import_document either returns fully-built models or
raises ImportRejectedError with a message naming the first problem;
the store applies the result only in the first case.

Document shape (camelCase keys):
    {
        "transactions": [{id, description, amount, category, date,
                          createdAt, updatedAt}, ...],
        "settings": {baseCurrency, currencies, categories, monthlyBudget},
        "exportedAt": "<ISO timestamp>"
    }
"settings" is optional on import.
"""

import json
import math
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, ValidationError

from finance_tracker.models.results import ExportDocument
from finance_tracker.models.settings import Settings
from finance_tracker.models.transaction import Transaction, utcnow


class ImportRejectedError(ValueError):
    """The import document cannot be applied. Nothing was changed."""
    pass


class ParsedImport(BaseModel):
    """A validated import, ready to replace the store's data."""

    transactions: list[Transaction]
    settings: Optional[Settings] = None


def build_export_document(
    transactions: Sequence[Transaction],
    settings: Settings,
    exported_at: Optional[datetime] = None,
) -> ExportDocument:
    return ExportDocument(
        transactions=list(transactions),
        settings=settings,
        exported_at=exported_at or utcnow(),
    )


def export_to_json(document: ExportDocument, indent: Optional[int] = 2) -> str:
    return document.model_dump_json(by_alias=True, indent=indent)


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, Decimal)):
        return not isinstance(value, Decimal) or value.is_finite()
    if isinstance(value, float):
        return math.isfinite(value)
    return False


def _non_empty_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _first_error(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first['msg']}" if location else first["msg"]


def parse_import_document(raw: Union[str, bytes, Mapping[str, Any]]) -> ParsedImport:
    """
    Validate an import document and build its models.

    Raises:
        ImportRejectedError: On the first problem found
    """
    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ImportRejectedError(f"Invalid JSON: {e.msg}") from e
    else:
        data = raw

    if not isinstance(data, Mapping):
        raise ImportRejectedError("Import document must be a JSON object")

    if "transactions" not in data:
        raise ImportRejectedError("Import document is missing 'transactions'")

    items = data["transactions"]
    if not isinstance(items, list):
        raise ImportRejectedError("'transactions' must be a list")

    seen_ids: set[str] = set()
    for index, item in enumerate(items):
        if not isinstance(item, Mapping):
            raise ImportRejectedError(f"Transaction {index} is not an object")
        if not _non_empty_text(item.get("id")):
            raise ImportRejectedError(f"Transaction {index} is missing an id")
        if not _non_empty_text(item.get("description")):
            raise ImportRejectedError(
                f"Transaction {index} ({item['id']}) is missing a description"
            )
        if not _is_number(item.get("amount")):
            raise ImportRejectedError(
                f"Transaction {index} ({item['id']}) has a non-numeric amount"
            )
        if item["id"] in seen_ids:
            raise ImportRejectedError(f"Duplicate transaction id: {item['id']}")
        seen_ids.add(item["id"])

    transactions = []
    for index, item in enumerate(items):
        try:
            transactions.append(Transaction.model_validate(item))
        except ValidationError as e:
            raise ImportRejectedError(
                f"Transaction {index} ({item['id']}) is invalid: {_first_error(e)}"
            ) from e

    settings = None
    raw_settings = data.get("settings")
    if raw_settings is not None:
        if not isinstance(raw_settings, Mapping):
            raise ImportRejectedError("'settings' must be an object")
        try:
            settings = Settings.model_validate(raw_settings)
        except ValidationError as e:
            raise ImportRejectedError(f"Settings are invalid: {_first_error(e)}") from e

    return ParsedImport(transactions=transactions, settings=settings)
