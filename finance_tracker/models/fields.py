"""Field-name helpers shared by the camelCase-aliased models."""

from typing import Optional

from pydantic import BaseModel


def resolve_field_name(model: type[BaseModel], key: str) -> Optional[str]:
    """
    Map a field name or its alias to the field name.

    Returns None when the key is neither.
    """
    if key in model.model_fields:
        return key
    for name, info in model.model_fields.items():
        if info.alias == key:
            return name
    return None
