"""
User Settings Model

One Settings record governs the whole tracker: the base currency and its
rate table, the allowed categories, and the monthly budget.

DESIGN DECISION: Settings is frozen and replaced field by field by the
store. Rates are stored only; no conversion math happens anywhere.
"""

from decimal import Decimal
from typing import TYPE_CHECKING, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from finance_tracker.config import AppSettings


# Catch-all category; always present, never removable
DEFAULT_CATEGORY = "Other"


def _as_number(v: Decimal) -> Union[int, float]:
    return int(v) if v == v.to_integral_value() else float(v)


class Settings(BaseModel):
    """
    Process-wide user settings.

    Serialized with camelCase keys (baseCurrency, monthlyBudget) and
    numeric rates and budget.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    base_currency: str = Field(
        default="USD",
        pattern=r"^[A-Z]{3}$",
        description="Currency code amounts are recorded in"
    )
    currencies: dict[str, Decimal] = Field(
        default_factory=dict,
        validate_default=True,
        description="Exchange rate per currency code, base currency = 1"
    )
    categories: list[str] = Field(
        default_factory=lambda: [DEFAULT_CATEGORY],
        description="Allowed category names in display order"
    )
    monthly_budget: Decimal = Field(
        default=Decimal("1000"),
        ge=0,
        description="Spending budget per calendar month (0 = not set)"
    )

    @field_validator('currencies')
    @classmethod
    def validate_currencies(
        cls,
        v: dict[str, Decimal],
        info: ValidationInfo,
    ) -> dict[str, Decimal]:
        """Rates must be positive and the base currency must sit at 1."""
        for code, rate in v.items():
            if len(code) != 3 or not code.isalpha() or not code.isupper():
                raise ValueError(f"Invalid currency code: {code!r}")
            if rate <= 0:
                raise ValueError(f"Rate for {code} must be greater than zero")

        base = info.data.get("base_currency")
        if base is None:
            return v
        if base not in v:
            return {**v, base: Decimal("1")}
        if v[base] != 1:
            raise ValueError(
                f"Rate for base currency {base} must be 1 (got {v[base]})"
            )
        return v

    @field_validator('categories')
    @classmethod
    def validate_categories(cls, v: list[str]) -> list[str]:
        """Drop repeats and make sure the catch-all category is present."""
        categories: list[str] = []
        for name in v:
            if name not in categories:
                categories.append(name)
        if DEFAULT_CATEGORY not in categories:
            categories.append(DEFAULT_CATEGORY)
        return categories

    @field_serializer('currencies', when_used='json')
    def serialize_currencies(self, v: dict[str, Decimal]) -> dict:
        return {code: _as_number(rate) for code, rate in v.items()}

    @field_serializer('monthly_budget', when_used='json')
    def serialize_budget(self, v: Decimal) -> Union[int, float]:
        return _as_number(v)

    @classmethod
    def from_config(cls, app_settings: 'AppSettings') -> 'Settings':
        """First-run settings built from configured defaults."""
        return cls(
            base_currency=app_settings.default_base_currency,
            currencies=app_settings.currency_rates,
            categories=app_settings.categories_list,
            monthly_budget=app_settings.default_monthly_budget,
        )

    def has_category(self, name: str) -> bool:
        """Exact, case-sensitive membership."""
        return name in self.categories

    def to_storage_dict(self) -> dict:
        """Convert to the JSON-ready document shape."""
        return self.model_dump(mode="json", by_alias=True)
