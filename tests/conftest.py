"""
Shared fixtures.

Every test gets a fresh in-memory storage and store, pinned clocks, and
a working directory of its own so no .env file or data directory from
the developer's checkout leaks in.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from finance_tracker.config import get_config
from finance_tracker.models import Settings, TransactionDraft
from finance_tracker.queries import AnalyticsEngine
from finance_tracker.services.storage import InMemoryStorage
from finance_tracker.store import TransactionStore


TODAY = date(2026, 10, 17)
LOCAL_NOW = datetime(2026, 10, 17, 14, 30)


class TickingClock:
    """UTC clock that advances one second per call."""

    def __init__(self, start: datetime = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + timedelta(seconds=1)
        return value


def make_draft(**overrides) -> TransactionDraft:
    fields = {
        "description": "Coffee run",
        "amount": Decimal("4.50"),
        "category": "Food",
        "date": TODAY,
    }
    fields.update(overrides)
    return TransactionDraft(**fields)


@pytest.fixture(autouse=True)
def _isolate_config(tmp_path, monkeypatch):
    """Run each test from its own directory with a fresh config cache."""
    monkeypatch.chdir(tmp_path)
    get_config.cache_clear()
    yield
    get_config.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        base_currency="USD",
        currencies={"USD": Decimal("1"), "EUR": Decimal("0.92")},
        categories=["Food", "Transport", "Other"],
        monthly_budget=Decimal("1000"),
    )


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def store(storage, settings, clock) -> TransactionStore:
    return TransactionStore(storage, default_settings=settings, now=clock)


@pytest.fixture
def add_expense(store):
    """Record an expense with sensible defaults."""
    def add(amount, day: date = TODAY, category: str = "Food", description: str = "Coffee run"):
        return store.add_transaction(make_draft(
            amount=Decimal(str(amount)),
            date=day,
            category=category,
            description=description,
        ))
    return add


@pytest.fixture
def analytics(store) -> AnalyticsEngine:
    return AnalyticsEngine(store, clock=lambda: LOCAL_NOW)
