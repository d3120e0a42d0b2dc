"""
Spending Analytics

DESIGN DECISION: Analytics are DETERMINISTIC reads.
Every figure is computed from the store's current snapshot and the
current local date; nothing is cached and nothing is written back.

Amounts reaching this module have already passed through the
coerce_amount policy, so sums never meet a non-numeric value.
"""

from collections import defaultdict
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional, Protocol, Sequence

from finance_tracker.config import get_config
from finance_tracker.models.results import (
    BudgetReport,
    BudgetStatus,
    CategoryTotal,
    SpendingStats,
    TrendPoint,
)
from finance_tracker.models.settings import Settings
from finance_tracker.models.transaction import Transaction


WARNING_PERCENTAGE = Decimal("80")
DANGER_PERCENTAGE = Decimal("100")
TREND_DAYS = 7


class StoreSnapshot(Protocol):
    """The read side of the store that analytics depend on."""

    @property
    def settings(self) -> Settings: ...

    def list_transactions(self) -> Sequence[Transaction]: ...


def _sum(transactions) -> Decimal:
    return sum((t.amount for t in transactions), Decimal("0"))


class AnalyticsEngine:
    """
    Derived metrics over a store snapshot.

    Args:
        store: Anything exposing list_transactions() and settings
        clock: Returns the current local time; defaults to datetime.now
    """

    def __init__(
        self,
        store: StoreSnapshot,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._store = store
        self._clock = clock or datetime.now

    def _today(self) -> date:
        return self._clock().date()

    def get_total_spent(self) -> Decimal:
        return _sum(self._store.list_transactions())

    def get_spent_this_month(self) -> Decimal:
        """Spend dated from the first day of the current month through today."""
        today = self._today()
        first_day = today.replace(day=1)
        return _sum(
            t for t in self._store.list_transactions()
            if first_day <= t.date <= today
        )

    def get_spending_by_category(self) -> dict[str, Decimal]:
        """
        Total per category, in order of first appearance.

        Categories without transactions are absent.
        """
        spending: dict[str, Decimal] = {}
        for t in self._store.list_transactions():
            spending[t.category] = spending.get(t.category, Decimal("0")) + t.amount
        return spending

    def get_last_7_days_trend(self) -> list[TrendPoint]:
        """Exactly seven daily totals, today-6 through today, oldest first."""
        today = self._today()
        start = today - timedelta(days=TREND_DAYS - 1)

        totals: dict[date, Decimal] = defaultdict(Decimal)
        for t in self._store.list_transactions():
            if start <= t.date <= today:
                totals[t.date] += t.amount

        return [
            TrendPoint(date=day, amount=totals.get(day, Decimal("0")))
            for day in (start + timedelta(days=i) for i in range(TREND_DAYS))
        ]

    def get_budget_status(self) -> BudgetReport:
        """
        Classify this month's spend against the budget.

        ok below 80%, warning from 80% up to 100%, danger at 100% or more.
        A zero budget means no budget is set and always reports danger with
        the percentage saturated at 100.
        """
        settings = self._store.settings
        spent = self.get_spent_this_month()
        budget = settings.monthly_budget
        remaining = budget - spent
        currency = settings.base_currency

        if budget <= 0:
            return BudgetReport(
                status=BudgetStatus.DANGER,
                message=(
                    f"No monthly budget is set. You have spent "
                    f"{spent:.2f} {currency} this month."
                ),
                percentage=float(DANGER_PERCENTAGE),
                spent=spent,
                remaining=remaining,
                budget=budget,
            )

        percentage = spent / budget * 100

        if percentage >= DANGER_PERCENTAGE:
            status = BudgetStatus.DANGER
            if remaining == 0:
                message = "You have reached your monthly budget."
            else:
                message = (
                    f"You have exceeded your monthly budget by "
                    f"{abs(remaining):.2f} {currency}!"
                )
        elif percentage >= WARNING_PERCENTAGE:
            status = BudgetStatus.WARNING
            message = f"You're at {percentage:.0f}% of your monthly budget."
        else:
            status = BudgetStatus.OK
            message = f"You have {remaining:.2f} {currency} remaining this month."

        return BudgetReport(
            status=status,
            message=message,
            percentage=float(percentage),
            spent=spent,
            remaining=remaining,
            budget=budget,
        )

    def get_top_category(self) -> Optional[CategoryTotal]:
        """Category with the highest total; the earliest seen wins ties."""
        spending = self.get_spending_by_category()
        if not spending:
            return None
        name = max(spending, key=lambda category: spending[category])
        return CategoryTotal(name=name, amount=spending[name])

    def get_recent_transactions(self, limit: Optional[int] = None) -> list[Transaction]:
        """Most recently added transactions, newest first."""
        if limit is None:
            limit = get_config().app.recent_transactions_limit
        if limit <= 0:
            return []
        transactions = list(self._store.list_transactions())
        return list(reversed(transactions[-limit:]))

    def get_stats(self) -> SpendingStats:
        """Dashboard summary in one call."""
        report = self.get_budget_status()
        trend = self.get_last_7_days_trend()

        return SpendingStats(
            transaction_count=len(self._store.list_transactions()),
            total_spent=self.get_total_spent(),
            spent_this_month=report.spent,
            spent_last_7_days=_sum(trend),
            top_category=self.get_top_category(),
            monthly_budget=report.budget,
            remaining=report.remaining,
            percentage_used=report.percentage,
        )
