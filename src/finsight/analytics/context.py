"""Financial context digest injected into model prompts."""
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from ..constants import CURRENCY_SYMBOL, TOP_EXPENSES_LIMIT
from ..models import Transaction
from . import aggregator

NO_DATA_CONTEXT = "The user has no transaction data at the moment."


@dataclass(frozen=True)
class FinancialSnapshot:
    """Derived figures describing a non-empty transaction set."""
    transaction_count: int
    day_span: int
    transaction_frequency: float
    average_monthly_income: float
    average_monthly_expense: float
    total_income: float
    total_expense: float
    largest_income: float
    largest_expense: float
    top_categories: List[Tuple[str, float]] = field(default_factory=list)

    @property
    def monthly_net(self) -> float:
        return self.average_monthly_income - self.average_monthly_expense

    @property
    def net_total(self) -> float:
        return self.total_income - self.total_expense

    @property
    def expense_to_income_ratio(self) -> float:
        """Average expense as a percentage of average income; 0 without income."""
        if self.average_monthly_income <= 0:
            return 0.0
        return self.average_monthly_expense / self.average_monthly_income * 100

    @property
    def savings_rate(self) -> float:
        """Share of average income left after average expense, in percent; 0 without income."""
        if self.average_monthly_income <= 0:
            return 0.0
        return self.monthly_net / self.average_monthly_income * 100


def summarize(records: Sequence[Transaction]) -> Optional[FinancialSnapshot]:
    """Compute the snapshot for ``records``; None when there is nothing to summarize."""
    records = list(records)
    if not records:
        return None

    oldest = min(t.date for t in records)
    newest = max(t.date for t in records)
    day_span = (newest - oldest).days + 1

    incomes = [t.amount for t in records if t.amount > 0]
    expenses = [abs(t.amount) for t in records if t.amount < 0]

    return FinancialSnapshot(
        transaction_count=len(records),
        day_span=day_span,
        transaction_frequency=len(records) / day_span,
        average_monthly_income=aggregator.average_monthly_income(records),
        average_monthly_expense=aggregator.average_monthly_expense(records),
        total_income=aggregator.total_income(records),
        total_expense=aggregator.total_expense(records),
        largest_income=max(incomes, default=0.0),
        largest_expense=max(expenses, default=0.0),
        top_categories=aggregator.top_expense_categories(records, TOP_EXPENSES_LIMIT),
    )


def _money(value: float) -> str:
    return f"{CURRENCY_SYMBOL}{value:.2f}"


def render_context(snapshot: Optional[FinancialSnapshot]) -> str:
    """Render a snapshot as the fixed-shape prompt digest."""
    if snapshot is None:
        return NO_DATA_CONTEXT

    if snapshot.top_categories:
        top = ", ".join(f"{name} ({_money(amount)})" for name, amount in snapshot.top_categories)
    else:
        top = "no data"

    lines = [
        f"Data overview: {snapshot.transaction_count} transactions spanning {snapshot.day_span} days, "
        f"{snapshot.transaction_frequency:.1f} transactions per day on average.",
        f"Average monthly income: {_money(snapshot.average_monthly_income)}, "
        f"average monthly expense: {_money(snapshot.average_monthly_expense)}, "
        f"monthly net: {_money(snapshot.monthly_net)}, "
        f"total income: {_money(snapshot.total_income)}, "
        f"total expense: {_money(snapshot.total_expense)}, "
        f"net total: {_money(snapshot.net_total)}.",
        f"Expense-to-income ratio: {snapshot.expense_to_income_ratio:.2f}%, "
        f"savings rate: {snapshot.savings_rate:.2f}%, "
        f"largest single income: {_money(snapshot.largest_income)}, "
        f"largest single expense: {_money(snapshot.largest_expense)}.",
        f"Top expense categories: {top}",
    ]
    return "\n".join(lines)


def generate_financial_context(records: Sequence[Transaction]) -> str:
    """Compact textual digest of ``records`` for prompt injection."""
    return render_context(summarize(records))
