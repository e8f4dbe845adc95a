"""Transaction aggregation: monthly and category buckets, averages and trends.

Every function here is pure: inputs are never mutated and empty input yields
zero or empty results instead of raising.
"""
import calendar
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from ..constants import DATE_FORMAT, MONTH_FORMAT
from ..models import Transaction
from ..utils.logger import get_logger

logger = get_logger()


def _month_key(day: date) -> str:
    return day.strftime(MONTH_FORMAT)


def subtract_months(day: date, months: int) -> date:
    """Calendar-month subtraction; the day is clamped to the target month's length."""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def recent_transactions(
    records: Iterable[Transaction],
    months: int,
    today: Optional[date] = None
) -> List[Transaction]:
    """Records dated on or after ``today - months``, newest first."""
    start = subtract_months(today or date.today(), months)
    recent = [t for t in records if t.date >= start]
    return sorted(recent, key=lambda t: t.date, reverse=True)


def filter_by_date(records: Iterable[Transaction], start: date, end: date) -> List[Transaction]:
    """Records whose date falls within [start, end]."""
    return [t for t in records if start <= t.date <= end]


def total_income(records: Iterable[Transaction]) -> float:
    return sum((t.amount for t in records if t.amount > 0), 0.0)


def total_expense(records: Iterable[Transaction]) -> float:
    """Summed expense magnitude (positive number)."""
    return sum((abs(t.amount) for t in records if t.amount < 0), 0.0)


def monthly_income(records: Iterable[Transaction]) -> Dict[str, float]:
    """Income per year-month, ascending by month."""
    buckets = defaultdict(float)
    for txn in records:
        if txn.amount > 0:
            buckets[_month_key(txn.date)] += txn.amount
    return dict(sorted(buckets.items()))


def monthly_expense(records: Iterable[Transaction]) -> Dict[str, float]:
    """Expense magnitude per year-month, ascending by month."""
    buckets = defaultdict(float)
    for txn in records:
        if txn.amount < 0:
            buckets[_month_key(txn.date)] += abs(txn.amount)
    return dict(sorted(buckets.items()))


def monthly_stats(records: Iterable[Transaction]) -> Dict[str, Dict[str, float]]:
    """Income and expense per year-month, ascending by month."""
    records = list(records)
    income = monthly_income(records)
    expense = monthly_expense(records)
    months = sorted(set(_month_key(t.date) for t in records))
    return {
        month: {"income": income.get(month, 0.0), "expense": expense.get(month, 0.0)}
        for month in months
    }


def category_expenses(records: Iterable[Transaction]) -> Dict[str, float]:
    """Expense magnitude per category, in first-encountered order."""
    totals: Dict[str, float] = {}
    for txn in records:
        if txn.amount < 0:
            totals[txn.category] = totals.get(txn.category, 0.0) + abs(txn.amount)
    return totals


def _months_spanned(records: List[Transaction]) -> int:
    # Month-of-year difference only: a Dec -> Jan span collapses to 1.
    min_date = min(t.date for t in records)
    max_date = max(t.date for t in records)
    return max(1, max_date.month - min_date.month + 1)


def average_monthly_income(records: Iterable[Transaction]) -> float:
    records = list(records)
    if not records:
        return 0.0
    return total_income(records) / _months_spanned(records)


def average_monthly_expense(records: Iterable[Transaction]) -> float:
    records = list(records)
    if not records:
        return 0.0
    return total_expense(records) / _months_spanned(records)


def top_expense_categories(records: Iterable[Transaction], limit: int) -> List[Tuple[str, float]]:
    """Largest expense categories, descending; ties keep first-encountered order."""
    if limit <= 0:
        return []
    ranked = sorted(category_expenses(records).items(), key=lambda item: item[1], reverse=True)
    return ranked[:limit]


def expense_growth_rate(records: Iterable[Transaction], months: int) -> float:
    """
    Relative change between the average monthly expense of the later half of
    the observed months and that of the earlier half.

    Returns 0.0 when ``months < 2``, when fewer than two expense months exist,
    or when the earlier half averages exactly zero.
    """
    if months < 2:
        return 0.0

    values = list(monthly_expense(records).values())
    if len(values) < 2:
        return 0.0

    midpoint = len(values) // 2
    first_half = values[:midpoint]
    second_half = values[midpoint:]

    first_avg = sum(first_half) / len(first_half)
    second_avg = sum(second_half) / len(second_half)

    if first_avg == 0.0:
        return 0.0
    return (second_avg - first_avg) / first_avg


def balance_trend(records: Iterable[Transaction]) -> Dict[str, float]:
    """Running balance at the end of each transaction day."""
    trend: Dict[str, float] = {}
    balance = 0.0
    for txn in sorted(records, key=lambda t: t.date):
        balance += txn.amount
        trend[txn.date.strftime(DATE_FORMAT)] = balance
    return trend


@dataclass
class AggregatedData:
    """Aggregated transaction data."""
    transaction_count: int = 0
    total_income: float = 0.0
    total_expense: float = 0.0
    category_totals: Dict[str, float] = field(default_factory=dict)  # category -> expense
    monthly_income: Dict[str, float] = field(default_factory=dict)
    monthly_expense: Dict[str, float] = field(default_factory=dict)

    @property
    def net(self) -> float:
        return self.total_income - self.total_expense


class Aggregator:
    """Aggregates transactions by category and month."""

    def aggregate(self, transactions: List[Transaction]) -> AggregatedData:
        """
        Aggregate transactions into totals, category and monthly buckets.

        Args:
            transactions: List of transactions

        Returns:
            AggregatedData object (all zero for an empty list)
        """
        if not transactions:
            logger.debug("Aggregating empty transaction list")
            return AggregatedData()

        aggregated = AggregatedData(
            transaction_count=len(transactions),
            total_income=total_income(transactions),
            total_expense=total_expense(transactions),
            category_totals=category_expenses(transactions),
            monthly_income=monthly_income(transactions),
            monthly_expense=monthly_expense(transactions)
        )

        logger.info(
            f"Aggregated {len(transactions)} transactions into {len(aggregated.category_totals)} "
            f"expense categories across {len(aggregated.monthly_expense)} months"
        )

        return aggregated
