"""Transaction analytics module."""
from .aggregator import (
    Aggregator,
    AggregatedData,
    recent_transactions,
    filter_by_date,
    total_income,
    total_expense,
    monthly_income,
    monthly_expense,
    monthly_stats,
    category_expenses,
    average_monthly_income,
    average_monthly_expense,
    top_expense_categories,
    expense_growth_rate,
    balance_trend,
)
from .context import FinancialSnapshot, summarize, render_context, generate_financial_context

__all__ = [
    "Aggregator",
    "AggregatedData",
    "recent_transactions",
    "filter_by_date",
    "total_income",
    "total_expense",
    "monthly_income",
    "monthly_expense",
    "monthly_stats",
    "category_expenses",
    "average_monthly_income",
    "average_monthly_expense",
    "top_expense_categories",
    "expense_growth_rate",
    "balance_trend",
    "FinancialSnapshot",
    "summarize",
    "render_context",
    "generate_financial_context",
]
