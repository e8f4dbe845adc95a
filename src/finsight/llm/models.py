"""Data models for LLM processing."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List


@dataclass(frozen=True)
class Insight:
    """Budget, savings and cost-reduction advice from one analysis pass."""
    suggested_monthly_budget: float
    suggested_savings_goal: float
    cost_reduction_suggestions: List[str]
    overview: str
    generated_at: datetime = field(default_factory=datetime.now)
