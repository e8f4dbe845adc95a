"""Budget and savings insight generation through the completion API."""
import json
from typing import Any, List, Optional, Sequence

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..analytics import aggregator
from ..config.manager import ApiConfig
from ..constants import CURRENCY_SYMBOL, PROMPT_ROW_LIMIT, TOP_EXPENSES_LIMIT
from ..models import Transaction
from ..utils.cancellation import CancellationToken
from ..utils.exceptions import ApiError, ParseError
from ..utils.logger import get_logger
from .client import CompletionClient
from .models import Insight

logger = get_logger()

DEFAULT_SUGGESTIONS = [
    "Consider recording more transaction data to obtain more personalized suggestions.",
    "Try to cut down on unnecessary daily expenses, such as takeout and coffee.",
    "Consider formulating a monthly budget plan and rationally allocating various expenditures.",
]

# Used to top up category suggestions when fewer than three categories exist
BACKFILL_SUGGESTIONS = [
    "Make a detailed monthly budget plan to avoid impulse consumption.",
    "Compare the prices of different merchants and look for the most cost-effective option.",
    "Consider using automatic savings tools to deposit a fixed portion of your income.",
]

MIN_SUGGESTIONS = 3

# Offline estimates assume roughly this many transactions per month
TRANSACTIONS_PER_MONTH = 30.0


def estimated_monthly_income(records: Sequence[Transaction]) -> float:
    """Total income divided by max(1, transaction count / 30)."""
    if not records:
        return 0.0
    return aggregator.total_income(records) / max(1.0, len(records) / TRANSACTIONS_PER_MONTH)


def estimated_monthly_expense(records: Sequence[Transaction]) -> float:
    """Total expense divided by max(1, transaction count / 30)."""
    if not records:
        return 0.0
    return aggregator.total_expense(records) / max(1.0, len(records) / TRANSACTIONS_PER_MONTH)


class InsightPayload(BaseModel):
    """Pydantic schema for the model's structured reply."""
    monthlyBudget: float = Field(default=0.0, description="Suggested monthly budget")
    savingsGoal: float = Field(default=0.0, description="Suggested monthly savings goal")
    costReductionSuggestions: List[str] = Field(default_factory=list)
    overview: str = Field(default="")

    @field_validator("monthlyBudget", "savingsGoal", mode="before")
    @classmethod
    def _null_number(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @field_validator("costReductionSuggestions", mode="before")
    @classmethod
    def _stringify_suggestions(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [item if isinstance(item, str) else json.dumps(item, ensure_ascii=False) for item in value]
        return value

    @field_validator("overview", mode="before")
    @classmethod
    def _null_overview(cls, value: Any) -> Any:
        return "" if value is None else value


class InsightGenerator:
    """Generates budget/savings insights with the completion API or offline."""

    def __init__(
        self,
        api_config: ApiConfig,
        client: Optional[CompletionClient] = None,
        row_limit: int = PROMPT_ROW_LIMIT
    ):
        """
        Initialize insight generator.

        Args:
            api_config: Completion API configuration
            client: Completion client; built from api_config if omitted
            row_limit: Most recent transactions included in the prompt
        """
        self.api_config = api_config
        self.client = client or CompletionClient(api_config)
        self.row_limit = row_limit

    def generate_insight(
        self,
        records: Sequence[Transaction],
        cancel_token: Optional[CancellationToken] = None
    ) -> Insight:
        """
        Ask the model for an insight on ``records``.

        Raises:
            ApiError: the call failed or returned no content
            ParseError: the reply has no well-formed structured payload
            CancellationError: cancel_token was signalled at a checkpoint
        """
        token = cancel_token or CancellationToken()
        token.raise_if_cancelled("before building request")

        prompt = self.build_prompt(records)
        logger.info(f"Requesting insight for {len(records)} transactions")

        reply = self.client.complete(
            [{"role": "user", "content": prompt}],
            temperature=self.api_config.temperature,
            max_tokens=self.api_config.max_tokens,
            cancel_token=token
        )
        if not reply.strip():
            raise ApiError("Completion API returned an empty reply")

        token.raise_if_cancelled("before parsing")
        insight = self.parse_response(reply)
        logger.info(
            f"Insight generated: budget={insight.suggested_monthly_budget:.2f}, "
            f"savings={insight.suggested_savings_goal:.2f}, "
            f"{len(insight.cost_reduction_suggestions)} suggestions"
        )
        return insight

    def build_prompt(self, records: Sequence[Transaction]) -> str:
        """Build the structured-output instruction followed by the most recent rows."""
        rows = sorted(records, key=lambda t: t.date, reverse=True)[:self.row_limit]
        data = "\n".join(t.to_csv_row() for t in rows)

        return f"""Based on the following transaction data, analyze the user's spending patterns and provide these insights:

1. A suggested monthly budget amount
2. A suggested monthly savings goal amount
3. At least 3 cost reduction suggestions
4. An overview of the user's financial situation

Make sure your reply uses the following JSON format:
{{
  "monthlyBudget": number,
  "savingsGoal": number,
  "costReductionSuggestions": ["suggestion 1", "suggestion 2", "suggestion 3"],
  "overview": "financial situation overview text"
}}

Transaction data (format: date,description,amount,category,source):
{data}
"""

    def parse_response(self, response_text: str) -> Insight:
        """Decode the payload between the first '{' and the last '}' of the reply."""
        start = response_text.find("{")
        end = response_text.rfind("}")
        if start == -1 or end <= start:
            logger.debug(f"Reply without JSON payload: {response_text[:500]}")
            raise ParseError("There is no valid JSON data in the AI response")

        try:
            data = json.loads(response_text[start:end + 1])
            payload = InsightPayload.model_validate(data)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse JSON response: {e}")
            logger.debug(f"Response text: {response_text[:500]}")
            raise ParseError(f"Invalid JSON in AI response: {e}")
        except ValidationError as e:
            logger.error(f"Response validation failed: {e}")
            raise ParseError(f"AI response does not match expected schema: {e}")

        return Insight(
            suggested_monthly_budget=payload.monthlyBudget,
            suggested_savings_goal=payload.savingsGoal,
            cost_reduction_suggestions=list(payload.costReductionSuggestions),
            overview=payload.overview
        )

    @staticmethod
    def mock_insight(records: Sequence[Transaction]) -> Insight:
        """Deterministic insight computed locally; never calls the API and never fails."""
        records = list(records)
        top_expenses = aggregator.top_expense_categories(records, TOP_EXPENSES_LIMIT)

        if not top_expenses:
            suggestions = list(DEFAULT_SUGGESTIONS)
        else:
            suggestions = [
                f"Consider reducing the expenditure of the {category} category, "
                f"which is currently {CURRENCY_SYMBOL}{amount:.2f}"
                for category, amount in top_expenses
            ]
            suggestions.extend(BACKFILL_SUGGESTIONS[len(suggestions):MIN_SUGGESTIONS])

        avg_income = estimated_monthly_income(records)
        avg_expense = estimated_monthly_expense(records)
        suggested_budget = avg_expense * 0.9
        suggested_savings = avg_income * 0.2

        overview = (
            f"Based on your past transaction records, your average monthly income is approximately "
            f"{CURRENCY_SYMBOL}{avg_income:.2f} and your average monthly expenditure is approximately "
            f"{CURRENCY_SYMBOL}{avg_expense:.2f}; it is suggested that the monthly budget be kept at "
            f"{CURRENCY_SYMBOL}{suggested_budget:.2f} with monthly savings of "
            f"{CURRENCY_SYMBOL}{suggested_savings:.2f}."
        )

        return Insight(
            suggested_monthly_budget=suggested_budget,
            suggested_savings_goal=suggested_savings,
            cost_reduction_suggestions=suggestions,
            overview=overview
        )
