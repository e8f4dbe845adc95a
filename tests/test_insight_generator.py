"""Tests for insight generation and reply parsing."""
import unittest
from datetime import date, timedelta

from finsight.models import Transaction
from finsight.config.manager import ApiConfig
from finsight.llm.insight_generator import (
    BACKFILL_SUGGESTIONS,
    DEFAULT_SUGGESTIONS,
    InsightGenerator,
    estimated_monthly_expense,
    estimated_monthly_income,
)
from finsight.utils.cancellation import CancellationToken
from finsight.utils.exceptions import ApiError, CancellationError, ParseError


class FakeClient:
    """Records completion calls and replays a canned reply or error."""

    def __init__(self, reply="", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def complete(self, messages, temperature=None, max_tokens=None, cancel_token=None):
        self.calls.append({
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        if self.error is not None:
            raise self.error
        return self.reply


def expense(day, amount, category):
    return Transaction(day, f"{category} purchase", -amount, category, "Cash")


class TestInsightGenerator(unittest.TestCase):
    """Test InsightGenerator functionality."""

    def setUp(self):
        """Set up test fixtures."""
        self.config = ApiConfig(
            endpoint="https://example.invalid/v1/chat/completions",
            api_key="test-key",
            model="test-model"
        )
        self.records = [
            Transaction(date(2024, 1, 10), "Market", -50.0, "Groceries", "Credit Card"),
            Transaction(date(2024, 1, 15), "Payroll", 2000.0, "Salary", "Bank Transfer"),
            Transaction(date(2024, 2, 5), "Landlord", -80.0, "Rent", "Bank Transfer"),
        ]

    def _generator(self, client):
        return InsightGenerator(self.config, client=client)

    def test_generate_insight_with_surrounding_prose(self):
        client = FakeClient(
            'Sure, here you go:\n{"monthlyBudget": 1500, "savingsGoal": 400, '
            '"costReductionSuggestions": ["Cook at home", "Cancel unused subscriptions", "Walk more"], '
            '"overview": "Healthy surplus."}\nHope this helps!'
        )

        insight = self._generator(client).generate_insight(self.records)

        self.assertEqual(insight.suggested_monthly_budget, 1500.0)
        self.assertEqual(insight.suggested_savings_goal, 400.0)
        self.assertEqual(len(insight.cost_reduction_suggestions), 3)
        self.assertEqual(insight.overview, "Healthy surplus.")

    def test_request_is_single_user_message(self):
        client = FakeClient('{"monthlyBudget": 1, "savingsGoal": 2, "overview": "ok"}')
        self._generator(client).generate_insight(self.records)

        self.assertEqual(len(client.calls), 1)
        call = client.calls[0]
        self.assertEqual(len(call["messages"]), 1)
        self.assertEqual(call["messages"][0]["role"], "user")
        self.assertEqual(call["temperature"], 0.7)
        self.assertEqual(call["max_tokens"], 1000)
        self.assertIn("2024-02-05,Landlord,-80.0,Rent,Bank Transfer", call["messages"][0]["content"])

    def test_prompt_keeps_ninety_most_recent_rows(self):
        start = date(2024, 1, 1)
        records = [
            Transaction(start + timedelta(days=i), f"Item {i:03d}", -1.0, "Groceries", "Cash")
            for i in range(100)
        ]

        prompt = self._generator(FakeClient()).build_prompt(records)

        self.assertIn("Item 099", prompt)
        self.assertIn("Item 010", prompt)
        self.assertNotIn("Item 009", prompt)
        self.assertLess(prompt.index("Item 099"), prompt.index("Item 010"))

    def test_row_limit_is_configurable(self):
        generator = InsightGenerator(self.config, client=FakeClient(), row_limit=1)
        prompt = generator.build_prompt(self.records)

        self.assertIn("Landlord", prompt)
        self.assertNotIn("Payroll", prompt)

    def test_missing_fields_default(self):
        insight = self._generator(FakeClient()).parse_response('{"overview": "Only an overview"}')

        self.assertEqual(insight.suggested_monthly_budget, 0.0)
        self.assertEqual(insight.suggested_savings_goal, 0.0)
        self.assertEqual(insight.cost_reduction_suggestions, [])
        self.assertEqual(insight.overview, "Only an overview")

    def test_null_fields_default(self):
        insight = self._generator(FakeClient()).parse_response(
            '{"monthlyBudget": null, "savingsGoal": null, "costReductionSuggestions": null, "overview": null}'
        )
        self.assertEqual(insight.suggested_monthly_budget, 0.0)
        self.assertEqual(insight.cost_reduction_suggestions, [])
        self.assertEqual(insight.overview, "")

    def test_reply_without_braces_raises_parse_error(self):
        generator = self._generator(FakeClient("I cannot help with that."))
        with self.assertRaises(ParseError):
            generator.generate_insight(self.records)

    def test_malformed_json_raises_parse_error(self):
        generator = self._generator(FakeClient())
        with self.assertRaises(ParseError):
            generator.parse_response('{"monthlyBudget": 100, "overview": }')

    def test_wrong_field_type_raises_parse_error(self):
        generator = self._generator(FakeClient())
        with self.assertRaises(ParseError):
            generator.parse_response('{"monthlyBudget": "a lot"}')

    def test_api_error_propagates(self):
        generator = self._generator(FakeClient(error=ApiError("HTTP 500")))
        with self.assertRaises(ApiError):
            generator.generate_insight(self.records)

    def test_empty_reply_is_api_error(self):
        generator = self._generator(FakeClient("   "))
        with self.assertRaises(ApiError):
            generator.generate_insight(self.records)

    def test_cancelled_token_skips_request(self):
        client = FakeClient('{"monthlyBudget": 1}')
        token = CancellationToken()
        token.cancel()

        with self.assertRaises(CancellationError):
            self._generator(client).generate_insight(self.records, cancel_token=token)
        self.assertEqual(client.calls, [])


class TestMockInsight(unittest.TestCase):
    """Test the offline insight."""

    def test_empty_input_uses_default_suggestions(self):
        insight = InsightGenerator.mock_insight([])

        self.assertEqual(insight.suggested_monthly_budget, 0.0)
        self.assertEqual(insight.suggested_savings_goal, 0.0)
        self.assertEqual(insight.cost_reduction_suggestions, DEFAULT_SUGGESTIONS)

    def test_single_category_is_backfilled(self):
        insight = InsightGenerator.mock_insight([expense(date(2024, 1, 1), 100.0, "Dining Out")])

        suggestions = insight.cost_reduction_suggestions
        self.assertEqual(len(suggestions), 3)
        self.assertIn("Dining Out", suggestions[0])
        self.assertIn("¥100.00", suggestions[0])
        self.assertEqual(suggestions[1:], BACKFILL_SUGGESTIONS[1:3])

    def test_two_categories_are_backfilled(self):
        records = [
            expense(date(2024, 1, 1), 100.0, "Dining Out"),
            expense(date(2024, 1, 2), 40.0, "Transport"),
        ]
        suggestions = InsightGenerator.mock_insight(records).cost_reduction_suggestions

        self.assertEqual(len(suggestions), 3)
        self.assertIn("Transport", suggestions[1])
        self.assertEqual(suggestions[2], BACKFILL_SUGGESTIONS[2])

    def test_many_categories_use_top_three(self):
        records = [
            expense(date(2024, 1, 1), 10.0, "Dining Out"),
            expense(date(2024, 1, 2), 40.0, "Transport"),
            expense(date(2024, 1, 3), 300.0, "Rent"),
            expense(date(2024, 1, 4), 90.0, "Groceries"),
        ]
        suggestions = InsightGenerator.mock_insight(records).cost_reduction_suggestions

        self.assertEqual(len(suggestions), 3)
        self.assertIn("Rent", suggestions[0])
        self.assertIn("Groceries", suggestions[1])
        self.assertIn("Transport", suggestions[2])

    def test_budget_and_savings_from_estimated_averages(self):
        records = [
            Transaction(date(2024, 1, 10), "Market", -50.0, "Groceries", "Credit Card"),
            Transaction(date(2024, 1, 15), "Payroll", 2000.0, "Salary", "Bank Transfer"),
            Transaction(date(2024, 2, 5), "Landlord", -80.0, "Rent", "Bank Transfer"),
        ]
        insight = InsightGenerator.mock_insight(records)

        # fewer than 30 records count as one month regardless of dates
        self.assertAlmostEqual(insight.suggested_monthly_budget, 117.0)
        self.assertAlmostEqual(insight.suggested_savings_goal, 400.0)
        self.assertIn("¥2000.00", insight.overview)
        self.assertIn("¥130.00", insight.overview)

    def test_estimated_averages_scale_with_record_count(self):
        records = [expense(date(2024, 1, 1), 10.0, "Groceries") for _ in range(60)]
        records.append(Transaction(date(2024, 1, 31), "Payroll", 610.0, "Salary", "Bank Transfer"))

        # 61 records / 30 per month
        self.assertAlmostEqual(estimated_monthly_expense(records), 600.0 / (61 / 30.0))
        self.assertAlmostEqual(estimated_monthly_income(records), 300.0)
        self.assertEqual(estimated_monthly_income([]), 0.0)
        self.assertEqual(estimated_monthly_expense([]), 0.0)


if __name__ == "__main__":
    unittest.main()
