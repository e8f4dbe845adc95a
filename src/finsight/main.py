"""Command-line entry point."""
import sys
import argparse
from typing import List

from .analytics import (
    Aggregator,
    expense_growth_rate,
    generate_financial_context,
    recent_transactions,
    top_expense_categories,
)
from .chat import ChatOrchestrator, ChatSession, TurnOutcome
from .config import AppSettings, ConfigManager, ApiConfig
from .constants import CURRENCY_SYMBOL
from .ingest import import_from_csv
from .llm import InsightGenerator, Insight
from .models import Transaction
from .utils import ApiError, ParseError, ConfigError, configure_logging, get_logger

logger = get_logger()


def _load_transactions(csv_path: str, skip_header: bool) -> List[Transaction]:
    """Import transactions, reporting rejected lines."""
    result = import_from_csv(csv_path, skip_header=skip_header)
    for error in result.errors:
        logger.warning(error)
    return result.transactions


def _load_api_config() -> ApiConfig:
    """Resolve API configuration and warn when it cannot be used."""
    config_manager = ConfigManager()
    config = config_manager.load_config()
    is_valid, message = config_manager.validate_config(config)
    if not is_valid:
        logger.warning(f"API configuration incomplete: {message}")
    return config


def summary_command(transactions: List[Transaction], settings: AppSettings) -> None:
    """Print totals and the monthly breakdown."""
    aggregated = Aggregator().aggregate(transactions)
    recent = recent_transactions(transactions, settings.recent_months)
    growth = expense_growth_rate(recent, settings.recent_months)

    print(f"\nTransactions: {aggregated.transaction_count}")
    print(f"Total income:  {CURRENCY_SYMBOL}{aggregated.total_income:,.2f}")
    print(f"Total expense: {CURRENCY_SYMBOL}{aggregated.total_expense:,.2f}")
    print(f"Net:           {CURRENCY_SYMBOL}{aggregated.net:,.2f}")
    print(f"Expense growth: {growth:+.1%}")

    months = sorted(set(aggregated.monthly_income) | set(aggregated.monthly_expense))
    if months:
        print(f"\n{'Month':<10} {'Income':>14} {'Expense':>14}")
        print("-" * 40)
        for month in months:
            print(
                f"{month:<10} {aggregated.monthly_income.get(month, 0.0):>14,.2f} "
                f"{aggregated.monthly_expense.get(month, 0.0):>14,.2f}"
            )

    top = top_expense_categories(transactions, settings.top_categories_limit)
    if top:
        print(f"\n{'Top category':<20} {'Expense':>14}")
        print("-" * 35)
        for category, amount in top:
            print(f"{category:<20} {amount:>14,.2f}")


def _print_insight(insight: Insight) -> None:
    print(f"\nGenerated: {insight.generated_at.strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"Suggested monthly budget: {CURRENCY_SYMBOL}{insight.suggested_monthly_budget:,.2f}")
    print(f"Suggested savings goal:   {CURRENCY_SYMBOL}{insight.suggested_savings_goal:,.2f}")
    print("\nCost reduction suggestions:")
    for suggestion in insight.cost_reduction_suggestions:
        print(f"  - {suggestion}")
    print(f"\n{insight.overview}")


def insight_command(transactions: List[Transaction], months: int, use_mock: bool, row_limit: int) -> int:
    """Generate an insight for the most recent months."""
    recent = recent_transactions(transactions, months)
    logger.info(f"Analyzing {len(recent)} transactions from the last {months} months")

    if use_mock:
        _print_insight(InsightGenerator.mock_insight(recent))
        return 0

    generator = InsightGenerator(_load_api_config(), row_limit=row_limit)
    try:
        insight = generator.generate_insight(recent)
    except (ApiError, ParseError) as e:
        logger.error(f"Insight generation failed: {e}")
        return 1

    _print_insight(insight)
    return 0


def chat_command(transactions: List[Transaction], offline: bool, workers: int) -> int:
    """Interactive chat; Ctrl-C cancels the in-flight turn, /clear and /quit are commands."""
    orchestrator = ChatOrchestrator(_load_api_config(), offline=offline, max_workers=workers)
    session = ChatSession()
    print("Ask about your finances. Ctrl-C cancels a pending answer; /clear resets, /quit exits.")

    try:
        while True:
            try:
                text = input("\nyou> ").strip()
            except EOFError:
                break

            if not text:
                continue
            if text == "/quit":
                break
            if text == "/clear":
                orchestrator.clear(session)
                print("The chat has been cleared.")
                continue

            future = orchestrator.send(session, text, transactions)
            try:
                turn = future.result()
            except KeyboardInterrupt:
                orchestrator.cancel(session)
                turn = future.result()

            print(f"\nassistant> {turn.reply.content}")
            if turn.outcome is TurnOutcome.FAILED:
                logger.debug(f"Turn failed: {turn.error}")
    except KeyboardInterrupt:
        pass
    finally:
        orchestrator.shutdown(wait=False)

    return 0


def main():
    """Main entry point for FinSight."""
    parser = argparse.ArgumentParser(description="FinSight transaction analytics and AI insights")
    parser.add_argument(
        "command",
        choices=["summary", "context", "insight", "chat"],
        help="Command to execute"
    )
    parser.add_argument("csv", help="Transaction CSV file (date,description,amount,category,source[,aiGenerated])")
    parser.add_argument("--no-header", action="store_true", help="The CSV file has no header row")
    parser.add_argument("--months", type=int, default=None, help="Months of history for insight")
    parser.add_argument("--mock", action="store_true", help="Generate the insight locally without the API")
    parser.add_argument("--offline", action="store_true", help="Chat with local keyword replies")

    args = parser.parse_args()

    settings = AppSettings.load()
    configure_logging(settings.log_level, settings.log_max_file_size_mb, settings.log_backup_count)
    logger.info(f"{settings.app_name} {settings.app_version} starting ({args.command})")

    try:
        transactions = _load_transactions(args.csv, skip_header=not args.no_header)

        if args.command == "summary":
            summary_command(transactions, settings)
            exit_code = 0
        elif args.command == "context":
            print(generate_financial_context(transactions))
            exit_code = 0
        elif args.command == "insight":
            exit_code = insight_command(
                transactions,
                args.months or settings.recent_months,
                args.mock,
                settings.prompt_row_limit
            )
        else:
            exit_code = chat_command(transactions, args.offline, settings.chat_workers)
    except ConfigError as e:
        logger.critical(f"Invalid configuration: {e}")
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
