#!/usr/bin/env python3
"""Generate a demo installment portfolio into a JSON store.

Writes customers, investors, accounts, sales and expenses to the data
directory, then prints the financial report, aging counts and account
balances computed from what was stored.
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dateutil.relativedelta import relativedelta

from installment_ledger.config import LedgerConfig
from installment_ledger.engine.aging import count_by_status, overdue_total
from installment_ledger.engine.ledger import account_balances, partnership_summary
from installment_ledger.exceptions import LedgerError
from installment_ledger.generators import PortfolioGenerator
from installment_ledger.logging import setup_logging
from installment_ledger.models.base import DateRange
from installment_ledger.models.ledger import AccountType
from installment_ledger.money import as_date
from installment_ledger.reports import (
    ReportFilter,
    compute_report,
    due_reminders,
    portfolio_stats,
    upcoming_collections,
    working_capital,
)
from installment_ledger.store import JsonFileLedgerStore, SaleBook

logger = logging.getLogger(__name__)


def print_section(title: str) -> None:
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)


def print_results(book: SaleBook, today: date, config: LedgerConfig) -> None:
    """Print report figures computed from the stored portfolio."""
    repository = book.repository
    sales = repository.fetch_all_sales(book.user_id)
    expenses = repository.fetch_all_expenses(book.user_id)
    accounts = repository.fetch_all_accounts(book.user_id)
    investors = repository.fetch_all_investors(book.user_id)
    customers = repository.fetch_all_customers(book.user_id)

    period = DateRange(start=today - relativedelta(months=1), end=today)
    report = compute_report(sales, accounts, investors, ReportFilter(period=period))
    print_section(f"Report {period.start} .. {period.end}")
    for name, value in report.to_dict().items():
        print(f"{name + ':':32}{value}")

    print_section("Aging")
    for status, count in count_by_status(sales, today).items():
        print(f"{status.value + ':':32}{count}")
    print(f"{'overdue_total:':32}{overdue_total(sales, today)}")

    balances = account_balances(accounts, sales, expenses)
    stats = portfolio_stats(sales)
    print_section("Balances")
    for account in accounts:
        print(f"{account.name + ':':32}{balances[account.account_id]} {account.currency}")
    print(f"{'collected:':32}{stats.collected}")
    print(f"{'outstanding:':32}{stats.outstanding}")
    print(f"{'working_capital:':32}{working_capital(balances, sales)}")

    for account in accounts:
        if account.account_type != AccountType.SHARED:
            continue
        summary = partnership_summary(account, sales, expenses, investors)
        print_section(f"Partnership {account.name}")
        print(f"{'total_equity:':32}{summary.total_equity}")
        for partner in summary.partners:
            print(f"{partner.name + ':':32}{partner.share_percent:.2f}% = {partner.equity_value:.2f}")

    collections = upcoming_collections(
        sales, today, customers, tolerance=config.allocation.coverage_tolerance
    )
    print_section("Collections due today or tomorrow")
    for row in collections:
        print(f"{row.customer_name + ':':32}{row.amount_due} {config.currency}")

    reminders = list(due_reminders(sales, customers, today, config.reminders.reminder_days))
    print_section(f"Reminders due today at {config.reminders.reminder_time}")
    print(f"{'count:':32}{len(reminders)}")


def main() -> None:
    """Main entry point."""
    config = LedgerConfig.from_env()

    parser = argparse.ArgumentParser(
        description="Generate a demo installment portfolio into a JSON store"
    )
    parser.add_argument(
        "--customers",
        type=int,
        default=20,
        help="Number of customers to generate (default: 20)",
    )
    parser.add_argument(
        "--investors",
        type=int,
        default=2,
        help="Number of investors to generate (default: 2)",
    )
    parser.add_argument(
        "--sales",
        type=int,
        default=40,
        help="Number of sales to generate (default: 40)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=config.seed if config.seed is not None else 42,
        help="Random seed for reproducibility (default: 42)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=config.storage.data_dir,
        help="Directory for the JSON store (default: LEDGER_DATA_DIR or ./data)",
    )
    parser.add_argument(
        "--user-id",
        type=str,
        default="demo_user",
        help="Owner of the generated records",
    )
    parser.add_argument(
        "--today",
        type=str,
        default=None,
        help="Reference date as YYYY-MM-DD (default: today)",
    )
    parser.add_argument(
        "--pretty",
        action="store_true",
        default=config.storage.pretty_json,
        help="Pretty-print JSON files",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=config.log_level,
        help="Log level (default: LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=config.log_file,
        help="Also write logs to this file (default: LOG_FILE)",
    )
    args = parser.parse_args()

    setup_logging(args.log_level, config.log_format, args.log_file)
    today = as_date(args.today) if args.today else date.today()

    try:
        store = JsonFileLedgerStore(args.output_dir, pretty=args.pretty)
        book = SaleBook(store, args.user_id, config)
        generator = PortfolioGenerator(seed=args.seed, reference_date=today)
        portfolio = generator.generate(
            book,
            num_customers=args.customers,
            num_investors=args.investors,
            num_sales=args.sales,
        )
    except LedgerError:
        logger.exception("Portfolio generation failed")
        sys.exit(1)

    print_section("Summary")
    for name, count in store.summary().items():
        print(f"{name + ':':32}{count}")
    logger.info("Generated %s into %s", portfolio.summary(), args.output_dir)

    print_results(book, today, config)


if __name__ == "__main__":
    main()
