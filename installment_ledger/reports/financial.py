"""Period financial report: collections and manager/investor profit."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from installment_ledger.engine.entries import is_system_record, sale_entries
from installment_ledger.engine.profit import expected_profit, index_accounts, realized_profit
from installment_ledger.models.base import DateRange
from installment_ledger.models.ledger import Account, Investor, RecordedPayment, Sale
from installment_ledger.money import ZERO

ALL_INVESTORS = "ALL"


@dataclass(frozen=True)
class ReportFilter:
    """Report scope: one investor's accounts (or ``"ALL"``) over a date range."""

    investor_id: str = ALL_INVESTORS
    period: DateRange = field(default_factory=DateRange)


@dataclass
class Report:
    """Financial report figures."""

    customer_payments_in_period: Decimal = ZERO
    expected_manager_profit: Decimal = ZERO
    expected_investor_profit: Decimal = ZERO
    realized_manager_profit: Decimal = ZERO
    realized_investor_profit: Decimal = ZERO

    def to_dict(self) -> dict[str, str]:
        return {key: str(value) for key, value in self.__dict__.items()}


def sales_in_scope(
    sales: Iterable[Sale],
    accounts: Iterable[Account],
    investor_id: str = ALL_INVESTORS,
) -> list[Sale]:
    """Sales booked on accounts owned by ``investor_id``, or all sales."""
    sales = list(sales)
    if investor_id == ALL_INVESTORS:
        return sales
    owned = {account.account_id for account in accounts if account.owner_id == investor_id}
    return [sale for sale in sales if sale.account_id in owned]


def customer_payments(
    sales: Iterable[Sale],
    accounts: Iterable[Account],
    period: DateRange | None = None,
) -> Decimal:
    """Money received from customers within ``period``.

    Down payments and recorded payments count; capital deposits and other
    system records do not.
    """
    account_index = index_accounts(accounts)
    period = period or DateRange()
    total = ZERO
    for sale in sales:
        account = account_index.get(sale.account_id)
        if is_system_record(sale, account):
            continue
        for entry in sale_entries(sale, account):
            if isinstance(entry, RecordedPayment) and period.contains(entry.paid_on):
                total += entry.amount
    return total


def compute_report(
    sales: Iterable[Sale],
    accounts: Iterable[Account],
    investors: Iterable[Investor],
    report_filter: ReportFilter | None = None,
) -> Report:
    """Compute the financial report.

    Parameters
    ----------
    sales : Iterable[Sale]
        All sales of the user.
    accounts : Iterable[Account]
        All accounts of the user.
    investors : Iterable[Investor]
        All investors of the user.
    report_filter : ReportFilter | None
        Investor scope and period; defaults to everything, all time.

    Returns
    -------
    Report
        Collections and realized profit for the scoped sales within the
        period. Expected profit ignores the period and, for ``"ALL"``, covers
        every sale.
    """
    report_filter = report_filter or ReportFilter()
    sales = list(sales)
    accounts = list(accounts)
    investors = list(investors)

    scoped = sales_in_scope(sales, accounts, report_filter.investor_id)
    expected = expected_profit(scoped, accounts, investors)
    realized = realized_profit(scoped, accounts, investors, report_filter.period).totals

    return Report(
        customer_payments_in_period=customer_payments(scoped, accounts, report_filter.period),
        expected_manager_profit=expected.manager,
        expected_investor_profit=expected.investor,
        realized_manager_profit=realized.manager,
        realized_investor_profit=realized.investor,
    )
