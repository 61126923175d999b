"""Portfolio figures for the dashboard."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Mapping

from installment_ledger.engine.aging import count_by_status
from installment_ledger.engine.allocation import COVERAGE_TOLERANCE, allocate_surplus
from installment_ledger.engine.entries import SYSTEM_PREFIX
from installment_ledger.models.ledger import AgingStatus, Customer, Sale, SaleStatus, SaleType
from installment_ledger.money import ZERO, as_date


@dataclass(frozen=True)
class PortfolioStats:
    """Collected and outstanding money over customer sales."""

    collected: Decimal
    outstanding: Decimal
    installment_sales_total: Decimal


@dataclass(frozen=True)
class UpcomingCollection:
    """Money a customer owes on one sale today or tomorrow."""

    sale_id: str
    customer_id: str
    customer_name: str
    amount_due: Decimal
    is_today: bool
    is_tomorrow: bool


def customer_sales(sales: Iterable[Sale], account_id: str | None = None) -> list[Sale]:
    """Sales to real customers, optionally limited to one account."""
    return [
        sale
        for sale in sales
        if not sale.customer_id.startswith(SYSTEM_PREFIX)
        and (account_id is None or sale.account_id == account_id)
    ]


def portfolio_stats(sales: Iterable[Sale], account_id: str | None = None) -> PortfolioStats:
    """Collected money, outstanding debt and installment volume.

    Capital deposits and other system records are left out.
    """
    collected = outstanding = installment_total = ZERO
    for sale in customer_sales(sales, account_id):
        collected += sale.down_payment + sale.paid_amount
        outstanding += sale.remaining_amount
        if sale.sale_type == SaleType.INSTALLMENT:
            installment_total += sale.total_amount
    return PortfolioStats(
        collected=collected,
        outstanding=outstanding,
        installment_sales_total=installment_total,
    )


def working_capital(
    balances: Mapping[str, Decimal],
    sales: Iterable[Sale],
    account_id: str | None = None,
) -> Decimal:
    """Cash on hand plus outstanding customer debt.

    ``balances`` maps account ids to cash balances, as returned by
    :func:`installment_ledger.engine.ledger.account_balances`.
    """
    if account_id is None:
        cash = sum(balances.values(), ZERO)
    else:
        cash = balances.get(account_id, ZERO)
    return cash + portfolio_stats(sales, account_id).outstanding


def upcoming_collections(
    sales: Iterable[Sale],
    today: date,
    customers: Iterable[Customer] = (),
    tolerance: Decimal = COVERAGE_TOLERANCE,
) -> list[UpcomingCollection]:
    """Active sales with money due today or tomorrow, after surplus."""
    today = as_date(today)
    tomorrow = today + timedelta(days=1)
    names = {customer.customer_id: customer.name for customer in customers}

    result = []
    for sale in sales:
        if sale.status != SaleStatus.ACTIVE:
            continue
        amount_due = ZERO
        is_today = is_tomorrow = False
        for row in allocate_surplus(sale):
            if row.amount_to_pay <= tolerance:
                continue
            due = row.payment.payment_date
            if due == today:
                is_today = True
            elif due == tomorrow:
                is_tomorrow = True
            else:
                continue
            amount_due += row.amount_to_pay
        if amount_due > 0:
            result.append(
                UpcomingCollection(
                    sale_id=sale.sale_id,
                    customer_id=sale.customer_id,
                    customer_name=names.get(sale.customer_id, "Unknown"),
                    amount_due=amount_due,
                    is_today=is_today,
                    is_tomorrow=is_tomorrow,
                )
            )
    return result


def contract_counts(
    sales: Iterable[Sale],
    customers: Iterable[Customer],
    today: date,
) -> dict[AgingStatus, int]:
    """Contracts per aging status, counting only sales of known customers."""
    known = {customer.customer_id for customer in customers}
    return count_by_status((sale for sale in sales if sale.customer_id in known), today)
