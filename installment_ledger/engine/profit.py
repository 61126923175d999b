"""Profit recognition and manager/investor split.

Profit is recognized per money movement: every cash amount received for a
sale (the down payment at the sale start, each recorded payment at its own
date) carries ``amount * margin`` of profit, where
``margin = (total_amount - buy_price) / total_amount``.

The accrual is split between the manager and the investor owning the
financing account. SHARED accounts are split by net capital instead (see
:mod:`installment_ledger.engine.ledger`) and are left out of this split.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping

from installment_ledger.engine.entries import expense_entry, sale_entries
from installment_ledger.models.base import DateRange
from installment_ledger.models.ledger import (
    Account,
    AccountType,
    CapitalWithdrawal,
    Expense,
    Investor,
    ProfitWithdrawal,
    RecordedPayment,
    Sale,
    SaleStatus,
)
from installment_ledger.money import ZERO, round_money

logger = logging.getLogger(__name__)

ONE = Decimal("1")


@dataclass(frozen=True)
class ProfitSplit:
    """Fractions of profit going to the manager and the investor."""

    manager_fraction: Decimal = ONE
    investor_fraction: Decimal = ZERO
    investor_id: str | None = None


SELF_FUNDED = ProfitSplit()


@dataclass(frozen=True)
class Accrual:
    """Profit recognized from one money movement."""

    sale_id: str
    payment_id: str
    account_id: str
    accrued_on: date
    amount: Decimal  # Money received
    accrual: Decimal
    manager_share: Decimal
    investor_share: Decimal
    investor_id: str | None = None
    source: str = ""


@dataclass
class ProfitTotals:
    """Manager and investor profit sums."""

    manager: Decimal = ZERO
    investor: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.manager + self.investor


@dataclass
class RealizedProfit:
    """Realized profit totals with the accruals they were built from."""

    totals: ProfitTotals = field(default_factory=ProfitTotals)
    accruals: list[Accrual] = field(default_factory=list)


@dataclass(frozen=True)
class ProfitBalance:
    """Profit earned, profit withdrawn and what is left to withdraw."""

    earned: Decimal
    withdrawn: Decimal

    @property
    def balance(self) -> Decimal:
        return self.earned - self.withdrawn


def margin(total_amount: Decimal, buy_price: Decimal) -> Decimal:
    """Profit margin of a sale; 0 unless ``total_amount > max(0, buy_price)``."""
    if total_amount <= 0 or total_amount <= buy_price:
        return ZERO
    return (total_amount - buy_price) / total_amount


def index_accounts(accounts: Iterable[Account]) -> dict[str, Account]:
    return {account.account_id: account for account in accounts}


def index_investors(investors: Iterable[Investor]) -> dict[str, Investor]:
    return {investor.investor_id: investor for investor in investors}


def resolve_split(
    account: Account | None,
    investors: Mapping[str, Investor],
) -> ProfitSplit | None:
    """Profit split for sales financed through ``account``.

    Returns ``None`` for SHARED accounts. A missing account, or an investor
    account whose investor no longer exists, is treated as self-funded.
    """
    if account is None:
        return SELF_FUNDED
    if account.account_type == AccountType.SHARED:
        return None
    if account.account_type == AccountType.INVESTOR and account.owner_id:
        investor = investors.get(account.owner_id)
        if investor is None:
            logger.debug(
                "Investor %s of account %s not found, treating as self-funded",
                account.owner_id,
                account.account_id,
            )
            return SELF_FUNDED
        investor_fraction = investor.profit_percentage / 100
        return ProfitSplit(
            manager_fraction=ONE - investor_fraction,
            investor_fraction=investor_fraction,
            investor_id=investor.investor_id,
        )
    return SELF_FUNDED


def split_accrual(accrual: Decimal, split: ProfitSplit) -> tuple[Decimal, Decimal]:
    """Split a rounded accrual into ``(manager_share, investor_share)``.

    The investor share is rounded and the manager takes the rest, so the two
    always add up to the accrual.
    """
    investor_share = round_money(accrual * split.investor_fraction)
    return accrual - investor_share, investor_share


def accruals(sale: Sale, split: ProfitSplit | None, account: Account | None = None) -> list[Accrual]:
    """Profit accruals for every money movement of a sale.

    Sales with an unknown cost basis (``buy_price <= 0``), a non-positive
    margin, or financed through a SHARED account accrue nothing.
    """
    if split is None or sale.buy_price <= 0:
        return []
    sale_margin = margin(sale.total_amount, sale.buy_price)
    if sale_margin <= 0:
        return []

    result = []
    for entry in sale_entries(sale, account):
        if not isinstance(entry, RecordedPayment) or entry.amount <= 0:
            continue
        accrual = round_money(entry.amount * sale_margin)
        manager_share, investor_share = split_accrual(accrual, split)
        result.append(
            Accrual(
                sale_id=sale.sale_id,
                payment_id=entry.payment_id,
                account_id=sale.account_id,
                accrued_on=entry.paid_on,
                amount=entry.amount,
                accrual=accrual,
                manager_share=manager_share,
                investor_share=investor_share,
                investor_id=split.investor_id,
                source=sale.product_name,
            )
        )
    return result


def expected_profit(
    sales: Iterable[Sale],
    accounts: Iterable[Account],
    investors: Iterable[Investor],
    account_id: str | None = None,
) -> ProfitTotals:
    """Profit still expected from ACTIVE sales if fully collected.

    Sums ``(total_amount - buy_price) * share`` over active sales with a
    known cost basis, optionally on one account only. Not time-bounded.
    """
    account_index = index_accounts(accounts)
    investor_index = index_investors(investors)
    totals = ProfitTotals()

    for sale in sales:
        if account_id is not None and sale.account_id != account_id:
            continue
        if sale.status != SaleStatus.ACTIVE or sale.buy_price <= 0:
            continue
        sale_profit = sale.total_amount - sale.buy_price
        if sale_profit <= 0:
            continue
        split = resolve_split(account_index.get(sale.account_id), investor_index)
        if split is None:
            continue
        manager_share, investor_share = split_accrual(round_money(sale_profit), split)
        totals.manager += manager_share
        totals.investor += investor_share

    return totals


def realized_profit(
    sales: Iterable[Sale],
    accounts: Iterable[Account],
    investors: Iterable[Investor],
    period: DateRange | None = None,
    account_id: str | None = None,
) -> RealizedProfit:
    """Profit accrued from money received within ``period`` (inclusive).

    Accruals are listed newest first. ``account_id`` limits the sales to one
    account.
    """
    account_index = index_accounts(accounts)
    investor_index = index_investors(investors)
    period = period or DateRange()
    result = RealizedProfit()

    for sale in sales:
        if account_id is not None and sale.account_id != account_id:
            continue
        account = account_index.get(sale.account_id)
        split = resolve_split(account, investor_index)
        for accrual in accruals(sale, split, account):
            if not period.contains(accrual.accrued_on):
                continue
            result.accruals.append(accrual)
            result.totals.manager += accrual.manager_share
            result.totals.investor += accrual.investor_share

    result.accruals.sort(key=lambda a: a.accrued_on, reverse=True)
    return result


def investor_account_ids(investor_id: str, accounts: Iterable[Account]) -> set[str]:
    """Ids of the INVESTOR accounts owned by an investor."""
    return {
        account.account_id
        for account in accounts
        if account.account_type == AccountType.INVESTOR and account.owner_id == investor_id
    }


def manager_profit_balance(
    sales: Iterable[Sale],
    expenses: Iterable[Expense],
    accounts: Iterable[Account],
    investors: Iterable[Investor],
) -> ProfitBalance:
    """All-time manager profit minus the manager's profit withdrawals.

    Manager withdrawals are PROFIT payouts without an investor id on any
    account other than an investor's.
    """
    accounts = list(accounts)
    account_index = index_accounts(accounts)
    earned = realized_profit(sales, accounts, investors).totals.manager

    withdrawn = ZERO
    for expense in expenses:
        entry = expense_entry(expense)
        if not isinstance(entry, ProfitWithdrawal) or entry.investor_id is not None:
            continue
        account = account_index.get(entry.account_id)
        if account is not None and account.account_type == AccountType.INVESTOR:
            continue
        withdrawn += entry.amount

    return ProfitBalance(earned=earned, withdrawn=withdrawn)


def investor_profit_balance(
    investor: Investor,
    sales: Iterable[Sale],
    expenses: Iterable[Expense],
    accounts: Iterable[Account],
) -> ProfitBalance:
    """All-time profit share of an investor minus profit paid out to them."""
    accounts = list(accounts)
    own_accounts = investor_account_ids(investor.investor_id, accounts)
    own_sales = [sale for sale in sales if sale.account_id in own_accounts]
    earned = realized_profit(own_sales, accounts, [investor]).totals.investor

    withdrawn = sum(
        (
            entry.amount
            for entry in map(expense_entry, expenses)
            if isinstance(entry, ProfitWithdrawal)
            and (entry.account_id in own_accounts or entry.investor_id == investor.investor_id)
        ),
        ZERO,
    )
    return ProfitBalance(earned=earned, withdrawn=withdrawn)


def investment_capital(
    investor: Investor,
    expenses: Iterable[Expense],
    accounts: Iterable[Account],
) -> Decimal:
    """Capital still invested: ``initial_amount`` minus capital withdrawals."""
    own_accounts = investor_account_ids(investor.investor_id, accounts)
    withdrawn = sum(
        (
            entry.amount
            for entry in map(expense_entry, expenses)
            if isinstance(entry, CapitalWithdrawal)
            and (entry.account_id in own_accounts or entry.investor_id == investor.investor_id)
        ),
        ZERO,
    )
    return investor.initial_amount - withdrawn
