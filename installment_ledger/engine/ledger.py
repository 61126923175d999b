"""Account balances, receivables and partnership equity.

Everything here is a fold over the full record set; nothing is stored or
adjusted incrementally.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from installment_ledger.engine.entries import account_entries
from installment_ledger.models.ledger import (
    Account,
    CapitalDeposit,
    CapitalWithdrawal,
    Expenditure,
    Expense,
    Investor,
    LedgerEntry,
    ProfitWithdrawal,
    RecordedPayment,
    Sale,
    SaleStatus,
)
from installment_ledger.money import ZERO

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PartnerShare:
    """A partner's position in a SHARED account."""

    investor_id: str
    name: str
    deposits: Decimal
    investment_withdrawals: Decimal
    profit_withdrawals: Decimal
    net_capital: Decimal
    share_percent: Decimal
    equity_value: Decimal
    available_profit: Decimal


@dataclass
class PartnershipSummary:
    """Equity breakdown of a SHARED account."""

    account_id: str
    cash_balance: Decimal
    receivables: Decimal
    total_equity: Decimal
    total_net_capital: Decimal
    profit_generated: Decimal
    partners: list[PartnerShare] = field(default_factory=list)


def entry_cash_effect(entry: LedgerEntry) -> Decimal:
    """Signed effect of an entry on the account's cash."""
    if isinstance(entry, (RecordedPayment, CapitalDeposit)):
        return entry.amount
    if isinstance(entry, (CapitalWithdrawal, ProfitWithdrawal, Expenditure)):
        return -entry.amount
    # Scheduled installments are obligations, not cash
    return ZERO


def account_balance(
    account_id: str,
    sales: Iterable[Sale],
    expenses: Iterable[Expense],
    account: Account | None = None,
) -> Decimal:
    """Cash on an account: money received minus money spent."""
    return sum(
        (entry_cash_effect(e) for e in account_entries(account_id, sales, expenses, account)),
        ZERO,
    )


def account_balances(
    accounts: Iterable[Account],
    sales: Iterable[Sale],
    expenses: Iterable[Expense],
) -> dict[str, Decimal]:
    """Cash balance of every account."""
    sales = list(sales)
    expenses = list(expenses)
    return {
        account.account_id: account_balance(account.account_id, sales, expenses, account)
        for account in accounts
    }


def receivables(account_id: str, sales: Iterable[Sale]) -> Decimal:
    """Outstanding amount of the account's active sales."""
    return sum(
        (
            sale.remaining_amount
            for sale in sales
            if sale.account_id == account_id and sale.status == SaleStatus.ACTIVE
        ),
        ZERO,
    )


def total_equity(
    account_id: str,
    sales: Iterable[Sale],
    expenses: Iterable[Expense],
    account: Account | None = None,
) -> Decimal:
    """Cash plus receivables."""
    sales = list(sales)
    return account_balance(account_id, sales, expenses, account) + receivables(account_id, sales)


def partner_shares(
    account: Account,
    sales: Iterable[Sale],
    expenses: Iterable[Expense],
    investors: Iterable[Investor],
) -> list[PartnerShare]:
    """Capital-weighted share of each partner in a SHARED account."""
    return partnership_summary(account, sales, expenses, investors).partners


def partnership_summary(
    account: Account,
    sales: Iterable[Sale],
    expenses: Iterable[Expense],
    investors: Iterable[Investor],
) -> PartnershipSummary:
    """Equity of a SHARED account and how it splits between partners.

    A partner's net capital is deposits minus capital withdrawals (floored at
    0). Equity is split in proportion to net capital; whatever exceeds a
    partner's net capital is their available profit.
    """
    sales = list(sales)
    entries = account_entries(account.account_id, sales, expenses, account)
    names = {investor.investor_id: investor.name for investor in investors}

    cash_balance = sum((entry_cash_effect(e) for e in entries), ZERO)
    account_receivables = receivables(account.account_id, sales)
    equity = cash_balance + account_receivables

    rows = []
    for partner_id in account.partners:
        deposits = investment_withdrawals = profit_withdrawals = ZERO
        for entry in entries:
            if isinstance(entry, CapitalDeposit) and entry.investor_id == partner_id:
                deposits += entry.amount
            elif isinstance(entry, CapitalWithdrawal) and entry.investor_id == partner_id:
                investment_withdrawals += entry.amount
            elif isinstance(entry, ProfitWithdrawal) and entry.investor_id == partner_id:
                profit_withdrawals += entry.amount
        rows.append(
            (
                partner_id,
                deposits,
                investment_withdrawals,
                profit_withdrawals,
                max(ZERO, deposits - investment_withdrawals),
            )
        )

    total_net_capital = sum((row[4] for row in rows), ZERO)
    partners = []
    for partner_id, deposits, inv_withdrawals, prof_withdrawals, net_capital in rows:
        if partner_id not in names:
            logger.debug("Partner %s of account %s not found", partner_id, account.account_id)
        share = net_capital / total_net_capital if total_net_capital > 0 else ZERO
        equity_value = equity * share
        partners.append(
            PartnerShare(
                investor_id=partner_id,
                name=names.get(partner_id, "Unknown"),
                deposits=deposits,
                investment_withdrawals=inv_withdrawals,
                profit_withdrawals=prof_withdrawals,
                net_capital=net_capital,
                share_percent=share * 100,
                equity_value=equity_value,
                available_profit=max(ZERO, equity_value - net_capital),
            )
        )

    return PartnershipSummary(
        account_id=account.account_id,
        cash_balance=cash_balance,
        receivables=account_receivables,
        total_equity=equity,
        total_net_capital=total_net_capital,
        profit_generated=max(ZERO, equity - total_net_capital),
        partners=partners,
    )
