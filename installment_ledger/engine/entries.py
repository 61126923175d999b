"""Derivation of typed ledger entries from raw sale and expense records.

This is the only place where record conventions are interpreted:

- a CASH sale whose ``customer_id`` is the account owner, one of its
  partners, or carries the ``system_deposit_`` prefix is a capital deposit;
- the down payment and every cash line of a sale are recorded payments;
- unpaid plan entries are scheduled installments;
- an expense's ``payout_type`` selects capital or profit withdrawal.
"""

from __future__ import annotations

from typing import Iterable

from installment_ledger.models.ledger import (
    Account,
    CapitalDeposit,
    CapitalWithdrawal,
    Expenditure,
    Expense,
    LedgerEntry,
    PayoutType,
    ProfitWithdrawal,
    RecordedPayment,
    Sale,
    SaleType,
    ScheduledInstallment,
)

SYSTEM_PREFIX = "system_"
DEPOSIT_PREFIX = "system_deposit_"
OTHER_INCOME_CUSTOMER = "system_income"


def deposit_investor_id(sale: Sale, account: Account | None = None) -> str | None:
    """Investor id a sale deposits capital for, or ``None`` for a regular sale."""
    if sale.sale_type != SaleType.CASH:
        return None
    if sale.customer_id.startswith(DEPOSIT_PREFIX):
        return sale.customer_id[len(DEPOSIT_PREFIX):]
    if account is not None:
        if sale.customer_id == account.owner_id or sale.customer_id in account.partners:
            return sale.customer_id
    return None


def is_capital_deposit(sale: Sale, account: Account | None = None) -> bool:
    return deposit_investor_id(sale, account) is not None


def is_system_record(sale: Sale, account: Account | None = None) -> bool:
    """Whether a sale record is bookkeeping (deposit or other income), not a customer sale."""
    return sale.customer_id.startswith(SYSTEM_PREFIX) or is_capital_deposit(sale, account)


def sale_entries(sale: Sale, account: Account | None = None) -> list[LedgerEntry]:
    """Ledger entries for one sale record."""
    investor_id = deposit_investor_id(sale, account)
    if investor_id is not None:
        return [
            CapitalDeposit(
                account_id=sale.account_id,
                investor_id=investor_id,
                amount=sale.total_amount,
                deposited_on=sale.start_date,
                source_id=sale.sale_id,
            )
        ]

    entries: list[LedgerEntry] = []
    if sale.down_payment > 0:
        entries.append(
            RecordedPayment(
                sale_id=sale.sale_id,
                payment_id=f"{sale.sale_id}_dp",
                amount=sale.down_payment,
                paid_on=sale.start_date,
                is_down_payment=True,
            )
        )
    for payment in sale.payment_plan:
        if payment.is_money_movement:
            entries.append(
                RecordedPayment(
                    sale_id=sale.sale_id,
                    payment_id=payment.payment_id,
                    amount=payment.amount,
                    paid_on=payment.payment_date,
                )
            )
        elif not payment.is_paid:
            entries.append(
                ScheduledInstallment(
                    sale_id=sale.sale_id,
                    payment_id=payment.payment_id,
                    amount=payment.amount,
                    due_date=payment.payment_date,
                )
            )
    return entries


def expense_entry(expense: Expense) -> LedgerEntry:
    """Ledger entry for one expense record."""
    if expense.payout_type == PayoutType.INVESTMENT:
        return CapitalWithdrawal(
            account_id=expense.account_id,
            investor_id=expense.investor_id,
            amount=expense.amount,
            withdrawn_on=expense.expense_date,
        )
    if expense.payout_type == PayoutType.PROFIT:
        return ProfitWithdrawal(
            account_id=expense.account_id,
            investor_id=expense.investor_id,
            amount=expense.amount,
            withdrawn_on=expense.expense_date,
        )
    return Expenditure(
        account_id=expense.account_id,
        amount=expense.amount,
        spent_on=expense.expense_date,
        category=expense.category,
    )


def account_entries(
    account_id: str,
    sales: Iterable[Sale],
    expenses: Iterable[Expense],
    account: Account | None = None,
) -> list[LedgerEntry]:
    """All ledger entries booked against an account."""
    entries: list[LedgerEntry] = []
    for sale in sales:
        if sale.account_id == account_id:
            entries.extend(sale_entries(sale, account))
    for expense in expenses:
        if expense.account_id == account_id:
            entries.append(expense_entry(expense))
    return entries
