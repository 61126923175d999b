"""Typed ledger entry variants.

Raw records overload fields to encode meaning (a partner deposit is a CASH
sale whose customer id is an investor id, a payment and a schedule slot share
one record type). These variants carry that meaning explicitly; they are
derived from records by :mod:`installment_ledger.engine.entries`.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal


@dataclass(frozen=True)
class ScheduledInstallment:
    """Unpaid schedule slot."""

    sale_id: str
    payment_id: str
    amount: Decimal
    due_date: date


@dataclass(frozen=True)
class RecordedPayment:
    """Cash received for a sale (down payment or installment)."""

    sale_id: str
    payment_id: str
    amount: Decimal
    paid_on: date
    is_down_payment: bool = False


@dataclass(frozen=True)
class CapitalDeposit:
    """Capital contributed to an account by an investor or partner."""

    account_id: str
    investor_id: str | None
    amount: Decimal
    deposited_on: date
    source_id: str = ""


@dataclass(frozen=True)
class CapitalWithdrawal:
    """Return of invested capital."""

    account_id: str
    investor_id: str | None
    amount: Decimal
    withdrawn_on: date


@dataclass(frozen=True)
class ProfitWithdrawal:
    """Payout drawn from earned profit."""

    account_id: str
    investor_id: str | None
    amount: Decimal
    withdrawn_on: date


@dataclass(frozen=True)
class Expenditure:
    """Any other expense against an account."""

    account_id: str
    amount: Decimal
    spent_on: date
    category: str


LedgerEntry = (
    ScheduledInstallment
    | RecordedPayment
    | CapitalDeposit
    | CapitalWithdrawal
    | ProfitWithdrawal
    | Expenditure
)
