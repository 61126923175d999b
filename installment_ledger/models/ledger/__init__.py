"""Ledger domain models."""

from installment_ledger.models.ledger.account import Account, Expense, Investor
from installment_ledger.models.ledger.customer import Customer
from installment_ledger.models.ledger.entries import (
    CapitalDeposit,
    CapitalWithdrawal,
    Expenditure,
    LedgerEntry,
    ProfitWithdrawal,
    RecordedPayment,
    ScheduledInstallment,
)
from installment_ledger.models.ledger.enums import (
    AccountType,
    AgingStatus,
    PayoutType,
    RoundingMode,
    SaleStatus,
    SaleType,
)
from installment_ledger.models.ledger.sale import Payment, Sale

__all__ = [
    "Account",
    "AccountType",
    "AgingStatus",
    "CapitalDeposit",
    "CapitalWithdrawal",
    "Customer",
    "Expenditure",
    "Expense",
    "Investor",
    "LedgerEntry",
    "Payment",
    "PayoutType",
    "ProfitWithdrawal",
    "RecordedPayment",
    "RoundingMode",
    "Sale",
    "SaleStatus",
    "SaleType",
    "ScheduledInstallment",
]
