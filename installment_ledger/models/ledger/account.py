"""Account, investor and expense models."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from installment_ledger.models.ledger.enums import AccountType, PayoutType


@dataclass
class Account:
    """Cash-holding bucket that sales deposit into and expenses draw from."""

    account_id: str
    user_id: str
    name: str
    account_type: AccountType
    owner_id: str | None = None  # Investor id for INVESTOR accounts
    partners: list[str] = field(default_factory=list)  # Investor ids for SHARED accounts
    currency: str = "RUB"
    is_archived: bool = False


@dataclass
class Investor:
    """Financing partner."""

    investor_id: str
    user_id: str
    name: str
    phone: str
    initial_amount: Decimal  # Net capital contributed
    profit_percentage: Decimal
    joined_date: date | None = None
    notes: str = ""


@dataclass
class Expense:
    """Ledger-reducing transaction against an account."""

    expense_id: str
    user_id: str
    account_id: str
    title: str
    amount: Decimal
    category: str
    expense_date: date
    payout_type: PayoutType | None = None  # Only for investor/manager payouts
    investor_id: str | None = None  # Withdrawing partner on SHARED accounts
