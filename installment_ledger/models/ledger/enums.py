"""Enumeration types for ledger entities."""

from enum import Enum


class SaleType(str, Enum):
    INSTALLMENT = "INSTALLMENT"
    CASH = "CASH"


class SaleStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


class AgingStatus(str, Enum):
    ACTIVE = "ACTIVE"
    OVERDUE = "OVERDUE"
    ARCHIVED = "ARCHIVED"


class AccountType(str, Enum):
    MAIN = "MAIN"
    INVESTOR = "INVESTOR"
    CUSTOM = "CUSTOM"
    SHARED = "SHARED"


class PayoutType(str, Enum):
    INVESTMENT = "INVESTMENT"
    PROFIT = "PROFIT"


class RoundingMode(str, Enum):
    NONE = "NONE"
    DOWN = "DOWN"
    UP = "UP"
