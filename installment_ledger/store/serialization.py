"""Serialization of ledger records to and from JSON-compatible dicts."""

from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from installment_ledger.models.ledger import (
    Account,
    AccountType,
    Customer,
    Expense,
    Investor,
    Payment,
    PayoutType,
    Sale,
    SaleType,
)
from installment_ledger.money import as_date, to_decimal


def to_dict(obj: Any) -> dict:
    """Convert object to dictionary."""
    if is_dataclass(obj):
        return dataclass_to_dict(obj)
    elif isinstance(obj, dict):
        return obj
    else:
        return {"value": str(obj)}


def dataclass_to_dict(obj: Any) -> dict:
    """Convert dataclass to dict with proper serialization."""
    result = {}
    for key, value in asdict(obj).items():
        result[key] = serialize_value(value)
    return result


def serialize_value(value: Any) -> Any:
    """Serialize a value for JSON output.

    Decimals are written as strings so amounts survive a round trip exactly.
    """
    if isinstance(value, Decimal):
        return str(value)
    elif isinstance(value, Enum):
        return value.value
    elif isinstance(value, datetime):
        return value.isoformat()
    elif isinstance(value, date):
        return value.isoformat()
    elif isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [serialize_value(v) for v in value]
    return value


def _optional_date(value: Any) -> date | None:
    return as_date(value) if value else None


def payment_from_dict(data: dict) -> Payment:
    return Payment(
        payment_id=data["payment_id"],
        sale_id=data["sale_id"],
        amount=to_decimal(data["amount"]),
        payment_date=as_date(data["payment_date"]),
        is_paid=bool(data.get("is_paid", False)),
        is_real_payment=data.get("is_real_payment"),
        last_notification_date=_optional_date(data.get("last_notification_date")),
        note=data.get("note"),
    )


def sale_from_dict(data: dict) -> Sale:
    """Rebuild a sale and its payment plan.

    Stored ``remaining_amount``/``status`` keys, if any, are ignored; both
    are derived from the plan.
    """
    return Sale(
        sale_id=data["sale_id"],
        user_id=data["user_id"],
        account_id=data["account_id"],
        customer_id=data["customer_id"],
        product_name=data["product_name"],
        sale_type=SaleType(data["sale_type"]),
        total_amount=to_decimal(data["total_amount"]),
        buy_price=to_decimal(data.get("buy_price")),
        down_payment=to_decimal(data.get("down_payment")),
        installments=int(data.get("installments", 0)),
        interest_rate=to_decimal(data.get("interest_rate")),
        start_date=as_date(data["start_date"]),
        payment_plan=[payment_from_dict(p) for p in data.get("payment_plan", [])],
        product_id=data.get("product_id"),
        payment_day=data.get("payment_day"),
        notes=data.get("notes", ""),
    )


def account_from_dict(data: dict) -> Account:
    return Account(
        account_id=data["account_id"],
        user_id=data["user_id"],
        name=data["name"],
        account_type=AccountType(data["account_type"]),
        owner_id=data.get("owner_id"),
        partners=list(data.get("partners", [])),
        currency=data.get("currency", "RUB"),
        is_archived=bool(data.get("is_archived", False)),
    )


def investor_from_dict(data: dict) -> Investor:
    return Investor(
        investor_id=data["investor_id"],
        user_id=data["user_id"],
        name=data["name"],
        phone=data.get("phone", ""),
        initial_amount=to_decimal(data.get("initial_amount")),
        profit_percentage=to_decimal(data.get("profit_percentage")),
        joined_date=_optional_date(data.get("joined_date")),
        notes=data.get("notes", ""),
    )


def expense_from_dict(data: dict) -> Expense:
    payout_type = data.get("payout_type")
    return Expense(
        expense_id=data["expense_id"],
        user_id=data["user_id"],
        account_id=data["account_id"],
        title=data.get("title", ""),
        amount=to_decimal(data["amount"]),
        category=data.get("category", ""),
        expense_date=as_date(data["expense_date"]),
        payout_type=PayoutType(payout_type) if payout_type else None,
        investor_id=data.get("investor_id"),
    )


def customer_from_dict(data: dict) -> Customer:
    return Customer(
        customer_id=data["customer_id"],
        user_id=data["user_id"],
        name=data["name"],
        phone=data.get("phone", ""),
        email=data.get("email", ""),
        address=data.get("address", ""),
        allow_notifications=bool(data.get("allow_notifications", True)),
        notes=data.get("notes", ""),
    )
