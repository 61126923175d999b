"""Pytest configuration and fixtures."""

from datetime import date
from decimal import Decimal
from typing import Callable

import pytest

from installment_ledger.engine.schedule import build_sale
from installment_ledger.models.ledger import (
    Account,
    AccountType,
    Customer,
    Investor,
    Sale,
    SaleType,
)
from installment_ledger.store import InMemoryLedgerStore, SaleBook


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def today() -> date:
    """Fixed reference date."""
    return date(2024, 6, 15)


@pytest.fixture
def user_id() -> str:
    return "user-test-001"


@pytest.fixture
def customer(user_id: str) -> Customer:
    return Customer(
        customer_id="cust-test-001",
        user_id=user_id,
        name="Ivan Petrov",
        phone="+79001234567",
    )


@pytest.fixture
def investor(user_id: str) -> Investor:
    return Investor(
        investor_id="inv-test-001",
        user_id=user_id,
        name="Anna Smirnova",
        phone="+79007654321",
        initial_amount=Decimal("100000"),
        profit_percentage=Decimal("30"),
    )


@pytest.fixture
def partner(user_id: str) -> Investor:
    return Investor(
        investor_id="inv-test-002",
        user_id=user_id,
        name="Oleg Ivanov",
        phone="+79005550000",
        initial_amount=Decimal("0"),
        profit_percentage=Decimal("50"),
    )


@pytest.fixture
def main_account(user_id: str) -> Account:
    return Account(
        account_id="acct-main",
        user_id=user_id,
        name="Main",
        account_type=AccountType.MAIN,
    )


@pytest.fixture
def investor_account(user_id: str, investor: Investor) -> Account:
    return Account(
        account_id="acct-investor",
        user_id=user_id,
        name="Investor",
        account_type=AccountType.INVESTOR,
        owner_id=investor.investor_id,
    )


@pytest.fixture
def shared_account(user_id: str, investor: Investor, partner: Investor) -> Account:
    return Account(
        account_id="acct-shared",
        user_id=user_id,
        name="Partnership",
        account_type=AccountType.SHARED,
        partners=[investor.investor_id, partner.investor_id],
    )


@pytest.fixture
def make_sale(user_id: str, customer: Customer) -> Callable[..., Sale]:
    """Factory building a sale with its schedule."""

    def _make(
        sale_id: str = "sale-test-001",
        price: str = "3000",
        installments: int = 3,
        down_payment: str = "0",
        buy_price: str = "0",
        start_date: date = date(2024, 1, 1),
        account_id: str = "acct-main",
        sale_type: SaleType = SaleType.INSTALLMENT,
        customer_id: str | None = None,
        payment_date: date | None = None,
    ) -> Sale:
        return build_sale(
            sale_id=sale_id,
            user_id=user_id,
            customer_id=customer.customer_id if customer_id is None else customer_id,
            account_id=account_id,
            product_name="Smartphone",
            price=Decimal(price),
            start_date=start_date,
            sale_type=sale_type,
            buy_price=Decimal(buy_price),
            down_payment=Decimal(down_payment),
            installments=installments,
            payment_date=payment_date,
        )

    return _make


@pytest.fixture
def store(
    customer: Customer,
    investor: Investor,
    partner: Investor,
    main_account: Account,
    investor_account: Account,
    shared_account: Account,
) -> InMemoryLedgerStore:
    """Store seeded with one customer, two investors and three accounts."""
    store = InMemoryLedgerStore()
    store.save_customer(customer)
    store.save_investor(investor)
    store.save_investor(partner)
    store.save_account(main_account)
    store.save_account(investor_account)
    store.save_account(shared_account)
    return store


@pytest.fixture
def book(store: InMemoryLedgerStore, user_id: str) -> SaleBook:
    return SaleBook(store, user_id)
