"""Repository protocol and in-memory store with referential integrity."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Protocol

from installment_ledger.engine.entries import SYSTEM_PREFIX
from installment_ledger.exceptions import EntityNotFoundError, ReferentialIntegrityError
from installment_ledger.models.ledger import (
    Account,
    AccountType,
    Customer,
    Expense,
    Investor,
    Sale,
)


class LedgerRepository(Protocol):
    """Persistence boundary for ledger records, scoped by user id."""

    def fetch_all_sales(self, user_id: str) -> list[Sale]: ...

    def fetch_all_expenses(self, user_id: str) -> list[Expense]: ...

    def fetch_all_accounts(self, user_id: str) -> list[Account]: ...

    def fetch_all_investors(self, user_id: str) -> list[Investor]: ...

    def fetch_all_customers(self, user_id: str) -> list[Customer]: ...

    def get_sale(self, sale_id: str) -> Sale: ...

    def get_investor(self, investor_id: str) -> Investor: ...

    def save_sale(self, sale: Sale) -> Sale: ...

    def delete_sale(self, sale_id: str) -> None: ...

    def save_expense(self, expense: Expense) -> Expense: ...

    def delete_expense(self, expense_id: str) -> None: ...

    def save_account(self, account: Account) -> Account: ...

    def save_investor(self, investor: Investor) -> Investor: ...

    def save_customer(self, customer: Customer) -> Customer: ...


@dataclass
class InMemoryLedgerStore:
    """In-memory store for ledger records with foreign key checks on save.

    Records are copied in and out so callers never share mutable state with
    the store.
    """

    customers: dict[str, Customer] = field(default_factory=dict)
    accounts: dict[str, Account] = field(default_factory=dict)
    investors: dict[str, Investor] = field(default_factory=dict)
    sales: dict[str, Sale] = field(default_factory=dict)
    expenses: dict[str, Expense] = field(default_factory=dict)

    # Query methods
    def fetch_all_sales(self, user_id: str) -> list[Sale]:
        """Get all sales of a user."""
        return [copy.deepcopy(s) for s in self.sales.values() if s.user_id == user_id]

    def fetch_all_expenses(self, user_id: str) -> list[Expense]:
        """Get all expenses of a user."""
        return [copy.deepcopy(e) for e in self.expenses.values() if e.user_id == user_id]

    def fetch_all_accounts(self, user_id: str) -> list[Account]:
        """Get all accounts of a user."""
        return [copy.deepcopy(a) for a in self.accounts.values() if a.user_id == user_id]

    def fetch_all_investors(self, user_id: str) -> list[Investor]:
        """Get all investors of a user."""
        return [copy.deepcopy(i) for i in self.investors.values() if i.user_id == user_id]

    def fetch_all_customers(self, user_id: str) -> list[Customer]:
        """Get all customers of a user."""
        return [copy.deepcopy(c) for c in self.customers.values() if c.user_id == user_id]

    def get_sale(self, sale_id: str) -> Sale:
        """Get a sale by id."""
        if sale_id not in self.sales:
            raise EntityNotFoundError(f"Sale {sale_id} not found")
        return copy.deepcopy(self.sales[sale_id])

    def get_investor(self, investor_id: str) -> Investor:
        """Get an investor by id."""
        if investor_id not in self.investors:
            raise EntityNotFoundError(f"Investor {investor_id} not found")
        return copy.deepcopy(self.investors[investor_id])

    # Write methods
    def save_customer(self, customer: Customer) -> Customer:
        """Insert or replace a customer."""
        self.customers[customer.customer_id] = copy.deepcopy(customer)
        return customer

    def save_investor(self, investor: Investor) -> Investor:
        """Insert or replace an investor."""
        self.investors[investor.investor_id] = copy.deepcopy(investor)
        return investor

    def save_account(self, account: Account) -> Account:
        """Insert or replace an account."""
        if account.account_type == AccountType.INVESTOR:
            if not account.owner_id:
                raise ReferentialIntegrityError(
                    f"Investor account {account.account_id} has no owner"
                )
            if account.owner_id not in self.investors:
                raise ReferentialIntegrityError(f"Investor {account.owner_id} not found")
        for partner_id in account.partners:
            if partner_id not in self.investors:
                raise ReferentialIntegrityError(f"Investor {partner_id} not found")

        self.accounts[account.account_id] = copy.deepcopy(account)
        return account

    def save_sale(self, sale: Sale) -> Sale:
        """Insert or replace a sale."""
        if sale.account_id not in self.accounts:
            raise ReferentialIntegrityError(f"Account {sale.account_id} not found")

        # Deposits are booked with an investor id, other system records with a marker
        if (
            sale.customer_id not in self.customers
            and sale.customer_id not in self.investors
            and not sale.customer_id.startswith(SYSTEM_PREFIX)
        ):
            raise ReferentialIntegrityError(f"Customer {sale.customer_id} not found")

        self.sales[sale.sale_id] = copy.deepcopy(sale)
        return sale

    def delete_sale(self, sale_id: str) -> None:
        """Remove a sale."""
        if self.sales.pop(sale_id, None) is None:
            raise EntityNotFoundError(f"Sale {sale_id} not found")

    def save_expense(self, expense: Expense) -> Expense:
        """Insert or replace an expense."""
        if expense.account_id not in self.accounts:
            raise ReferentialIntegrityError(f"Account {expense.account_id} not found")
        if expense.investor_id and expense.investor_id not in self.investors:
            raise ReferentialIntegrityError(f"Investor {expense.investor_id} not found")

        self.expenses[expense.expense_id] = copy.deepcopy(expense)
        return expense

    def delete_expense(self, expense_id: str) -> None:
        """Remove an expense."""
        if self.expenses.pop(expense_id, None) is None:
            raise EntityNotFoundError(f"Expense {expense_id} not found")

    def summary(self) -> dict[str, int]:
        """Return summary counts of all entities."""
        return {
            "customers": len(self.customers),
            "accounts": len(self.accounts),
            "investors": len(self.investors),
            "sales": len(self.sales),
            "expenses": len(self.expenses),
        }
