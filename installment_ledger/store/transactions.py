"""Sale-level transactions against a ledger repository.

Each operation loads the current record, applies a pure engine function and
saves the result, all under one lock. The engine functions return new
objects, so a failed save leaves the previously stored record authoritative.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import replace
from datetime import date
from decimal import Decimal

from installment_ledger.config import LedgerConfig
from installment_ledger.engine import allocation
from installment_ledger.engine.entries import DEPOSIT_PREFIX, OTHER_INCOME_CUSTOMER
from installment_ledger.engine.schedule import build_sale
from installment_ledger.exceptions import (
    EntityNotFoundError,
    InvalidInputError,
    PersistenceError,
)
from installment_ledger.logging import get_logger
from installment_ledger.models.ledger import (
    Expense,
    Investor,
    PayoutType,
    RoundingMode,
    Sale,
    SaleType,
)
from installment_ledger.money import as_date, to_decimal
from installment_ledger.store.memory import LedgerRepository

COST_EXPENSE_PREFIX = "exp_sale_"
COST_CATEGORY = "Purchase"


def cost_expense_id(sale_id: str) -> str:
    """Id of the cost-of-goods expense linked to a sale."""
    return f"{COST_EXPENSE_PREFIX}{sale_id}"


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class SaleBook:
    """Transactional operations on one user's ledger.

    Parameters
    ----------
    repository : LedgerRepository
        Backing store.
    user_id : str
        Owner of every record written through this book.
    config : LedgerConfig | None
        Schedule rounding and coverage tolerance; defaults apply when omitted.
    """

    def __init__(
        self,
        repository: LedgerRepository,
        user_id: str,
        config: LedgerConfig | None = None,
    ) -> None:
        self.repository = repository
        self.user_id = user_id
        self.config = config or LedgerConfig()
        self._lock = threading.RLock()
        self.log = get_logger(__name__, user_id=user_id)

    @property
    def tolerance(self) -> Decimal:
        return self.config.allocation.coverage_tolerance

    def _save_sale(self, sale: Sale, action: str) -> Sale:
        try:
            return self.repository.save_sale(sale)
        except PersistenceError:
            self.log.error("Failed to %s on sale %s", action, sale.sale_id, exc_info=True)
            raise

    def _save_expense(self, expense: Expense, action: str) -> Expense:
        try:
            return self.repository.save_expense(expense)
        except PersistenceError:
            self.log.error("Failed to %s %s", action, expense.expense_id, exc_info=True)
            raise

    def _cost_expense(self, sale: Sale) -> Expense:
        return Expense(
            expense_id=cost_expense_id(sale.sale_id),
            user_id=self.user_id,
            account_id=sale.account_id,
            title=f"Purchase: {sale.product_name}",
            amount=sale.buy_price,
            category=COST_CATEGORY,
            expense_date=sale.start_date,
        )

    def _has_expense(self, expense_id: str) -> bool:
        return any(
            e.expense_id == expense_id for e in self.repository.fetch_all_expenses(self.user_id)
        )

    # Sales
    def create_sale(
        self,
        *,
        customer_id: str,
        account_id: str,
        product_name: str,
        price: Decimal,
        start_date: date,
        sale_type: SaleType = SaleType.INSTALLMENT,
        buy_price: Decimal = Decimal("0"),
        down_payment: Decimal = Decimal("0"),
        installments: int = 3,
        interest_rate: Decimal = Decimal("0"),
        payment_date: date | None = None,
        payment_day: int | None = None,
        product_id: str | None = None,
        notes: str = "",
        sale_id: str | None = None,
    ) -> Sale:
        """Create a sale with its schedule and linked cost expense.

        When ``buy_price > 0`` an expense ``exp_sale_<sale_id>`` for the cost
        of goods is booked on the same account. If it cannot be saved the
        sale is removed again.
        """
        sale = build_sale(
            sale_id=sale_id or _new_id("sale"),
            user_id=self.user_id,
            customer_id=customer_id,
            account_id=account_id,
            product_name=product_name,
            price=price,
            start_date=as_date(start_date),
            sale_type=sale_type,
            buy_price=buy_price,
            down_payment=down_payment,
            installments=installments,
            interest_rate=interest_rate,
            payment_date=as_date(payment_date) if payment_date is not None else None,
            payment_day=payment_day,
            rounding_mode=RoundingMode(self.config.schedule.rounding_mode),
            rounding_step=self.config.schedule.rounding_step,
            product_id=product_id,
            notes=notes,
        )

        with self._lock:
            saved = self._save_sale(sale, "create sale")
            if sale.buy_price > 0:
                try:
                    self._save_expense(self._cost_expense(sale), "book cost expense")
                except PersistenceError:
                    self.repository.delete_sale(sale.sale_id)
                    raise

        self.log.info(
            "Created sale %s for customer %s: total=%s, %d installment(s)",
            sale.sale_id,
            sale.customer_id,
            sale.total_amount,
            sale.installments,
            extra={"extra": {"sale_id": sale.sale_id, "account_id": sale.account_id}},
        )
        return saved

    def update_sale(self, sale: Sale) -> Sale:
        """Save an edited sale and keep its cost expense in line with ``buy_price``.

        If the cost expense cannot be synced the previous sale is saved back.
        """
        if not sale.customer_id or not sale.account_id:
            raise InvalidInputError("customer_id and account_id are required")
        if sale.total_amount <= 0:
            raise InvalidInputError(f"total_amount must be positive, got {sale.total_amount}")

        with self._lock:
            previous = self.repository.get_sale(sale.sale_id)
            saved = self._save_sale(sale, "update sale")
            expense_id = cost_expense_id(sale.sale_id)
            try:
                if sale.buy_price > 0:
                    self._save_expense(self._cost_expense(sale), "update cost expense")
                elif self._has_expense(expense_id):
                    self.repository.delete_expense(expense_id)
            except PersistenceError:
                self.log.warning("Restoring sale %s after failed cost expense sync", sale.sale_id)
                self.repository.save_sale(previous)
                raise

        self.log.info("Updated sale %s", sale.sale_id)
        return saved

    def delete_sale(self, sale_id: str) -> None:
        """Delete a sale and its linked cost expense."""
        with self._lock:
            self.repository.get_sale(sale_id)
            expense_id = cost_expense_id(sale_id)
            if self._has_expense(expense_id):
                self.repository.delete_expense(expense_id)
            self.repository.delete_sale(sale_id)

        self.log.info("Deleted sale %s", sale_id)

    # Payments
    def record_payment(
        self,
        sale_id: str,
        amount: Decimal,
        paid_on: date,
        note: str | None = None,
    ) -> Sale:
        """Record cash received on a sale."""
        with self._lock:
            sale = self.repository.get_sale(sale_id)
            updated = allocation.record_payment(sale, amount, paid_on, note=note)
            saved = self._save_sale(updated, "record payment")

        self.log.info(
            "Recorded payment of %s on sale %s, remaining %s",
            amount,
            sale_id,
            updated.remaining_amount,
            extra={"extra": {"sale_id": sale_id, "status": updated.status.value}},
        )
        return saved

    def undo_payment(self, sale_id: str, payment_id: str) -> Sale:
        """Reverse a paid line on a sale."""
        with self._lock:
            sale = self.repository.get_sale(sale_id)
            updated = allocation.undo_payment(sale, payment_id, self.tolerance)
            saved = self._save_sale(updated, "undo payment")

        self.log.info(
            "Undid payment %s on sale %s, remaining %s",
            payment_id,
            sale_id,
            updated.remaining_amount,
        )
        return saved

    def reschedule_payment(self, sale_id: str, payment_id: str, new_date: date) -> Sale:
        """Move an unpaid installment to another date."""
        with self._lock:
            sale = self.repository.get_sale(sale_id)
            updated = allocation.reschedule_payment(sale, payment_id, new_date)
            saved = self._save_sale(updated, "reschedule payment")

        self.log.info("Rescheduled payment %s on sale %s to %s", payment_id, sale_id, new_date)
        return saved

    def settle_covered_installments(self, sale_id: str) -> Sale:
        """Close installments already covered by money received."""
        with self._lock:
            sale = self.repository.get_sale(sale_id)
            updated = allocation.settle_covered_installments(sale, self.tolerance)
            if updated is sale:
                return sale
            saved = self._save_sale(updated, "settle installments")

        self.log.info("Settled covered installments on sale %s", sale_id)
        return saved

    # Capital and other cash movements
    def record_investor_deposit(
        self,
        investor_id: str,
        account_id: str,
        amount: Decimal,
        deposited_on: date,
    ) -> Sale:
        """Book an investor's capital deposit and raise their invested amount."""
        amount = to_decimal(amount)
        if amount <= 0:
            raise InvalidInputError(f"Deposit amount must be positive, got {amount}")

        with self._lock:
            investor: Investor = self.repository.get_investor(investor_id)
            deposit = Sale(
                sale_id=_new_id("dep"),
                user_id=self.user_id,
                account_id=account_id,
                customer_id=f"{DEPOSIT_PREFIX}{investor_id}",
                product_name=f"Capital deposit: {investor.name}",
                sale_type=SaleType.CASH,
                total_amount=amount,
                buy_price=Decimal("0"),
                down_payment=amount,
                installments=0,
                interest_rate=Decimal("0"),
                start_date=as_date(deposited_on),
            )
            saved = self._save_sale(deposit, "record deposit")
            try:
                self.repository.save_investor(
                    replace(investor, initial_amount=investor.initial_amount + amount)
                )
            except PersistenceError:
                self.log.error("Failed to update investor %s", investor_id, exc_info=True)
                self.repository.delete_sale(deposit.sale_id)
                raise

        self.log.info("Recorded deposit of %s from investor %s to %s", amount, investor_id, account_id)
        return saved

    def record_other_income(
        self,
        account_id: str,
        amount: Decimal,
        received_on: date,
        title: str = "Other income",
    ) -> Sale:
        """Book income that is not a customer sale."""
        amount = to_decimal(amount)
        if amount <= 0:
            raise InvalidInputError(f"Income amount must be positive, got {amount}")

        income = Sale(
            sale_id=_new_id("inc"),
            user_id=self.user_id,
            account_id=account_id,
            customer_id=OTHER_INCOME_CUSTOMER,
            product_name=title,
            sale_type=SaleType.CASH,
            total_amount=amount,
            buy_price=Decimal("0"),
            down_payment=amount,
            installments=0,
            interest_rate=Decimal("0"),
            start_date=as_date(received_on),
        )
        with self._lock:
            saved = self._save_sale(income, "record income")

        self.log.info("Recorded other income of %s on %s", amount, account_id)
        return saved

    def record_expense(
        self,
        account_id: str,
        amount: Decimal,
        expense_date: date,
        title: str,
        category: str = "Other",
        payout_type: PayoutType | None = None,
        investor_id: str | None = None,
    ) -> Expense:
        """Book an expense, payout or withdrawal against an account."""
        amount = to_decimal(amount)
        if amount <= 0:
            raise InvalidInputError(f"Expense amount must be positive, got {amount}")
        if not account_id:
            raise InvalidInputError("account_id is required")

        expense = Expense(
            expense_id=_new_id("exp"),
            user_id=self.user_id,
            account_id=account_id,
            title=title,
            amount=amount,
            category=category,
            expense_date=as_date(expense_date),
            payout_type=payout_type,
            investor_id=investor_id,
        )
        with self._lock:
            saved = self._save_expense(expense, "record expense")

        self.log.info("Recorded expense %s of %s on %s", expense.expense_id, amount, account_id)
        return saved

    def display_schedule(self, sale_id: str) -> list[allocation.ScheduleRow]:
        """Slots still owed on a sale, using the configured coverage tolerance."""
        return allocation.display_schedule(self.get_sale(sale_id), self.tolerance)

    def recommended_payment(self, sale_id: str) -> Decimal:
        """Suggested next payment on a sale, using the configured coverage tolerance."""
        return allocation.recommended_payment(self.get_sale(sale_id), self.tolerance)

    def get_sale(self, sale_id: str) -> Sale:
        """Current stored version of a sale."""
        try:
            return self.repository.get_sale(sale_id)
        except EntityNotFoundError:
            self.log.debug("Sale %s not found", sale_id)
            raise
