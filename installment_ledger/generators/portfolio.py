"""Demo portfolio generator: customers, investors, accounts and sales."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal

from dateutil.relativedelta import relativedelta

from installment_ledger.engine.schedule import price_from_cost, rate_for_term
from installment_ledger.generators.base import BaseGenerator
from installment_ledger.models.ledger import (
    Account,
    AccountType,
    Customer,
    Investor,
    Payment,
    PayoutType,
    Sale,
    SaleType,
)
from installment_ledger.money import round_money
from installment_ledger.store.transactions import SaleBook

logger = logging.getLogger(__name__)

BEHAVIORS = ["good", "occasional_late", "chronic_late", "defaulter"]


@dataclass
class GeneratedPortfolio:
    """Records written by :meth:`PortfolioGenerator.generate`."""

    customers: list[Customer] = field(default_factory=list)
    investors: list[Investor] = field(default_factory=list)
    accounts: list[Account] = field(default_factory=list)
    sales: list[Sale] = field(default_factory=list)

    def summary(self) -> dict[str, int]:
        return {
            "customers": len(self.customers),
            "investors": len(self.investors),
            "accounts": len(self.accounts),
            "sales": len(self.sales),
        }


class PaymentBehavior:
    """Simulate how a customer pays the installments of a sale."""

    def __init__(self, seed: int | None = None) -> None:
        if seed is not None:
            random.seed(seed)

    def pick(
        self,
        on_time_rate: float = 0.70,
        late_rate: float = 0.20,
        default_rate: float = 0.10,
    ) -> str:
        """Draw a behavior type."""
        return random.choices(
            BEHAVIORS,
            weights=[on_time_rate, late_rate * 0.7, late_rate * 0.3, default_rate],
            k=1,
        )[0]

    def payments_for(
        self,
        schedule: list[Payment],
        behavior: str,
        reference_date: date,
    ) -> list[tuple[date, Decimal]]:
        """Cash payments ``(paid_on, amount)`` a customer makes by ``reference_date``.

        Parameters
        ----------
        schedule : list[Payment]
            Unpaid installments of the sale, in date order.
        behavior : str
            One of ``good``, ``occasional_late``, ``chronic_late``, ``defaulter``.
        reference_date : date
            Current date; nothing is paid after it.

        Returns
        -------
        list[tuple[date, Decimal]]
            Payments in date order. Amounts may not match the installment
            (partial payments and overpayments happen).
        """
        stop_after = random.randint(1, 4)
        result = []

        for number, slot in enumerate(schedule, start=1):
            if slot.payment_date > reference_date:
                break

            amount = slot.amount
            if behavior == "good":
                paid_on = slot.payment_date + timedelta(days=random.randint(-3, 2))
                # Some customers round up and pay ahead
                if random.random() < 0.15:
                    amount = round_money(amount * Decimal("1.5"))
            elif behavior == "occasional_late":
                if random.random() < 0.8:
                    paid_on = slot.payment_date + timedelta(days=random.randint(0, 5))
                else:
                    paid_on = slot.payment_date + timedelta(days=random.randint(10, 30))
                    amount = round_money(amount * Decimal(str(random.choice([0.5, 1.0]))))
            elif behavior == "chronic_late":
                paid_on = slot.payment_date + timedelta(days=random.randint(5, 45))
            else:  # defaulter
                if number > stop_after:
                    break
                paid_on = slot.payment_date + timedelta(days=random.randint(0, 15))

            if paid_on > reference_date:
                continue
            result.append((paid_on, amount))

        return sorted(result, key=lambda p: p[0])


class PortfolioGenerator(BaseGenerator):
    """Generate a demo installment portfolio through a :class:`SaleBook`."""

    PRODUCTS = [
        ("Smartphone", 18000, 95000),
        ("Laptop", 35000, 140000),
        ("Refrigerator", 25000, 90000),
        ("Washing machine", 20000, 65000),
        ("TV", 15000, 120000),
        ("Sofa", 30000, 110000),
        ("Air conditioner", 22000, 70000),
        ("Tyres", 12000, 48000),
    ]
    TERMS = [3, 6, 10, 12]
    TERM_WEIGHTS = [0.30, 0.35, 0.15, 0.20]
    PROFIT_PERCENTAGES = [Decimal("20"), Decimal("30"), Decimal("40"), Decimal("50")]

    def __init__(
        self,
        seed: int | None = None,
        locale: str = "ru_RU",
        reference_date: date | None = None,
    ) -> None:
        super().__init__(seed, locale)
        self.reference_date = reference_date or date.today()
        self._behavior = PaymentBehavior()

    def generate(
        self,
        book: SaleBook,
        num_customers: int = 20,
        num_investors: int = 2,
        num_sales: int = 40,
        cash_rate: float = 0.1,
    ) -> GeneratedPortfolio:
        """Generate and store a complete portfolio.

        Parameters
        ----------
        book : SaleBook
            Book every record is written through.
        num_customers : int
            Number of customers.
        num_investors : int
            Number of investors; each gets an INVESTOR account and all of
            them are partners in one SHARED account.
        num_sales : int
            Number of customer sales.
        cash_rate : float
            Share of sales paid in cash.

        Returns
        -------
        GeneratedPortfolio
            Records as stored after payments were simulated.
        """
        portfolio = GeneratedPortfolio()
        repository = book.repository

        for _ in range(num_customers):
            customer = self._customer(book.user_id)
            repository.save_customer(customer)
            portfolio.customers.append(customer)

        main = Account(
            account_id=f"acc_main_{book.user_id}",
            user_id=book.user_id,
            name="Main",
            account_type=AccountType.MAIN,
            currency=book.config.currency,
        )
        repository.save_account(main)
        portfolio.accounts.append(main)

        for _ in range(num_investors):
            investor = self._investor(book.user_id)
            repository.save_investor(investor)
            account = Account(
                account_id=f"acc_{investor.investor_id}",
                user_id=book.user_id,
                name=f"Investor: {investor.name}",
                account_type=AccountType.INVESTOR,
                owner_id=investor.investor_id,
                currency=book.config.currency,
            )
            repository.save_account(account)
            portfolio.accounts.append(account)
            book.record_investor_deposit(
                investor.investor_id,
                account.account_id,
                Decimal(random.randint(20, 100) * 10000),
                self.reference_date - relativedelta(months=12),
            )

        investors = repository.fetch_all_investors(book.user_id)
        if investors:
            shared = Account(
                account_id=f"acc_shared_{book.user_id}",
                user_id=book.user_id,
                name="Partnership",
                account_type=AccountType.SHARED,
                partners=[i.investor_id for i in investors],
                currency=book.config.currency,
            )
            repository.save_account(shared)
            portfolio.accounts.append(shared)
            for investor in investors:
                book.record_investor_deposit(
                    investor.investor_id,
                    shared.account_id,
                    Decimal(random.randint(10, 50) * 10000),
                    self.reference_date - relativedelta(months=12),
                )
        portfolio.investors = repository.fetch_all_investors(book.user_id)

        if not portfolio.customers:
            return portfolio

        for _ in range(num_sales):
            customer = random.choice(portfolio.customers)
            account = random.choice(portfolio.accounts)
            sale = self._sale(book, customer, account, cash_rate)
            portfolio.sales.append(sale)

        self._withdrawals(book, portfolio)
        logger.info("Generated portfolio: %s", portfolio.summary())
        return portfolio

    def _customer(self, user_id: str) -> Customer:
        return Customer(
            customer_id=f"cust_{self.fake.uuid4()[:12]}",
            user_id=user_id,
            name=self.fake.name(),
            phone=self.fake.phone_number(),
            email=self.fake.email(),
            address=self.fake.address().replace("\n", ", "),
            allow_notifications=random.random() < 0.9,
        )

    def _investor(self, user_id: str) -> Investor:
        return Investor(
            investor_id=f"inv_{self.fake.uuid4()[:12]}",
            user_id=user_id,
            name=self.fake.name(),
            phone=self.fake.phone_number(),
            initial_amount=Decimal("0"),
            profit_percentage=random.choice(self.PROFIT_PERCENTAGES),
            joined_date=self.reference_date - relativedelta(months=12),
        )

    def _sale(self, book: SaleBook, customer: Customer, account: Account, cash_rate: float) -> Sale:
        product, low, high = random.choice(self.PRODUCTS)
        buy_price = Decimal(random.randint(low // 100, high // 100) * 100)
        is_cash = random.random() < cash_rate
        months = random.choices(self.TERMS, weights=self.TERM_WEIGHTS, k=1)[0]
        markup = rate_for_term(months, book.config.schedule)
        price = buy_price if is_cash else price_from_cost(buy_price, markup)
        start_date = self.reference_date - timedelta(days=random.randint(0, 330))
        down_payment = (
            Decimal("0")
            if is_cash
            else Decimal(int(price * Decimal(str(random.choice([0, 0, 0.1, 0.2, 0.3])))))
        )

        sale = book.create_sale(
            customer_id=customer.customer_id,
            account_id=account.account_id,
            product_name=product,
            price=price,
            start_date=start_date,
            sale_type=SaleType.CASH if is_cash else SaleType.INSTALLMENT,
            buy_price=buy_price,
            down_payment=down_payment,
            installments=months,
            interest_rate=Decimal("0") if is_cash else markup,
            payment_day=start_date.day,
        )
        if is_cash:
            return sale

        behavior = self._behavior.pick()
        for paid_on, amount in self._behavior.payments_for(
            sale.payment_plan, behavior, self.reference_date
        ):
            if sale.remaining_amount <= 0:
                break
            sale = book.record_payment(sale.sale_id, min(amount, sale.remaining_amount), paid_on)
        return sale

    def _withdrawals(self, book: SaleBook, portfolio: GeneratedPortfolio) -> None:
        """A few operating expenses and one manager profit payout."""
        main = portfolio.accounts[0]
        for _ in range(random.randint(1, 3)):
            book.record_expense(
                main.account_id,
                Decimal(random.randint(5, 50) * 100),
                self.reference_date - timedelta(days=random.randint(0, 90)),
                title=random.choice(["Rent", "Delivery", "Advertising", "Phone"]),
                category="Operations",
            )
        book.record_expense(
            main.account_id,
            Decimal(random.randint(10, 30) * 100),
            self.reference_date - timedelta(days=random.randint(0, 30)),
            title="Manager payout",
            category="Payout",
            payout_type=PayoutType.PROFIT,
        )
