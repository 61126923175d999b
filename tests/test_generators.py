"""Tests for the demo portfolio generator."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from installment_ledger.config import LedgerConfig
from installment_ledger.engine.allocation import record_payment
from installment_ledger.engine.entries import DEPOSIT_PREFIX
from installment_ledger.generators import PaymentBehavior, PortfolioGenerator
from installment_ledger.generators.portfolio import BEHAVIORS
from installment_ledger.models.ledger import AccountType, SaleType
from installment_ledger.store import InMemoryLedgerStore, SaleBook


def _generate(seed: int, today: date, user_id: str, **kwargs):
    store = InMemoryLedgerStore()
    book = SaleBook(store, user_id)
    portfolio = PortfolioGenerator(seed=seed, reference_date=today).generate(book, **kwargs)
    return store, portfolio


class TestPaymentBehavior:
    """Tests for PaymentBehavior."""

    def test_pick(self, seed: int) -> None:
        behavior = PaymentBehavior(seed=seed)
        assert {behavior.pick() for _ in range(50)} <= set(BEHAVIORS)

    def test_always_defaults(self, seed: int) -> None:
        behavior = PaymentBehavior(seed=seed)
        assert behavior.pick(on_time_rate=0, late_rate=0, default_rate=1) == "defaulter"

    def test_nothing_paid_before_schedule(self, make_sale, seed: int) -> None:
        sale = make_sale()
        payments = PaymentBehavior(seed=seed).payments_for(
            sale.payment_plan, "good", date(2024, 1, 15)
        )
        assert payments == []

    @pytest.mark.parametrize("behavior", BEHAVIORS)
    def test_payments_not_after_reference(self, make_sale, seed: int, behavior: str) -> None:
        sale = make_sale(price="12000", installments=12)
        reference = date(2024, 9, 10)

        payments = PaymentBehavior(seed=seed).payments_for(sale.payment_plan, behavior, reference)

        assert all(paid_on <= reference for paid_on, _ in payments)
        assert all(amount > 0 for _, amount in payments)
        assert [p[0] for p in payments] == sorted(p[0] for p in payments)

    def test_defaulter_stops_early(self, make_sale, seed: int) -> None:
        sale = make_sale(price="12000", installments=12)
        payments = PaymentBehavior(seed=seed).payments_for(
            sale.payment_plan, "defaulter", date(2026, 1, 1)
        )
        assert len(payments) <= 4

    def test_payments_apply_to_sale(self, make_sale, seed: int) -> None:
        sale = make_sale(price="6000", installments=6)
        for paid_on, amount in PaymentBehavior(seed=seed).payments_for(
            sale.payment_plan, "good", date(2024, 5, 15)
        ):
            sale = record_payment(sale, amount, paid_on)
        assert Decimal("0") <= sale.remaining_amount <= Decimal("6000")


class TestPortfolioGenerator:
    """Tests for PortfolioGenerator."""

    def test_counts(self, seed: int, today: date, user_id: str) -> None:
        store, portfolio = _generate(
            seed, today, user_id, num_customers=5, num_investors=2, num_sales=10
        )

        assert portfolio.summary() == {
            "customers": 5,
            "investors": 2,
            "accounts": 4,
            "sales": 10,
        }
        assert [a.account_type for a in portfolio.accounts] == [
            AccountType.MAIN,
            AccountType.INVESTOR,
            AccountType.INVESTOR,
            AccountType.SHARED,
        ]
        # 10 sales plus one deposit per investor on each of two accounts
        assert store.summary()["sales"] == 14

    def test_deposits_raise_invested_amount(self, seed: int, today: date, user_id: str) -> None:
        store, portfolio = _generate(seed, today, user_id, num_customers=2, num_sales=2)

        for investor in portfolio.investors:
            deposits = [
                s.total_amount
                for s in store.fetch_all_sales(user_id)
                if s.customer_id == f"{DEPOSIT_PREFIX}{investor.investor_id}"
            ]
            assert len(deposits) == 2
            assert investor.initial_amount == sum(deposits)

    def test_sales_are_consistent(self, seed: int, today: date, user_id: str) -> None:
        store, portfolio = _generate(seed, today, user_id, num_customers=5, num_sales=20)

        for sale in portfolio.sales:
            stored = store.get_sale(sale.sale_id)
            assert stored == sale
            assert sale.buy_price > 0
            assert sale.total_amount >= sale.buy_price
            assert sale.start_date <= today
            assert all(
                p.payment_date <= today for p in sale.payment_plan if p.is_money_movement
            )
            if sale.sale_type == SaleType.CASH:
                assert sale.payment_plan == []
            else:
                assert sale.paid_amount <= sale.financed_amount

    def test_cost_expenses_and_payouts(self, seed: int, today: date, user_id: str) -> None:
        store, portfolio = _generate(seed, today, user_id, num_customers=3, num_sales=5)

        expenses = store.fetch_all_expenses(user_id)
        cost_ids = {e.expense_id for e in expenses if e.category == "Purchase"}
        assert cost_ids == {f"exp_sale_{s.sale_id}" for s in portfolio.sales}
        assert sum(1 for e in expenses if e.title == "Manager payout") == 1

    def test_reproducible(self, seed: int, today: date, user_id: str) -> None:
        _, first = _generate(seed, today, user_id, num_customers=4, num_sales=6)
        _, second = _generate(seed, today, user_id, num_customers=4, num_sales=6)

        assert [c.name for c in first.customers] == [c.name for c in second.customers]
        assert [s.total_amount for s in first.sales] == [s.total_amount for s in second.sales]
        assert [s.remaining_amount for s in first.sales] == [
            s.remaining_amount for s in second.sales
        ]

    def test_no_customers_no_sales(self, seed: int, today: date, user_id: str) -> None:
        store, portfolio = _generate(seed, today, user_id, num_customers=0, num_investors=1)

        assert portfolio.sales == []
        assert store.summary()["expenses"] == 0
        assert store.summary()["sales"] == 2

    def test_no_investors(self, seed: int, today: date, user_id: str) -> None:
        _, portfolio = _generate(seed, today, user_id, num_customers=2, num_investors=0, num_sales=3)
        assert [a.account_type for a in portfolio.accounts] == [AccountType.MAIN]

    def test_start_dates_within_year(self, seed: int, today: date, user_id: str) -> None:
        _, portfolio = _generate(seed, today, user_id, num_customers=3, num_sales=10)
        assert all(s.start_date >= today - timedelta(days=330) for s in portfolio.sales)

    def test_accounts_use_configured_currency(self, seed: int, today: date, user_id: str) -> None:
        store = InMemoryLedgerStore()
        book = SaleBook(store, user_id, LedgerConfig(currency="UZS"))
        PortfolioGenerator(seed=seed, reference_date=today).generate(
            book, num_customers=2, num_sales=2
        )

        accounts = store.fetch_all_accounts(user_id)
        assert len(accounts) == 4
        assert {a.currency for a in accounts} == {"UZS"}
