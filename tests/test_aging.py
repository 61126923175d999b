"""Tests for aging classification."""

from datetime import date, timedelta
from decimal import Decimal

from installment_ledger.engine.aging import (
    classify,
    count_by_status,
    filter_by_status,
    overdue_total,
)
from installment_ledger.engine.allocation import record_payment
from installment_ledger.models.ledger import AgingStatus, SaleType


class TestClassify:
    """Tests for classify."""

    def test_active_before_due(self, make_sale) -> None:
        sale = make_sale(start_date=date(2024, 1, 1))
        assert classify(sale, date(2024, 1, 20)) == AgingStatus.ACTIVE

    def test_flips_to_overdue_after_due_date(self, make_sale) -> None:
        sale = make_sale(start_date=date(2024, 1, 1))
        first_due = sale.payment_plan[0].payment_date

        assert classify(sale, first_due) == AgingStatus.ACTIVE
        assert classify(sale, first_due + timedelta(days=1)) == AgingStatus.OVERDUE

    def test_repeated_calls_agree(self, make_sale, today: date) -> None:
        sale = make_sale()
        assert {classify(sale, today) for _ in range(5)} == {AgingStatus.OVERDUE}

    def test_completed_is_archived(self, make_sale, today: date) -> None:
        sale = record_payment(make_sale(), Decimal("3000"), date(2024, 2, 1))
        assert classify(sale, today) == AgingStatus.ARCHIVED

    def test_cash_sale_is_archived(self, make_sale, today: date) -> None:
        sale = make_sale(price="500", sale_type=SaleType.CASH)
        assert classify(sale, today) == AgingStatus.ARCHIVED

    def test_accepts_datetime_string(self, make_sale) -> None:
        sale = make_sale(start_date=date(2024, 1, 1))
        assert classify(sale, "2024-02-01T23:59:00") == AgingStatus.ACTIVE


class TestAggregates:
    """Tests for counts, filters and totals."""

    def test_count_by_status(self, make_sale, today: date) -> None:
        sales = [
            make_sale(sale_id="s1"),
            make_sale(sale_id="s2", payment_date=today + timedelta(days=3)),
            make_sale(sale_id="s3", price="500", sale_type=SaleType.CASH),
        ]
        assert count_by_status(sales, today) == {
            AgingStatus.ACTIVE: 1,
            AgingStatus.OVERDUE: 1,
            AgingStatus.ARCHIVED: 1,
        }

    def test_count_has_every_status(self, today: date) -> None:
        assert count_by_status([], today) == {status: 0 for status in AgingStatus}

    def test_filter_by_status(self, make_sale, today: date) -> None:
        overdue = make_sale(sale_id="s1")
        upcoming = make_sale(sale_id="s2", payment_date=today + timedelta(days=3))
        result = filter_by_status([overdue, upcoming], AgingStatus.OVERDUE, today)
        assert [s.sale_id for s in result] == ["s1"]

    def test_overdue_total(self, make_sale, today: date) -> None:
        sales = [
            make_sale(sale_id="s1", price="2000", installments=2, payment_date=today - timedelta(days=1)),
            make_sale(sale_id="s2", payment_date=today + timedelta(days=3)),
        ]
        assert overdue_total(sales, today) == Decimal("1000")
