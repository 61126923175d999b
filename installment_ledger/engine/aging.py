"""Aging classification of sales.

Every count, badge, tab and overdue total goes through :func:`classify`, so
the figures shown in different places cannot disagree.
"""

from collections import Counter
from datetime import date
from decimal import Decimal
from typing import Iterable

from installment_ledger.engine.allocation import overdue_amount, overdue_payments
from installment_ledger.models.ledger import AgingStatus, Sale, SaleStatus
from installment_ledger.money import ZERO, as_date


def classify(sale: Sale, today: date) -> AgingStatus:
    """Classify a sale as ACTIVE, OVERDUE or ARCHIVED as of ``today``."""
    if sale.status == SaleStatus.COMPLETED or sale.remaining_amount == 0:
        return AgingStatus.ARCHIVED
    if overdue_payments(sale, as_date(today)):
        return AgingStatus.OVERDUE
    return AgingStatus.ACTIVE


def count_by_status(sales: Iterable[Sale], today: date) -> dict[AgingStatus, int]:
    """Number of sales per aging status (every status present, possibly 0)."""
    today = as_date(today)
    counts = Counter(classify(sale, today) for sale in sales)
    return {status: counts.get(status, 0) for status in AgingStatus}


def filter_by_status(sales: Iterable[Sale], status: AgingStatus, today: date) -> list[Sale]:
    """Sales currently in ``status``."""
    today = as_date(today)
    return [sale for sale in sales if classify(sale, today) == status]


def overdue_total(sales: Iterable[Sale], today: date) -> Decimal:
    """Raw past-due amount over all overdue sales."""
    today = as_date(today)
    return sum(
        (
            overdue_amount(sale, today)
            for sale in sales
            if classify(sale, today) == AgingStatus.OVERDUE
        ),
        ZERO,
    )
