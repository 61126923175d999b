"""Values for payment reminder templates.

Message delivery is out of scope; this module only decides which unpaid
entries are due a reminder and computes the figures a template needs.

Reminder offsets follow the settings convention: ``-1`` is the day before
the due date, ``0`` the due date itself, ``1`` any day after it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Iterable, Iterator

from installment_ledger.engine.allocation import unpaid_slots
from installment_ledger.exceptions import PaymentNotFoundError
from installment_ledger.models.ledger import Customer, Payment, Sale, SaleStatus
from installment_ledger.money import ZERO, as_date

logger = logging.getLogger(__name__)

BEFORE_DUE = -1
ON_DUE = 0
OVERDUE = 1


@dataclass(frozen=True)
class ReminderContext:
    """Template values for one reminder."""

    sale_id: str
    payment_id: str
    customer_name: str
    phone: str
    product_name: str
    next_due_date: date
    amount_due: Decimal
    prior_debt: Decimal
    total_to_pay: Decimal
    months_overdue: int
    days_until_due: int
    remaining_amount: Decimal

    @property
    def is_overdue(self) -> bool:
        return self.days_until_due < 0

    @property
    def is_due_today(self) -> bool:
        return self.days_until_due == 0


def reminder_offset(due_date: date, today: date) -> int | None:
    """Map a due date to a reminder offset, ``None`` if no reminder applies."""
    days_until = (due_date - today).days
    if days_until < 0:
        return OVERDUE
    if days_until == 0:
        return ON_DUE
    if days_until == 1:
        return BEFORE_DUE
    return None


def _context_for(sale: Sale, customer: Customer, payment: Payment, today: date) -> ReminderContext:
    slots = unpaid_slots(sale)
    prior_debt = sum((p.amount for p in slots if p.payment_date < payment.payment_date), ZERO)
    return ReminderContext(
        sale_id=sale.sale_id,
        payment_id=payment.payment_id,
        customer_name=customer.name,
        phone=customer.phone,
        product_name=sale.product_name,
        next_due_date=payment.payment_date,
        amount_due=payment.amount,
        prior_debt=prior_debt,
        total_to_pay=payment.amount + prior_debt,
        months_overdue=sum(1 for p in slots if p.payment_date < today),
        days_until_due=(payment.payment_date - today).days,
        remaining_amount=sale.remaining_amount,
    )


def reminder_context(sale: Sale, customer: Customer, today: date) -> ReminderContext | None:
    """Template values for the next installment of a sale.

    The next installment is the earliest unpaid entry due today or later, or
    the latest unpaid entry when everything left is past due. Returns
    ``None`` when nothing is unpaid.
    """
    today = as_date(today)
    slots = unpaid_slots(sale)
    if not slots:
        return None
    upcoming = [p for p in slots if p.payment_date >= today]
    target = upcoming[0] if upcoming else slots[-1]
    return _context_for(sale, customer, target, today)


def due_reminders(
    sales: Iterable[Sale],
    customers: Iterable[Customer],
    today: date,
    reminder_days: Iterable[int] = (BEFORE_DUE, ON_DUE, OVERDUE),
) -> Iterator[ReminderContext]:
    """Yield a reminder for every unpaid entry whose offset is configured.

    Only active sales of known customers that accept notifications are
    considered. Entries already notified today are skipped.
    """
    today = as_date(today)
    wanted = set(reminder_days)
    by_id = {customer.customer_id: customer for customer in customers}

    for sale in sales:
        if sale.status != SaleStatus.ACTIVE:
            continue
        customer = by_id.get(sale.customer_id)
        if customer is None or not customer.phone or not customer.allow_notifications:
            continue
        for payment in unpaid_slots(sale):
            if payment.last_notification_date == today:
                continue
            if reminder_offset(payment.payment_date, today) not in wanted:
                continue
            yield _context_for(sale, customer, payment, today)


def mark_notified(sale: Sale, payment_id: str, today: date) -> Sale:
    """Stamp an entry as notified on ``today``; returns a new sale."""
    if sale.find_payment(payment_id) is None:
        raise PaymentNotFoundError(f"Payment {payment_id} not found on sale {sale.sale_id}")
    today = as_date(today)
    plan = [
        replace(p, last_notification_date=today) if p.payment_id == payment_id else p
        for p in sale.payment_plan
    ]
    logger.debug("Marked payment %s on sale %s notified on %s", payment_id, sale.sale_id, today)
    return replace(sale, payment_plan=plan)
