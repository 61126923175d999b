"""Payment allocation against a sale's schedule.

Recorded payments are appended to the plan as paid lines; they are not
matched to a specific slot. The unpaid slots are reconciled against the
money received on read (surplus carry-forward), which only affects what is
displayed or suggested. Slots change state only through an explicit call to
:func:`settle_covered_installments`.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal

from installment_ledger.exceptions import InvalidInputError, PaymentNotFoundError
from installment_ledger.models.ledger import Payment, Sale
from installment_ledger.money import ZERO, as_date, to_decimal

logger = logging.getLogger(__name__)

COVERAGE_TOLERANCE = Decimal("0.01")


@dataclass(frozen=True)
class ScheduleRow:
    """An unpaid slot after surplus carry-forward."""

    payment: Payment
    amount_due: Decimal
    covered: Decimal
    amount_to_pay: Decimal


def record_payment(
    sale: Sale,
    amount: Decimal,
    paid_on: date,
    payment_id: str | None = None,
    note: str | None = None,
) -> Sale:
    """Record cash received for a sale.

    Parameters
    ----------
    sale : Sale
        Sale receiving the payment. It is not modified.
    amount : Decimal
        Amount received, must be positive.
    paid_on : date
        Date the money was received.
    payment_id : str | None
        Id for the new ledger line; generated when omitted.
    note : str | None
        Free-text note stored on the line.

    Returns
    -------
    Sale
        A new sale with the paid line appended. ``remaining_amount`` drops by
        ``amount`` (floored at 0) and the sale completes when nothing is owed.
    """
    amount = to_decimal(amount)
    if amount <= 0:
        raise InvalidInputError(f"Payment amount must be positive, got {amount}")

    line = Payment(
        payment_id=payment_id or f"paid_{uuid.uuid4().hex[:12]}",
        sale_id=sale.sale_id,
        amount=amount,
        payment_date=as_date(paid_on),
        is_paid=True,
        is_real_payment=True,
        note=note,
    )
    updated = replace(sale, payment_plan=[*sale.payment_plan, line])
    logger.debug(
        "Recorded payment %s of %s on sale %s, remaining %s",
        line.payment_id,
        amount,
        sale.sale_id,
        updated.remaining_amount,
    )
    return updated


def unpaid_slots(sale: Sale) -> list[Payment]:
    """Unpaid schedule slots in due-date order."""
    slots = [p for p in sale.payment_plan if not p.is_paid and p.is_real_payment is not True]
    return sorted(slots, key=lambda p: p.payment_date)


def total_real_money(sale: Sale) -> Decimal:
    """Sum of lines recorded as real payments."""
    return sum((p.amount for p in sale.payment_plan if p.is_real_payment is True), ZERO)


def total_allocated(sale: Sale) -> Decimal:
    """Sum of paid lines that are not real payments (legacy or absorbed slots)."""
    return sum(
        (p.amount for p in sale.payment_plan if p.is_paid and p.is_real_payment is not True),
        ZERO,
    )


def surplus(sale: Sale) -> Decimal:
    """Money received but not yet consumed by a paid slot."""
    return max(ZERO, total_real_money(sale) - total_allocated(sale))


def allocate_surplus(sale: Sale) -> list[ScheduleRow]:
    """Walk the unpaid slots in date order, covering each from the surplus."""
    pool = surplus(sale)
    rows = []
    for slot in unpaid_slots(sale):
        covered = min(slot.amount, pool)
        pool -= covered
        rows.append(
            ScheduleRow(
                payment=slot,
                amount_due=slot.amount,
                covered=covered,
                amount_to_pay=slot.amount - covered,
            )
        )
    return rows


def display_schedule(sale: Sale, tolerance: Decimal = COVERAGE_TOLERANCE) -> list[ScheduleRow]:
    """Slots still owed after surplus carry-forward.

    Slots whose remaining amount is within ``tolerance`` are considered
    covered and left out; they stay unpaid in storage.
    """
    return [row for row in allocate_surplus(sale) if row.amount_to_pay > tolerance]


def recommended_payment(sale: Sale, tolerance: Decimal = COVERAGE_TOLERANCE) -> Decimal:
    """Amount to suggest for the next payment on a sale."""
    rows = display_schedule(sale, tolerance)
    if rows:
        return rows[0].amount_to_pay
    return sale.remaining_amount


def _covered_slot_ids(sale: Sale, tolerance: Decimal) -> set[str]:
    return {
        row.payment.payment_id
        for row in allocate_surplus(sale)
        if row.amount_to_pay <= tolerance
    }


def _close_slots(sale: Sale, slot_ids: set[str]) -> Sale:
    plan = [
        replace(p, is_paid=True, is_real_payment=False) if p.payment_id in slot_ids else p
        for p in sale.payment_plan
    ]
    return replace(sale, payment_plan=plan)


def settle_covered_installments(sale: Sale, tolerance: Decimal = COVERAGE_TOLERANCE) -> Sale:
    """Mark slots fully covered by the surplus as paid.

    Settled slots are flagged ``is_real_payment=False``: they close the
    schedule slot without counting as cash a second time, so the remaining
    amount is unchanged.
    """
    covered_ids = _covered_slot_ids(sale, tolerance)
    if not covered_ids:
        return sale

    logger.debug("Settled %d covered slot(s) on sale %s", len(covered_ids), sale.sale_id)
    return _close_slots(sale, covered_ids)


def undo_payment(sale: Sale, payment_id: str, tolerance: Decimal = COVERAGE_TOLERANCE) -> Sale:
    """Reverse a paid line.

    A recorded (or legacy) payment is removed from the plan, restoring the
    remaining amount. Slots settled from surplus are reopened and only those
    still covered by the money left are settled again. A single settled slot
    that is undone goes back to unpaid.

    Raises
    ------
    PaymentNotFoundError
        If ``payment_id`` is not a paid line of this sale.
    """
    payment = sale.find_payment(payment_id)
    if payment is None or not payment.is_paid:
        raise PaymentNotFoundError(f"Paid payment {payment_id} not found on sale {sale.sale_id}")

    if payment.is_real_payment is False:
        plan = [
            replace(p, is_paid=False, is_real_payment=None) if p.payment_id == payment_id else p
            for p in sale.payment_plan
        ]
        updated = replace(sale, payment_plan=plan)
    else:
        settled_ids = {p.payment_id for p in sale.payment_plan if p.is_real_payment is False}
        plan = [
            replace(p, is_paid=False, is_real_payment=None) if p.payment_id in settled_ids else p
            for p in sale.payment_plan
            if p.payment_id != payment_id
        ]
        updated = replace(sale, payment_plan=plan)
        if settled_ids:
            still_covered = _covered_slot_ids(updated, tolerance) & settled_ids
            updated = _close_slots(updated, still_covered)
            logger.debug(
                "Reopened %d settled slot(s) on sale %s",
                len(settled_ids - still_covered),
                sale.sale_id,
            )

    logger.debug(
        "Undid payment %s on sale %s, remaining %s",
        payment_id,
        sale.sale_id,
        updated.remaining_amount,
    )
    return updated


def reschedule_payment(sale: Sale, payment_id: str, new_date: date) -> Sale:
    """Move an unpaid slot to a new due date; amount and state are kept.

    Raises
    ------
    PaymentNotFoundError
        If ``payment_id`` is not an unpaid slot of this sale.
    """
    payment = sale.find_payment(payment_id)
    if payment is None or payment.is_paid:
        raise PaymentNotFoundError(f"Unpaid payment {payment_id} not found on sale {sale.sale_id}")

    new_date = as_date(new_date)
    plan = [
        replace(p, payment_date=new_date) if p.payment_id == payment_id else p
        for p in sale.payment_plan
    ]
    return replace(sale, payment_plan=plan)


def overdue_payments(sale: Sale, today: date) -> list[Payment]:
    """Unpaid entries due strictly before ``today``."""
    today = as_date(today)
    return [p for p in sale.payment_plan if not p.is_paid and p.payment_date < today]


def overdue_amount(sale: Sale, today: date) -> Decimal:
    """Raw sum of past-due unpaid entries (not reduced by surplus)."""
    return sum((p.amount for p in overdue_payments(sale, today)), ZERO)


def arrears_amount(sale: Sale, today: date) -> Decimal:
    """Amount expected by ``today`` that has not been received.

    Expected money is the down payment plus every schedule slot due before
    today; received money is the down payment plus cash recorded so far.
    """
    today = as_date(today)
    expected = sale.down_payment + sum(
        (
            p.amount
            for p in sale.payment_plan
            if p.is_real_payment is not True and p.payment_date < today
        ),
        ZERO,
    )
    received = sale.down_payment + sale.paid_amount
    return max(ZERO, expected - received)


def paid_history(sale: Sale) -> list[Payment]:
    """Cash lines received on a sale, newest first."""
    lines = [p for p in sale.payment_plan if p.is_money_movement]
    return sorted(lines, key=lambda p: p.payment_date, reverse=True)
