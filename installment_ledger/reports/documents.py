"""Printable payment table of a sale."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from installment_ledger.models.ledger import Sale
from installment_ledger.money import ZERO


@dataclass(frozen=True)
class PaymentTableRow:
    """One paid line with the debt left after it."""

    index: int
    payment_date: date
    amount: Decimal
    remaining_debt: Decimal


def payment_table(sale: Sale) -> list[PaymentTableRow]:
    """Paid lines in date order with a running remaining debt.

    The debt starts at ``total_amount - down_payment`` and drops by each
    cash line, floored at 0. Slots settled from surplus are not cash and
    are left out, so the last row's debt equals ``sale.remaining_amount``.
    """
    lines = sorted(
        (p for p in sale.payment_plan if p.is_money_movement),
        key=lambda p: p.payment_date,
    )
    debt = sale.financed_amount
    rows = []
    for index, line in enumerate(lines, start=1):
        debt = max(ZERO, debt - line.amount)
        rows.append(
            PaymentTableRow(
                index=index,
                payment_date=line.payment_date,
                amount=line.amount,
                remaining_debt=debt,
            )
        )
    return rows
