"""Installment schedule generation and sale pricing."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP, Decimal

from dateutil.relativedelta import relativedelta

from installment_ledger.config import ScheduleConfig
from installment_ledger.exceptions import InvalidInputError
from installment_ledger.models.ledger import Payment, RoundingMode, Sale, SaleType
from installment_ledger.money import ZERO, round_money, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Quote:
    """Result of the installment calculator."""

    price_with_markup: Decimal
    monthly: Decimal
    total_payable: Decimal


def first_due_date(
    start_date: date,
    payment_day: int | None = None,
    payment_date: date | None = None,
) -> date:
    """Return the first due date of a schedule.

    An explicit ``payment_date`` wins. Otherwise the first installment falls
    one month after ``start_date``, moved to ``payment_day`` when given
    (clamped to the last day of that month).
    """
    if payment_date is not None:
        return payment_date
    due = start_date + relativedelta(months=1)
    if payment_day is not None:
        if not 1 <= payment_day <= 31:
            raise InvalidInputError(f"payment_day must be within 1..31, got {payment_day}")
        due = due + relativedelta(day=payment_day)
    return due


def generate_schedule(
    sale_id: str,
    principal: Decimal,
    installments: int,
    first_due: date,
    sale_type: SaleType = SaleType.INSTALLMENT,
) -> list[Payment]:
    """Generate the unpaid payment plan for a sale.

    Parameters
    ----------
    sale_id : str
        Owning sale id; also the stem of the generated payment ids.
    principal : Decimal
        Amount to finance (``total_amount - down_payment``).
    installments : int
        Number of monthly installments.
    first_due : date
        Due date of the first installment. Later installments keep its
        day of month, clamped to shorter months.
    sale_type : SaleType
        CASH sales have no schedule.

    Returns
    -------
    list[Payment]
        ``installments`` entries of ``round2(principal / installments)`` each.
        The rounded amounts are not reconciled against ``principal``; the sum
        may differ by up to one cent per installment.
    """
    if installments < 0:
        raise InvalidInputError(f"installments must be >= 0, got {installments}")
    principal = to_decimal(principal)
    if principal < 0:
        raise InvalidInputError(f"principal must be >= 0, got {principal}")

    if sale_type == SaleType.CASH or installments == 0:
        return []

    amount = round_money(principal / installments)
    return [
        Payment(
            payment_id=f"pay_{sale_id}_{idx}",
            sale_id=sale_id,
            amount=amount,
            payment_date=first_due + relativedelta(months=idx),
            is_paid=False,
        )
        for idx in range(installments)
    ]


def price_from_cost(buy_price: Decimal, markup_rate: Decimal) -> Decimal:
    """Selling price for a cost basis and markup %, rounded to whole units."""
    buy_price = to_decimal(buy_price)
    price = buy_price + buy_price * to_decimal(markup_rate) / 100
    return price.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def rate_for_term(months: int, config: ScheduleConfig | None = None) -> Decimal:
    """Markup % for a term, falling back to the default rate."""
    config = config or ScheduleConfig()
    return config.term_rates.get(months, config.default_markup_rate)


def apply_rounding(
    total_amount: Decimal,
    down_payment: Decimal,
    installments: int,
    mode: RoundingMode = RoundingMode.NONE,
    step: int = 100,
) -> tuple[Decimal, Decimal]:
    """Round the monthly installment to ``step`` and rebuild the total.

    Returns
    -------
    tuple[Decimal, Decimal]
        ``(total_amount, monthly_payment)``. With ``NONE``, or when rounding
        would produce a zero installment, the total is unchanged.
    """
    total_amount = to_decimal(total_amount)
    down_payment = to_decimal(down_payment)
    if installments <= 0:
        return total_amount, ZERO

    monthly = (total_amount - down_payment) / installments
    if mode == RoundingMode.NONE or monthly <= 0:
        return total_amount, monthly

    rounding = ROUND_FLOOR if mode == RoundingMode.DOWN else ROUND_CEILING
    rounded = (monthly / step).to_integral_value(rounding=rounding) * step
    if rounded <= 0:
        return total_amount, monthly
    return rounded * installments + down_payment, rounded


def quote(
    price: Decimal,
    months: int,
    down_payment: Decimal = ZERO,
    markup_rate: Decimal = Decimal("30"),
    step: int = 100,
) -> Quote:
    """Installment calculator: mark up, split, round the monthly amount up."""
    price = to_decimal(price)
    down_payment = to_decimal(down_payment)
    price_with_markup = price + price * to_decimal(markup_rate) / 100
    remaining = price_with_markup - down_payment
    monthly = remaining / months if months > 0 else ZERO
    rounded = (monthly / step).to_integral_value(rounding=ROUND_CEILING) * step
    return Quote(
        price_with_markup=round_money(price_with_markup),
        monthly=rounded,
        total_payable=rounded * months + down_payment,
    )


def build_sale(
    *,
    sale_id: str,
    user_id: str,
    customer_id: str,
    account_id: str,
    product_name: str,
    price: Decimal,
    start_date: date,
    sale_type: SaleType = SaleType.INSTALLMENT,
    buy_price: Decimal = ZERO,
    down_payment: Decimal = ZERO,
    installments: int = 3,
    interest_rate: Decimal = ZERO,
    payment_date: date | None = None,
    payment_day: int | None = None,
    rounding_mode: RoundingMode = RoundingMode.NONE,
    rounding_step: int = 100,
    product_id: str | None = None,
    notes: str = "",
) -> Sale:
    """Validate sale input and build a sale with its synthesized schedule.

    CASH sales (and installment sales with zero installments) take the whole
    price as the down payment and carry an empty plan.
    """
    if not customer_id:
        raise InvalidInputError("customer_id is required")
    if not account_id:
        raise InvalidInputError("account_id is required")
    if not product_name:
        raise InvalidInputError("product_name is required")

    price = to_decimal(price)
    buy_price = to_decimal(buy_price)
    down_payment = to_decimal(down_payment)
    if price <= 0:
        raise InvalidInputError(f"price must be positive, got {price}")
    if buy_price < 0:
        raise InvalidInputError(f"buy_price must be >= 0, got {buy_price}")
    if installments < 0:
        raise InvalidInputError(f"installments must be >= 0, got {installments}")

    if sale_type == SaleType.CASH or installments == 0:
        return Sale(
            sale_id=sale_id,
            user_id=user_id,
            account_id=account_id,
            customer_id=customer_id,
            product_name=product_name,
            product_id=product_id,
            sale_type=sale_type,
            total_amount=price,
            buy_price=buy_price,
            down_payment=price,
            installments=0,
            interest_rate=ZERO if sale_type == SaleType.CASH else to_decimal(interest_rate),
            start_date=start_date,
            payment_day=None,
            payment_plan=[],
            notes=notes,
        )

    if down_payment < 0 or down_payment > price:
        raise InvalidInputError(f"down_payment must be within 0..{price}, got {down_payment}")

    total_amount, _monthly = apply_rounding(
        price, down_payment, installments, rounding_mode, rounding_step
    )
    first_due = first_due_date(start_date, payment_day, payment_date)
    plan = generate_schedule(
        sale_id, total_amount - down_payment, installments, first_due, sale_type
    )

    logger.debug(
        "Built sale %s: total=%s down=%s installments=%d first_due=%s",
        sale_id,
        total_amount,
        down_payment,
        installments,
        first_due,
    )

    return Sale(
        sale_id=sale_id,
        user_id=user_id,
        account_id=account_id,
        customer_id=customer_id,
        product_name=product_name,
        product_id=product_id,
        sale_type=sale_type,
        total_amount=total_amount,
        buy_price=buy_price,
        down_payment=down_payment,
        installments=installments,
        interest_rate=to_decimal(interest_rate),
        start_date=start_date,
        payment_day=first_due.day,
        payment_plan=plan,
        notes=notes,
    )
