"""Sale (installment contract) and payment plan models."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from installment_ledger.models.ledger.enums import SaleStatus, SaleType


@dataclass
class Payment:
    """One entry of a sale's payment plan.

    The same record type serves as a schedule slot (``is_paid=False``) and
    as a ledger line (``is_paid=True``). ``is_real_payment`` tells them apart:

    - ``True``: cash actually received and recorded against the sale.
    - ``False``: a schedule slot closed by surplus absorption, no cash moved.
    - ``None``: a schedule slot, or a paid line written before the flag existed
      (treated as cash).
    """

    payment_id: str
    sale_id: str
    amount: Decimal
    payment_date: date
    is_paid: bool = False
    is_real_payment: bool | None = None
    last_notification_date: date | None = None
    note: str | None = None

    @property
    def is_money_movement(self) -> bool:
        """Whether this line represents cash received."""
        return self.is_paid and self.is_real_payment is not False


@dataclass
class Sale:
    """Installment contract entity.

    ``remaining_amount`` and ``status`` are derived from the payment plan on
    every read; they are never stored.
    """

    sale_id: str
    user_id: str
    account_id: str
    customer_id: str
    product_name: str
    sale_type: SaleType
    total_amount: Decimal  # Selling price including markup
    buy_price: Decimal  # Cost basis, 0 when unknown
    down_payment: Decimal
    installments: int
    interest_rate: Decimal  # Markup %, informational
    start_date: date
    payment_plan: list[Payment] = field(default_factory=list)
    product_id: str | None = None
    payment_day: int | None = None
    notes: str = ""

    @property
    def financed_amount(self) -> Decimal:
        """Amount owed after the down payment."""
        return self.total_amount - self.down_payment

    @property
    def paid_amount(self) -> Decimal:
        """Cash received through the payment plan (down payment excluded)."""
        return sum(
            (p.amount for p in self.payment_plan if p.is_money_movement),
            Decimal("0"),
        )

    @property
    def remaining_amount(self) -> Decimal:
        """Outstanding obligation, floored at zero."""
        return max(Decimal("0"), self.financed_amount - self.paid_amount)

    @property
    def status(self) -> SaleStatus:
        return SaleStatus.COMPLETED if self.remaining_amount == 0 else SaleStatus.ACTIVE

    def find_payment(self, payment_id: str) -> Payment | None:
        """Return the plan entry with the given id, if any."""
        for payment in self.payment_plan:
            if payment.payment_id == payment_id:
                return payment
        return None
