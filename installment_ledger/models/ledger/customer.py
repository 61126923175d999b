"""Customer model."""

from dataclasses import dataclass


@dataclass
class Customer:
    """Buyer on installment credit."""

    customer_id: str
    user_id: str
    name: str
    phone: str
    email: str = ""
    address: str = ""
    allow_notifications: bool = True
    notes: str = ""
