"""Domain models for the installment ledger."""

from installment_ledger.models.base import DateRange

__all__ = ["DateRange"]
