"""Base models shared across the ledger."""

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar interval; an open side is unbounded.

    Both ends are days, so the end date is included up to its last moment.
    """

    start: date | None = None
    end: date | None = None

    def contains(self, day: date) -> bool:
        if self.start is not None and day < self.start:
            return False
        if self.end is not None and day > self.end:
            return False
        return True
