"""Reports, dashboard figures, documents and reminder values."""

from installment_ledger.reports.dashboard import (
    PortfolioStats,
    UpcomingCollection,
    contract_counts,
    portfolio_stats,
    upcoming_collections,
    working_capital,
)
from installment_ledger.reports.documents import PaymentTableRow, payment_table
from installment_ledger.reports.financial import Report, ReportFilter, compute_report
from installment_ledger.reports.notifications import (
    ReminderContext,
    due_reminders,
    mark_notified,
    reminder_context,
)

__all__ = [
    "PaymentTableRow",
    "PortfolioStats",
    "ReminderContext",
    "Report",
    "ReportFilter",
    "UpcomingCollection",
    "compute_report",
    "contract_counts",
    "due_reminders",
    "mark_notified",
    "payment_table",
    "portfolio_stats",
    "reminder_context",
    "upcoming_collections",
    "working_capital",
]
