"""Pure bookkeeping engine: schedules, allocation, profit, balances, aging."""

from installment_ledger.engine.aging import (
    classify,
    count_by_status,
    filter_by_status,
    overdue_total,
)
from installment_ledger.engine.allocation import (
    ScheduleRow,
    allocate_surplus,
    arrears_amount,
    display_schedule,
    overdue_amount,
    overdue_payments,
    paid_history,
    recommended_payment,
    record_payment,
    reschedule_payment,
    settle_covered_installments,
    surplus,
    undo_payment,
)
from installment_ledger.engine.entries import (
    account_entries,
    expense_entry,
    is_capital_deposit,
    is_system_record,
    sale_entries,
)
from installment_ledger.engine.ledger import (
    PartnerShare,
    PartnershipSummary,
    account_balance,
    account_balances,
    partner_shares,
    partnership_summary,
    receivables,
    total_equity,
)
from installment_ledger.engine.profit import (
    Accrual,
    ProfitBalance,
    ProfitSplit,
    ProfitTotals,
    RealizedProfit,
    accruals,
    expected_profit,
    investment_capital,
    investor_profit_balance,
    manager_profit_balance,
    margin,
    realized_profit,
    resolve_split,
)
from installment_ledger.engine.schedule import (
    Quote,
    apply_rounding,
    build_sale,
    first_due_date,
    generate_schedule,
    price_from_cost,
    quote,
    rate_for_term,
)

__all__ = [
    "Accrual",
    "PartnerShare",
    "PartnershipSummary",
    "ProfitBalance",
    "ProfitSplit",
    "ProfitTotals",
    "Quote",
    "RealizedProfit",
    "ScheduleRow",
    "account_balance",
    "account_balances",
    "account_entries",
    "accruals",
    "allocate_surplus",
    "apply_rounding",
    "arrears_amount",
    "build_sale",
    "classify",
    "count_by_status",
    "display_schedule",
    "expected_profit",
    "expense_entry",
    "filter_by_status",
    "first_due_date",
    "generate_schedule",
    "investment_capital",
    "investor_profit_balance",
    "is_capital_deposit",
    "is_system_record",
    "manager_profit_balance",
    "margin",
    "overdue_amount",
    "overdue_payments",
    "overdue_total",
    "paid_history",
    "partner_shares",
    "partnership_summary",
    "price_from_cost",
    "quote",
    "rate_for_term",
    "realized_profit",
    "receivables",
    "recommended_payment",
    "record_payment",
    "reschedule_payment",
    "resolve_split",
    "sale_entries",
    "settle_covered_installments",
    "surplus",
    "total_equity",
    "undo_payment",
]
