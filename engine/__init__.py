"""
Simulation engine — recurrence expansion, business-day adjustment,
transaction pipeline and the per-account ledger runner.
"""

from .events import LedgerEntry, Transaction
from .recurrence import expand_dates, expand_rule
from .business_day import adjust_date, is_business_day, is_weekend
from .pipeline import generate_transactions
from .ledger import LedgerResult, LedgerSummary, run_ledger

__all__ = [
    "LedgerEntry",
    "Transaction",
    "expand_dates",
    "expand_rule",
    "adjust_date",
    "is_business_day",
    "is_weekend",
    "generate_transactions",
    "LedgerResult",
    "LedgerSummary",
    "run_ledger",
]
