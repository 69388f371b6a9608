"""
Reports — monthly summaries, safe-to-withdraw figure, dashboard views and
tabular export of engine output.
"""

from .summary import (
    Dashboard,
    MonthlySummary,
    SafeSurplusResult,
    dashboard,
    monthly_summaries,
    month_summary,
    safe_surplus,
)
from .frames import entries_frame, schedule_frame, summaries_frame
from .export import ledger_to_csv, write_workbook

__all__ = [
    "Dashboard",
    "MonthlySummary",
    "SafeSurplusResult",
    "dashboard",
    "monthly_summaries",
    "month_summary",
    "safe_surplus",
    "entries_frame",
    "schedule_frame",
    "summaries_frame",
    "ledger_to_csv",
    "write_workbook",
]
