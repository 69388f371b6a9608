"""
Debt — payoff projection, strategy comparison and the debt-free date.
"""

from .projector import (
    DebtFreeProjection,
    DebtSummary,
    PayoffRow,
    PayoffSchedule,
    Strategy,
    compare_strategies,
    daily_rate,
    debt_summary,
    interest_for_days,
    minimum_payment,
    monthly_rate,
    project_all_debts,
    project_payoff,
)

__all__ = [
    "DebtFreeProjection",
    "DebtSummary",
    "PayoffRow",
    "PayoffSchedule",
    "Strategy",
    "compare_strategies",
    "daily_rate",
    "debt_summary",
    "interest_for_days",
    "minimum_payment",
    "monthly_rate",
    "project_all_debts",
    "project_payoff",
]
