"""
Tabular views of engine output.

Ledger entries, monthly summaries and payoff schedules as DataFrames with
stable column names, for analysis, display and export.
"""

from __future__ import annotations

from typing import Iterable, List

import pandas as pd

from engine.events import LedgerEntry
from engine.ledger import LedgerResult

ENTRY_COLUMNS: List[str] = [
    "date",
    "name",
    "account_id",
    "to_account_id",
    "kind",
    "amount",
    "balance",
    "category",
    "tags",
    "priority",
    "rule_id",
    "one_off_id",
    "business_day_adjustment",
    "original_date",
    "was_adjusted",
    "days_since_last",
    "is_one_off",
    "is_starting_balance",
]

SUMMARY_COLUMNS: List[str] = [
    "month",
    "month_name",
    "start_balance",
    "end_balance",
    "income",
    "expenses",
    "transfers_in",
    "transfers_out",
    "net_surplus",
    "min_balance",
    "max_balance",
    "min_balance_date",
    "max_balance_date",
    "transaction_count",
]

SCHEDULE_COLUMNS: List[str] = [
    "month",
    "date",
    "payment",
    "lump_sum",
    "interest",
    "principal",
    "balance",
    "total_paid",
    "total_interest",
]


def entries_to_frame(entries: Iterable[LedgerEntry]) -> pd.DataFrame:
    df = pd.DataFrame([e.to_dict() for e in entries], columns=ENTRY_COLUMNS)
    df["date"] = pd.to_datetime(df["date"])
    df["original_date"] = pd.to_datetime(df["original_date"])
    df["amount"] = df["amount"].astype(float)
    df["balance"] = df["balance"].astype(float)
    df["is_starting_balance"] = df["is_starting_balance"].astype(bool)
    return df


def entries_frame(result: LedgerResult, *, include_starting_balance: bool = True) -> pd.DataFrame:
    """One row per ledger entry."""
    entries = result.entries if include_starting_balance else result.transactions
    return entries_to_frame(entries)


def summaries_frame(summaries) -> pd.DataFrame:
    """One row per month (input: list of MonthlySummary)."""
    return pd.DataFrame([s.to_dict() for s in summaries], columns=SUMMARY_COLUMNS)


def schedule_frame(schedule) -> pd.DataFrame:
    """One row per projected payment month (input: PayoffSchedule)."""
    return pd.DataFrame([row.to_dict() for row in schedule.schedule], columns=SCHEDULE_COLUMNS)
