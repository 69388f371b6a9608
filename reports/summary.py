"""
Monthly summaries and the "safe to withdraw" figure.

monthly_summaries() buckets a ledger by calendar month. Each month starts at
the previous month's closing balance (the first at the ledger's starting
balance); a month whose only entry is the synthetic starting balance keeps
the carried balance as its min, max and end.

safe_surplus() answers "how much can leave the account at the end of month i":

  floor mode:               max(0, end_balance[i] - floor)
  next_month_trough mode:   end_balance[i] - (min_balance[i+1] + buffer),
                            clamped at 0 and flagged unsafe when negative.
                            At the horizon (no month i+1) it falls back to the
                            floor formula and marks the result as an estimate.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import asdict, dataclass, field
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd

from core.config import (
    DEFAULT_SAFE_SURPLUS_BUFFER,
    DEFAULT_SAFE_SURPLUS_FLOOR,
    MONTH_SUMMARY_LOOKAHEAD_MONTHS,
)
from core.schema import Model, SafeSurplusSettings
from core.utils import add_months, format_currency, month_end, month_key, month_label, require_columns, to_date
from engine.ledger import LedgerResult, run_ledger

from .frames import entries_frame

logger = logging.getLogger(__name__)

_AGG_COLUMNS = [
    "income", "expenses", "transfers_in", "transfers_out",
    "end_balance", "min_balance", "max_balance", "transaction_count",
    "min_balance_date", "max_balance_date",
]


@dataclass
class MonthlySummary:
    month: str
    month_name: str
    start_balance: float
    end_balance: float
    income: float = 0.0
    expenses: float = 0.0
    transfers_in: float = 0.0
    transfers_out: float = 0.0
    net_surplus: float = 0.0
    min_balance: float = 0.0
    max_balance: float = 0.0
    min_balance_date: Optional[dt.date] = None
    max_balance_date: Optional[dt.date] = None
    transaction_count: int = 0

    def to_dict(self) -> dict:
        out = asdict(self)
        for key in ("min_balance_date", "max_balance_date"):
            out[key] = out[key].isoformat() if out[key] else None
        return out


@dataclass
class SafeSurplusResult:
    safe_withdrawable: float
    mode: str
    message: str
    end_balance: Optional[float] = None
    floor: Optional[float] = None
    buffer: Optional[float] = None
    required: Optional[float] = None
    next_month_trough: Optional[float] = None
    next_month_trough_date: Optional[dt.date] = None
    is_unsafe: bool = False
    unsafe_by: Optional[float] = None
    is_estimate: bool = False

    def to_dict(self) -> dict:
        out = asdict(self)
        if self.next_month_trough_date is not None:
            out["next_month_trough_date"] = self.next_month_trough_date.isoformat()
        return out


@dataclass
class MonthReport:
    summary: MonthlySummary
    safe_surplus: SafeSurplusResult


@dataclass
class Dashboard:
    month: str
    summary: Optional[MonthlySummary]
    safe_surplus: SafeSurplusResult
    available_months: List[Tuple[str, str]] = field(default_factory=list)
    summaries: List[MonthlySummary] = field(default_factory=list)
    ledger: Optional[LedgerResult] = None


# ---------------------------------------------------------------------------
# Monthly buckets
# ---------------------------------------------------------------------------

def _opt_date(value) -> Optional[dt.date]:
    if value is None or pd.isna(value):
        return None
    return pd.Timestamp(value).date()


def monthly_summaries(result: LedgerResult) -> List[MonthlySummary]:
    """
    Per-month totals and extrema for a ledger run, in calendar order.

    Parameters
    ----------
    result : LedgerResult
        Output of engine.ledger.run_ledger().

    Returns
    -------
    List of MonthlySummary, one per month that has at least one ledger entry
    (the starting-balance entry counts for its own month).
    """
    df = entries_frame(result)
    require_columns(df, ["date", "kind", "amount", "balance", "is_starting_balance"])
    if df.empty:
        return []

    df["month"] = df["date"].dt.strftime("%Y-%m")
    months = sorted(df["month"].unique())

    tx = df.loc[~df["is_starting_balance"]].copy()
    kind = tx["kind"]
    amount = tx["amount"]
    tx["income"] = np.where(kind == "income", amount, 0.0)
    tx["expenses"] = np.where(kind == "expense", amount.abs(), 0.0)
    tx["transfers_in"] = np.where((kind == "transfer") & (amount > 0), amount, 0.0)
    tx["transfers_out"] = np.where((kind == "transfer") & (amount <= 0), amount.abs(), 0.0)

    if tx.empty:
        agg = pd.DataFrame(index=pd.Index([], name="month"), columns=_AGG_COLUMNS, dtype=float)
    else:
        grouped = tx.groupby("month", sort=True)
        agg = grouped.agg(
            income=("income", "sum"),
            expenses=("expenses", "sum"),
            transfers_in=("transfers_in", "sum"),
            transfers_out=("transfers_out", "sum"),
            end_balance=("balance", "last"),
            min_balance=("balance", "min"),
            max_balance=("balance", "max"),
            transaction_count=("balance", "size"),
        )
        # idxmin/idxmax return the first row reaching the extreme
        min_idx = grouped["balance"].idxmin()
        max_idx = grouped["balance"].idxmax()
        agg["min_balance_date"] = pd.Series(tx.loc[min_idx.values, "date"].values, index=min_idx.index)
        agg["max_balance_date"] = pd.Series(tx.loc[max_idx.values, "date"].values, index=max_idx.index)
    agg = agg.reindex(months)

    opening = float(result.starting_balance)
    end_balance = agg["end_balance"].ffill().fillna(opening)
    start_balance = end_balance.shift(1).fillna(opening)

    summaries = []
    for month in months:
        row = agg.loc[month]
        start = float(start_balance.loc[month])
        income = float(np.nan_to_num(row["income"]))
        expenses = float(np.nan_to_num(row["expenses"]))
        has_entries = not pd.isna(row["transaction_count"])
        summaries.append(
            MonthlySummary(
                month=month,
                month_name=month_label(month),
                start_balance=start,
                end_balance=float(end_balance.loc[month]),
                income=income,
                expenses=expenses,
                transfers_in=float(np.nan_to_num(row["transfers_in"])),
                transfers_out=float(np.nan_to_num(row["transfers_out"])),
                net_surplus=income - expenses,
                min_balance=float(row["min_balance"]) if has_entries else start,
                max_balance=float(row["max_balance"]) if has_entries else start,
                min_balance_date=_opt_date(row["min_balance_date"]),
                max_balance_date=_opt_date(row["max_balance_date"]),
                transaction_count=int(row["transaction_count"]) if has_entries else 0,
            )
        )
    logger.debug("summarised %d months for account %s", len(summaries), result.account_id)
    return summaries


# ---------------------------------------------------------------------------
# Safe surplus
# ---------------------------------------------------------------------------

def safe_surplus(
    summaries: List[MonthlySummary],
    month_index: int,
    settings: Optional[SafeSurplusSettings] = None,
) -> SafeSurplusResult:
    """Safe-to-withdraw amount at the end of month `month_index`."""
    mode = settings.mode if settings is not None else "next_month_trough"
    buffer = settings.buffer if settings is not None else DEFAULT_SAFE_SURPLUS_BUFFER
    floor = settings.floor if settings is not None else DEFAULT_SAFE_SURPLUS_FLOOR

    if month_index < 0 or month_index >= len(summaries):
        return SafeSurplusResult(safe_withdrawable=0.0, mode=mode, message="No data")

    end_balance = summaries[month_index].end_balance

    if mode == "floor":
        safe = max(0.0, end_balance - floor)
        return SafeSurplusResult(
            safe_withdrawable=safe,
            mode="floor",
            end_balance=end_balance,
            floor=floor,
            message=(
                f"Safe to withdraw (above {format_currency(floor)} floor)"
                if safe > 0 else f"Below floor of {format_currency(floor)}"
            ),
        )

    if month_index + 1 >= len(summaries):
        return SafeSurplusResult(
            safe_withdrawable=max(0.0, end_balance - floor),
            mode="next_month_trough",
            end_balance=end_balance,
            floor=floor,
            buffer=buffer,
            message="No next month data, using floor",
            is_estimate=True,
        )

    next_month = summaries[month_index + 1]
    required = next_month.min_balance + buffer
    safe = end_balance - required

    if safe >= 0:
        return SafeSurplusResult(
            safe_withdrawable=safe,
            mode="next_month_trough",
            end_balance=end_balance,
            buffer=buffer,
            required=required,
            next_month_trough=next_month.min_balance,
            next_month_trough_date=next_month.min_balance_date,
            message=f"Safe to withdraw (covers next month trough + {format_currency(buffer)} buffer)",
        )

    return SafeSurplusResult(
        safe_withdrawable=0.0,
        mode="next_month_trough",
        end_balance=end_balance,
        buffer=buffer,
        required=required,
        next_month_trough=next_month.min_balance,
        next_month_trough_date=next_month.min_balance_date,
        is_unsafe=True,
        unsafe_by=abs(safe),
        message=f"Unsafe by {format_currency(abs(safe))}",
    )


# ---------------------------------------------------------------------------
# Model-level views
# ---------------------------------------------------------------------------

def month_summary(model: Model, month: str, *, account_id: Optional[str] = None) -> Optional[MonthReport]:
    """Summary and safe surplus for one month (YYYY-MM), looking three months ahead."""
    start = to_date(f"{month}-01")
    end = month_end(add_months(start, MONTH_SUMMARY_LOOKAHEAD_MONTHS))
    ledger = run_ledger(model, start_date=start, end_date=end, account_id=account_id)
    summaries = monthly_summaries(ledger)

    index = next((i for i, s in enumerate(summaries) if s.month == month), -1)
    if index < 0:
        return None
    return MonthReport(
        summary=summaries[index],
        safe_surplus=safe_surplus(summaries, index, model.settings.safe_surplus),
    )


def dashboard(
    model: Model,
    month: Optional[str] = None,
    *,
    today: Optional[dt.date] = None,
    account_id: Optional[str] = None,
) -> Dashboard:
    """Forecast from today over the horizon, focused on `month` (default: the current one)."""
    today = today or dt.date.today()
    month = month or month_key(today)

    ledger = run_ledger(model, today=today, account_id=account_id)
    summaries = monthly_summaries(ledger)
    index = next((i for i, s in enumerate(summaries) if s.month == month), -1)

    if index >= 0:
        surplus = safe_surplus(summaries, index, model.settings.safe_surplus)
        current = summaries[index]
    else:
        surplus = SafeSurplusResult(safe_withdrawable=0.0, mode=model.settings.safe_surplus.mode, message="Select a month")
        current = summaries[0] if summaries else None

    return Dashboard(
        month=month,
        summary=current,
        safe_surplus=surplus,
        available_months=[(s.month, s.month_name) for s in summaries],
        summaries=summaries,
        ledger=ledger,
    )


def _breakdown(result: LedgerResult, kind: str) -> List[Tuple[str, float]]:
    df = entries_frame(result, include_starting_balance=False)
    df = df.loc[df["kind"] == kind]
    if df.empty:
        return []
    totals = (
        df.assign(category=df["category"].replace("", "Uncategorized"), amount=df["amount"].abs())
        .groupby("category", sort=False)["amount"]
        .sum()
        .sort_values(ascending=False, kind="mergesort")
    )
    return [(category, float(amount)) for category, amount in totals.items()]


def income_breakdown(result: LedgerResult) -> List[Tuple[str, float]]:
    """(category, total) for income entries, largest first."""
    return _breakdown(result, "income")


def expense_breakdown(result: LedgerResult) -> List[Tuple[str, float]]:
    """(category, total) for expense entries as positive amounts, largest first."""
    return _breakdown(result, "expense")


def daily_balances(result: LedgerResult) -> pd.Series:
    """End-of-day balance for every calendar day of the run."""
    df = entries_frame(result)
    last_day = max(result.end_date, df["date"].max().date())
    per_day = df.groupby("date")["balance"].last()
    index = pd.date_range(result.start_date, last_day, freq="D")
    series = per_day.reindex(index).ffill().fillna(result.starting_balance)
    series.name = "balance"
    return series
