"""
Ledger runner — replay the transaction pipeline against one account.

The ledger opens with a synthetic "Starting Balance" entry and then applies
every transaction touching the account, in pipeline order:

  income          +|amount|
  expense         -|amount|
  transfer out    -|amount|   (account is the source)
  transfer in     +|amount|   (account is the destination)

Running extrema move only on strict inequality, so on ties the first date
the extreme was reached is the one reported. For every run:

  end_balance == starting_balance + total_income - total_expenses
                 + total_transfers_in - total_transfers_out
"""

from __future__ import annotations

import datetime as dt
import logging
from collections import OrderedDict
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional

from core.config import DEFAULT_ACCOUNT_ID, DEFAULT_FORECAST_HORIZON_DAYS
from core.schema import Model
from core.utils import days_between, month_key

from .events import LedgerEntry, Transaction
from .pipeline import generate_transactions

logger = logging.getLogger(__name__)


@dataclass
class LedgerSummary:
    end_balance: float
    min_balance: float
    max_balance: float
    min_balance_date: dt.date
    max_balance_date: dt.date
    total_income: float = 0.0
    total_expenses: float = 0.0
    total_transfers_in: float = 0.0
    total_transfers_out: float = 0.0
    net_surplus: float = 0.0
    transaction_count: int = 0

    def to_dict(self) -> dict:
        out = asdict(self)
        out["min_balance_date"] = self.min_balance_date.isoformat()
        out["max_balance_date"] = self.max_balance_date.isoformat()
        return out


@dataclass
class LedgerResult:
    account_id: str
    start_date: dt.date
    end_date: dt.date
    starting_balance: float
    entries: List[LedgerEntry] = field(default_factory=list)
    summary: Optional[LedgerSummary] = None

    @property
    def transactions(self) -> List[LedgerEntry]:
        """Entries without the synthetic starting-balance row."""
        return [e for e in self.entries if not e.is_starting_balance]

    def to_dict(self) -> dict:
        return {
            "account_id": self.account_id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "starting_balance": self.starting_balance,
            "entries": [e.to_dict() for e in self.entries],
            "summary": self.summary.to_dict() if self.summary else None,
        }


def default_account_id(model: Model) -> str:
    """First checking account, else the first account, else 'checking'."""
    checking = next((a for a in model.accounts if a.type == "checking"), None)
    if checking is not None:
        return checking.id
    if model.accounts:
        return model.accounts[0].id
    return DEFAULT_ACCOUNT_ID


def starting_balance_for_account(model: Model, account_id: str, date: dt.date) -> float:
    """Most recent starting balance dated on or before `date`; 0 when there is none."""
    candidates = [
        b for b in model.starting_balances
        if b.account_id == account_id and b.date <= date
    ]
    if not candidates:
        return 0.0
    return max(candidates, key=lambda b: b.date).amount


def touches_account(tx: Transaction, account_id: str) -> bool:
    return tx.account_id == account_id or tx.to_account_id == account_id


def run_ledger(
    model: Model,
    *,
    start_date: Optional[dt.date] = None,
    end_date: Optional[dt.date] = None,
    account_id: Optional[str] = None,
    today: Optional[dt.date] = None,
) -> LedgerResult:
    """
    Run the ledger for one account.

    Parameters
    ----------
    model : Model
        Model to simulate. Read only.
    start_date : date, optional
        Defaults to `today`.
    end_date : date, optional
        Defaults to `today` + settings.forecast_horizon_days.
    account_id : str, optional
        Defaults to default_account_id(model).
    today : date, optional
        Reference date for the defaults; the system date when omitted.

    Returns
    -------
    LedgerResult with the starting-balance entry first, then one entry per
    applied transaction, plus the run summary.
    """
    today = today or dt.date.today()
    horizon = model.settings.forecast_horizon_days or DEFAULT_FORECAST_HORIZON_DAYS
    start = start_date or today
    end = end_date or today + dt.timedelta(days=horizon)
    account = account_id or default_account_id(model)

    starting_balance = starting_balance_for_account(model, account, start)
    transactions = [
        tx for tx in generate_transactions(model, start, end)
        if touches_account(tx, account)
    ]

    balance = starting_balance
    min_balance = max_balance = balance
    min_balance_date = max_balance_date = start
    totals = {"income": 0.0, "expenses": 0.0, "transfers_in": 0.0, "transfers_out": 0.0}

    entries = [LedgerEntry.starting(start, account, starting_balance)]
    prev_date = start

    for tx in transactions:
        magnitude = abs(tx.amount)
        if tx.kind == "transfer":
            if tx.account_id == account:
                amount = -magnitude
                totals["transfers_out"] += magnitude
            else:
                amount = magnitude
                totals["transfers_in"] += magnitude
        elif tx.kind == "expense":
            amount = -magnitude
            totals["expenses"] += magnitude
        elif tx.kind == "income":
            amount = magnitude
            totals["income"] += magnitude
        else:
            amount = tx.amount

        balance += amount

        if balance < min_balance:
            min_balance = balance
            min_balance_date = tx.date
        if balance > max_balance:
            max_balance = balance
            max_balance_date = tx.date

        entries.append(
            LedgerEntry.from_transaction(
                tx,
                amount=amount,
                balance=balance,
                days_since_last=days_between(prev_date, tx.date),
            )
        )
        prev_date = tx.date

    summary = LedgerSummary(
        end_balance=balance,
        min_balance=min_balance,
        max_balance=max_balance,
        min_balance_date=min_balance_date,
        max_balance_date=max_balance_date,
        total_income=totals["income"],
        total_expenses=totals["expenses"],
        total_transfers_in=totals["transfers_in"],
        total_transfers_out=totals["transfers_out"],
        net_surplus=totals["income"] - totals["expenses"],
        transaction_count=len(entries) - 1,
    )
    logger.debug(
        "ledger %s %s..%s: %d transactions, end balance %.2f",
        account, start, end, summary.transaction_count, balance,
    )

    return LedgerResult(
        account_id=account,
        start_date=start,
        end_date=end,
        starting_balance=starting_balance,
        entries=entries,
        summary=summary,
    )


# ---------------------------------------------------------------------------
# Entry helpers
# ---------------------------------------------------------------------------

def group_by_month(entries: List[LedgerEntry]) -> Dict[str, List[LedgerEntry]]:
    """YYYY-MM -> entries, in first-seen order."""
    groups: Dict[str, List[LedgerEntry]] = OrderedDict()
    for entry in entries:
        groups.setdefault(month_key(entry.date), []).append(entry)
    return groups


def group_by_category(entries: List[LedgerEntry]) -> Dict[str, List[LedgerEntry]]:
    groups: Dict[str, List[LedgerEntry]] = OrderedDict()
    for entry in entries:
        groups.setdefault(entry.category or "uncategorized", []).append(entry)
    return groups


def filter_entries(
    entries: List[LedgerEntry],
    *,
    month: Optional[str] = None,
    category: Optional[str] = None,
    kind: Optional[str] = None,
    account_id: Optional[str] = None,
    min_amount: Optional[float] = None,
    max_amount: Optional[float] = None,
) -> List[LedgerEntry]:
    filtered = list(entries)
    if month:
        filtered = [e for e in filtered if month_key(e.date) == month]
    if category:
        filtered = [e for e in filtered if e.category == category]
    if kind:
        filtered = [e for e in filtered if e.kind == kind]
    if account_id:
        filtered = [e for e in filtered if touches_account(e, account_id)]
    if min_amount is not None:
        filtered = [e for e in filtered if abs(e.amount) >= min_amount]
    if max_amount is not None:
        filtered = [e for e in filtered if abs(e.amount) <= max_amount]
    return filtered


def unique_categories(entries: List[LedgerEntry]) -> List[str]:
    return sorted({e.category for e in entries if e.category})


def unique_months(entries: List[LedgerEntry]) -> List[str]:
    return sorted({month_key(e.date) for e in entries})
