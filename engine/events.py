"""
Dated money events produced by the engine.

Two layers, same shape:
  Transaction:  one dated occurrence of a rule or one-off, after business-day
                adjustment, amount still in the sign the author wrote it.
  LedgerEntry:  a Transaction replayed against an account: the signed amount as
                applied, the running balance and the days since the previous entry.

Both are frozen and derived on every run; nothing here is persisted. Field
names are stable so exporters can serialize them as-is (see to_dict()).
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, fields
from typing import Optional, Tuple


def _iso(value):
    return value.isoformat() if isinstance(value, dt.date) else value


@dataclass(frozen=True)
class Transaction:
    """One dated occurrence feeding the ledger."""
    date: dt.date
    name: str
    account_id: str
    kind: str                      # income | expense | transfer (| balance on ledger entries)
    amount: float
    category: str = ""
    tags: Tuple[str, ...] = ()
    priority: int = 100
    business_day_adjustment: str = "none"
    rule_id: Optional[str] = None
    one_off_id: Optional[str] = None
    to_account_id: Optional[str] = None
    original_date: Optional[dt.date] = None
    was_adjusted: bool = False
    is_one_off: bool = False

    @property
    def source_id(self) -> Optional[str]:
        return self.rule_id or self.one_off_id

    def to_dict(self) -> dict:
        out = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, tuple):
                value = list(value)
            out[f.name] = _iso(value)
        return out


@dataclass(frozen=True)
class LedgerEntry(Transaction):
    """A Transaction after it has been applied to one account."""
    balance: float = 0.0
    days_since_last: int = 0
    is_starting_balance: bool = False

    @classmethod
    def from_transaction(
        cls,
        tx: Transaction,
        *,
        amount: float,
        balance: float,
        days_since_last: int,
    ) -> "LedgerEntry":
        base = {f.name: getattr(tx, f.name) for f in fields(Transaction)}
        base["amount"] = amount
        return cls(**base, balance=balance, days_since_last=days_since_last)

    @classmethod
    def starting(cls, date: dt.date, account_id: str, amount: float) -> "LedgerEntry":
        return cls(
            date=date,
            name="Starting Balance",
            account_id=account_id,
            kind="balance",
            amount=amount,
            category="starting",
            priority=0,
            balance=amount,
            days_since_last=0,
            is_starting_balance=True,
        )
