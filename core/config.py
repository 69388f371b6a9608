"""
Forecast defaults and run options.

Document-level settings live in core.schema.Settings; the values here are the
fallbacks used when a document leaves something unset, plus the fixed
constants of the transaction ordering and payoff projection.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Dict, Optional

DEFAULT_FORECAST_HORIZON_DAYS = 180
DEFAULT_SAFE_SURPLUS_BUFFER = 300.0
DEFAULT_SAFE_SURPLUS_FLOOR = 2000.0

# ordering within a single day
DEFAULT_RULE_PRIORITY = 100
ONE_OFF_PRIORITY = 50
KIND_ORDER: Dict[str, int] = {"income": 0, "transfer": 1, "expense": 2}

DEFAULT_ACCOUNT_ID = "checking"
ONE_OFF_CATEGORY = "one-off"

# debt payoff
MAX_PAYOFF_MONTHS = 360
MIN_PAYMENT_FLOOR = 25.0
MIN_PAYMENT_PRINCIPAL_PCT = 0.01

# month_summary() looks this many months past the requested one
MONTH_SUMMARY_LOOKAHEAD_MONTHS = 3


@dataclass(frozen=True)
class LedgerOptions:
    """
    Window and account for a ledger run. Any field left as None is resolved
    by the runner: start -> today, end -> today + horizon, account -> the
    model's checking account.
    """

    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    account_id: Optional[str] = None
    today: Optional[dt.date] = None

    def as_kwargs(self) -> dict:
        return {
            "start_date": self.start_date,
            "end_date": self.end_date,
            "account_id": self.account_id,
            "today": self.today,
        }
