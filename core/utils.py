from __future__ import annotations

import calendar
import datetime as dt
import re
from typing import Iterable, Union

import numpy as np
import pandas as pd
from dateutil.relativedelta import relativedelta

DateLike = Union[str, dt.date, pd.Timestamp]


def require_columns(df: pd.DataFrame, cols: Iterable[str]) -> None:
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")


def to_date(value: DateLike) -> dt.date:
    """Accept ISO strings, dates, datetimes and Timestamps; return a plain date."""
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    return dt.date.fromisoformat(str(value))


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> dt.date:
    """Day-of-month overflow clamps to the month's last day (31 -> Feb 28/29)."""
    return dt.date(year, month, min(day, days_in_month(year, month)))


def month_start(d: dt.date) -> dt.date:
    return d.replace(day=1)


def month_end(d: dt.date) -> dt.date:
    return clamp_day(d.year, d.month, 31)


def iter_month_starts(start: dt.date, end: dt.date):
    """First-of-month dates for every month overlapping [start, end]."""
    current = month_start(start)
    while current <= end:
        yield current
        current = current + relativedelta(months=1)


def month_key(d: dt.date) -> str:
    """YYYY-MM"""
    return f"{d.year:04d}-{d.month:02d}"


def month_label(month: str) -> str:
    """'2024-03' -> 'March 2024'"""
    year, mon = (int(p) for p in month.split("-"))
    return f"{calendar.month_name[mon]} {year}"


def add_months(d: dt.date, months: int) -> dt.date:
    return d + relativedelta(months=months)


def days_between(d1: dt.date, d2: dt.date) -> int:
    return (d2 - d1).days


def excel_round(x, decimals: int = 2):
    """Excel ROUND: half away from zero (vectorized)."""
    m = 10 ** decimals
    x = np.asarray(x, dtype=float)
    return np.sign(x) * (np.floor(np.abs(x) * m + 0.5) / m)


def round_cents(x: float) -> float:
    return float(excel_round(x, 2))


def format_currency(amount: float, currency: str = "USD") -> str:
    """$1,234.56 / -$1,234.56 for USD; other codes are suffixed."""
    value = round_cents(amount)
    sign = "-" if value < 0 else ""
    body = f"{abs(value):,.2f}"
    if currency == "USD":
        return f"{sign}${body}"
    return f"{sign}{body} {currency}"


def snake_case(key: str) -> str:
    """'forecastHorizonDays' -> 'forecast_horizon_days'; snake_case passes through."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()
