"""
Business-day rules: weekend detection and date adjustment.

Only weekends are ever non-business days; there is no holiday calendar.
With `weekends_are_non_business_days` switched off every day is a business
day and adjustment becomes a no-op.
"""

from __future__ import annotations

import dataclasses
import datetime as dt
from typing import List, Optional

from core.schema import BusinessDaySettings, Settings
from core.utils import days_in_month

from .events import Transaction

_ONE_DAY = dt.timedelta(days=1)


def is_weekend(date: dt.date) -> bool:
    return date.weekday() >= 5


def is_business_day(date: dt.date, policy: Optional[BusinessDaySettings] = None) -> bool:
    weekends_excluded = policy is None or policy.weekends_are_non_business_days
    return not (weekends_excluded and is_weekend(date))


def next_business_day(date: dt.date, policy: Optional[BusinessDaySettings] = None) -> dt.date:
    """First business day strictly after `date`."""
    current = date + _ONE_DAY
    while not is_business_day(current, policy):
        current += _ONE_DAY
    return current


def prev_business_day(date: dt.date, policy: Optional[BusinessDaySettings] = None) -> dt.date:
    """Last business day strictly before `date`."""
    current = date - _ONE_DAY
    while not is_business_day(current, policy):
        current -= _ONE_DAY
    return current


def adjust_date(
    date: dt.date,
    mode: str = "none",
    policy: Optional[BusinessDaySettings] = None,
) -> dt.date:
    """
    Move `date` onto a business day according to `mode`.

    none / already a business day -> unchanged
    next_business_day             -> walk forward one day at a time
    prev_business_day             -> walk backward one day at a time
    """
    if mode == "none" or is_business_day(date, policy):
        return date
    if mode == "next_business_day":
        return next_business_day(date, policy)
    if mode == "prev_business_day":
        return prev_business_day(date, policy)
    return date


def adjust_transaction(tx: Transaction, settings: Optional[Settings] = None) -> Transaction:
    """Copy of `tx` on its adjusted date; the scheduled date is kept in original_date."""
    policy = settings.business_days if settings is not None else None
    adjusted = adjust_date(tx.date, tx.business_day_adjustment or "none", policy)
    return dataclasses.replace(
        tx,
        date=adjusted,
        original_date=tx.date,
        was_adjusted=adjusted != tx.date,
    )


def business_days_in_range(
    start: dt.date,
    end: dt.date,
    policy: Optional[BusinessDaySettings] = None,
) -> List[dt.date]:
    days = []
    current = start
    while current <= end:
        if is_business_day(current, policy):
            days.append(current)
        current += _ONE_DAY
    return days


def business_days_in_month(year: int, month: int, policy: Optional[BusinessDaySettings] = None) -> int:
    first = dt.date(year, month, 1)
    last = dt.date(year, month, days_in_month(year, month))
    return len(business_days_in_range(first, last, policy))


def describe_adjustment(mode: str) -> str:
    if mode == "next_business_day":
        return "Next business day"
    if mode == "prev_business_day":
        return "Previous business day"
    return "No adjustment"
