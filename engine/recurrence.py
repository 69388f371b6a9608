"""
Recurrence expansion — turn a rule's schedule into dated occurrences.

Four schedule shapes are supported (see core.schema):
  monthly_day        one date per month, day clamped to the month's length
  semimonthly_days   two clamped days per month
  biweekly_anchor    every 14 days, aligned to an anchor date
  weekly_dow         every week on a fixed weekday (0 = Monday)

Every expander is a pure function of (recurrence, start, end): no state is
carried between calls, so expanding the same window twice gives the same list.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Callable, Dict, List, Optional

from core.schema import (
    BiweeklyAnchor,
    Model,
    MonthlyDay,
    Recurrence,
    Rule,
    SemimonthlyDays,
    WeeklyDow,
)
from core.utils import add_months, clamp_day, iter_month_starts

from .events import Transaction

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def _expand_monthly_day(recurrence: MonthlyDay, start: dt.date, end: dt.date) -> List[dt.date]:
    dates = []
    for first in iter_month_starts(start, end):
        target = clamp_day(first.year, first.month, recurrence.day)
        if start <= target <= end:
            dates.append(target)
    return dates


def _expand_semimonthly_days(recurrence: SemimonthlyDays, start: dt.date, end: dt.date) -> List[dt.date]:
    dates = []
    for first in iter_month_starts(start, end):
        for day in (recurrence.day1, recurrence.day2):
            target = clamp_day(first.year, first.month, day)
            if start <= target <= end:
                dates.append(target)
    return sorted(dates)


def _expand_biweekly_anchor(recurrence: BiweeklyAnchor, start: dt.date, end: dt.date) -> List[dt.date]:
    anchor = recurrence.anchor_date
    step = dt.timedelta(days=14)

    # first anchor-aligned date on/after both the anchor and the window start
    current = anchor
    if start > anchor:
        periods = -(-(start - anchor).days // 14)
        current = anchor + periods * step

    dates = []
    while current <= end:
        dates.append(current)
        current += step
    return dates


def _expand_weekly_dow(recurrence: WeeklyDow, start: dt.date, end: dt.date) -> List[dt.date]:
    offset = (recurrence.day_of_week - start.weekday()) % 7
    current = start + dt.timedelta(days=offset)

    dates = []
    while current <= end:
        dates.append(current)
        current += dt.timedelta(days=7)
    return dates


_EXPANDERS: Dict[type, Callable[..., List[dt.date]]] = {
    MonthlyDay: _expand_monthly_day,
    SemimonthlyDays: _expand_semimonthly_days,
    BiweeklyAnchor: _expand_biweekly_anchor,
    WeeklyDow: _expand_weekly_dow,
}


def expand_dates(recurrence: Recurrence, start: dt.date, end: dt.date) -> List[dt.date]:
    """All dates of `recurrence` inside the inclusive window [start, end]."""
    if start > end:
        return []
    expander = _EXPANDERS[type(recurrence)]
    return expander(recurrence, start, end)


def resolve_recurrence(rule: Rule, model: Optional[Model] = None) -> Optional[Recurrence]:
    """
    The schedule a rule actually runs on.

    A rule with `follows_rule_id` borrows the followed rule's own recurrence.
    Exactly one hop is resolved: if the followed rule is missing, or itself
    only follows another rule, there is no schedule.
    """
    if rule.follows_rule_id:
        followed = model.find_rule(rule.follows_rule_id) if model is not None else None
        if followed is None:
            logger.debug("rule %s follows unknown rule %s", rule.id, rule.follows_rule_id)
            return None
        return followed.recurrence
    return rule.recurrence


def clamp_window(rule: Rule, start: dt.date, end: dt.date):
    """Intersect [start, end] with the rule's validity bounds."""
    if rule.valid_from is not None and rule.valid_from > start:
        start = rule.valid_from
    if rule.valid_to is not None and rule.valid_to < end:
        end = rule.valid_to
    return start, end


def expand_rule(
    rule: Rule,
    window_start: dt.date,
    window_end: dt.date,
    model: Optional[Model] = None,
) -> List[Transaction]:
    """
    Expand one rule into unadjusted transactions within a date window.

    Parameters
    ----------
    rule : Rule
        Rule to expand. Disabled rules produce nothing.
    window_start, window_end : date
        Inclusive window; clamped further by the rule's valid_from/valid_to.
    model : Model, optional
        Needed only to resolve `follows_rule_id`.

    Returns
    -------
    List of Transaction in date order. Empty when the clamped window is
    inverted or no recurrence resolves.
    """
    if not rule.enabled:
        return []

    start, end = clamp_window(rule, window_start, window_end)
    if start > end:
        return []

    recurrence = resolve_recurrence(rule, model)
    if recurrence is None:
        return []

    return [
        Transaction(
            date=d,
            name=rule.name,
            account_id=rule.account_id,
            kind=rule.kind,
            amount=rule.amount,
            category=rule.category or "",
            tags=tuple(rule.tags),
            priority=rule.priority,
            business_day_adjustment=rule.business_day_adjustment,
            rule_id=rule.id,
            to_account_id=rule.to_account_id,
        )
        for d in expand_dates(recurrence, start, end)
    ]


def next_occurrence(
    rule: Rule,
    model: Optional[Model] = None,
    *,
    today: Optional[dt.date] = None,
) -> Optional[dt.date]:
    """First occurrence within the next three months, or None."""
    today = today or dt.date.today()
    occurrences = expand_rule(rule, today, add_months(today, 3), model)
    return occurrences[0].date if occurrences else None


def ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def describe_recurrence(recurrence: Optional[Recurrence]) -> str:
    if recurrence is None:
        return "No recurrence"
    if isinstance(recurrence, MonthlyDay):
        return f"Monthly on the {ordinal(recurrence.day)}"
    if isinstance(recurrence, SemimonthlyDays):
        return f"Semi-monthly on the {ordinal(recurrence.day1)} and {ordinal(recurrence.day2)}"
    if isinstance(recurrence, BiweeklyAnchor):
        anchor = recurrence.anchor_date
        return f"Every 2 weeks (from {anchor.strftime('%b')} {anchor.day})"
    if isinstance(recurrence, WeeklyDow):
        return f"Weekly on {WEEKDAY_NAMES[recurrence.day_of_week % 7]}"
    return "Unknown recurrence"
