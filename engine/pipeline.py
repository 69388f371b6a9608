"""
Transaction pipeline — model + window -> flat, time-ordered transaction list.

Four steps, each usable on its own:
  1. expand_rules        every enabled rule through the recurrence expander
  2. adjust_occurrences  business-day adjustment, per the rule's own mode
  3. one_off_transactions  one-offs inside the window, priority 50
  4. sort_transactions   (date, priority, kind rank) with income < transfer < expense

Ordering must be reproducible run to run: the sort is stable, so anything
still tied after the key keeps its emission order (rules in model order,
then one-offs in model order).
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Iterable, List

from core.config import KIND_ORDER, ONE_OFF_CATEGORY, ONE_OFF_PRIORITY
from core.schema import Model, OneOff

from .business_day import adjust_transaction
from .events import Transaction
from .recurrence import expand_rule

logger = logging.getLogger(__name__)


def expand_rules(model: Model, start: dt.date, end: dt.date) -> List[Transaction]:
    occurrences: List[Transaction] = []
    for rule in model.rules:
        if rule.enabled is False:
            continue
        occurrences.extend(expand_rule(rule, start, end, model))
    return occurrences


def adjust_occurrences(model: Model, occurrences: Iterable[Transaction]) -> List[Transaction]:
    return [adjust_transaction(tx, model.settings) for tx in occurrences]


def one_off_to_transaction(one_off: OneOff) -> Transaction:
    return Transaction(
        date=one_off.date,
        name=one_off.name,
        account_id=one_off.account_id,
        kind="income" if one_off.amount >= 0 else "expense",
        amount=one_off.amount,
        category=one_off.category or ONE_OFF_CATEGORY,
        tags=tuple(one_off.tags),
        priority=ONE_OFF_PRIORITY,
        one_off_id=one_off.id,
        is_one_off=True,
    )


def one_off_transactions(model: Model, start: dt.date, end: dt.date) -> List[Transaction]:
    return [
        one_off_to_transaction(o)
        for o in model.one_offs
        if start <= o.date <= end
    ]


def sort_key(tx: Transaction):
    return (tx.date, tx.priority, KIND_ORDER.get(tx.kind, 0))


def sort_transactions(transactions: Iterable[Transaction]) -> List[Transaction]:
    return sorted(transactions, key=sort_key)


def generate_transactions(model: Model, start: dt.date, end: dt.date) -> List[Transaction]:
    """
    All transactions of `model` between `start` and `end` (inclusive), sorted.

    The window bounds the occurrences before business-day adjustment, so an
    occurrence on a weekend window edge can land just outside it (a Saturday
    start with prev_business_day yields the Friday before). Such transactions
    are kept, not re-filtered. An inverted window yields an empty list.
    """
    if start > end:
        return []

    adjusted = adjust_occurrences(model, expand_rules(model, start, end))
    one_offs = one_off_transactions(model, start, end)
    transactions = sort_transactions(adjusted + one_offs)

    logger.debug(
        "generated %d transactions (%d rule occurrences, %d one-offs) for %s..%s",
        len(transactions), len(adjusted), len(one_offs), start, end,
    )
    return transactions
