"""
Scenario operation builders and human-readable descriptions.

Operations themselves are schema types (core.schema.Operation); the helpers
here build them with sensible defaults and describe them for display.
"""

from __future__ import annotations

from typing import Any, Optional

from core.schema import (
    AddOneOff,
    Model,
    Operation,
    Recurrence,
    RemoveOneOff,
    RuleAmountDelta,
    RuleAmountSet,
    RuleDisable,
    RuleRecurrenceSet,
    SettingsSet,
    generate_id,
)
from core.utils import DateLike, format_currency, to_date

# op types where a newer op for the same rule replaces the older one
REPLACEABLE_OPS = (RuleAmountSet, RuleAmountDelta, RuleDisable)


def rule_amount_set(rule_id: str, amount: float) -> RuleAmountSet:
    return RuleAmountSet(rule_id=rule_id, amount=amount)


def rule_amount_delta(rule_id: str, delta: float) -> RuleAmountDelta:
    return RuleAmountDelta(rule_id=rule_id, delta=delta)


def rule_disable(rule_id: str, disabled: bool = True) -> RuleDisable:
    return RuleDisable(rule_id=rule_id, disabled=disabled)


def rule_recurrence_set(rule_id: str, recurrence: Recurrence) -> RuleRecurrenceSet:
    return RuleRecurrenceSet(rule_id=rule_id, recurrence=recurrence)


def add_oneoff(
    date: DateLike,
    name: str,
    amount: float,
    account_id: str = "checking",
    category: str = "scenario",
) -> AddOneOff:
    """The one-off id is fixed here so a later remove_oneoff can target it."""
    return AddOneOff(
        one_off_id=generate_id("scenario_oneoff"),
        date=to_date(date),
        name=name,
        amount=amount,
        account_id=account_id,
        category=category,
    )


def remove_oneoff(one_off_id: str) -> RemoveOneOff:
    return RemoveOneOff(one_off_id=one_off_id)


def settings_set(path: str, value: Any) -> SettingsSet:
    return SettingsSet(path=path, value=value)


def describe_operation(op: Operation, model: Optional[Model] = None) -> str:
    """One-line description of `op`, naming rules by their model name where possible."""
    currency = model.meta.currency if model is not None else "USD"
    rule_id = getattr(op, "rule_id", None)
    rule = model.find_rule(rule_id) if model is not None else None
    rule_name = rule.name if rule is not None else (rule_id or "Unknown")

    if isinstance(op, RuleAmountSet):
        return f'Set "{rule_name}" to {format_currency(op.amount, currency)}'
    if isinstance(op, RuleAmountDelta):
        sign = "+" if op.delta >= 0 else ""
        return f'Adjust "{rule_name}" by {sign}{format_currency(op.delta, currency)}'
    if isinstance(op, RuleDisable):
        return f'Disable "{rule_name}"' if op.disabled else f'Enable "{rule_name}"'
    if isinstance(op, RuleRecurrenceSet):
        return f'Change schedule of "{rule_name}"'
    if isinstance(op, AddOneOff):
        return f"Add one-off: {op.name} ({format_currency(op.amount, currency)}) on {op.date.isoformat()}"
    if isinstance(op, RemoveOneOff):
        return f"Remove one-off: {op.one_off_id}"
    if isinstance(op, SettingsSet):
        return f"Change setting: {op.path}"
    return f"Unknown operation: {getattr(op, 'op', type(op).__name__)}"
