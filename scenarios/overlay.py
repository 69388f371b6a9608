"""
Scenario overlay — non-destructive "what if" on top of the base model.

A Scenario is an ordered list of operations. apply_scenario() deep-clones the
base model once and replays every operation, in list order, against that
clone; neither the base model nor the scenario is touched.

Operation effects:
  rule_amount_set       rule.amount = amount            idempotent
  rule_amount_delta     rule.amount += delta            compounds on replay
  rule_disable          rule.enabled = not disabled     idempotent
  rule_recurrence_set   replace recurrence, drop follows_rule_id
  add_oneoff            append a one-off tagged "scenario" (adds again on replay)
  remove_oneoff         drop the one-off with that id, if any
  settings_set          set a dotted settings path, creating missing levels;
                        a null or schema-invalid value is skipped

Operations naming a rule that does not exist are no-ops.

When editing a scenario, add_operation() lets a new set/delta/disable op for
a rule replace an older op of the same type for that rule. Other op types,
and ops of different types for the same rule, simply accumulate.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from core.config import LedgerOptions
from core.schema import (
    AddOneOff,
    Model,
    OneOff,
    Operation,
    RemoveOneOff,
    RuleAmountDelta,
    RuleAmountSet,
    RuleDisable,
    RuleRecurrenceSet,
    Scenario,
    Settings,
    SettingsSet,
    create_empty_scenario,
    generate_id,
    touch_model,
)
from core.utils import snake_case
from engine.ledger import run_ledger

from .operations import REPLACEABLE_OPS, describe_operation

logger = logging.getLogger(__name__)

COMPARED_FIELDS = ("end_balance", "min_balance", "total_income", "total_expenses", "net_surplus")


@dataclass
class ScenarioComparison:
    """Headline ledger figures for base and scenario, and scenario minus base."""
    base: Dict[str, float] = field(default_factory=dict)
    scenario: Dict[str, float] = field(default_factory=dict)
    difference: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"base": dict(self.base), "scenario": dict(self.scenario), "difference": dict(self.difference)}


# ---------------------------------------------------------------------------
# Editing a scenario
# ---------------------------------------------------------------------------

def create_scenario(name: str = "") -> Scenario:
    return create_empty_scenario(name)


def add_operation(scenario: Scenario, op: Operation) -> Scenario:
    """Append `op`; a set/delta/disable op replaces the older one of its type for the same rule."""
    if isinstance(op, REPLACEABLE_OPS) and op.rule_id:
        scenario.ops = [
            existing for existing in scenario.ops
            if not (type(existing) is type(op) and getattr(existing, "rule_id", None) == op.rule_id)
        ]
    scenario.ops.append(op)
    return scenario


def remove_operation(scenario: Scenario, index: int) -> Scenario:
    if 0 <= index < len(scenario.ops):
        del scenario.ops[index]
    return scenario


# ---------------------------------------------------------------------------
# Applying operations
# ---------------------------------------------------------------------------

def _apply_rule_amount_set(model: Model, op: RuleAmountSet) -> None:
    rule = model.find_rule(op.rule_id)
    if rule is not None:
        rule.amount = op.amount


def _apply_rule_amount_delta(model: Model, op: RuleAmountDelta) -> None:
    rule = model.find_rule(op.rule_id)
    if rule is not None:
        rule.amount = (rule.amount or 0.0) + op.delta


def _apply_rule_disable(model: Model, op: RuleDisable) -> None:
    rule = model.find_rule(op.rule_id)
    if rule is not None:
        rule.enabled = not op.disabled


def _apply_rule_recurrence_set(model: Model, op: RuleRecurrenceSet) -> None:
    rule = model.find_rule(op.rule_id)
    if rule is not None:
        rule.recurrence = op.recurrence.model_copy(deep=True)
        rule.follows_rule_id = None


def _apply_add_oneoff(model: Model, op: AddOneOff) -> None:
    model.one_offs.append(
        OneOff(
            id=op.one_off_id or generate_id("scenario_oneoff"),
            date=op.date,
            name=op.name or "Scenario One-Off",
            account_id=op.account_id or "checking",
            amount=op.amount or 0.0,
            category=op.category or "scenario",
            tags=["scenario"],
            note=op.note or "",
        )
    )


def _apply_remove_oneoff(model: Model, op: RemoveOneOff) -> None:
    model.one_offs = [o for o in model.one_offs if o.id != op.one_off_id]


def set_settings_path(settings: Settings, path: str, value: Any) -> Settings:
    """
    New Settings with `path` (dotted, camelCase or snake_case) set to `value`.
    Missing or non-object intermediate levels become empty objects.
    """
    keys = [snake_case(k) for k in path.split(".") if k]
    if not keys:
        return settings
    data = settings.model_dump()
    target = data
    for key in keys[:-1]:
        if not isinstance(target.get(key), dict):
            target[key] = {}
        target = target[key]
    target[keys[-1]] = value
    return Settings.model_validate(data)


def _apply_settings_set(model: Model, op: SettingsSet) -> None:
    """A null value, or one the settings schema rejects, leaves the settings unchanged."""
    if op.value is None:
        return
    try:
        model.settings = set_settings_path(model.settings, op.path, op.value)
    except ValidationError as e:
        logger.warning("settings_set %s=%r ignored: %s", op.path, op.value, e.errors()[0].get("msg"))


_APPLIERS: Dict[type, Callable[[Model, Any], None]] = {
    RuleAmountSet: _apply_rule_amount_set,
    RuleAmountDelta: _apply_rule_amount_delta,
    RuleDisable: _apply_rule_disable,
    RuleRecurrenceSet: _apply_rule_recurrence_set,
    AddOneOff: _apply_add_oneoff,
    RemoveOneOff: _apply_remove_oneoff,
    SettingsSet: _apply_settings_set,
}


def apply_operation(model: Model, op: Operation) -> Model:
    """Apply one operation to `model` IN PLACE. Callers own the clone."""
    _APPLIERS[type(op)](model, op)
    return model


def apply_scenario(base_model: Model, scenario: Optional[Scenario]) -> Model:
    """
    Effective model: a deep clone of `base_model` with every op of `scenario`
    replayed in order. `base_model` and `scenario` are left untouched.
    """
    effective = base_model.clone()
    if scenario is None:
        return effective

    for op in scenario.ops:
        apply_operation(effective, op.model_copy(deep=True))
    logger.debug("applied %d scenario ops (%s)", len(scenario.ops), scenario.meta.name or "unnamed")
    return effective


# ---------------------------------------------------------------------------
# Comparing and committing
# ---------------------------------------------------------------------------

def compare_models(
    base_model: Model,
    scenario_model: Model,
    options: Optional[LedgerOptions] = None,
) -> ScenarioComparison:
    """Run the ledger on both models with the same options and diff the headline figures."""
    options = options or LedgerOptions()
    kwargs = options.as_kwargs()
    kwargs["today"] = kwargs["today"] or dt.date.today()

    base = run_ledger(base_model, **kwargs).summary
    scenario = run_ledger(scenario_model, **kwargs).summary

    comparison = ScenarioComparison()
    for name in COMPARED_FIELDS:
        comparison.base[name] = getattr(base, name)
        comparison.scenario[name] = getattr(scenario, name)
        comparison.difference[name] = getattr(scenario, name) - getattr(base, name)
    return comparison


def commit_scenario(base_model: Model, scenario: Optional[Scenario]) -> Model:
    """The effective model, timestamped, to become the caller's new base model."""
    effective = apply_scenario(base_model, scenario)
    touch_model(effective)
    logger.info("committed scenario with %d ops", len(scenario.ops) if scenario else 0)
    return effective


def describe_scenario(scenario: Scenario, model: Optional[Model] = None) -> List[str]:
    return [describe_operation(op, model) for op in scenario.ops]
