"""
Structural validation for model and scenario documents before they are saved
or handed to the engine.

The engine itself never validates; callers run these checks at the edges
(import, save, CLI `validate`). Catches:
- Missing checking account
- Duplicate or missing ids
- References to accounts / rules that do not exist
- NaN amounts
- Rules with neither a recurrence nor a followed rule
- Day-of-month values that will clamp in short months (warning)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from core.schema import SCHEMA_VERSION, MonthlyDay, Model, Scenario


@dataclass
class ValidationResult:
    """Collects all validation warnings/errors for a document."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def error(self, path: str, message: str) -> None:
        self.errors.append(f"{path}: {message}" if path else message)

    def warn(self, path: str, message: str) -> None:
        self.warnings.append(f"{path}: {message}" if path else message)

    def summary(self) -> str:
        lines = []
        if self.errors:
            lines.append(f"ERRORS ({len(self.errors)}):")
            for e in self.errors:
                lines.append(f"  ✗ {e}")
        if self.warnings:
            lines.append(f"WARNINGS ({len(self.warnings)}):")
            for w in self.warnings:
                lines.append(f"  ⚠ {w}")
        if not lines:
            lines.append("✓ All checks passed.")
        return "\n".join(lines)


def _is_nan(value: Any) -> bool:
    return isinstance(value, float) and math.isnan(value)


def _from_validation_error(err: ValidationError, result: ValidationResult) -> ValidationResult:
    for e in err.errors():
        path = ".".join(str(p) for p in e.get("loc", ()))
        result.error(path, str(e.get("msg")))
    return result


def validate_model(model: Union[Model, Dict[str, Any], None]) -> ValidationResult:
    """
    Run all validation checks on a model.

    Accepts a parsed Model or a raw document dict; a dict that does not even
    parse reports the schema errors and stops there.
    Returns a ValidationResult with errors (blocking) and warnings (informational).
    """
    result = ValidationResult()

    if model is None:
        result.error("", "Model is null or undefined")
        return result
    if isinstance(model, dict):
        try:
            model = Model.model_validate(model)
        except ValidationError as e:
            return _from_validation_error(e, result)

    # --- Meta ---
    if model.meta.schema_version != SCHEMA_VERSION:
        result.error("meta.schemaVersion", f"Schema version must be {SCHEMA_VERSION}")

    # --- Accounts ---
    if not any(a.type == "checking" for a in model.accounts):
        result.error("accounts", "At least one checking account is required")

    account_ids = set()
    for i, acc in enumerate(model.accounts):
        if not acc.id:
            result.error(f"accounts[{i}].id", "Account ID is required")
        elif acc.id in account_ids:
            result.error(f"accounts[{i}].id", f"Duplicate account ID: {acc.id}")
        else:
            account_ids.add(acc.id)
        if not acc.name:
            result.warn(f"accounts[{i}].name", "Account name is empty")

    for i, sb in enumerate(model.starting_balances):
        if sb.account_id not in account_ids:
            result.error(f"startingBalances[{i}].accountId", f"Referenced account not found: {sb.account_id}")
        if _is_nan(sb.amount):
            result.error(f"startingBalances[{i}].amount", "Amount must be a valid number")

    # --- Rules ---
    rule_ids = set()
    for i, rule in enumerate(model.rules):
        if not rule.id:
            result.error(f"rules[{i}].id", "Rule ID is required")
        elif rule.id in rule_ids:
            result.error(f"rules[{i}].id", f"Duplicate rule ID: {rule.id}")
        else:
            rule_ids.add(rule.id)

        if _is_nan(rule.amount):
            result.error(f"rules[{i}].amount", "Amount must be a valid number")

        if rule.recurrence is None and not rule.follows_rule_id:
            result.error(f"rules[{i}]", "Rule must have either recurrence or followsRuleId")

        if isinstance(rule.recurrence, MonthlyDay) and rule.recurrence.day > 28:
            result.warn(
                f"rules[{i}].recurrence.day",
                f"Day {rule.recurrence.day} may shift to end of month in short months",
            )

        if rule.account_id not in account_ids:
            result.warn(f"rules[{i}].accountId", f"Referenced account not found: {rule.account_id}")
        if rule.kind == "transfer" and not rule.to_account_id:
            result.warn(f"rules[{i}].toAccountId", "Transfer has no destination account")

    for i, rule in enumerate(model.rules):
        if rule.follows_rule_id and rule.follows_rule_id not in rule_ids:
            result.error(f"rules[{i}].followsRuleId", f"Referenced rule not found: {rule.follows_rule_id}")

    # --- One-offs ---
    for i, one_off in enumerate(model.one_offs):
        if _is_nan(one_off.amount):
            result.error(f"oneOffs[{i}].amount", "Amount must be a valid number")

    # --- Debts ---
    for i, debt in enumerate(model.debts):
        if debt.min_payment_rule_id and debt.min_payment_rule_id not in rule_ids:
            result.warn(
                f"debts[{i}].minPaymentRuleId",
                f"Referenced rule not found: {debt.min_payment_rule_id}",
            )
        if debt.principal < 0:
            result.warn(f"debts[{i}].principal", "Principal is negative")

    return result


def validate_scenario(
    scenario: Union[Scenario, Dict[str, Any], None],
    model: Optional[Model] = None,
) -> ValidationResult:
    """
    Check a scenario draft. Unknown operation types are errors; with `model`
    given, operations naming rules the model does not have are warnings
    (they apply as no-ops).
    """
    result = ValidationResult()

    if scenario is None:
        result.error("", "Scenario is null or undefined")
        return result
    if isinstance(scenario, dict):
        try:
            scenario = Scenario.model_validate(scenario)
        except ValidationError as e:
            return _from_validation_error(e, result)

    if model is not None:
        for i, op in enumerate(scenario.ops):
            rule_id = getattr(op, "rule_id", None)
            if rule_id and model.find_rule(rule_id) is None:
                result.warn(f"ops[{i}].ruleId", f"Referenced rule not found: {rule_id}")

    return result
