import pytest

from core.schema import MonthlyDay, Rule, Scenario
from data_prep.validators import ValidationResult, validate_model, validate_scenario
from scenarios import ops
from tests.helpers import clone_dict


def test_base_model_is_valid(base_model):
    result = validate_model(base_model)
    assert result.is_valid, result.summary()
    assert result.warnings == []
    assert result.summary() == "✓ All checks passed."


def test_none_is_invalid():
    assert not validate_model(None).is_valid
    assert not validate_scenario(None).is_valid


def test_missing_checking_account(base_model):
    base_model.accounts = [a for a in base_model.accounts if a.type != "checking"]
    result = validate_model(base_model)
    assert "accounts: At least one checking account is required" in result.errors
    assert any(e.startswith("startingBalances[0].accountId") for e in result.errors)


def test_duplicate_rule_id(base_model):
    base_model.rules.append(Rule(id="rent", recurrence=MonthlyDay(day=3)))
    result = validate_model(base_model)
    assert "rules[4].id: Duplicate rule ID: rent" in result.errors


def test_rule_needs_recurrence_or_follows(base_model):
    base_model.rules.append(Rule(id="orphan"))
    result = validate_model(base_model)
    assert "rules[4]: Rule must have either recurrence or followsRuleId" in result.errors


def test_follows_unknown_rule(base_model):
    base_model.rules.append(Rule(id="tag_along", follows_rule_id="ghost"))
    result = validate_model(base_model)
    assert "rules[4].followsRuleId: Referenced rule not found: ghost" in result.errors


def test_late_day_of_month_is_a_warning(base_model):
    base_model.rules[1].recurrence = MonthlyDay(day=31)
    result = validate_model(base_model)
    assert result.is_valid
    assert result.warnings == ["rules[1].recurrence.day: Day 31 may shift to end of month in short months"]


def test_nan_amount(base_model):
    base_model.one_offs[0].amount = float("nan")
    result = validate_model(base_model)
    assert "oneOffs[0].amount: Amount must be a valid number" in result.errors


@pytest.mark.parametrize(
    ("mutate", "warning"),
    [
        (lambda m: setattr(m.rules[2], "to_account_id", None), "rules[2].toAccountId: Transfer has no destination account"),
        (lambda m: setattr(m.rules[0], "account_id", "brokerage"), "rules[0].accountId: Referenced account not found: brokerage"),
        (lambda m: setattr(m.debts[0], "min_payment_rule_id", "gone"), "debts[0].minPaymentRuleId: Referenced rule not found: gone"),
        (lambda m: setattr(m.debts[0], "principal", -5.0), "debts[0].principal: Principal is negative"),
    ],
)
def test_reference_warnings(base_model, mutate, warning):
    mutate(base_model)
    result = validate_model(base_model)
    assert result.is_valid
    assert warning in result.warnings


def test_wrong_schema_version(base_model_dict):
    data = clone_dict(base_model_dict)
    data["meta"]["schemaVersion"] = 2
    result = validate_model(data)
    assert result.errors == ["meta.schemaVersion: Schema version must be 1"]


def test_unparseable_dict_reports_schema_errors(base_model_dict):
    data = clone_dict(base_model_dict)
    data["rules"][0]["kind"] = "gift"
    result = validate_model(data)
    assert not result.is_valid
    assert result.errors[0].startswith("rules.0.kind")


def test_summary_lists_errors_and_warnings():
    result = ValidationResult()
    result.error("a", "broken")
    result.warn("b", "odd")
    assert result.summary() == "ERRORS (1):\n  ✗ a: broken\nWARNINGS (1):\n  ⚠ b: odd"


def test_scenario_with_unknown_op_is_invalid():
    result = validate_scenario({"ops": [{"op": "rule_explode", "ruleId": "rent"}]})
    assert not result.is_valid


def test_scenario_unknown_rule_is_a_warning(base_model):
    scenario = Scenario(ops=[ops.rule_amount_set("rent", 1300.0), ops.rule_disable("ghost")])
    result = validate_scenario(scenario, base_model)
    assert result.is_valid
    assert result.warnings == ["ops[1].ruleId: Referenced rule not found: ghost"]
