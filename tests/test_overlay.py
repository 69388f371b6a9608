import datetime as dt

import pytest

from core.config import LedgerOptions
from core.schema import MonthlyDay, WeeklyDow
from scenarios import ops
from scenarios.overlay import (
    add_operation,
    apply_operation,
    apply_scenario,
    commit_scenario,
    compare_models,
    create_scenario,
    remove_operation,
)
from scenarios.operations import describe_operation
from tests.helpers import JAN_1, JAN_31, snapshot


def _scenario(*operations):
    scenario = create_scenario("test")
    scenario.ops.extend(operations)
    return scenario


def test_apply_never_mutates_base(base_model):
    before = snapshot(base_model)
    scenario = _scenario(
        ops.rule_amount_set("rent", 1500.0),
        ops.rule_amount_delta("paycheck", 100.0),
        ops.rule_disable("card_payment"),
        ops.rule_recurrence_set("rent", WeeklyDow(day_of_week=0)),
        ops.add_oneoff("2024-01-05", "Bonus", 500.0),
        ops.remove_oneoff("gift"),
        ops.settings_set("safeSurplus.buffer", 900),
    )
    scenario_before = scenario.model_dump(mode="json")

    effective = apply_scenario(base_model, scenario)

    assert snapshot(base_model) == before
    assert scenario.model_dump(mode="json") == scenario_before
    assert effective.find_rule("rent").amount == 1500.0
    assert effective.settings.safe_surplus.buffer == 900


def test_amount_set_is_idempotent(base_model):
    once = apply_scenario(base_model, _scenario(ops.rule_amount_set("rent", 1500.0)))
    twice = apply_scenario(base_model, _scenario(ops.rule_amount_set("rent", 1500.0), ops.rule_amount_set("rent", 1500.0)))
    assert snapshot(once) == snapshot(twice)


def test_amount_delta_compounds(base_model):
    op = ops.rule_amount_delta("paycheck", 250.0)
    effective = apply_scenario(base_model, _scenario(op, op))
    assert effective.find_rule("paycheck").amount == 2500.0


def test_disable_and_reenable(base_model):
    effective = apply_scenario(base_model, _scenario(ops.rule_disable("rent")))
    assert effective.find_rule("rent").enabled is False
    effective = apply_scenario(effective, _scenario(ops.rule_disable("rent", disabled=False)))
    assert effective.find_rule("rent").enabled is True


def test_recurrence_set_drops_follows(base_model):
    base_model.find_rule("card_payment").follows_rule_id = "paycheck"
    effective = apply_scenario(base_model, _scenario(ops.rule_recurrence_set("card_payment", MonthlyDay(day=3))))
    rule = effective.find_rule("card_payment")
    assert rule.recurrence == MonthlyDay(day=3)
    assert rule.follows_rule_id is None


def test_add_oneoff_is_tagged_and_not_idempotent(base_model):
    op = ops.add_oneoff(dt.date(2024, 1, 5), "Bonus", 500.0)
    effective = apply_scenario(base_model, _scenario(op, op))
    added = [o for o in effective.one_offs if o.name == "Bonus"]
    assert len(added) == 2
    assert added[0].tags == ["scenario"]
    assert added[0].category == "scenario"
    assert added[0].id == op.one_off_id


def test_remove_oneoff(base_model):
    effective = apply_scenario(base_model, _scenario(ops.remove_oneoff("gift"), ops.remove_oneoff("missing")))
    assert effective.one_offs == []


def test_unknown_rule_is_ignored(base_model):
    effective = apply_scenario(base_model, _scenario(ops.rule_amount_set("nope", 1.0), ops.rule_disable("nope")))
    assert snapshot(effective) == snapshot(base_model)


def test_settings_set_creates_missing_levels(base_model):
    effective = apply_scenario(
        base_model,
        _scenario(ops.settings_set("forecastHorizonDays", 30), ops.settings_set("display.theme.name", "dark")),
    )
    assert effective.settings.forecast_horizon_days == 30
    assert effective.settings.display.model_dump()["theme"] == {"name": "dark"}


@pytest.mark.parametrize(
    ("path", "value"),
    [
        ("safeSurplus.floor", None),
        ("safeSurplus.mode", "aggressive"),
        ("forecastHorizonDays", "soon"),
    ],
)
def test_settings_set_skips_null_and_rejected_values(base_model, path, value):
    effective = apply_scenario(
        base_model,
        _scenario(ops.settings_set(path, value), ops.settings_set("safeSurplus.buffer", 450.0)),
    )
    assert effective.settings.safe_surplus.floor == 2000.0
    assert effective.settings.safe_surplus.mode == "next_month_trough"
    assert effective.settings.forecast_horizon_days == 180
    assert effective.settings.safe_surplus.buffer == 450.0


def test_apply_operation_mutates_in_place(base_model):
    apply_operation(base_model, ops.rule_amount_set("rent", 10.0))
    assert base_model.find_rule("rent").amount == 10.0


def test_add_operation_replaces_same_type_same_rule():
    scenario = create_scenario()
    add_operation(scenario, ops.rule_amount_set("rent", 1.0))
    add_operation(scenario, ops.rule_amount_delta("rent", 5.0))
    add_operation(scenario, ops.rule_amount_set("rent", 2.0))
    add_operation(scenario, ops.rule_amount_set("paycheck", 3.0))
    assert [(op.op, op.rule_id) for op in scenario.ops] == [
        ("rule_amount_delta", "rent"),
        ("rule_amount_set", "rent"),
        ("rule_amount_set", "paycheck"),
    ]
    assert scenario.ops[1].amount == 2.0


def test_add_operation_accumulates_other_types():
    scenario = create_scenario()
    add_operation(scenario, ops.rule_recurrence_set("rent", MonthlyDay(day=2)))
    add_operation(scenario, ops.rule_recurrence_set("rent", MonthlyDay(day=3)))
    add_operation(scenario, ops.add_oneoff("2024-01-01", "A", 1.0))
    add_operation(scenario, ops.add_oneoff("2024-01-01", "A", 1.0))
    assert len(scenario.ops) == 4


def test_remove_operation_ignores_bad_index():
    scenario = _scenario(ops.rule_disable("rent"))
    remove_operation(scenario, 5)
    assert len(scenario.ops) == 1
    remove_operation(scenario, 0)
    assert scenario.ops == []


def test_compare_models(base_model):
    effective = apply_scenario(base_model, _scenario(ops.rule_amount_delta("paycheck", 100.0)))
    comparison = compare_models(base_model, effective, LedgerOptions(start_date=JAN_1, end_date=JAN_31))
    assert comparison.base["end_balance"] == 3550.0
    assert comparison.scenario["end_balance"] == 3750.0
    assert comparison.difference["end_balance"] == pytest.approx(200.0)
    assert comparison.difference["total_income"] == pytest.approx(200.0)
    assert comparison.difference["total_expenses"] == 0.0


def test_commit_scenario_touches_updated_at(base_model):
    committed = commit_scenario(base_model, _scenario(ops.rule_amount_set("rent", 1.0)))
    assert committed.find_rule("rent").amount == 1.0
    assert committed.meta.updated_at is not None
    assert base_model.meta.updated_at is None


@pytest.mark.parametrize(
    ("op", "expected"),
    [
        (ops.rule_amount_set("rent", 1500.0), 'Set "Rent" to $1,500.00'),
        (ops.rule_amount_delta("rent", 50.0), 'Adjust "Rent" by +$50.00'),
        (ops.rule_amount_delta("rent", -50.0), 'Adjust "Rent" by -$50.00'),
        (ops.rule_disable("rent"), 'Disable "Rent"'),
        (ops.rule_disable("rent", disabled=False), 'Enable "Rent"'),
        (ops.rule_recurrence_set("nope", MonthlyDay(day=1)), 'Change schedule of "nope"'),
        (ops.add_oneoff("2024-03-01", "Bonus", 500.0), "Add one-off: Bonus ($500.00) on 2024-03-01"),
        (ops.remove_oneoff("gift"), "Remove one-off: gift"),
        (ops.settings_set("safeSurplus.buffer", 1), "Change setting: safeSurplus.buffer"),
    ],
)
def test_describe_operation(base_model, op, expected):
    assert describe_operation(op, base_model) == expected
