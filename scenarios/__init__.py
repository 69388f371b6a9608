"""
Scenarios — ordered patch operations applied non-destructively to a model.

    from scenarios import ops, create_scenario, add_operation, apply_scenario

    scenario = create_scenario("Raise")
    add_operation(scenario, ops.rule_amount_delta("paycheck", 250))
    effective = apply_scenario(base_model, scenario)
"""

from . import operations as ops
from .operations import REPLACEABLE_OPS, describe_operation
from .overlay import (
    COMPARED_FIELDS,
    ScenarioComparison,
    add_operation,
    apply_operation,
    apply_scenario,
    commit_scenario,
    compare_models,
    create_scenario,
    describe_scenario,
    remove_operation,
    set_settings_path,
)

__all__ = [
    "ops",
    "REPLACEABLE_OPS",
    "describe_operation",
    "COMPARED_FIELDS",
    "ScenarioComparison",
    "add_operation",
    "apply_operation",
    "apply_scenario",
    "commit_scenario",
    "compare_models",
    "create_scenario",
    "describe_scenario",
    "remove_operation",
    "set_settings_path",
]
