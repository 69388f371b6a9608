import datetime as dt

import pytest

from core.schema import Debt, LumpSum, Model, MonthlyDay, Rule
from debt.projector import (
    compare_strategies,
    daily_rate,
    debt_summary,
    interest_for_days,
    minimum_payment,
    monthly_rate,
    project_all_debts,
    project_payoff,
)
from tests.helpers import JAN_1


def _model_with_payment(amount: float) -> Model:
    return Model(rules=[Rule(id="pay", name="Pay", kind="expense", amount=amount, recurrence=MonthlyDay(day=1))])


def test_rates():
    assert monthly_rate(24.0) == pytest.approx(0.02)
    assert daily_rate(36.5) == pytest.approx(0.001)
    assert interest_for_days(1000.0, 36.5, 10) == pytest.approx(10.0)


@pytest.mark.parametrize(
    ("principal", "apr", "expected"),
    [
        (1200.0, 24.0, 36.0),
        (100.0, 0.0, 25.0),
        (10.0, 0.0, 10.0),
        (0.0, 24.0, 0.0),
    ],
)
def test_minimum_payment(principal, apr, expected):
    assert minimum_payment(principal, apr) == pytest.approx(expected)


def test_fixed_payment_pays_off_in_seven_months():
    debt = Debt(id="d", name="Card", apr=24.0, principal=1200.0, min_payment_rule_id="pay")
    result = project_payoff(debt, start_date=JAN_1, model=_model_with_payment(-200.0))

    assert result.is_paid_off
    assert result.payoff_months == 7
    assert len(result.schedule) == 7
    assert result.monthly_payment == 200.0
    assert all(row.payment == 200.0 for row in result.schedule[:6])
    assert result.schedule[-1].payment < 200.0
    assert result.schedule[-1].payment == pytest.approx(91.57, abs=0.01)
    assert result.schedule[0].interest == pytest.approx(24.0)
    assert result.final_balance == 0.0
    assert result.payoff_date == dt.date(2024, 7, 1)
    assert result.total_paid == pytest.approx(1200.0 + result.total_interest)
    assert result.message == "Paid off in 7 months (July 2024)"


def test_unlinked_debt_uses_formula_minimum():
    debt = Debt(id="d", apr=24.0, principal=1200.0, extra_monthly_payment=164.0)
    result = project_payoff(debt, start_date=JAN_1)
    assert result.monthly_payment == pytest.approx(200.0)
    assert result.payoff_months == 7


def test_lump_sum_in_month_shortens_payoff():
    debt = Debt(
        id="d",
        apr=0.0,
        principal=1200.0,
        min_payment_rule_id="pay",
        lump_sums=[LumpSum(date=dt.date(2024, 2, 10), amount=500.0)],
    )
    model = _model_with_payment(100.0)
    with_lump = project_payoff(debt, start_date=JAN_1, model=model)
    without = project_payoff(debt, start_date=JAN_1, model=model, lump_sums=[])

    assert with_lump.payoff_months == 7
    assert with_lump.schedule[1].lump_sum == 500.0
    assert with_lump.schedule[1].principal == pytest.approx(600.0)
    assert without.payoff_months == 12


def test_not_paid_off_within_cap():
    debt = Debt(id="d", apr=24.0, principal=10000.0, min_payment_rule_id="pay")
    result = project_payoff(debt, start_date=JAN_1, max_months=12, model=_model_with_payment(50.0))
    assert not result.is_paid_off
    assert result.payoff_date is None
    assert result.payoff_months is None
    assert len(result.schedule) == 12
    assert result.message == "Not paid off within 12 months"


def test_no_payment_configured():
    debt = Debt(id="d", apr=10.0, principal=0.0)
    result = project_payoff(debt, start_date=JAN_1)
    assert not result.is_paid_off
    assert result.schedule == []
    assert result.message == "No payments configured"


def test_projection_does_not_mutate_debt():
    debt = Debt(id="d", apr=24.0, principal=1200.0, lump_sums=[LumpSum(date=JAN_1, amount=100.0)])
    before = debt.model_dump()
    project_payoff(debt, start_date=JAN_1, extra_monthly=50.0)
    assert debt.model_dump() == before


def test_compare_strategies(base_model):
    strategies = compare_strategies(base_model.debts[0], base_model, start_date=JAN_1)
    assert [s.name for s in strategies] == ["Minimum Payment Only", "Double Payment"]
    minimum, double = strategies
    assert minimum.months == 7
    assert double.payment == pytest.approx(400.0)
    assert double.months_saved > 0
    assert double.interest_saved > 0


def test_compare_strategies_with_extra(base_model):
    debt = base_model.debts[0].model_copy(update={"extra_monthly_payment": 100.0})
    names = [s.name for s in compare_strategies(debt, base_model, start_date=JAN_1)]
    assert names == ["Minimum Payment Only", "With $100.00 Extra", "Double Payment"]


def test_project_all_debts_reports_latest_payoff(base_model):
    slow = Debt(id="slow", name="Slow", apr=0.0, principal=2400.0, min_payment_rule_id="card_payment")
    overall = project_all_debts([base_model.debts[0], slow], base_model, start_date=JAN_1)
    assert overall.has_debts
    assert overall.all_paid_off
    assert overall.total_debts == 2
    assert overall.total_original_principal == 3600.0
    assert overall.debt_free_date == dt.date(2024, 12, 1)
    assert overall.message == "Debt-free by December 2024"


def test_project_all_debts_with_unpaid_debt():
    stuck = Debt(id="stuck", apr=0.0, principal=100.0)
    overall = project_all_debts([stuck], Model(), start_date=JAN_1)
    assert overall.all_paid_off
    never = Debt(id="never", apr=50.0, principal=100000.0, min_payment_rule_id="pay")
    overall = project_all_debts([never], _model_with_payment(10.0), start_date=JAN_1)
    assert not overall.all_paid_off
    assert overall.message == "Some debts will not be paid off with current payments"


def test_no_debts():
    overall = project_all_debts([], start_date=JAN_1)
    assert not overall.has_debts
    assert overall.message == "No debts"


def test_debt_summary(base_model):
    summary = debt_summary(base_model.debts[0], base_model, start_date=JAN_1)
    assert summary.name == "Card"
    assert summary.payoff_months == 7
    assert summary.total_cost == pytest.approx(1200.0 + summary.total_interest)
