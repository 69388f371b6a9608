import datetime as dt

from core.schema import Model, MonthlyDay, OneOff, Rule
from engine.pipeline import generate_transactions, one_off_to_transaction, sort_transactions
from engine.events import Transaction

DAY = dt.date(2024, 1, 5)


def _rule(rule_id, kind, priority=100, day=5):
    return Rule(id=rule_id, name=rule_id, kind=kind, amount=10.0, priority=priority, recurrence=MonthlyDay(day=day))


def test_same_day_same_priority_orders_income_transfer_expense():
    model = Model(rules=[_rule("exp", "expense"), _rule("xfer", "transfer"), _rule("inc", "income")])
    txs = generate_transactions(model, DAY, DAY)
    assert [t.kind for t in txs] == ["income", "transfer", "expense"]


def test_priority_beats_kind():
    model = Model(rules=[_rule("inc", "income", priority=100), _rule("exp", "expense", priority=10)])
    txs = generate_transactions(model, DAY, DAY)
    assert [t.rule_id for t in txs] == ["exp", "inc"]


def test_one_off_sorts_before_default_priority_rules():
    model = Model(
        rules=[_rule("inc", "income")],
        one_offs=[OneOff(id="o", date=DAY, name="Refund", amount=-5.0)],
    )
    txs = generate_transactions(model, DAY, DAY)
    assert [t.source_id for t in txs] == ["o", "inc"]


def test_sort_is_stable_for_full_ties():
    model = Model(rules=[_rule("first", "expense"), _rule("second", "expense"), _rule("third", "expense")])
    txs = generate_transactions(model, DAY, DAY)
    assert [t.rule_id for t in txs] == ["first", "second", "third"]


def test_sort_orders_by_date_first():
    late = Transaction(date=dt.date(2024, 1, 2), name="a", account_id="c", kind="income", amount=1.0, priority=0)
    early = Transaction(date=dt.date(2024, 1, 1), name="b", account_id="c", kind="expense", amount=1.0, priority=999)
    assert sort_transactions([late, early]) == [early, late]


def test_one_off_kind_follows_sign():
    expense = one_off_to_transaction(OneOff(id="x", date=DAY, amount=-20.0))
    income = one_off_to_transaction(OneOff(id="y", date=DAY, amount=20.0, category="bonus"))
    assert expense.kind == "expense"
    assert expense.category == "one-off"
    assert expense.priority == 50
    assert expense.is_one_off
    assert income.kind == "income"
    assert income.category == "bonus"


def test_one_offs_outside_window_are_dropped():
    model = Model(one_offs=[OneOff(id="o", date=dt.date(2024, 2, 1), amount=1.0)])
    assert generate_transactions(model, dt.date(2024, 1, 1), dt.date(2024, 1, 31)) == []


def test_weekend_occurrence_is_moved(base_model):
    # 2024-06-01 is a Saturday
    rent = base_model.find_rule("rent")
    rent.business_day_adjustment = "prev_business_day"
    txs = generate_transactions(base_model, dt.date(2024, 6, 1), dt.date(2024, 6, 1))
    moved = next(t for t in txs if t.rule_id == "rent")
    assert moved.date == dt.date(2024, 5, 31)
    assert moved.original_date == dt.date(2024, 6, 1)
    assert moved.was_adjusted


def test_inverted_window_is_empty(base_model):
    assert generate_transactions(base_model, dt.date(2024, 2, 1), dt.date(2024, 1, 1)) == []
