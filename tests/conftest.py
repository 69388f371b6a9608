import datetime as dt

import pytest

from core.schema import (
    Account,
    Debt,
    Model,
    MonthlyDay,
    OneOff,
    Rule,
    SemimonthlyDays,
    StartingBalance,
)


@pytest.fixture
def base_model() -> Model:
    return Model(
        accounts=[
            Account(id="checking", name="Checking", type="checking"),
            Account(id="savings", name="Savings", type="savings"),
        ],
        starting_balances=[
            StartingBalance(account_id="checking", date=dt.date(2024, 1, 1), amount=1000.0),
        ],
        rules=[
            Rule(
                id="paycheck",
                name="Paycheck",
                kind="income",
                amount=2000.0,
                category="salary",
                recurrence=SemimonthlyDays(day1=1, day2=15),
            ),
            Rule(
                id="rent",
                name="Rent",
                kind="expense",
                amount=-1200.0,
                category="housing",
                recurrence=MonthlyDay(day=1),
            ),
            Rule(
                id="to_savings",
                name="To savings",
                kind="transfer",
                amount=100.0,
                to_account_id="savings",
                recurrence=MonthlyDay(day=20),
            ),
            Rule(
                id="card_payment",
                name="Card payment",
                kind="expense",
                amount=200.0,
                category="debt",
                recurrence=MonthlyDay(day=25),
            ),
        ],
        one_offs=[
            OneOff(id="gift", date=dt.date(2024, 1, 10), name="Gift", amount=50.0),
        ],
        debts=[
            Debt(id="card", name="Card", apr=24.0, principal=1200.0, min_payment_rule_id="card_payment"),
        ],
    )


@pytest.fixture
def base_model_dict(base_model) -> dict:
    return base_model.to_dict()
