import datetime as dt

import pytest

from core.schema import BusinessDaySettings, Settings
from engine.business_day import (
    adjust_date,
    adjust_transaction,
    business_days_in_month,
    is_business_day,
    is_weekend,
    next_business_day,
    prev_business_day,
)
from engine.events import Transaction

SATURDAY = dt.date(2024, 6, 1)
SUNDAY = dt.date(2024, 6, 2)
MONDAY = dt.date(2024, 6, 3)
FRIDAY = dt.date(2024, 5, 31)


def test_weekend_detection():
    assert is_weekend(SATURDAY)
    assert is_weekend(SUNDAY)
    assert not is_weekend(MONDAY)


def test_weekends_count_as_business_days_when_policy_off():
    policy = BusinessDaySettings(weekends_are_non_business_days=False)
    assert is_business_day(SATURDAY, policy)
    assert not is_business_day(SATURDAY)


@pytest.mark.parametrize(
    ("date", "mode", "expected"),
    [
        (SATURDAY, "next_business_day", MONDAY),
        (SUNDAY, "next_business_day", MONDAY),
        (SATURDAY, "prev_business_day", FRIDAY),
        (SUNDAY, "prev_business_day", FRIDAY),
        (SATURDAY, "none", SATURDAY),
        (MONDAY, "next_business_day", MONDAY),
        (MONDAY, "prev_business_day", MONDAY),
    ],
)
def test_adjust_date(date, mode, expected):
    assert adjust_date(date, mode) == expected


def test_adjust_date_is_noop_when_weekends_are_business_days():
    policy = BusinessDaySettings(weekends_are_non_business_days=False)
    assert adjust_date(SATURDAY, "next_business_day", policy) == SATURDAY


def test_next_and_prev_are_strict():
    assert next_business_day(MONDAY) == dt.date(2024, 6, 4)
    assert prev_business_day(MONDAY) == FRIDAY


def test_adjust_transaction_keeps_original_date():
    tx = Transaction(date=SATURDAY, name="Rent", account_id="checking", kind="expense", amount=-1.0,
                     business_day_adjustment="prev_business_day")
    adjusted = adjust_transaction(tx, Settings())
    assert adjusted.date == FRIDAY
    assert adjusted.original_date == SATURDAY
    assert adjusted.was_adjusted
    assert tx.date == SATURDAY


def test_unadjusted_transaction_is_not_flagged():
    tx = Transaction(date=MONDAY, name="Rent", account_id="checking", kind="expense", amount=-1.0,
                     business_day_adjustment="next_business_day")
    adjusted = adjust_transaction(tx)
    assert adjusted.date == MONDAY
    assert adjusted.original_date == MONDAY
    assert not adjusted.was_adjusted


def test_business_days_in_february_2024():
    assert business_days_in_month(2024, 2) == 21
