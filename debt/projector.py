"""
Debt payoff projection — monthly amortization with extra and lump-sum payments.

Monthly loop while balance > 0 and month < max_months:
  1. interest = balance * APR/100/12, added to balance and running total
  2. a lump sum dated in the current calendar month pays min(lump, balance)
  3. regular payment pays min(minimum + extra, balance)
  4. balance is clamped at zero

The minimum payment is the |amount| of the linked expense rule when that rule
exists with a non-zero amount, otherwise the credit-card style
min(principal, max(25, 1% of principal + one month's interest)).

Inputs are never mutated; every projection works on local copies.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import asdict, dataclass, field
from typing import List, Optional

from dateutil.relativedelta import relativedelta

from core.config import MAX_PAYOFF_MONTHS, MIN_PAYMENT_FLOOR, MIN_PAYMENT_PRINCIPAL_PCT
from core.schema import Debt, LumpSum, Model
from core.utils import format_currency, month_key, to_date

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Rates
# ---------------------------------------------------------------------------

def monthly_rate(apr: float) -> float:
    """APR in percent (16.5 == 16.5%) to a monthly decimal rate."""
    return (apr / 100.0) / 12.0


def daily_rate(apr: float) -> float:
    return (apr / 100.0) / 365.0


def interest_for_days(principal: float, apr: float, days: int) -> float:
    return principal * daily_rate(apr) * days


def minimum_payment(principal: float, apr: float) -> float:
    """Greater of $25 and (1% of principal + a month's interest), capped at the principal."""
    if principal <= 0:
        return 0.0
    calculated = principal * monthly_rate(apr) + principal * MIN_PAYMENT_PRINCIPAL_PCT
    return min(principal, max(MIN_PAYMENT_FLOOR, calculated))


def linked_minimum_payment(debt: Debt, model: Optional[Model]) -> float:
    """|amount| of the debt's linked payment rule, or 0.0 when unlinked/unresolved."""
    if not debt.min_payment_rule_id or model is None:
        return 0.0
    rule = model.find_rule(debt.min_payment_rule_id)
    if rule is None:
        return 0.0
    return abs(rule.amount or 0.0)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PayoffRow:
    month: int
    date: dt.date
    payment: float
    lump_sum: float
    interest: float
    principal: float
    balance: float
    total_paid: float
    total_interest: float

    def to_dict(self) -> dict:
        out = asdict(self)
        out["date"] = self.date.isoformat()
        return out


@dataclass
class PayoffSchedule:
    is_paid_off: bool
    message: str
    monthly_payment: float = 0.0
    original_principal: float = 0.0
    final_balance: float = 0.0
    total_interest: float = 0.0
    total_paid: float = 0.0
    payoff_date: Optional[dt.date] = None
    payoff_months: Optional[int] = None
    schedule: List[PayoffRow] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "is_paid_off": self.is_paid_off,
            "message": self.message,
            "monthly_payment": self.monthly_payment,
            "original_principal": self.original_principal,
            "final_balance": self.final_balance,
            "total_interest": self.total_interest,
            "total_paid": self.total_paid,
            "payoff_date": self.payoff_date.isoformat() if self.payoff_date else None,
            "payoff_months": self.payoff_months,
            "schedule": [row.to_dict() for row in self.schedule],
        }


@dataclass
class Strategy:
    name: str
    payment: float
    months: Optional[int]
    total_interest: float
    payoff_date: Optional[dt.date]
    interest_saved: Optional[float] = None
    months_saved: Optional[int] = None

    def to_dict(self) -> dict:
        out = asdict(self)
        out["payoff_date"] = self.payoff_date.isoformat() if self.payoff_date else None
        return out


@dataclass
class DebtProjection:
    debt: Debt
    projection: PayoffSchedule


@dataclass
class DebtFreeProjection:
    has_debts: bool
    message: str
    total_debts: int = 0
    total_original_principal: float = 0.0
    total_interest: float = 0.0
    all_paid_off: bool = False
    debt_free_date: Optional[dt.date] = None
    projections: List[DebtProjection] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "has_debts": self.has_debts,
            "message": self.message,
            "total_debts": self.total_debts,
            "total_original_principal": self.total_original_principal,
            "total_interest": self.total_interest,
            "all_paid_off": self.all_paid_off,
            "debt_free_date": self.debt_free_date.isoformat() if self.debt_free_date else None,
            "projections": [
                {"debt": p.debt.to_dict(), "projection": p.projection.to_dict()}
                for p in self.projections
            ],
        }


@dataclass
class DebtSummary:
    name: str
    principal: float
    apr: float
    monthly_payment: float
    payoff_date: Optional[dt.date]
    payoff_months: Optional[int]
    total_interest: float
    total_cost: float
    is_paid_off: bool

    def to_dict(self) -> dict:
        out = asdict(self)
        out["payoff_date"] = self.payoff_date.isoformat() if self.payoff_date else None
        return out


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------

def project_payoff(
    debt: Debt,
    *,
    start_date: Optional[dt.date] = None,
    max_months: int = MAX_PAYOFF_MONTHS,
    extra_monthly: Optional[float] = None,
    lump_sums: Optional[List[LumpSum]] = None,
    model: Optional[Model] = None,
) -> PayoffSchedule:
    """
    Month-by-month payoff projection for one debt.

    Parameters
    ----------
    debt : Debt
        The debt to project. Read only.
    start_date : date, optional
        Date of the first scheduled payment; today when omitted.
    max_months : int
        Projection cap; a balance still open after this many months is
        reported as not paid off.
    extra_monthly : float, optional
        Defaults to debt.extra_monthly_payment.
    lump_sums : list of LumpSum, optional
        Defaults to debt.lump_sums. Only the first lump sum (by date) in each
        calendar month is applied.
    model : Model, optional
        Used to resolve debt.min_payment_rule_id.

    Returns
    -------
    PayoffSchedule
    """
    start = to_date(start_date) if start_date is not None else dt.date.today()
    extra = debt.extra_monthly_payment if extra_monthly is None else extra_monthly
    lumps = sorted(debt.lump_sums if lump_sums is None else lump_sums, key=lambda ls: ls.date)

    min_payment = linked_minimum_payment(debt, model) or minimum_payment(debt.principal, debt.apr)
    total_payment = min_payment + (extra or 0.0)

    if total_payment <= 0:
        return PayoffSchedule(
            is_paid_off=False,
            message="No payments configured",
            original_principal=debt.principal,
            final_balance=debt.principal,
        )

    rate = monthly_rate(debt.apr)
    rows: List[PayoffRow] = []
    balance = debt.principal
    current = start
    total_interest = 0.0
    total_paid = 0.0
    month = 0

    while balance > 0 and month < max_months:
        month += 1

        interest = balance * rate
        total_interest += interest
        balance += interest

        key = month_key(current)
        lump = next((ls for ls in lumps if month_key(ls.date) == key), None)
        lump_amount = 0.0
        if lump is not None:
            lump_amount = min(lump.amount, balance)
            balance -= lump_amount
            total_paid += lump_amount

        payment = min(total_payment, balance)
        balance -= payment
        total_paid += payment
        balance = max(0.0, balance)

        rows.append(
            PayoffRow(
                month=month,
                date=current,
                payment=payment,
                lump_sum=lump_amount,
                interest=interest,
                principal=payment - interest + lump_amount,
                balance=balance,
                total_paid=total_paid,
                total_interest=total_interest,
            )
        )
        current = start + relativedelta(months=month)

    paid_off = balance <= 0
    payoff_date = rows[-1].date if paid_off and rows else None
    if paid_off:
        when = payoff_date.strftime("%B %Y") if payoff_date else start.strftime("%B %Y")
        message = f"Paid off in {month} months ({when})"
    else:
        message = f"Not paid off within {max_months} months"

    logger.debug("debt %s: %s", debt.id, message)
    return PayoffSchedule(
        is_paid_off=paid_off,
        message=message,
        monthly_payment=total_payment,
        original_principal=debt.principal,
        final_balance=balance,
        total_interest=total_interest,
        total_paid=total_paid,
        payoff_date=payoff_date,
        payoff_months=month if paid_off else None,
        schedule=rows,
    )


def compare_strategies(
    debt: Debt,
    model: Optional[Model] = None,
    *,
    start_date: Optional[dt.date] = None,
) -> List[Strategy]:
    """Minimum only, with the debt's configured extra (when > 0), and double payment."""
    start = start_date or dt.date.today()
    def base_months(schedule: PayoffSchedule) -> int:
        return schedule.payoff_months or MAX_PAYOFF_MONTHS

    min_only = project_payoff(debt, start_date=start, extra_monthly=0.0, model=model)
    strategies = [
        Strategy(
            name="Minimum Payment Only",
            payment=min_only.monthly_payment,
            months=min_only.payoff_months,
            total_interest=min_only.total_interest,
            payoff_date=min_only.payoff_date,
        )
    ]

    if debt.extra_monthly_payment > 0:
        with_extra = project_payoff(debt, start_date=start, model=model)
        strategies.append(
            Strategy(
                name=f"With {format_currency(debt.extra_monthly_payment)} Extra",
                payment=with_extra.monthly_payment,
                months=with_extra.payoff_months,
                total_interest=with_extra.total_interest,
                payoff_date=with_extra.payoff_date,
                interest_saved=min_only.total_interest - with_extra.total_interest,
                months_saved=base_months(min_only) - base_months(with_extra),
            )
        )

    doubled = project_payoff(
        debt,
        start_date=start,
        extra_monthly=debt.extra_monthly_payment + min_only.monthly_payment,
        model=model,
    )
    strategies.append(
        Strategy(
            name="Double Payment",
            payment=doubled.monthly_payment,
            months=doubled.payoff_months,
            total_interest=doubled.total_interest,
            payoff_date=doubled.payoff_date,
            interest_saved=min_only.total_interest - doubled.total_interest,
            months_saved=base_months(min_only) - base_months(doubled),
        )
    )
    return strategies


def project_all_debts(
    debts: List[Debt],
    model: Optional[Model] = None,
    *,
    start_date: Optional[dt.date] = None,
) -> DebtFreeProjection:
    """Project every debt; the debt-free date is the latest payoff date among them."""
    if not debts:
        return DebtFreeProjection(has_debts=False, message="No debts")

    start = start_date or dt.date.today()
    result = DebtFreeProjection(has_debts=True, message="", total_debts=len(debts), all_paid_off=True)

    for debt in debts:
        projection = project_payoff(debt, start_date=start, model=model)
        result.projections.append(DebtProjection(debt=debt, projection=projection))
        result.total_original_principal += debt.principal
        result.total_interest += projection.total_interest

        if not projection.is_paid_off:
            result.all_paid_off = False
        elif projection.payoff_date is not None:
            if result.debt_free_date is None or projection.payoff_date > result.debt_free_date:
                result.debt_free_date = projection.payoff_date

    if result.all_paid_off:
        when = result.debt_free_date.strftime("%B %Y") if result.debt_free_date else start.strftime("%B %Y")
        result.message = f"Debt-free by {when}"
    else:
        result.message = "Some debts will not be paid off with current payments"
    return result


def debt_summary(
    debt: Debt,
    model: Optional[Model] = None,
    *,
    start_date: Optional[dt.date] = None,
) -> DebtSummary:
    projection = project_payoff(debt, start_date=start_date, model=model)
    return DebtSummary(
        name=debt.name,
        principal=debt.principal,
        apr=debt.apr,
        monthly_payment=projection.monthly_payment,
        payoff_date=projection.payoff_date,
        payoff_months=projection.payoff_months,
        total_interest=projection.total_interest,
        total_cost=debt.principal + projection.total_interest,
        is_paid_off=projection.is_paid_off,
    )
