"""
Model document schema — accounts, rules, one-offs, debts, settings, scenarios.

Everything the persistence layer round-trips lives here as a pydantic model.
Python attributes are snake_case; the serialized document uses camelCase keys
(`startingBalances`, `followsRuleId`, ...) so files written by earlier
versions load unchanged.

Derived, never-persisted records (transactions, ledger entries, summaries)
are plain dataclasses and live next to the code that produces them.
"""

from __future__ import annotations

import datetime as dt
import random
import string
import time
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .config import DEFAULT_RULE_PRIORITY

SCHEMA_VERSION = 1
DEFAULT_CURRENCY = "USD"
DEFAULT_TIMEZONE = "America/Chicago"

AccountType = Literal["checking", "savings", "reserve"]
RuleKind = Literal["income", "expense", "transfer"]
BusinessDayAdjustment = Literal["none", "next_business_day", "prev_business_day"]
SafeSurplusMode = Literal["next_month_trough", "floor"]


class Document(BaseModel):
    """Base for every persisted object: camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class _OpenDocument(Document):
    # settings paths may introduce keys the schema does not know about
    model_config = ConfigDict(extra="allow")


# ---------------------------------------------------------------------------
# Recurrence variants
# ---------------------------------------------------------------------------

class MonthlyDay(Document):
    type: Literal["monthly_day"] = "monthly_day"
    day: int = 1


class SemimonthlyDays(Document):
    type: Literal["semimonthly_days"] = "semimonthly_days"
    day1: int = 1
    day2: int = 15


class BiweeklyAnchor(Document):
    type: Literal["biweekly_anchor"] = "biweekly_anchor"
    anchor_date: dt.date


class WeeklyDow(Document):
    """Weekly on a fixed weekday, 0 = Monday ... 6 = Sunday."""

    type: Literal["weekly_dow"] = "weekly_dow"
    day_of_week: int = 0


Recurrence = Annotated[
    Union[MonthlyDay, SemimonthlyDays, BiweeklyAnchor, WeeklyDow],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Model entities
# ---------------------------------------------------------------------------

class ModelMeta(Document):
    schema_version: int = SCHEMA_VERSION
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
    currency: str = DEFAULT_CURRENCY
    timezone: str = DEFAULT_TIMEZONE


class Account(Document):
    id: str
    name: str = "New Account"
    type: AccountType = "checking"
    include_in_surplus: bool = True
    note: str = ""


class StartingBalance(Document):
    account_id: str = "checking"
    date: dt.date
    amount: float = 0.0
    note: str = ""


class Rule(Document):
    """
    A recurring income, expense or transfer.

    `amount` may be authored with either sign; the ledger normalises it by
    `kind`. A rule carries its own `recurrence` or borrows one through
    `follows_rule_id` (a single hop, chains are not followed).
    """

    id: str
    name: str = "New Rule"
    account_id: str = "checking"
    kind: RuleKind = "expense"
    amount: float = 0.0
    category: str = ""
    tags: List[str] = Field(default_factory=list)
    enabled: bool = True
    priority: int = DEFAULT_RULE_PRIORITY
    business_day_adjustment: BusinessDayAdjustment = "none"
    valid_from: Optional[dt.date] = None
    valid_to: Optional[dt.date] = None
    recurrence: Optional[Recurrence] = None
    follows_rule_id: Optional[str] = None
    to_account_id: Optional[str] = None


class OneOff(Document):
    id: str
    date: dt.date
    name: str = "One-time Transaction"
    account_id: str = "checking"
    amount: float = 0.0
    category: str = ""
    tags: List[str] = Field(default_factory=list)
    note: str = ""


class LumpSum(Document):
    date: dt.date
    amount: float


class Debt(Document):
    id: str
    name: str = "New Debt"
    apr: float = 0.0
    principal: float = 0.0
    min_payment_rule_id: Optional[str] = None
    extra_monthly_payment: float = 0.0
    lump_sums: List[LumpSum] = Field(default_factory=list)


class SafeSurplusSettings(_OpenDocument):
    mode: SafeSurplusMode = "next_month_trough"
    buffer: float = 300.0
    floor: float = 2000.0


class BusinessDaySettings(_OpenDocument):
    weekends_are_non_business_days: bool = True


class DisplaySettings(_OpenDocument):
    date_format: str = "MMM d, yyyy"
    show_rule_ids: bool = False


class Settings(_OpenDocument):
    forecast_horizon_days: int = 180
    safe_surplus: SafeSurplusSettings = Field(default_factory=SafeSurplusSettings)
    business_days: BusinessDaySettings = Field(default_factory=BusinessDaySettings)
    display: DisplaySettings = Field(default_factory=DisplaySettings)


class Model(Document):
    meta: ModelMeta = Field(default_factory=ModelMeta)
    accounts: List[Account] = Field(default_factory=list)
    starting_balances: List[StartingBalance] = Field(default_factory=list)
    rules: List[Rule] = Field(default_factory=list)
    one_offs: List[OneOff] = Field(default_factory=list)
    debts: List[Debt] = Field(default_factory=list)
    settings: Settings = Field(default_factory=Settings)

    def clone(self) -> "Model":
        """Deep copy. The only way a transformation should obtain a model it may mutate."""
        return self.model_copy(deep=True)

    def find_rule(self, rule_id: Optional[str]) -> Optional[Rule]:
        if rule_id is None:
            return None
        return next((r for r in self.rules if r.id == rule_id), None)

    def find_account(self, account_id: Optional[str]) -> Optional[Account]:
        return next((a for a in self.accounts if a.id == account_id), None)


# ---------------------------------------------------------------------------
# Scenario operations
# ---------------------------------------------------------------------------

class RuleAmountSet(Document):
    op: Literal["rule_amount_set"] = "rule_amount_set"
    rule_id: str
    amount: float


class RuleAmountDelta(Document):
    op: Literal["rule_amount_delta"] = "rule_amount_delta"
    rule_id: str
    delta: float


class RuleDisable(Document):
    op: Literal["rule_disable"] = "rule_disable"
    rule_id: str
    disabled: bool = True


class RuleRecurrenceSet(Document):
    op: Literal["rule_recurrence_set"] = "rule_recurrence_set"
    rule_id: str
    recurrence: Recurrence


class AddOneOff(Document):
    op: Literal["add_oneoff"] = "add_oneoff"
    one_off_id: Optional[str] = None
    date: dt.date
    name: str = "Scenario One-Off"
    amount: float = 0.0
    account_id: str = "checking"
    category: str = "scenario"
    note: str = ""


class RemoveOneOff(Document):
    op: Literal["remove_oneoff"] = "remove_oneoff"
    one_off_id: str


class SettingsSet(Document):
    op: Literal["settings_set"] = "settings_set"
    path: str
    value: Any = None


Operation = Annotated[
    Union[
        RuleAmountSet,
        RuleAmountDelta,
        RuleDisable,
        RuleRecurrenceSet,
        AddOneOff,
        RemoveOneOff,
        SettingsSet,
    ],
    Field(discriminator="op"),
]


class ScenarioMeta(Document):
    name: str = ""
    created_at: Optional[dt.datetime] = None


class Scenario(Document):
    meta: ScenarioMeta = Field(default_factory=ScenarioMeta)
    ops: List[Operation] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def _now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def generate_id(prefix: str = "item") -> str:
    """`<prefix>_<epoch ms>_<9 random chars>`, unique enough for one document."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


def create_empty_model() -> Model:
    now = _now()
    return Model(
        meta=ModelMeta(created_at=now, updated_at=now),
        accounts=[Account(id="checking", name="Checking", type="checking")],
    )


def create_empty_scenario(name: str = "") -> Scenario:
    return Scenario(meta=ScenarioMeta(name=name, created_at=_now()))


def touch_model(model: Model) -> Model:
    model.meta.updated_at = _now()
    return model


def _with_id(data: Dict[str, Any], prefix: str) -> Dict[str, Any]:
    data = dict(data)
    if not data.get("id"):
        data["id"] = generate_id(prefix)
    return data


def create_account(**data: Any) -> Account:
    return Account.model_validate(_with_id(data, "acc"))


def create_starting_balance(**data: Any) -> StartingBalance:
    data.setdefault("date", dt.date.today())
    return StartingBalance.model_validate(data)


def create_rule(**data: Any) -> Rule:
    """A rule with neither a recurrence nor a followed rule gets monthly on the 1st."""
    data = _with_id(data, "rule")
    if not data.get("recurrence") and not (data.get("follows_rule_id") or data.get("followsRuleId")):
        data["recurrence"] = MonthlyDay(day=1)
    return Rule.model_validate(data)


def create_one_off(**data: Any) -> OneOff:
    data = _with_id(data, "oneoff")
    data.setdefault("date", dt.date.today())
    return OneOff.model_validate(data)


def create_debt(**data: Any) -> Debt:
    return Debt.model_validate(_with_id(data, "debt"))
