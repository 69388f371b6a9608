"""
Editing session — a working copy of the base model plus an optional scenario
draft, backed by a ModelStore.

The session is an explicit object handed to whatever edits the model (CLI,
notebook, UI); nothing in the engine reads it. Edits mark the session dirty
until save() writes the working copy back through the store; discard()
reloads from the store.

CRUD follows one convention throughout: add_* returns the new item,
update_* returns the updated item or None when the id is unknown, delete_*
returns True/False.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, TypeVar

from core.schema import (
    Account,
    Debt,
    Document,
    Model,
    OneOff,
    Operation,
    Rule,
    Scenario,
    StartingBalance,
    create_account,
    create_debt,
    create_empty_model,
    create_empty_scenario,
    create_one_off,
    create_rule,
    create_starting_balance,
)
from core.utils import DateLike, snake_case, to_date
from scenarios.overlay import (
    add_operation,
    apply_scenario,
    commit_scenario,
    remove_operation,
    set_settings_path,
)

from .store import ModelStore
from .validators import ValidationResult, validate_model

logger = logging.getLogger(__name__)

D = TypeVar("D", bound=Document)


def _updated(item: D, updates: Dict[str, Any]) -> D:
    """Copy of `item` with `updates` (camelCase or snake_case keys) applied and re-validated."""
    data = item.model_dump()
    data.update({snake_case(k): v for k, v in updates.items()})
    return type(item).model_validate(data)


class ModelSession:
    def __init__(self, store: ModelStore):
        self.store = store
        self._model: Optional[Model] = None
        self._scenario: Optional[Scenario] = None
        self._dirty = False

    # ---------------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------------

    def load(self) -> Model:
        """Load the base model from the store, or start an empty one."""
        self._model = self.store.load_model() or create_empty_model()
        self._dirty = False
        return self._model

    @property
    def model(self) -> Model:
        if self._model is None:
            self.load()
        return self._model

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    def mark_dirty(self) -> None:
        self._dirty = True

    def save(self) -> bool:
        if self._model is None:
            return False
        ok = self.store.save_model(self._model)
        if ok:
            self._dirty = False
        return ok

    def discard(self) -> Model:
        return self.load()

    def replace(self, model: Model) -> Model:
        self._model = model
        self.mark_dirty()
        return model

    def validate(self) -> ValidationResult:
        return validate_model(self.model)

    def clone(self) -> Model:
        return self.model.clone()

    # ---------------------------------------------------------------------
    # Accounts
    # ---------------------------------------------------------------------

    def accounts(self) -> List[Account]:
        return self.model.accounts

    def get_account(self, account_id: str) -> Optional[Account]:
        return self.model.find_account(account_id)

    def add_account(self, **data: Any) -> Account:
        account = create_account(**data)
        self.model.accounts.append(account)
        self.mark_dirty()
        return account

    def update_account(self, account_id: str, **updates: Any) -> Optional[Account]:
        return self._update(self.model.accounts, account_id, updates)

    def delete_account(self, account_id: str) -> bool:
        """Refuses to delete the only checking account."""
        accounts = self.model.accounts
        index = next((i for i, a in enumerate(accounts) if a.id == account_id), None)
        if index is None:
            return False
        if accounts[index].type == "checking":
            if sum(1 for a in accounts if a.type == "checking") <= 1:
                return False
        del accounts[index]
        self.mark_dirty()
        return True

    # ---------------------------------------------------------------------
    # Starting balances (keyed by account id + date)
    # ---------------------------------------------------------------------

    def starting_balances(self) -> List[StartingBalance]:
        return self.model.starting_balances

    def get_starting_balance(self, account_id: str, date: Optional[DateLike] = None) -> Optional[StartingBalance]:
        """Latest balance for the account, or the latest dated on/before `date`."""
        balances = sorted(
            (b for b in self.model.starting_balances if b.account_id == account_id),
            key=lambda b: b.date,
            reverse=True,
        )
        if date is not None:
            cutoff = to_date(date)
            return next((b for b in balances if b.date <= cutoff), None)
        return balances[0] if balances else None

    def add_starting_balance(self, **data: Any) -> StartingBalance:
        balance = create_starting_balance(**data)
        self.model.starting_balances.append(balance)
        self.mark_dirty()
        return balance

    def _find_balance(self, account_id: str, date: DateLike) -> Optional[int]:
        day = to_date(date)
        return next(
            (i for i, b in enumerate(self.model.starting_balances) if b.account_id == account_id and b.date == day),
            None,
        )

    def update_starting_balance(self, account_id: str, date: DateLike, **updates: Any) -> Optional[StartingBalance]:
        index = self._find_balance(account_id, date)
        if index is None:
            return None
        balances = self.model.starting_balances
        balances[index] = _updated(balances[index], updates)
        self.mark_dirty()
        return balances[index]

    def delete_starting_balance(self, account_id: str, date: DateLike) -> bool:
        index = self._find_balance(account_id, date)
        if index is None:
            return False
        del self.model.starting_balances[index]
        self.mark_dirty()
        return True

    # ---------------------------------------------------------------------
    # Rules
    # ---------------------------------------------------------------------

    def rules(self, kind: Optional[str] = None) -> List[Rule]:
        if kind:
            return [r for r in self.model.rules if r.kind == kind]
        return self.model.rules

    def enabled_rules(self) -> List[Rule]:
        return [r for r in self.model.rules if r.enabled]

    def get_rule(self, rule_id: str) -> Optional[Rule]:
        return self.model.find_rule(rule_id)

    def add_rule(self, **data: Any) -> Rule:
        rule = create_rule(**data)
        self.model.rules.append(rule)
        self.mark_dirty()
        return rule

    def update_rule(self, rule_id: str, **updates: Any) -> Optional[Rule]:
        return self._update(self.model.rules, rule_id, updates)

    def delete_rule(self, rule_id: str) -> bool:
        return self._delete(self.model.rules, rule_id)

    # ---------------------------------------------------------------------
    # One-offs
    # ---------------------------------------------------------------------

    def one_offs(self) -> List[OneOff]:
        return self.model.one_offs

    def get_one_off(self, one_off_id: str) -> Optional[OneOff]:
        return next((o for o in self.model.one_offs if o.id == one_off_id), None)

    def add_one_off(self, **data: Any) -> OneOff:
        one_off = create_one_off(**data)
        self.model.one_offs.append(one_off)
        self.mark_dirty()
        return one_off

    def update_one_off(self, one_off_id: str, **updates: Any) -> Optional[OneOff]:
        return self._update(self.model.one_offs, one_off_id, updates)

    def delete_one_off(self, one_off_id: str) -> bool:
        return self._delete(self.model.one_offs, one_off_id)

    # ---------------------------------------------------------------------
    # Debts
    # ---------------------------------------------------------------------

    def debts(self) -> List[Debt]:
        return self.model.debts

    def get_debt(self, debt_id: str) -> Optional[Debt]:
        return next((d for d in self.model.debts if d.id == debt_id), None)

    def add_debt(self, **data: Any) -> Debt:
        debt = create_debt(**data)
        self.model.debts.append(debt)
        self.mark_dirty()
        return debt

    def update_debt(self, debt_id: str, **updates: Any) -> Optional[Debt]:
        return self._update(self.model.debts, debt_id, updates)

    def delete_debt(self, debt_id: str) -> bool:
        return self._delete(self.model.debts, debt_id)

    # ---------------------------------------------------------------------
    # Settings (dotted paths, camelCase or snake_case)
    # ---------------------------------------------------------------------

    def get_setting(self, path: str) -> Any:
        node: Any = self.model.settings.model_dump()
        for key in path.split("."):
            if not isinstance(node, dict):
                return None
            node = node.get(snake_case(key))
        return node

    def set_setting(self, path: str, value: Any) -> Any:
        self.model.settings = set_settings_path(self.model.settings, path, value)
        self.mark_dirty()
        return self.model.settings

    def update_settings(self, **updates: Any) -> Any:
        self.model.settings = _updated(self.model.settings, updates)
        self.mark_dirty()
        return self.model.settings

    # ---------------------------------------------------------------------
    # Scenario draft
    # ---------------------------------------------------------------------

    @property
    def scenario(self) -> Scenario:
        if self._scenario is None:
            self._scenario = self.store.load_scenario() or create_empty_scenario()
        return self._scenario

    def new_scenario(self, name: str = "") -> Scenario:
        self._scenario = create_empty_scenario(name)
        return self._scenario

    def add_scenario_op(self, op: Operation) -> Scenario:
        return add_operation(self.scenario, op)

    def remove_scenario_op(self, index: int) -> Scenario:
        return remove_operation(self.scenario, index)

    def save_scenario(self) -> bool:
        return self.store.save_scenario(self.scenario)

    def clear_scenario(self) -> bool:
        self._scenario = create_empty_scenario()
        return self.store.clear_scenario()

    def effective_model(self) -> Model:
        """Base model with the scenario draft applied; the working copy is untouched."""
        return apply_scenario(self.model, self.scenario)

    def commit_scenario(self) -> Model:
        """Make the effective model the new working copy and clear the draft."""
        ops = len(self.scenario.ops)
        self._model = commit_scenario(self.model, self.scenario)
        self.mark_dirty()
        self.clear_scenario()
        logger.info("session committed %d scenario ops", ops)
        return self._model

    # ---------------------------------------------------------------------
    # Internals
    # ---------------------------------------------------------------------

    def _update(self, items: List[D], item_id: str, updates: Dict[str, Any]) -> Optional[D]:
        index = next((i for i, item in enumerate(items) if getattr(item, "id", None) == item_id), None)
        if index is None:
            return None
        items[index] = _updated(items[index], updates)
        self.mark_dirty()
        return items[index]

    def _delete(self, items: List[Any], item_id: str) -> bool:
        index = next((i for i, item in enumerate(items) if getattr(item, "id", None) == item_id), None)
        if index is None:
            return False
        del items[index]
        self.mark_dirty()
        return True
