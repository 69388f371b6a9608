"""
finsim — command-line front end for the forecasting engine.

    finsim forecast model.json --days 90 --csv ledger.csv
    finsim months model.json --scenario raise.json
    finsim debts model.json --strategies
    finsim scenario model.json raise.json --commit new_model.json
    finsim validate model.json
    finsim init model.json

With no model path, the base model (and scenario draft) saved in the data
directory (FINSIM_DATA_DIR, default ~/.finsim) are used.
"""

from __future__ import annotations

import argparse
import datetime as dt
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import pandas as pd

from core.config import LedgerOptions
from core.exceptions import FinsimError
from core.observability import setup_logging
from core.schema import Model, Scenario, create_empty_model
from core.settings import RuntimeSettings, get_settings
from core.utils import format_currency, to_date
from data_prep.loader import dump_model, load_model_file, load_scenario_file
from data_prep.store import JsonFileStore
from data_prep.validators import validate_model, validate_scenario
from debt.projector import compare_strategies, project_all_debts, project_payoff
from engine.ledger import run_ledger
from reports.export import ledger_to_csv, write_workbook
from reports.frames import entries_frame, schedule_frame, summaries_frame
from reports.summary import monthly_summaries, safe_surplus
from scenarios.overlay import apply_scenario, commit_scenario, compare_models, describe_scenario

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

def _load_inputs(args: argparse.Namespace, settings: RuntimeSettings):
    """(base model, scenario or None) from explicit paths or the data directory."""
    store = JsonFileStore.from_settings(settings)
    if args.model:
        model = load_model_file(args.model)
    else:
        model = store.load_model()
        if model is None:
            raise FinsimError(f"No model given and none saved in {store.directory}")

    scenario: Optional[Scenario] = None
    scenario_path = getattr(args, "scenario", None)
    if scenario_path:
        scenario = load_scenario_file(scenario_path)
    elif not args.model:
        scenario = store.load_scenario()
    return model, scenario


def _ledger_options(args: argparse.Namespace) -> LedgerOptions:
    today = to_date(args.today) if args.today else dt.date.today()
    start = to_date(args.start) if args.start else None
    end = to_date(args.end) if args.end else None
    if end is None and args.days is not None:
        end = (start or today) + dt.timedelta(days=args.days)
    return LedgerOptions(start_date=start, end_date=end, account_id=args.account, today=today)


def _effective(model: Model, scenario: Optional[Scenario]) -> Model:
    return apply_scenario(model, scenario) if scenario is not None else model


def _print_frame(df: pd.DataFrame, columns: List[str]) -> None:
    if df.empty:
        print("(no rows)")
        return
    print(df[columns].to_string(index=False))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_forecast(args: argparse.Namespace, settings: RuntimeSettings) -> int:
    model, scenario = _load_inputs(args, settings)
    effective = _effective(model, scenario)
    result = run_ledger(effective, **_ledger_options(args).as_kwargs())

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        currency = effective.meta.currency
        df = entries_frame(result)
        df["date"] = df["date"].dt.strftime("%Y-%m-%d")
        _print_frame(df, ["date", "name", "kind", "amount", "balance"])
        s = result.summary
        print()
        print(f"Account:      {result.account_id}  ({result.start_date} .. {result.end_date})")
        print(f"Start:        {format_currency(result.starting_balance, currency)}")
        print(f"End:          {format_currency(s.end_balance, currency)}")
        print(f"Low:          {format_currency(s.min_balance, currency)} on {s.min_balance_date}")
        print(f"High:         {format_currency(s.max_balance, currency)} on {s.max_balance_date}")
        print(f"Net surplus:  {format_currency(s.net_surplus, currency)}")

    if args.csv:
        ledger_to_csv(result, args.csv)
    if args.xlsx:
        write_workbook(
            args.xlsx,
            {"Ledger": entries_frame(result), "Months": summaries_frame(monthly_summaries(result))},
        )
    return 0


def cmd_months(args: argparse.Namespace, settings: RuntimeSettings) -> int:
    model, scenario = _load_inputs(args, settings)
    effective = _effective(model, scenario)
    result = run_ledger(effective, **_ledger_options(args).as_kwargs())
    summaries = monthly_summaries(result)

    df = summaries_frame(summaries)
    df["safe_to_withdraw"] = [
        safe_surplus(summaries, i, effective.settings.safe_surplus).safe_withdrawable
        for i in range(len(summaries))
    ]
    if args.json:
        print(df.to_json(orient="records", indent=2))
        return 0
    _print_frame(
        df.round(2),
        ["month", "start_balance", "income", "expenses", "end_balance", "min_balance", "safe_to_withdraw"],
    )
    return 0


def cmd_debts(args: argparse.Namespace, settings: RuntimeSettings) -> int:
    model, scenario = _load_inputs(args, settings)
    effective = _effective(model, scenario)
    start = to_date(args.today) if args.today else dt.date.today()

    overall = project_all_debts(effective.debts, effective, start_date=start)
    if args.json:
        print(json.dumps(overall.to_dict(), indent=2))
        return 0

    currency = effective.meta.currency
    for item in overall.projections:
        p = item.projection
        print(f"{item.debt.name}: {format_currency(item.debt.principal, currency)} at {item.debt.apr:g}% APR")
        print(f"  {p.message}; payment {format_currency(p.monthly_payment, currency)}, "
              f"interest {format_currency(p.total_interest, currency)}")
        if args.strategies:
            for s in compare_strategies(item.debt, effective, start_date=start):
                months = s.months if s.months is not None else "n/a"
                print(f"    {s.name:<24} {format_currency(s.payment, currency):>12}  {months} months  "
                      f"interest {format_currency(s.total_interest, currency)}")
        if args.schedule:
            df = schedule_frame(project_payoff(item.debt, start_date=start, model=effective)).round(2)
            _print_frame(df, ["month", "date", "payment", "lump_sum", "interest", "balance"])
    print(overall.message)
    return 0


def cmd_scenario(args: argparse.Namespace, settings: RuntimeSettings) -> int:
    model = load_model_file(args.model) if args.model else JsonFileStore.from_settings(settings).load_model()
    if model is None:
        raise FinsimError("No base model available")
    scenario = load_scenario_file(args.scenario_file)

    for line in describe_scenario(scenario, model):
        print(f"- {line}")

    effective = apply_scenario(model, scenario)
    comparison = compare_models(model, effective, _ledger_options(args))
    table = pd.DataFrame(
        {"base": comparison.base, "scenario": comparison.scenario, "difference": comparison.difference}
    ).round(2)
    print()
    print(table.to_string())

    if args.commit:
        committed = commit_scenario(model, scenario)
        Path(args.commit).write_text(dump_model(committed), encoding="utf-8")
        print(f"\nCommitted model written to {args.commit}")
    return 0


def cmd_validate(args: argparse.Namespace, settings: RuntimeSettings) -> int:
    model, scenario = _load_inputs(args, settings)
    result = validate_model(model)
    print(result.summary())
    ok = result.is_valid
    if scenario is not None:
        scenario_check = validate_scenario(scenario, model)
        print("Scenario:")
        print(scenario_check.summary())
        ok = ok and scenario_check.is_valid
    return 0 if ok else 1


def cmd_init(args: argparse.Namespace, settings: RuntimeSettings) -> int:
    path = Path(args.path)
    if path.exists() and not args.force:
        print(f"{path} exists (use --force to overwrite)", file=sys.stderr)
        return 1
    path.write_text(dump_model(create_empty_model()), encoding="utf-8")
    print(f"Wrote empty model to {path}")
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def _add_window_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--start", help="first day of the run (YYYY-MM-DD, default: today)")
    p.add_argument("--end", help="last day of the run (YYYY-MM-DD)")
    p.add_argument("--days", type=int, help="run length in days when --end is not given")
    p.add_argument("--account", help="account id (default: the checking account)")
    p.add_argument("--today", help="reference date (YYYY-MM-DD, default: system date)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="finsim", description="Deterministic personal cash-flow forecasting")
    parser.add_argument("--log-level", help="override FINSIM_LOG_LEVEL")
    parser.add_argument("--log-json", action="store_true", help="JSON log lines on stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("forecast", help="run the ledger and print every transaction")
    p.add_argument("model", nargs="?", help="model JSON file (default: saved base model)")
    p.add_argument("--scenario", help="scenario JSON file to apply first")
    _add_window_args(p)
    p.add_argument("--csv", help="also write the ledger as CSV")
    p.add_argument("--xlsx", help="also write ledger and months to an Excel workbook")
    p.add_argument("--json", action="store_true", help="print JSON instead of a table")
    p.set_defaults(func=cmd_forecast)

    p = sub.add_parser("months", help="monthly summaries with the safe-to-withdraw amount")
    p.add_argument("model", nargs="?")
    p.add_argument("--scenario")
    _add_window_args(p)
    p.add_argument("--json", action="store_true")
    p.set_defaults(func=cmd_months)

    p = sub.add_parser("debts", help="debt payoff projections and the debt-free date")
    p.add_argument("model", nargs="?")
    p.add_argument("--scenario")
    p.add_argument("--today", help="first payment month (YYYY-MM-DD, default: today)")
    p.add_argument("--strategies", action="store_true", help="compare payment strategies")
    p.add_argument("--schedule", action="store_true", help="print each month of the payoff schedule")
    p.add_argument("--json", action="store_true")
    p.set_defaults(func=cmd_debts)

    p = sub.add_parser("scenario", help="compare a scenario against the base model")
    p.add_argument("model", nargs="?")
    p.add_argument("scenario_file", help="scenario JSON file")
    _add_window_args(p)
    p.add_argument("--commit", metavar="PATH", help="write the committed model to PATH")
    p.set_defaults(func=cmd_scenario)

    p = sub.add_parser("validate", help="check a model (and scenario) for structural problems")
    p.add_argument("model", nargs="?")
    p.add_argument("--scenario")
    p.set_defaults(func=cmd_validate)

    p = sub.add_parser("init", help="write an empty model")
    p.add_argument("path")
    p.add_argument("--force", action="store_true")
    p.set_defaults(func=cmd_init)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()
    setup_logging(args.log_level or settings.log_level, json_format=args.log_json or settings.log_json)

    try:
        return args.func(args, settings)
    except FinsimError as e:
        logger.debug("command failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
