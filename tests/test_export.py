import datetime as dt

import pandas as pd

from debt.projector import project_payoff
from engine.ledger import run_ledger
from reports.export import CSV_HEADERS, ledger_to_csv, write_workbook
from reports.frames import ENTRY_COLUMNS, SCHEDULE_COLUMNS, entries_frame, schedule_frame, summaries_frame
from reports.summary import monthly_summaries
from tests.helpers import JAN_1, JAN_31


def test_entries_frame_columns(base_model):
    result = run_ledger(base_model, start_date=JAN_1, end_date=JAN_31)
    df = entries_frame(result)
    assert list(df.columns) == ENTRY_COLUMNS
    assert len(df) == 7
    assert df["is_starting_balance"].iloc[0]
    assert len(entries_frame(result, include_starting_balance=False)) == 6


def test_ledger_csv(base_model, tmp_path):
    result = run_ledger(base_model, start_date=JAN_1, end_date=JAN_31)
    path = tmp_path / "ledger.csv"
    text = ledger_to_csv(result, path)

    lines = text.strip().split("\n")
    assert lines[0] == ",".join(CSV_HEADERS)
    assert len(lines) == 7
    assert lines[1] == "2024-01-01,Paycheck,salary,2000.00,3000.00,income,paycheck"
    assert lines[3] == "2024-01-10,Gift,one-off,50.00,1850.00,income,gift"
    assert path.read_text(encoding="utf-8") == text


def test_ledger_csv_with_starting_balance(base_model):
    result = run_ledger(base_model, start_date=JAN_1, end_date=JAN_31)
    text = ledger_to_csv(result, include_starting_balance=True)
    assert text.split("\n")[1].startswith("2024-01-01,Starting Balance,starting,1000.00,1000.00,balance,")


def test_summaries_and_schedule_frames(base_model):
    result = run_ledger(base_model, start_date=JAN_1, end_date=dt.date(2024, 2, 29))
    months = summaries_frame(monthly_summaries(result))
    assert list(months["month"]) == ["2024-01", "2024-02"]

    schedule = schedule_frame(project_payoff(base_model.debts[0], start_date=JAN_1, model=base_model))
    assert list(schedule.columns) == SCHEDULE_COLUMNS
    assert len(schedule) == 7


def test_write_workbook(base_model, tmp_path):
    result = run_ledger(base_model, start_date=JAN_1, end_date=JAN_31)
    path = write_workbook(
        tmp_path / "forecast.xlsx",
        {"Ledger": entries_frame(result), "Months": summaries_frame(monthly_summaries(result))},
    )
    assert path.exists()
    sheets = pd.read_excel(path, sheet_name=None, engine="openpyxl")
    assert set(sheets) == {"Ledger", "Months"}
    assert len(sheets["Ledger"]) == 7
