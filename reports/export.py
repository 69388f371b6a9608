"""
CSV and Excel output for ledger runs, monthly summaries and payoff schedules.

Amounts are rounded half away from zero to cents at write time only; the
frames handed to callers keep full precision.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional, Union

import pandas as pd

from core.utils import excel_round
from engine.ledger import LedgerResult

from .frames import entries_frame

logger = logging.getLogger(__name__)

CSV_HEADERS = ["Date", "Description", "Category", "Amount", "Balance", "Type", "Source"]


def ledger_csv_frame(result: LedgerResult, *, include_starting_balance: bool = False) -> pd.DataFrame:
    """Ledger entries in the Date/Description/.../Source layout used for CSV export."""
    df = entries_frame(result, include_starting_balance=include_starting_balance)
    out = pd.DataFrame({
        "Date": df["date"].dt.strftime("%Y-%m-%d"),
        "Description": df["name"].fillna(""),
        "Category": df["category"].fillna(""),
        "Amount": excel_round(df["amount"].to_numpy(), 2),
        "Balance": excel_round(df["balance"].to_numpy(), 2),
        "Type": df["kind"].fillna(""),
        "Source": df["rule_id"].fillna(df["one_off_id"]).fillna(""),
    })
    return out[CSV_HEADERS]


def ledger_to_csv(
    result: LedgerResult,
    path: Optional[Union[str, Path]] = None,
    *,
    include_starting_balance: bool = False,
) -> str:
    """
    Render the ledger as CSV text; also write it to `path` when given.

    Returns the CSV text either way.
    """
    frame = ledger_csv_frame(result, include_starting_balance=include_starting_balance)
    text = frame.to_csv(index=False, float_format="%.2f", lineterminator="\n")
    if path is not None:
        Path(path).write_text(text, encoding="utf-8")
        logger.info("wrote %d ledger rows to %s", len(frame), path)
    return text


def _rounded(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    for col in out.select_dtypes(include="float").columns:
        out[col] = excel_round(out[col].to_numpy(), 2)
    # spreadsheet cells cannot hold lists (tags)
    for col in out.select_dtypes(include="object").columns:
        out[col] = out[col].map(lambda v: ", ".join(v) if isinstance(v, list) else v)
    return out


def write_workbook(path: Union[str, Path], sheets: Dict[str, pd.DataFrame]) -> Path:
    """Write each frame to its own sheet of an .xlsx workbook (openpyxl engine)."""
    path = Path(path)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for name, frame in sheets.items():
            _rounded(frame).to_excel(writer, sheet_name=name[:31], index=False)
    logger.info("wrote workbook %s (%s)", path, ", ".join(sheets))
    return path
