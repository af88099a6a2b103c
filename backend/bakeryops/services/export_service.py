from __future__ import annotations

import logging
from io import BytesIO
from typing import List

import pandas as pd

from bakeryops.core.reconciliation import as_float
from bakeryops.models.daily_sales import DailySales
from bakeryops.services.performance_service import summarize


logger = logging.getLogger(__name__)

SHEET_NAME = "Daily Sales"

COLUMNS = [
    ("id", "ID"),
    ("date", "Date"),
    ("branch", "Branch"),
    ("cashier", "Cashier"),
    ("shift_type", "Shift"),
    ("shift_start", "Shift start"),
    ("shift_end", "Shift end"),
    ("starting_cash", "Starting cash"),
    ("total_cash_sales", "Cash sales"),
    ("total_network_sales", "Network sales"),
    ("total_sales", "Total sales"),
    ("actual_cash_in_register", "Cash in register"),
    ("discrepancy", "Discrepancy"),
    ("total_transactions", "Transactions"),
    ("average_ticket", "Average ticket"),
    ("status", "Status"),
    ("notes", "Notes"),
]


def _entry_row(entry: DailySales) -> dict:
    return {
        "id": entry.id,
        "date": entry.date.isoformat(),
        "branch": entry.branch.name if entry.branch else "",
        "cashier": entry.cashier.display_name if entry.cashier else "",
        "shift_type": entry.shift_type,
        "shift_start": entry.shift_start.isoformat(),
        "shift_end": entry.shift_end.isoformat(),
        "starting_cash": as_float(entry.starting_cash),
        "total_cash_sales": as_float(entry.total_cash_sales),
        "total_network_sales": as_float(entry.total_network_sales),
        "total_sales": as_float(entry.total_sales),
        "actual_cash_in_register": as_float(entry.actual_cash_in_register),
        "discrepancy": as_float(entry.discrepancy),
        "total_transactions": entry.total_transactions,
        "average_ticket": as_float(entry.average_ticket),
        "status": entry.status,
        "notes": entry.notes or "",
    }


def _totals_row(entries: List[DailySales]) -> dict:
    totals = summarize(entries)
    figures = totals.reconciliation
    return {
        "id": "",
        "date": "",
        "branch": "",
        "cashier": "TOTAL",
        "shift_type": "",
        "shift_start": "",
        "shift_end": "",
        "starting_cash": as_float(totals.starting_cash),
        "total_cash_sales": as_float(totals.total_cash_sales),
        "total_network_sales": as_float(totals.total_network_sales),
        "total_sales": as_float(figures.total_sales),
        "actual_cash_in_register": as_float(totals.actual_cash_in_register),
        "discrepancy": as_float(figures.discrepancy),
        "total_transactions": totals.total_transactions,
        "average_ticket": as_float(figures.average_ticket),
        "status": "",
        "notes": "",
    }


def build_journal_frame(entries: List[DailySales]) -> pd.DataFrame:
    """Journal rows plus a totals row; rejected entries stay out of the totals."""
    rows = [_entry_row(entry) for entry in entries]
    counted = [entry for entry in entries if entry.status != "rejected"]
    rows.append(_totals_row(counted))
    df = pd.DataFrame(rows, columns=[key for key, _ in COLUMNS])
    return df.rename(columns=dict(COLUMNS))


def export_journal_xlsx(entries: List[DailySales]) -> BytesIO:
    df = build_journal_frame(entries)

    output = BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=SHEET_NAME)

        worksheet = writer.sheets[SHEET_NAME]
        for column in worksheet.columns:
            max_length = max(len(str(cell.value)) if cell.value is not None else 0 for cell in column)
            worksheet.column_dimensions[column[0].column_letter].width = min(max_length + 2, 50)

    output.seek(0)
    logger.info("Exported daily sales journal rows=%s", len(entries))
    return output
