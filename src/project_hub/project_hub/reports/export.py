"""Turn a ReportData into downloadable bytes."""

from __future__ import annotations

import io

import pandas as pd

from .service import REPORT_COLUMNS, ReportData

EXCEL_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _frame(data: ReportData) -> pd.DataFrame:
    return pd.DataFrame(data.rows, columns=list(REPORT_COLUMNS))


def to_csv_bytes(data: ReportData) -> bytes:
    # utf-8-sig so Excel opens it with the right encoding
    return _frame(data).to_csv(index=False).encode("utf-8-sig")


def to_excel_bytes(data: ReportData) -> io.BytesIO:
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        _frame(data).to_excel(writer, index=False, sheet_name="Attendance")
        pd.DataFrame(data.summary, columns=["user_id", "name", "email", "days", "total_hours"]).to_excel(
            writer, index=False, sheet_name="Summary"
        )
    output.seek(0)
    return output
