"""
Monthly statistics xlsx export.
"""

import io
from typing import Iterable

from openpyxl import Workbook

from app.domain.models import MonthlyAggregate

HEADER = [
    "Strategy ID",
    "Month",
    "Average Principal",
    "Net Deposit/Withdrawal",
    "Monthly P/L",
    "Monthly Return (%)",
    "Cumulative P/L",
    "Cumulative Return (%)",
]


def monthly_statistics_rows(aggregates: Iterable[MonthlyAggregate]) -> list:
    return [
        [
            a.strategy_id,
            a.analysis_month,
            float(a.average_principal),
            float(a.net_flow),
            float(a.monthly_profit_loss),
            float(a.monthly_return),
            float(a.cumulative_profit_loss),
            float(a.cumulative_return),
        ]
        for a in aggregates
    ]


def export_monthly_statistics(aggregates: Iterable[MonthlyAggregate]) -> bytes:
    """Single-sheet workbook: header row, then one row per month"""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Monthly Statistics"
    sheet.append(HEADER)
    for row in monthly_statistics_rows(aggregates):
        sheet.append(row)

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
