"""
Row Parser & Validator

Turns one raw spreadsheet row into a DailyRecordCandidate, or raises a
row-numbered import error.

Layout: [date, deposit/withdrawal amount, daily profit/loss]
"""

import math
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from numbers import Number
from typing import Any, Optional, Sequence

from app.domain.exceptions import InvalidAmount, InvalidDateFormat, MalformedRow
from app.domain.models import DailyRecordCandidate

EXPECTED_COLUMNS = 3

DEP_WD_COLUMN = "dep_wd_amount"
PROFIT_LOSS_COLUMN = "daily_profit_loss"


def is_empty_cell(value: Any) -> bool:
    """None, NaN (pandas empty cell) or blank text"""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def logical_cells(values: Sequence[Any]) -> list:
    """
    Trim trailing empty cells, then pad to the expected width

    Spreadsheet readers report every row at the sheet's full width, so a row
    is only wider than EXPECTED_COLUMNS when it carries data past column 3.
    """
    cells = list(values)
    while cells and is_empty_cell(cells[-1]):
        cells.pop()
    if len(cells) < EXPECTED_COLUMNS:
        cells.extend([None] * (EXPECTED_COLUMNS - len(cells)))
    return cells


class RowParser:
    """Parses import rows; date strings use a fixed strptime format"""

    def __init__(self, date_format: str = "%Y-%m-%d"):
        self.date_format = date_format

    def parse(self, cells: Sequence[Any], row_number: int) -> DailyRecordCandidate:
        """
        Parse one row

        Args:
            cells: Exactly three logical cells
            row_number: 1-based sheet row number, for error messages

        Returns:
            DailyRecordCandidate

        Raises:
            MalformedRow, InvalidDateFormat, InvalidAmount
        """
        if len(cells) != EXPECTED_COLUMNS:
            raise MalformedRow(row_number, EXPECTED_COLUMNS, len(cells))

        date_cell, dep_wd_cell, profit_loss_cell = cells

        return DailyRecordCandidate(
            row_number=row_number,
            date=self.parse_date(date_cell, row_number),
            dep_wd_amount=self.parse_amount(dep_wd_cell, row_number, DEP_WD_COLUMN),
            daily_profit_loss=self.parse_amount(profit_loss_cell, row_number, PROFIT_LOSS_COLUMN),
        )

    def parse_date(self, value: Any, row_number: int) -> date:
        # datetime first: it is a subclass of date (pandas Timestamp too)
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                return datetime.strptime(value.strip(), self.date_format).date()
            except ValueError:
                raise InvalidDateFormat(row_number, value)
        raise InvalidDateFormat(row_number, value)

    @staticmethod
    def parse_amount(value: Any, row_number: int, column: str) -> Optional[Decimal]:
        if is_empty_cell(value):
            return None
        if isinstance(value, bool):
            raise InvalidAmount(row_number, column, value)
        if isinstance(value, Decimal):
            amount = value
        elif isinstance(value, Number):
            # str() keeps the shortest repr, so 0.1 stays 0.1
            amount = Decimal(str(value))
        elif isinstance(value, str):
            try:
                amount = Decimal(value.strip().replace(",", ""))
            except InvalidOperation:
                raise InvalidAmount(row_number, column, value)
        else:
            raise InvalidAmount(row_number, column, value)

        if not amount.is_finite():
            raise InvalidAmount(row_number, column, value)
        return amount
