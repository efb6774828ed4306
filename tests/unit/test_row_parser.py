"""
Unit Tests for RowParser
"""

import math
from datetime import date, datetime
from decimal import Decimal

import pytest

from app.domain.exceptions import InvalidAmount, InvalidDateFormat, MalformedRow
from app.domain.services.row_parser import RowParser, logical_cells


@pytest.fixture
def parser():
    return RowParser(date_format="%Y-%m-%d")


def test_parses_native_datetime_cell(parser):
    candidate = parser.parse([datetime(2024, 1, 5, 0, 0), 1000, 50.5], row_number=2)

    assert candidate.row_number == 2
    assert candidate.date == date(2024, 1, 5)
    assert candidate.dep_wd_amount == Decimal("1000")
    assert candidate.daily_profit_loss == Decimal("50.5")


def test_parses_date_string_and_numeric_text(parser):
    candidate = parser.parse(["2024-02-10", "1,200.25", "-20"], row_number=3)

    assert candidate.date == date(2024, 2, 10)
    assert candidate.dep_wd_amount == Decimal("1200.25")
    assert candidate.daily_profit_loss == Decimal("-20")


def test_float_amount_keeps_short_representation(parser):
    candidate = parser.parse([date(2024, 1, 5), 0.1, None], row_number=2)
    assert candidate.dep_wd_amount == Decimal("0.1")


def test_empty_amounts_are_absent(parser):
    candidate = parser.parse([date(2024, 1, 5), None, float("nan")], row_number=2)

    assert candidate.dep_wd_amount is None
    assert candidate.daily_profit_loss is None


@pytest.mark.parametrize("cells", [
    [date(2024, 1, 5), 1, 2, 3],
    [date(2024, 1, 5), 1],
])
def test_wrong_column_count_is_malformed(parser, cells):
    with pytest.raises(MalformedRow) as exc:
        parser.parse(cells, row_number=7)

    assert exc.value.details["row"] == 7
    assert exc.value.details["expected"] == 3
    assert exc.value.details["actual"] == len(cells)


@pytest.mark.parametrize("value", ["05/01/2024", "2024-13-01", 45296, None, ""])
def test_invalid_date_cells(parser, value):
    with pytest.raises(InvalidDateFormat) as exc:
        parser.parse([value, 1, 1], row_number=4)

    assert exc.value.kind == "InvalidDateFormat"
    assert exc.value.details["row"] == 4


@pytest.mark.parametrize("column_index,column_name", [(1, "dep_wd_amount"), (2, "daily_profit_loss")])
def test_non_numeric_amount(parser, column_index, column_name):
    cells = [date(2024, 1, 5), 1, 1]
    cells[column_index] = "ten"

    with pytest.raises(InvalidAmount) as exc:
        parser.parse(cells, row_number=9)

    assert exc.value.details["column"] == column_name
    assert exc.value.details["row"] == 9


def test_boolean_amount_is_rejected(parser):
    with pytest.raises(InvalidAmount):
        parser.parse([date(2024, 1, 5), True, 1], row_number=2)


def test_logical_cells_trims_trailing_empties_and_pads():
    assert logical_cells(["2024-01-05", 1, None, None, math.nan]) == ["2024-01-05", 1, None]
    assert logical_cells(["2024-01-05"]) == ["2024-01-05", None, None]
    assert len(logical_cells(["2024-01-05", 1, 2, "extra"])) == 4


def test_custom_date_format():
    parser = RowParser(date_format="%Y.%m.%d")
    candidate = parser.parse(["2024.03.31", 0, 0], row_number=2)
    assert candidate.date == date(2024, 3, 31)
