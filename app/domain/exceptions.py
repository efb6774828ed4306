"""
Statistics Errors

Every error carries a machine-readable `kind` and a human-readable message.
Import errors are raised before anything is persisted.
"""

from typing import Any, Dict, List, Optional


class StatisticsError(Exception):
    """Base class for all strategy statistics errors"""

    kind = "StatisticsError"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": self.message, **self.details}


# ----------------------------------------------------------------------
# Import errors
# ----------------------------------------------------------------------

class ImportValidationError(StatisticsError):
    """Bulk import rejected; nothing from the batch was persisted"""
    kind = "ImportValidationError"


class InvalidWorkbook(ImportValidationError):
    kind = "InvalidWorkbook"

    def __init__(self, reason: str):
        super().__init__(f"Uploaded file is not a readable xlsx workbook: {reason}")


class MultiSheetNotAllowed(ImportValidationError):
    kind = "MultiSheetNotAllowed"

    def __init__(self, sheet_count: int):
        super().__init__(
            f"Workbook contains {sheet_count} sheets; only a single sheet is allowed",
            sheet_count=sheet_count,
        )


class RowLimitExceeded(ImportValidationError):
    kind = "RowLimitExceeded"

    def __init__(self, row_count: int, max_rows: int):
        super().__init__(
            f"Workbook has {row_count} data rows; the limit is {max_rows}",
            row_count=row_count,
            max_rows=max_rows,
        )


class EmptyBatch(ImportValidationError):
    kind = "EmptyBatch"

    def __init__(self):
        super().__init__("Workbook contains no data rows")


class MalformedRow(ImportValidationError):
    kind = "MalformedRow"

    def __init__(self, row_number: int, expected: int, actual: int):
        super().__init__(
            f"Row {row_number} has {actual} columns; expected exactly {expected}",
            row=row_number,
            expected=expected,
            actual=actual,
        )


class InvalidDateFormat(ImportValidationError):
    kind = "InvalidDateFormat"

    def __init__(self, row_number: int, raw_value: Any):
        super().__init__(
            f"Row {row_number} has an invalid date: {raw_value!r}",
            row=row_number,
            value=None if raw_value is None else str(raw_value),
        )


class InvalidAmount(ImportValidationError):
    kind = "InvalidAmount"

    def __init__(self, row_number: int, column: str, raw_value: Any):
        super().__init__(
            f"Row {row_number} has a non-numeric {column}: {raw_value!r}",
            row=row_number,
            column=column,
            value=str(raw_value),
        )


class DuplicateDateInBatch(ImportValidationError):
    kind = "DuplicateDateInBatch"

    def __init__(self, duplicate_date, first_row: int, second_row: int):
        super().__init__(
            f"Duplicate date {duplicate_date.isoformat()} in rows {first_row} and {second_row}",
            date=duplicate_date.isoformat(),
            rows=[first_row, second_row],
        )


class FieldValidationFailed(StatisticsError):
    """One or more field rules failed; every offending row/field is listed"""
    kind = "FieldValidationFailed"

    def __init__(self, errors: List[Dict[str, Any]]):
        rows = sorted({e["row"] for e in errors if e.get("row") is not None})
        summary = "; ".join(
            f"row {e['row']} {e['field']}: {e['message']}" if e.get("row") is not None
            else f"{e['field']}: {e['message']}"
            for e in errors
        )
        super().__init__(
            f"Validation failed for {len(rows) or len(errors)} row(s): {summary}",
            errors=errors,
        )
        self.errors = errors


# ----------------------------------------------------------------------
# Lookup / permission errors
# ----------------------------------------------------------------------

class StrategyNotFound(StatisticsError):
    kind = "StrategyNotFound"

    def __init__(self, strategy_id: int):
        super().__init__(f"Strategy {strategy_id} does not exist", strategy_id=strategy_id)


class AccessDenied(StatisticsError):
    kind = "AccessDenied"

    def __init__(self, strategy_id: int, member_id: Optional[str]):
        super().__init__(
            f"Member {member_id} may not write statistics for strategy {strategy_id}",
            strategy_id=strategy_id,
        )


class AggregateNotFound(StatisticsError):
    kind = "AggregateNotFound"

    def __init__(self, strategy_id: int, month: str):
        super().__init__(
            f"No monthly statistics for strategy {strategy_id} in {month}",
            strategy_id=strategy_id,
            month=month,
        )


class DailyRecordNotFound(StatisticsError):
    kind = "DailyRecordNotFound"

    def __init__(self, strategy_id: int, record_date):
        super().__init__(
            f"No daily statistics for strategy {strategy_id} on {record_date.isoformat()}",
            strategy_id=strategy_id,
            date=record_date.isoformat(),
        )


class InvalidMonth(StatisticsError):
    kind = "InvalidMonth"

    def __init__(self, value: Any):
        super().__init__(f"Invalid month {value!r}. Use YYYY-MM", value=str(value))


# ----------------------------------------------------------------------
# Aggregation errors
# ----------------------------------------------------------------------

class CascadeFailed(StatisticsError):
    """Month recompute failed; later months were not recomputed"""
    kind = "CascadeFailed"

    def __init__(self, strategy_id: int, month: str, cause: Exception):
        super().__init__(
            f"Recomputing {month} for strategy {strategy_id} failed: {cause}",
            strategy_id=strategy_id,
            month=month,
        )
        self.cause = cause
