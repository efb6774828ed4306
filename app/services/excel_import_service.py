"""
SERVICE - DAILY STATISTICS BULK IMPORT (xlsx)

Flow:
1. Strategy lookup and owner check (before the file is opened)
2. Single-sheet check, header skip, row cap
3. Parse every row; reject duplicate dates within the batch
4. Field validation over every row; all violations reported together
5. Persist all rows and cascade monthly statistics in one transaction

Nothing is written unless every row passes steps 2-4.
"""

import asyncio
import io
import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional, Tuple, Union

import pandas as pd

from app.config import settings
from app.domain.exceptions import (
    AccessDenied,
    DuplicateDateInBatch,
    EmptyBatch,
    FieldValidationFailed,
    InvalidWorkbook,
    MultiSheetNotAllowed,
    RowLimitExceeded,
)
from app.domain.models import DailyRecord, DailyRecordCandidate
from app.domain.services.row_parser import RowParser, is_empty_cell, logical_cells
from app.services.statistics_service import StatisticsService, validate_fields

logger = logging.getLogger(__name__)

WorkbookSource = Union[bytes, BinaryIO, str, Path]


@dataclass(frozen=True)
class RawRow:
    row_number: int
    values: Tuple[Any, ...]


class ExcelImportService:
    """Batch import coordinator"""

    HEADER_ROWS = 1

    def __init__(
        self,
        statistics_service: StatisticsService,
        max_rows: int = settings.IMPORT_MAX_ROWS,
        date_format: str = settings.IMPORT_DATE_FORMAT
    ):
        self.statistics = statistics_service
        self.max_rows = max_rows
        self.parser = RowParser(date_format=date_format)

    async def import_batch(
        self,
        file: WorkbookSource,
        strategy_id: int,
        submitter_id: Optional[str],
        is_owner_check_required: bool
    ) -> List[DailyRecord]:
        """
        Validate a whole workbook and store it as daily statistics

        Args:
            file: xlsx content (bytes, binary stream or path)
            strategy_id: Target strategy
            submitter_id: Member submitting the file
            is_owner_check_required: True for trader submissions; the
                submitter must then be the strategy's writer

        Returns:
            Stored DailyRecords in file order

        Raises:
            StrategyNotFound, AccessDenied, ImportValidationError subclasses,
            FieldValidationFailed, CascadeFailed
        """
        strategy = await self.statistics.get_strategy(strategy_id)
        if is_owner_check_required and not strategy.is_owned_by(submitter_id):
            raise AccessDenied(strategy_id, submitter_id)

        # pandas/openpyxl parsing is blocking
        candidates = await asyncio.to_thread(self.extract_and_validate, file)

        async with self.statistics.unit_of_work(strategy_id):
            await self.statistics.get_strategy(strategy_id, for_update=True)
            stored = await self.statistics.apply_records(strategy_id, candidates)

        logger.info(
            "Workbook imported | strategy=%s | submitter=%s | rows=%s | %s..%s",
            strategy_id,
            submitter_id,
            len(stored),
            min(r.date for r in stored),
            max(r.date for r in stored),
        )
        return stored

    def extract_and_validate(self, file: WorkbookSource) -> List[DailyRecordCandidate]:
        """Parse and validate every data row; raises on the first structural problem"""
        rows = self.read_rows(file)

        if len(rows) > self.max_rows:
            raise RowLimitExceeded(len(rows), self.max_rows)
        if not rows:
            raise EmptyBatch()

        candidates: List[DailyRecordCandidate] = []
        seen: Dict[date, int] = {}
        for row in rows:
            candidate = self.parser.parse(logical_cells(row.values), row.row_number)

            first_row = seen.get(candidate.date)
            if first_row is not None:
                raise DuplicateDateInBatch(candidate.date, first_row, row.row_number)
            seen[candidate.date] = row.row_number

            candidates.append(candidate)

        errors = []
        for candidate in candidates:
            errors.extend(
                validate_fields(
                    candidate.date,
                    candidate.dep_wd_amount,
                    candidate.daily_profit_loss,
                    row=candidate.row_number,
                )
            )
        if errors:
            raise FieldValidationFailed(errors)

        return candidates

    def read_rows(self, file: WorkbookSource) -> List[RawRow]:
        """
        Read the single sheet's data rows (header and blank rows skipped)

        Row numbers are 1-based sheet row numbers.
        """
        source = io.BytesIO(file) if isinstance(file, (bytes, bytearray)) else file

        try:
            xls = pd.ExcelFile(source, engine="openpyxl")
        except Exception as e:
            raise InvalidWorkbook(str(e)) from e

        with xls:
            sheet_names = xls.sheet_names
            if len(sheet_names) != 1:
                raise MultiSheetNotAllowed(len(sheet_names))
            try:
                frame = xls.parse(sheet_names[0], header=None, dtype=object)
            except Exception as e:
                raise InvalidWorkbook(str(e)) from e

        rows = []
        for index, values in enumerate(frame.itertuples(index=False, name=None)):
            row_number = index + 1
            if row_number <= self.HEADER_ROWS:
                continue
            if all(is_empty_cell(v) for v in values):
                continue
            rows.append(RawRow(row_number=row_number, values=tuple(values)))
        return rows
