"""
SERVICE - STRATEGY STATISTICS

Public operations over daily records and monthly aggregates.

• One unit of work per call: commit on success, rollback on any failure
• Writes for one strategy are serialized (asyncio lock + strategy row lock)
• Daily writes are flushed before any month is recomputed
"""

import logging
from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal
from typing import AsyncIterator, List, Optional, Sequence

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.domain.exceptions import (
    AggregateNotFound,
    DailyRecordNotFound,
    FieldValidationFailed,
    InvalidMonth,
    StrategyNotFound,
)
from app.domain.models import (
    DailyRecord,
    DailyRecordCandidate,
    MonthlyAggregate,
    MonthlyPage,
    StrategyInfo,
)
from app.domain.schemas.statistics import DailyStatisticsRequest
from app.domain.services.cascade_driver import CascadeDriver
from app.domain.services.monthly_aggregation_engine import build_engine
from app.infrastructure.db.repositories.daily_statistics_repository import DailyStatisticsRepository
from app.infrastructure.db.repositories.monthly_statistics_repository import MonthlyStatisticsRepository
from app.infrastructure.db.repositories.strategy_repository import StrategyRepository
from app.services.strategy_locks import StrategyLockRegistry, strategy_locks
from app.utils.time import month_bounds, month_key, parse_month_key

logger = logging.getLogger(__name__)


def field_errors(exc: ValidationError, row: Optional[int] = None) -> List[dict]:
    """Flatten a pydantic ValidationError into row/field/message entries"""
    return [
        {
            "row": row,
            "field": ".".join(str(part) for part in err["loc"]) or "__root__",
            "message": err["msg"],
        }
        for err in exc.errors()
    ]


def validate_fields(
    record_date: date,
    dep_wd_amount: Optional[Decimal],
    daily_profit_loss: Optional[Decimal],
    row: Optional[int] = None,
) -> List[dict]:
    try:
        DailyStatisticsRequest(
            date=record_date,
            dep_wd_amount=dep_wd_amount,
            daily_profit_loss=daily_profit_loss,
        )
    except ValidationError as e:
        return field_errors(e, row)
    return []


def require_month(value: str) -> str:
    if parse_month_key(value) is None:
        raise InvalidMonth(value)
    return value


class StatisticsService:
    """Entry point for every statistics read and write"""

    def __init__(
        self,
        session: AsyncSession,
        locks: StrategyLockRegistry = strategy_locks,
        baseline: Optional[Decimal] = None
    ):
        self.session = session
        self.locks = locks
        self.strategy_repo = StrategyRepository(session)
        self.daily_repo = DailyStatisticsRepository(session)
        self.monthly_repo = MonthlyStatisticsRepository(session)
        self.engine = build_engine(
            self.daily_repo,
            self.monthly_repo,
            baseline if baseline is not None else Decimal(settings.REFERENCE_PRICE_BASELINE)
        )
        self.cascade = CascadeDriver(self.engine, self.daily_repo, self.monthly_repo)

    # ------------------------------------------------------------------
    # Transaction boundary
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def unit_of_work(self, strategy_id: int) -> AsyncIterator[None]:
        async with self.locks.hold(strategy_id):
            try:
                yield
                await self.session.commit()
            except Exception:
                await self.session.rollback()
                raise

    async def get_strategy(self, strategy_id: int, for_update: bool = False) -> StrategyInfo:
        strategy = await self.strategy_repo.get_strategy(strategy_id, for_update=for_update)
        if strategy is None:
            raise StrategyNotFound(strategy_id)
        return strategy

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def import_batch(
        self,
        file,
        strategy_id: int,
        submitter_id: Optional[str],
        is_owner_check_required: bool
    ) -> List[DailyRecord]:
        """Bulk import an xlsx workbook; see ExcelImportService.import_batch"""
        from app.services.excel_import_service import ExcelImportService

        importer = ExcelImportService(
            self,
            max_rows=settings.IMPORT_MAX_ROWS,
            date_format=settings.IMPORT_DATE_FORMAT
        )
        return await importer.import_batch(file, strategy_id, submitter_id, is_owner_check_required)

    async def upsert_daily_record(
        self,
        strategy_id: int,
        record_date: date,
        dep_wd_amount: Optional[Decimal] = None,
        daily_profit_loss: Optional[Decimal] = None
    ) -> DailyRecord:
        """
        Insert or correct one daily record and bring monthly statistics up to date

        A correction or back-fill cascades through every later month.
        """
        errors = validate_fields(record_date, dep_wd_amount, daily_profit_loss)
        if errors:
            raise FieldValidationFailed(errors)

        candidate = DailyRecordCandidate(
            row_number=1,
            date=record_date,
            dep_wd_amount=dep_wd_amount,
            daily_profit_loss=daily_profit_loss,
        )
        async with self.unit_of_work(strategy_id):
            await self.get_strategy(strategy_id, for_update=True)
            stored = await self.apply_records(strategy_id, [candidate])

        return stored[0]

    async def apply_records(
        self,
        strategy_id: int,
        candidates: Sequence[DailyRecordCandidate]
    ) -> List[DailyRecord]:
        """
        Persist validated candidates, then cascade from the earliest touched month

        Must run inside unit_of_work; nothing is committed here.
        """
        stored: List[DailyRecord] = []
        corrections = 0
        for candidate in candidates:
            record, created = await self.daily_repo.upsert(
                strategy_id,
                candidate.date,
                candidate.dep_wd_amount,
                candidate.daily_profit_loss
            )
            if not created:
                corrections += 1
            stored.append(record)

        if stored:
            first_month = min(month_key(r.date) for r in stored)
            await self.cascade.recompute_from(strategy_id, first_month)

        logger.info(
            "Daily statistics applied | strategy=%s | records=%s | corrections=%s",
            strategy_id,
            len(stored),
            corrections,
        )
        return stored

    async def delete_daily_record(self, strategy_id: int, record_date: date) -> None:
        """Delete one daily record and cascade from its month"""
        async with self.unit_of_work(strategy_id):
            await self.get_strategy(strategy_id, for_update=True)
            deleted = await self.daily_repo.delete_for_date(strategy_id, record_date)
            if not deleted:
                raise DailyRecordNotFound(strategy_id, record_date)
            await self.cascade.recompute_from(strategy_id, month_key(record_date))

        logger.info("Daily statistics deleted | strategy=%s | date=%s", strategy_id, record_date)

    async def delete_strategy_history(self, strategy_id: int) -> None:
        """
        Purge every daily record and monthly aggregate of a strategy

        Called when the strategy itself is deleted upstream, so the strategy
        row is not required to exist.
        """
        async with self.unit_of_work(strategy_id):
            daily = await self.daily_repo.delete_all_for_strategy(strategy_id)
            monthly = await self.monthly_repo.delete_all_for_strategy(strategy_id)

        logger.info(
            "Strategy history purged | strategy=%s | daily=%s | monthly=%s",
            strategy_id,
            daily,
            monthly,
        )

    async def delete_history_from_month(self, strategy_id: int, analysis_month: str) -> None:
        """
        Roll back history: drop daily records and aggregates from a month on

        Months before `analysis_month` are untouched and need no recompute.
        """
        require_month(analysis_month)
        start, _ = month_bounds(analysis_month)

        async with self.unit_of_work(strategy_id):
            await self.get_strategy(strategy_id, for_update=True)
            daily = await self.daily_repo.delete_from(strategy_id, start)
            monthly = await self.monthly_repo.delete_from_month(strategy_id, analysis_month)

        logger.info(
            "History rolled back | strategy=%s | from=%s | daily=%s | monthly=%s",
            strategy_id,
            analysis_month,
            daily,
            monthly,
        )

    async def rebuild_history(self, strategy_id: int) -> List[MonthlyAggregate]:
        """Recompute every month from scratch"""
        async with self.unit_of_work(strategy_id):
            await self.get_strategy(strategy_id, for_update=True)
            aggregates = await self.cascade.rebuild(strategy_id)
        return aggregates

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_monthly_aggregate(self, strategy_id: int, analysis_month: str) -> MonthlyAggregate:
        require_month(analysis_month)
        await self.get_strategy(strategy_id)
        aggregate = await self.monthly_repo.get_for_month(strategy_id, analysis_month)
        if aggregate is None:
            raise AggregateNotFound(strategy_id, analysis_month)
        return aggregate

    async def get_monthly_page(self, strategy_id: int, page: int = 0, page_size: int = 12) -> MonthlyPage:
        """
        Monthly aggregates, newest month first

        Args:
            page: 0-based page number
            page_size: 1..MONTHLY_PAGE_SIZE_MAX
        """
        errors = []
        if page < 0:
            errors.append({"row": None, "field": "page", "message": "page must be >= 0"})
        if not 1 <= page_size <= settings.MONTHLY_PAGE_SIZE_MAX:
            errors.append({
                "row": None,
                "field": "page_size",
                "message": f"page_size must be between 1 and {settings.MONTHLY_PAGE_SIZE_MAX}",
            })
        if errors:
            raise FieldValidationFailed(errors)

        await self.get_strategy(strategy_id)
        total_count, items = await self.monthly_repo.get_page(strategy_id, page, page_size)
        return MonthlyPage(total_count=total_count, page=page, page_size=page_size, items=items)

    async def list_monthly_aggregates(self, strategy_id: int) -> List[MonthlyAggregate]:
        return await self.monthly_repo.list_all(strategy_id)

    async def list_daily_records(
        self,
        strategy_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None
    ) -> List[DailyRecord]:
        """Daily records in ascending order; `end` is inclusive"""
        exclusive_end = None
        if end is not None:
            exclusive_end = date.fromordinal(end.toordinal() + 1)
        return await self.daily_repo.list_between(strategy_id, start, exclusive_end)
