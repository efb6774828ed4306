"""
MONTHLY AGGREGATION ENGINE - ASYNC

RESPONSIBILITIES:
- Re-derive one month's aggregate from that month's daily records
- Chain against the closest earlier aggregate (cumulative P/L, reference price)
- Upsert the result, or drop the aggregate when the month has no records left

RULES:
✅ Recompute from source on every pass
✅ Runs inside the caller's transaction (flush only, never commit)
❌ No cascading here; see CascadeDriver
"""

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional, Protocol

from app.domain.models import DailyRecord, MonthlyAggregate
from app.domain.services.monthly_statistics_calculator import (
    ChainSeed,
    MonthlyStatisticsCalculator,
)
from app.utils.time import month_bounds, month_key

logger = logging.getLogger(__name__)


class DailyStatisticsRepository(Protocol):
    """Protocol for daily record reads - ASYNC"""

    async def list_between(
        self, strategy_id: int, start: Optional[date] = None, end: Optional[date] = None
    ) -> List[DailyRecord]:
        ...


class MonthlyStatisticsRepository(Protocol):
    """Protocol for monthly aggregate storage - ASYNC"""

    async def get_latest_before(self, strategy_id: int, analysis_month: str) -> Optional[MonthlyAggregate]:
        ...

    async def upsert(self, aggregate: MonthlyAggregate) -> MonthlyAggregate:
        ...

    async def delete_for_month(self, strategy_id: int, analysis_month: str) -> bool:
        ...


class MonthlyAggregationEngine:
    """Single-month recompute-and-store"""

    def __init__(
        self,
        daily_repo: DailyStatisticsRepository,
        monthly_repo: MonthlyStatisticsRepository,
        calculator: MonthlyStatisticsCalculator
    ):
        self.daily_repo = daily_repo
        self.monthly_repo = monthly_repo
        self.calculator = calculator

    async def recompute_for_date(self, strategy_id: int, record_date: date) -> Optional[MonthlyAggregate]:
        """Recompute the month containing `record_date`"""
        return await self.recompute_month(strategy_id, month_key(record_date))

    async def recompute_month(self, strategy_id: int, analysis_month: str) -> Optional[MonthlyAggregate]:
        """
        Recompute and store one month's aggregate

        Args:
            strategy_id: Strategy ID
            analysis_month: YYYY-MM

        Returns:
            Stored MonthlyAggregate, or None when the month has no daily
            records (its aggregate, if any, is removed)
        """
        start, end = month_bounds(analysis_month)
        records = await self.daily_repo.list_between(strategy_id, start, end)

        if not records:
            removed = await self.monthly_repo.delete_for_month(strategy_id, analysis_month)
            if removed:
                logger.info("Dropped empty month | strategy=%s | month=%s", strategy_id, analysis_month)
            return None

        prior = await self.monthly_repo.get_latest_before(strategy_id, analysis_month)
        seed = ChainSeed.from_prior(prior, self.calculator.baseline)

        aggregate = self.calculator.calculate(strategy_id, analysis_month, records, seed)
        stored = await self.monthly_repo.upsert(aggregate)

        logger.debug(
            "Recomputed month | strategy=%s | month=%s | days=%s | pl=%s | cum_pl=%s",
            strategy_id,
            analysis_month,
            len(records),
            stored.monthly_profit_loss,
            stored.cumulative_profit_loss,
        )
        return stored


def build_engine(daily_repo, monthly_repo, baseline: Decimal) -> MonthlyAggregationEngine:
    return MonthlyAggregationEngine(
        daily_repo=daily_repo,
        monthly_repo=monthly_repo,
        calculator=MonthlyStatisticsCalculator(baseline=baseline)
    )
