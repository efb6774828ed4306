"""
Cascade Recomputation Driver

Cumulative P/L and the reference price chain month to month, so any change
to month M invalidates M and every later month. Months are recomputed
strictly in ascending order; each pass reads the freshly stored prior month.
"""

import logging
from datetime import date
from typing import List, Optional, Protocol

from app.domain.exceptions import CascadeFailed
from app.domain.models import MonthlyAggregate
from app.domain.services.monthly_aggregation_engine import MonthlyAggregationEngine
from app.utils.time import month_bounds, month_key

logger = logging.getLogger(__name__)


class DailyDatesRepository(Protocol):
    async def list_dates_from(self, strategy_id: int, start: date) -> List[date]:
        ...

    async def get_first_date(self, strategy_id: int) -> Optional[date]:
        ...


class MonthKeysRepository(Protocol):
    async def list_months_from(self, strategy_id: int, analysis_month: str) -> List[str]:
        ...


class CascadeDriver:
    """Drives MonthlyAggregationEngine forward from an affected month"""

    def __init__(
        self,
        engine: MonthlyAggregationEngine,
        daily_repo: DailyDatesRepository,
        monthly_repo: MonthKeysRepository
    ):
        self.engine = engine
        self.daily_repo = daily_repo
        self.monthly_repo = monthly_repo

    async def affected_months(self, strategy_id: int, from_month: str) -> List[str]:
        """
        Months at or after `from_month` that need a pass

        Includes months that still have daily records and months that only
        have a (now stale) aggregate.
        """
        start, _ = month_bounds(from_month)
        months = {month_key(d) for d in await self.daily_repo.list_dates_from(strategy_id, start)}
        months.update(await self.monthly_repo.list_months_from(strategy_id, from_month))
        months.add(from_month)
        return sorted(months)

    async def recompute_from(self, strategy_id: int, from_month: str) -> List[MonthlyAggregate]:
        """
        Recompute `from_month` and every later month, oldest first

        Returns:
            Aggregates that still exist after the pass, ascending

        Raises:
            CascadeFailed: A month failed; later months were not touched
        """
        months = await self.affected_months(strategy_id, from_month)
        logger.info(
            "Cascade start | strategy=%s | from=%s | months=%s",
            strategy_id,
            from_month,
            len(months),
        )

        results: List[MonthlyAggregate] = []
        for analysis_month in months:
            try:
                aggregate = await self.engine.recompute_month(strategy_id, analysis_month)
            except Exception as e:
                logger.error(
                    "Cascade aborted | strategy=%s | month=%s | error=%s",
                    strategy_id,
                    analysis_month,
                    e,
                )
                raise CascadeFailed(strategy_id, analysis_month, e) from e
            if aggregate is not None:
                results.append(aggregate)

        return results

    async def rebuild(self, strategy_id: int) -> List[MonthlyAggregate]:
        """Recompute the whole history from the strategy's first month"""
        first_date = await self.daily_repo.get_first_date(strategy_id)
        existing = await self.monthly_repo.list_months_from(strategy_id, "0000-01")

        candidates = []
        if first_date is not None:
            candidates.append(month_key(first_date))
        if existing:
            candidates.append(existing[0])
        if not candidates:
            return []

        return await self.recompute_from(strategy_id, min(candidates))
