"""
Daily Statistics Repository
CRUD operations for per-date trading results
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, and_, func
from datetime import date
from decimal import Decimal
from typing import List, Optional

from app.infrastructure.db.models import DailyStatisticsModel
from app.domain.models import DailyRecord


class DailyStatisticsRepository:
    """Repository for DailyRecord data access"""

    def __init__(self, session: AsyncSession):
        """Initialize with database session"""
        self.session = session

    async def upsert(
        self,
        strategy_id: int,
        record_date: date,
        dep_wd_amount: Optional[Decimal],
        daily_profit_loss: Optional[Decimal]
    ) -> tuple[DailyRecord, bool]:
        """
        Insert a daily record, or replace the amounts of the existing one

        Args:
            strategy_id: Strategy ID
            record_date: Trading date
            dep_wd_amount: Deposit (+) / withdrawal (-) amount, None if absent
            daily_profit_loss: Daily profit/loss, None if absent

        Returns:
            (stored DailyRecord, created) where created is False for a correction
        """
        model = await self._get_model(strategy_id, record_date)
        created = model is None

        if created:
            model = DailyStatisticsModel(
                strategy_id=strategy_id,
                date=record_date,
                dep_wd_amount=dep_wd_amount,
                daily_profit_loss=daily_profit_loss
            )
            self.session.add(model)
        else:
            model.dep_wd_amount = dep_wd_amount
            model.daily_profit_loss = daily_profit_loss

        await self.session.flush()
        await self.session.refresh(model)

        return self._to_domain(model), created

    async def get_for_date(self, strategy_id: int, record_date: date) -> Optional[DailyRecord]:
        model = await self._get_model(strategy_id, record_date)
        return self._to_domain(model) if model else None

    async def list_between(
        self,
        strategy_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None
    ) -> List[DailyRecord]:
        """
        List records in ascending date order

        Args:
            strategy_id: Strategy ID
            start: Inclusive lower bound
            end: Exclusive upper bound

        Returns:
            List of DailyRecord
        """
        conditions = [DailyStatisticsModel.strategy_id == strategy_id]
        if start is not None:
            conditions.append(DailyStatisticsModel.date >= start)
        if end is not None:
            conditions.append(DailyStatisticsModel.date < end)

        result = await self.session.execute(
            select(DailyStatisticsModel)
            .where(and_(*conditions))
            .order_by(DailyStatisticsModel.date.asc())
        )
        return [self._to_domain(m) for m in result.scalars().all()]

    async def list_dates_from(self, strategy_id: int, start: date) -> List[date]:
        result = await self.session.execute(
            select(DailyStatisticsModel.date)
            .where(
                and_(
                    DailyStatisticsModel.strategy_id == strategy_id,
                    DailyStatisticsModel.date >= start
                )
            )
            .order_by(DailyStatisticsModel.date.asc())
        )
        return list(result.scalars().all())

    async def get_first_date(self, strategy_id: int) -> Optional[date]:
        result = await self.session.execute(
            select(func.min(DailyStatisticsModel.date))
            .where(DailyStatisticsModel.strategy_id == strategy_id)
        )
        return result.scalar()

    async def delete_for_date(self, strategy_id: int, record_date: date) -> bool:
        """Delete one record; returns False when nothing matched"""
        result = await self.session.execute(
            delete(DailyStatisticsModel).where(
                and_(
                    DailyStatisticsModel.strategy_id == strategy_id,
                    DailyStatisticsModel.date == record_date
                )
            )
        )
        return result.rowcount > 0

    async def delete_from(self, strategy_id: int, start: date) -> int:
        """Delete every record dated on or after `start`"""
        result = await self.session.execute(
            delete(DailyStatisticsModel).where(
                and_(
                    DailyStatisticsModel.strategy_id == strategy_id,
                    DailyStatisticsModel.date >= start
                )
            )
        )
        return result.rowcount

    async def delete_all_for_strategy(self, strategy_id: int) -> int:
        result = await self.session.execute(
            delete(DailyStatisticsModel).where(DailyStatisticsModel.strategy_id == strategy_id)
        )
        return result.rowcount

    async def _get_model(self, strategy_id: int, record_date: date) -> Optional[DailyStatisticsModel]:
        result = await self.session.execute(
            select(DailyStatisticsModel).where(
                and_(
                    DailyStatisticsModel.strategy_id == strategy_id,
                    DailyStatisticsModel.date == record_date
                )
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _to_domain(model: DailyStatisticsModel) -> DailyRecord:
        """Convert database model to domain entity"""
        return DailyRecord(
            id=model.id,
            strategy_id=model.strategy_id,
            date=model.date,
            dep_wd_amount=model.dep_wd_amount,
            daily_profit_loss=model.daily_profit_loss,
            created_at=model.created_at,
            updated_at=model.updated_at
        )
