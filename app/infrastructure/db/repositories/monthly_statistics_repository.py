"""
Monthly Statistics Repository
Storage for derived monthly aggregates
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, and_, func
from typing import List, Optional, Tuple

from app.infrastructure.db.models import MonthlyStatisticsModel
from app.domain.models import MonthlyAggregate


class MonthlyStatisticsRepository:
    """Repository for MonthlyAggregate data access"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def upsert(self, aggregate: MonthlyAggregate) -> MonthlyAggregate:
        """Insert or overwrite the aggregate for (strategy, month)"""
        model = await self._get_model(aggregate.strategy_id, aggregate.analysis_month)
        if model is None:
            model = MonthlyStatisticsModel(
                strategy_id=aggregate.strategy_id,
                analysis_month=aggregate.analysis_month
            )
            self.session.add(model)

        model.average_principal = aggregate.average_principal
        model.net_flow = aggregate.net_flow
        model.monthly_profit_loss = aggregate.monthly_profit_loss
        model.monthly_return = aggregate.monthly_return
        model.cumulative_profit_loss = aggregate.cumulative_profit_loss
        model.cumulative_return = aggregate.cumulative_return
        model.closing_principal = aggregate.closing_principal
        model.closing_reference_price = aggregate.closing_reference_price

        await self.session.flush()
        await self.session.refresh(model)

        return self._to_domain(model)

    async def get_for_month(self, strategy_id: int, analysis_month: str) -> Optional[MonthlyAggregate]:
        model = await self._get_model(strategy_id, analysis_month)
        return self._to_domain(model) if model else None

    async def get_latest_before(self, strategy_id: int, analysis_month: str) -> Optional[MonthlyAggregate]:
        """
        Get the closest aggregate strictly before a month

        Months without trading data have no aggregate, so this may be
        several calendar months back.
        """
        result = await self.session.execute(
            select(MonthlyStatisticsModel)
            .where(
                and_(
                    MonthlyStatisticsModel.strategy_id == strategy_id,
                    MonthlyStatisticsModel.analysis_month < analysis_month
                )
            )
            .order_by(MonthlyStatisticsModel.analysis_month.desc())
            .limit(1)
        )
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def list_months_from(self, strategy_id: int, analysis_month: str) -> List[str]:
        result = await self.session.execute(
            select(MonthlyStatisticsModel.analysis_month)
            .where(
                and_(
                    MonthlyStatisticsModel.strategy_id == strategy_id,
                    MonthlyStatisticsModel.analysis_month >= analysis_month
                )
            )
            .order_by(MonthlyStatisticsModel.analysis_month.asc())
        )
        return list(result.scalars().all())

    async def list_all(self, strategy_id: int) -> List[MonthlyAggregate]:
        """All aggregates of a strategy, oldest month first"""
        result = await self.session.execute(
            select(MonthlyStatisticsModel)
            .where(MonthlyStatisticsModel.strategy_id == strategy_id)
            .order_by(MonthlyStatisticsModel.analysis_month.asc())
        )
        return [self._to_domain(m) for m in result.scalars().all()]

    async def get_page(self, strategy_id: int, page: int, page_size: int) -> Tuple[int, List[MonthlyAggregate]]:
        """
        Page through aggregates, newest month first

        Args:
            strategy_id: Strategy ID
            page: 0-based page number
            page_size: Items per page

        Returns:
            (total_count, items)
        """
        total = await self.session.execute(
            select(func.count())
            .select_from(MonthlyStatisticsModel)
            .where(MonthlyStatisticsModel.strategy_id == strategy_id)
        )
        total_count = total.scalar_one()

        result = await self.session.execute(
            select(MonthlyStatisticsModel)
            .where(MonthlyStatisticsModel.strategy_id == strategy_id)
            .order_by(MonthlyStatisticsModel.analysis_month.desc())
            .offset(page * page_size)
            .limit(page_size)
        )
        return total_count, [self._to_domain(m) for m in result.scalars().all()]

    async def delete_for_month(self, strategy_id: int, analysis_month: str) -> bool:
        result = await self.session.execute(
            delete(MonthlyStatisticsModel).where(
                and_(
                    MonthlyStatisticsModel.strategy_id == strategy_id,
                    MonthlyStatisticsModel.analysis_month == analysis_month
                )
            )
        )
        return result.rowcount > 0

    async def delete_from_month(self, strategy_id: int, analysis_month: str) -> int:
        """Delete every aggregate with analysis_month >= the given month"""
        result = await self.session.execute(
            delete(MonthlyStatisticsModel).where(
                and_(
                    MonthlyStatisticsModel.strategy_id == strategy_id,
                    MonthlyStatisticsModel.analysis_month >= analysis_month
                )
            )
        )
        return result.rowcount

    async def delete_all_for_strategy(self, strategy_id: int) -> int:
        result = await self.session.execute(
            delete(MonthlyStatisticsModel).where(MonthlyStatisticsModel.strategy_id == strategy_id)
        )
        return result.rowcount

    async def _get_model(self, strategy_id: int, analysis_month: str) -> Optional[MonthlyStatisticsModel]:
        result = await self.session.execute(
            select(MonthlyStatisticsModel).where(
                and_(
                    MonthlyStatisticsModel.strategy_id == strategy_id,
                    MonthlyStatisticsModel.analysis_month == analysis_month
                )
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _to_domain(model: MonthlyStatisticsModel) -> MonthlyAggregate:
        """Convert database model to domain entity"""
        return MonthlyAggregate(
            id=model.id,
            strategy_id=model.strategy_id,
            analysis_month=model.analysis_month,
            average_principal=model.average_principal,
            net_flow=model.net_flow,
            monthly_profit_loss=model.monthly_profit_loss,
            monthly_return=model.monthly_return,
            cumulative_profit_loss=model.cumulative_profit_loss,
            cumulative_return=model.cumulative_return,
            closing_principal=model.closing_principal,
            closing_reference_price=model.closing_reference_price,
            updated_at=model.updated_at
        )
