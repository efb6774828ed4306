"""
Strategy Repository
Read access to strategy identity and ownership
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional

from app.infrastructure.db.models import StrategyModel
from app.domain.models import StrategyInfo


class StrategyRepository:
    """Repository for strategy identity lookups"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_strategy(self, strategy_id: int, for_update: bool = False) -> Optional[StrategyInfo]:
        """
        Get strategy identity and owner

        Args:
            strategy_id: Strategy ID
            for_update: Lock the strategy row until the transaction ends
                (no-op on backends without row locks)

        Returns:
            StrategyInfo or None
        """
        stmt = select(StrategyModel).where(StrategyModel.id == strategy_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None
        return StrategyInfo(strategy_id=model.id, writer_id=model.writer_id, name=model.name)

    async def create(self, writer_id: str, name: str) -> StrategyInfo:
        model = StrategyModel(writer_id=writer_id, name=name)
        self.session.add(model)
        await self.session.flush()
        return StrategyInfo(strategy_id=model.id, writer_id=model.writer_id, name=model.name)
