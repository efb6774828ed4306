"""
Database Models (SQLAlchemy ORM)
Strategy statistics tables
"""

from sqlalchemy import (
    Column, Integer, String, Numeric, Date, DateTime, ForeignKey, Index
)

from app.infrastructure.db.database import Base
from app.utils.time import now_local_naive


# Tables

class StrategyModel(Base):
    """Strategy identity and ownership (maintained by the strategy service)"""
    __tablename__ = "strategy"

    id = Column(Integer, primary_key=True, autoincrement=True)
    writer_id = Column(String(64), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    created_at = Column(DateTime, nullable=False, default=now_local_naive)


class DailyStatisticsModel(Base):
    """One trading result per strategy per calendar date"""
    __tablename__ = "daily_statistics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    strategy_id = Column(Integer, ForeignKey("strategy.id"), nullable=False)
    date = Column(Date, nullable=False)

    dep_wd_amount = Column(Numeric(19, 4), nullable=True)
    daily_profit_loss = Column(Numeric(19, 4), nullable=True)

    created_at = Column(DateTime, nullable=False, default=now_local_naive)
    updated_at = Column(DateTime, nullable=False, default=now_local_naive, onupdate=now_local_naive)

    __table_args__ = (
        Index("ix_daily_statistics_strategy_date", "strategy_id", "date", unique=True),
    )


class MonthlyStatisticsModel(Base):
    """Monthly rollup derived from daily statistics"""
    __tablename__ = "monthly_statistics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    strategy_id = Column(Integer, ForeignKey("strategy.id"), nullable=False)
    analysis_month = Column(String(7), nullable=False)  # YYYY-MM

    # Sums of Numeric(19, 4) daily amounts accumulate across days and months
    average_principal = Column(Numeric(38, 4), nullable=False)
    net_flow = Column(Numeric(38, 4), nullable=False)
    monthly_profit_loss = Column(Numeric(38, 4), nullable=False)
    cumulative_profit_loss = Column(Numeric(38, 4), nullable=False)

    # Percentages and the reference price compound, so no precision cap
    monthly_return = Column(Numeric, nullable=False)
    cumulative_return = Column(Numeric, nullable=False)

    # Carry-forward seeds for the next month
    closing_principal = Column(Numeric(38, 8), nullable=False)
    closing_reference_price = Column(Numeric, nullable=False)

    created_at = Column(DateTime, nullable=False, default=now_local_naive)
    updated_at = Column(DateTime, nullable=False, default=now_local_naive, onupdate=now_local_naive)

    __table_args__ = (
        Index("ix_monthly_statistics_strategy_month", "strategy_id", "analysis_month", unique=True),
    )
