"""
Domain Models - Entities
Pure domain objects with no infrastructure dependencies
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional


@dataclass(frozen=True)
class StrategyInfo:
    """Strategy identity as seen by the statistics core"""
    strategy_id: int
    writer_id: str
    name: str

    def is_owned_by(self, member_id: Optional[str]) -> bool:
        return member_id is not None and self.writer_id == member_id


@dataclass(frozen=True)
class DailyRecordCandidate:
    """Parsed, not yet persisted, daily record from an import row"""
    row_number: int
    date: date
    dep_wd_amount: Optional[Decimal]
    daily_profit_loss: Optional[Decimal]


@dataclass(frozen=True)
class DailyRecord:
    """Stored trading result for one strategy on one date - Immutable"""
    strategy_id: int
    date: date
    dep_wd_amount: Optional[Decimal]
    daily_profit_loss: Optional[Decimal]
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def dep_wd_or_zero(self) -> Decimal:
        return self.dep_wd_amount if self.dep_wd_amount is not None else Decimal("0")

    @property
    def profit_loss_or_zero(self) -> Decimal:
        return self.daily_profit_loss if self.daily_profit_loss is not None else Decimal("0")


@dataclass(frozen=True)
class MonthlyAggregate:
    """Derived monthly rollup, chained to the prior month - Immutable"""
    strategy_id: int
    analysis_month: str
    average_principal: Decimal
    net_flow: Decimal
    monthly_profit_loss: Decimal
    monthly_return: Decimal
    cumulative_profit_loss: Decimal
    cumulative_return: Decimal
    closing_principal: Decimal
    closing_reference_price: Decimal
    id: Optional[int] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "strategy_id": self.strategy_id,
            "analysis_month": self.analysis_month,
            "average_principal": float(self.average_principal),
            "net_flow": float(self.net_flow),
            "monthly_profit_loss": float(self.monthly_profit_loss),
            "monthly_return": float(self.monthly_return),
            "cumulative_profit_loss": float(self.cumulative_profit_loss),
            "cumulative_return": float(self.cumulative_return),
        }


@dataclass(frozen=True)
class MonthlyPage:
    """One page of monthly aggregates, newest month first"""
    total_count: int
    page: int
    page_size: int
    items: List[MonthlyAggregate] = field(default_factory=list)

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return (self.total_count + self.page_size - 1) // self.page_size
