"""
Domain Models Package
Export all domain entities
"""

from .entities import (
    DailyRecord,
    DailyRecordCandidate,
    MonthlyAggregate,
    MonthlyPage,
    StrategyInfo,
)

__all__ = [
    "DailyRecord",
    "DailyRecordCandidate",
    "MonthlyAggregate",
    "MonthlyPage",
    "StrategyInfo",
]
