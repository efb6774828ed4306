from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from app.utils.time import today_local

MIN_RECORD_DATE = date(1900, 1, 1)

# Numeric(19, 4) columns
AMOUNT_MAX_DIGITS = 19
AMOUNT_DECIMAL_PLACES = 4


class DailyStatisticsRequest(BaseModel):
    """Field rules for one daily record, shared by manual entry and import"""
    date: date
    dep_wd_amount: Optional[Decimal] = Field(
        None,
        max_digits=AMOUNT_MAX_DIGITS,
        decimal_places=AMOUNT_DECIMAL_PLACES,
        description="Deposit (+) / withdrawal (-) amount",
    )
    daily_profit_loss: Optional[Decimal] = Field(
        None,
        max_digits=AMOUNT_MAX_DIGITS,
        decimal_places=AMOUNT_DECIMAL_PLACES,
        description="Daily profit/loss",
    )

    @field_validator("date")
    @classmethod
    def date_in_range(cls, value: date) -> date:
        if value < MIN_RECORD_DATE:
            raise ValueError(f"date must be on or after {MIN_RECORD_DATE.isoformat()}")
        if value > today_local():
            raise ValueError("date must not be in the future")
        return value


class DailyStatisticsBody(BaseModel):
    """Request body for manual upsert (the date comes from the path)"""
    dep_wd_amount: Optional[Decimal] = None
    daily_profit_loss: Optional[Decimal] = None


class DailyStatisticsResponse(BaseModel):
    date: date
    dep_wd_amount: Optional[float] = None
    daily_profit_loss: Optional[float] = None


class MonthlyStatisticsResponse(BaseModel):
    analysis_month: str
    average_principal: float
    net_flow: float
    monthly_profit_loss: float
    monthly_return: float
    cumulative_profit_loss: float
    cumulative_return: float


class MonthlyPageResponse(BaseModel):
    total_count: int
    page: int
    page_size: int
    total_pages: int
    items: List[MonthlyStatisticsResponse]


class ImportResponse(BaseModel):
    strategy_id: int
    imported: int
    records: List[DailyStatisticsResponse]
