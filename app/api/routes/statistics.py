"""
Strategy Statistics API Routes
Daily statistics entry/upload and monthly statistics queries

Month keys are YYYY-MM; dates are YYYY-MM-DD.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Header, HTTPException, Query, UploadFile
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.exceptions import (
    AccessDenied,
    AggregateNotFound,
    CascadeFailed,
    DailyRecordNotFound,
    StatisticsError,
    StrategyNotFound,
)
from app.domain.models import DailyRecord, MonthlyAggregate
from app.domain.schemas.statistics import (
    DailyStatisticsBody,
    DailyStatisticsResponse,
    ImportResponse,
    MonthlyPageResponse,
    MonthlyStatisticsResponse,
)
from app.infrastructure.db.database import get_db
from app.reports.monthly_statistics_export import export_monthly_statistics
from app.services.statistics_service import StatisticsService

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# -------------------------------------------------------------------
# Helper utilities
# -------------------------------------------------------------------

NOT_FOUND_KINDS = (StrategyNotFound, AggregateNotFound, DailyRecordNotFound)


def to_http_exception(error: StatisticsError) -> HTTPException:
    """Map a statistics error to an HTTP status with a structured body"""
    if isinstance(error, AccessDenied):
        status_code = 403
    elif isinstance(error, NOT_FOUND_KINDS):
        status_code = 404
    elif isinstance(error, CascadeFailed):
        status_code = 500
    else:
        status_code = 400
    return HTTPException(status_code=status_code, detail=error.to_dict())


def daily_response(record: DailyRecord) -> DailyStatisticsResponse:
    return DailyStatisticsResponse(
        date=record.date,
        dep_wd_amount=float(record.dep_wd_amount) if record.dep_wd_amount is not None else None,
        daily_profit_loss=float(record.daily_profit_loss) if record.daily_profit_loss is not None else None,
    )


def monthly_response(aggregate: MonthlyAggregate) -> MonthlyStatisticsResponse:
    data = aggregate.to_dict()
    data.pop("strategy_id")
    return MonthlyStatisticsResponse(**data)


# -------------------------------------------------------------------
# Daily statistics
# -------------------------------------------------------------------

@router.post("/{strategy_id}/daily-statistics/upload", response_model=ImportResponse)
async def upload_daily_statistics(
    strategy_id: int,
    file: UploadFile = File(..., description="xlsx with columns: date, deposit/withdrawal, daily P/L"),
    is_trader: bool = Query(True, description="Trader uploads must come from the strategy's writer"),
    member_id: Optional[str] = Header(None, alias="X-Member-Id"),
    db: AsyncSession = Depends(get_db)
):
    """Bulk import daily statistics; all rows are stored or none are"""
    content = await file.read()
    try:
        records = await StatisticsService(db).import_batch(content, strategy_id, member_id, is_trader)
    except StatisticsError as e:
        raise to_http_exception(e)

    return ImportResponse(
        strategy_id=strategy_id,
        imported=len(records),
        records=[daily_response(r) for r in records],
    )


@router.put("/{strategy_id}/daily-statistics/{record_date}", response_model=DailyStatisticsResponse)
async def upsert_daily_statistics(
    strategy_id: int,
    record_date: date,
    body: DailyStatisticsBody,
    db: AsyncSession = Depends(get_db)
):
    """Register or correct one day's statistics"""
    try:
        record = await StatisticsService(db).upsert_daily_record(
            strategy_id,
            record_date,
            body.dep_wd_amount,
            body.daily_profit_loss,
        )
    except StatisticsError as e:
        raise to_http_exception(e)
    return daily_response(record)


@router.delete("/{strategy_id}/daily-statistics/{record_date}", status_code=204)
async def delete_daily_statistics(
    strategy_id: int,
    record_date: date,
    db: AsyncSession = Depends(get_db)
):
    try:
        await StatisticsService(db).delete_daily_record(strategy_id, record_date)
    except StatisticsError as e:
        raise to_http_exception(e)
    return Response(status_code=204)


@router.get("/{strategy_id}/daily-statistics", response_model=List[DailyStatisticsResponse])
async def list_daily_statistics(
    strategy_id: int,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    records = await StatisticsService(db).list_daily_records(strategy_id, start_date, end_date)
    return [daily_response(r) for r in records]


# -------------------------------------------------------------------
# Monthly statistics
# -------------------------------------------------------------------

@router.get("/{strategy_id}/monthly-statistics", response_model=MonthlyPageResponse)
async def get_monthly_statistics(
    strategy_id: int,
    page: int = Query(0, description="0-based page number"),
    page_size: int = Query(12),
    db: AsyncSession = Depends(get_db)
):
    """Monthly statistics, newest month first"""
    try:
        result = await StatisticsService(db).get_monthly_page(strategy_id, page, page_size)
    except StatisticsError as e:
        raise to_http_exception(e)

    return MonthlyPageResponse(
        total_count=result.total_count,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
        items=[monthly_response(a) for a in result.items],
    )


@router.get("/{strategy_id}/monthly-statistics/export")
async def export_monthly_statistics_xlsx(
    strategy_id: int,
    db: AsyncSession = Depends(get_db)
):
    aggregates = await StatisticsService(db).list_monthly_aggregates(strategy_id)
    content = export_monthly_statistics(aggregates)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="monthly_statistics_{strategy_id}.xlsx"'},
    )


@router.get("/{strategy_id}/monthly-statistics/{month}", response_model=MonthlyStatisticsResponse)
async def get_monthly_statistics_for_month(
    strategy_id: int,
    month: str,
    db: AsyncSession = Depends(get_db)
):
    try:
        aggregate = await StatisticsService(db).get_monthly_aggregate(strategy_id, month)
    except StatisticsError as e:
        raise to_http_exception(e)
    return monthly_response(aggregate)


@router.post("/{strategy_id}/monthly-statistics/rebuild", response_model=List[MonthlyStatisticsResponse])
async def rebuild_monthly_statistics(
    strategy_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Recompute every month from the stored daily statistics"""
    try:
        aggregates = await StatisticsService(db).rebuild_history(strategy_id)
    except StatisticsError as e:
        raise to_http_exception(e)
    return [monthly_response(a) for a in aggregates]


@router.delete("/{strategy_id}/monthly-statistics", status_code=204)
async def delete_statistics_from_month(
    strategy_id: int,
    from_month: str = Query(..., description="YYYY-MM; this month and everything after is removed"),
    db: AsyncSession = Depends(get_db)
):
    try:
        await StatisticsService(db).delete_history_from_month(strategy_id, from_month)
    except StatisticsError as e:
        raise to_http_exception(e)
    return Response(status_code=204)


@router.delete("/{strategy_id}/statistics", status_code=204)
async def delete_strategy_statistics(
    strategy_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Purge all statistics of a deleted strategy"""
    await StatisticsService(db).delete_strategy_history(strategy_id)
    return Response(status_code=204)
