from datetime import date
from decimal import Decimal

import pytest

from app.domain.models import MonthlyAggregate
from app.infrastructure.db.repositories.daily_statistics_repository import DailyStatisticsRepository
from app.infrastructure.db.repositories.monthly_statistics_repository import MonthlyStatisticsRepository
from app.infrastructure.db.repositories.strategy_repository import StrategyRepository


def aggregate(strategy_id: int, month: str, cumulative: str = "0") -> MonthlyAggregate:
    return MonthlyAggregate(
        strategy_id=strategy_id,
        analysis_month=month,
        average_principal=Decimal("1000"),
        net_flow=Decimal("0"),
        monthly_profit_loss=Decimal("0"),
        monthly_return=Decimal("0"),
        cumulative_profit_loss=Decimal(cumulative),
        cumulative_return=Decimal("0"),
        closing_principal=Decimal("1000"),
        closing_reference_price=Decimal("1000"),
    )


@pytest.mark.asyncio
@pytest.mark.integration
async def test_strategy_lookup(db_session, strategy_id):
    repo = StrategyRepository(db_session)

    strategy = await repo.get_strategy(strategy_id)
    assert strategy is not None
    assert strategy.is_owned_by("trader-1")
    assert not strategy.is_owned_by("someone-else")
    assert not strategy.is_owned_by(None)

    assert await repo.get_strategy(strategy_id + 999) is None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_daily_upsert_inserts_then_corrects(db_session, strategy_id):
    repo = DailyStatisticsRepository(db_session)

    first, created = await repo.upsert(strategy_id, date(2024, 1, 5), Decimal("1000"), Decimal("50"))
    assert created is True

    second, created = await repo.upsert(strategy_id, date(2024, 1, 5), Decimal("1000"), Decimal("80"))
    assert created is False
    assert second.id == first.id
    assert second.daily_profit_loss == Decimal("80")

    records = await repo.list_between(strategy_id)
    assert len(records) == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_daily_range_queries_and_deletes(db_session, strategy_id):
    repo = DailyStatisticsRepository(db_session)
    for day in (date(2024, 1, 31), date(2024, 2, 1), date(2024, 2, 29), date(2024, 3, 1)):
        await repo.upsert(strategy_id, day, None, Decimal("1"))

    february = await repo.list_between(strategy_id, date(2024, 2, 1), date(2024, 3, 1))
    assert [r.date for r in february] == [date(2024, 2, 1), date(2024, 2, 29)]

    assert await repo.get_first_date(strategy_id) == date(2024, 1, 31)
    assert await repo.list_dates_from(strategy_id, date(2024, 2, 29)) == [date(2024, 2, 29), date(2024, 3, 1)]

    assert await repo.delete_for_date(strategy_id, date(2024, 1, 31)) is True
    assert await repo.delete_for_date(strategy_id, date(2024, 1, 31)) is False

    assert await repo.delete_from(strategy_id, date(2024, 2, 15)) == 2
    remaining = await repo.list_between(strategy_id)
    assert [r.date for r in remaining] == [date(2024, 2, 1)]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_monthly_upsert_lookup_and_page(db_session, strategy_id):
    repo = MonthlyStatisticsRepository(db_session)
    for i, month in enumerate(["2024-01", "2024-02", "2024-03", "2024-05"]):
        await repo.upsert(aggregate(strategy_id, month, cumulative=str(i)))

    updated = await repo.upsert(aggregate(strategy_id, "2024-02", cumulative="42"))
    assert updated.cumulative_profit_loss == Decimal("42")

    fetched = await repo.get_for_month(strategy_id, "2024-02")
    assert fetched.cumulative_profit_loss == Decimal("42")
    assert await repo.get_for_month(strategy_id, "2024-04") is None

    prior = await repo.get_latest_before(strategy_id, "2024-05")
    assert prior.analysis_month == "2024-03"
    assert await repo.get_latest_before(strategy_id, "2024-01") is None

    total, items = await repo.get_page(strategy_id, page=0, page_size=3)
    assert total == 4
    assert [a.analysis_month for a in items] == ["2024-05", "2024-03", "2024-02"]

    total, items = await repo.get_page(strategy_id, page=1, page_size=3)
    assert [a.analysis_month for a in items] == ["2024-01"]

    assert await repo.list_months_from(strategy_id, "2024-03") == ["2024-03", "2024-05"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_monthly_deletes(db_session, strategy_id):
    repo = MonthlyStatisticsRepository(db_session)
    for month in ["2024-01", "2024-02", "2024-03"]:
        await repo.upsert(aggregate(strategy_id, month))

    assert await repo.delete_from_month(strategy_id, "2024-02") == 2
    assert [a.analysis_month for a in await repo.list_all(strategy_id)] == ["2024-01"]

    assert await repo.delete_all_for_strategy(strategy_id) == 1
    assert await repo.list_all(strategy_id) == []
