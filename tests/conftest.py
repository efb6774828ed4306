import asyncio
import io
from typing import AsyncGenerator, Iterable, Sequence

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from openpyxl import Workbook
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.infrastructure.db.database import Base, get_db
from app.infrastructure.db.models import StrategyModel
from app.api.routes import health, statistics


TRADER_ID = "trader-1"


def make_workbook(
    rows: Iterable[Sequence],
    header: Sequence = ("date", "dep_wd_amount", "daily_profit_loss"),
    extra_sheets: int = 0,
) -> bytes:
    """Build an xlsx file in memory: header row then data rows"""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "daily"
    if header is not None:
        sheet.append(list(header))
    for row in rows:
        sheet.append(list(row))
    for i in range(extra_sheets):
        workbook.create_sheet(f"extra-{i + 1}")

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture(scope="session")
def event_loop():
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


@pytest.fixture(scope="session")
async def db_engine(tmp_path_factory):
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{db_path}",
        future=True,
        echo=False
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    session_maker = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session
        # cleanup
        await session.rollback()
        for table in reversed(Base.metadata.sorted_tables):
            await session.execute(table.delete())
        await session.commit()


@pytest.fixture()
async def strategy_id(db_session) -> int:
    strategy = StrategyModel(writer_id=TRADER_ID, name="Momentum KOSPI200")
    db_session.add(strategy)
    await db_session.commit()
    return strategy.id


@pytest.fixture()
def workbook():
    return make_workbook


@pytest.fixture()
async def app(db_session) -> FastAPI:
    app = FastAPI()
    app.include_router(health.router, tags=["Health"])
    app.include_router(statistics.router, prefix="/api/v1/strategies", tags=["Strategy Statistics"])

    async def override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture()
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
