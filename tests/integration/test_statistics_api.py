"""
HTTP tests for the strategy statistics routes
"""

from datetime import date

import pytest

from app.api.routes.statistics import XLSX_MEDIA_TYPE

BASE = "/api/v1/strategies"
TRADER_HEADERS = {"X-Member-Id": "trader-1"}


def upload(content: bytes):
    return {"file": ("daily.xlsx", content, XLSX_MEDIA_TYPE)}


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_upload_then_query_months(client, strategy_id, workbook):
    content = workbook([
        (date(2024, 1, 5), 1000, 50),
        (date(2024, 2, 10), 0, -20),
    ])

    response = await client.post(
        f"{BASE}/{strategy_id}/daily-statistics/upload",
        files=upload(content),
        headers=TRADER_HEADERS,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["imported"] == 2
    assert [r["date"] for r in body["records"]] == ["2024-01-05", "2024-02-10"]

    response = await client.get(f"{BASE}/{strategy_id}/monthly-statistics", params={"page": 0, "page_size": 10})
    assert response.status_code == 200
    page = response.json()
    assert page["total_count"] == 2
    assert page["total_pages"] == 1
    assert [m["analysis_month"] for m in page["items"]] == ["2024-02", "2024-01"]
    assert page["items"][0]["cumulative_profit_loss"] == 30.0

    response = await client.get(f"{BASE}/{strategy_id}/monthly-statistics/2024-01")
    assert response.status_code == 200
    assert response.json()["monthly_return"] == 5.0


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_upload_by_other_member_is_forbidden(client, strategy_id, workbook):
    response = await client.post(
        f"{BASE}/{strategy_id}/daily-statistics/upload",
        files=upload(workbook([(date(2024, 1, 5), 1000, 50)])),
        headers={"X-Member-Id": "intruder"},
    )

    assert response.status_code == 403
    assert response.json()["detail"]["kind"] == "AccessDenied"


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_upload_validation_error_is_structured(client, strategy_id, workbook):
    response = await client.post(
        f"{BASE}/{strategy_id}/daily-statistics/upload",
        files=upload(workbook([(date(2024, 1, 5), 1000, 50)], extra_sheets=1)),
        headers=TRADER_HEADERS,
    )

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["kind"] == "MultiSheetNotAllowed"
    assert detail["sheet_count"] == 2


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_manual_upsert_and_delete(client, strategy_id):
    response = await client.put(
        f"{BASE}/{strategy_id}/daily-statistics/2024-03-04",
        json={"dep_wd_amount": "2000", "daily_profit_loss": "40"},
    )
    assert response.status_code == 200
    assert response.json() == {"date": "2024-03-04", "dep_wd_amount": 2000.0, "daily_profit_loss": 40.0}

    response = await client.get(f"{BASE}/{strategy_id}/daily-statistics", params={"start_date": "2024-03-01"})
    assert [r["date"] for r in response.json()] == ["2024-03-04"]

    response = await client.delete(f"{BASE}/{strategy_id}/daily-statistics/2024-03-04")
    assert response.status_code == 204

    response = await client.get(f"{BASE}/{strategy_id}/monthly-statistics/2024-03")
    assert response.status_code == 404
    assert response.json()["detail"]["kind"] == "AggregateNotFound"

    response = await client.delete(f"{BASE}/{strategy_id}/daily-statistics/2024-03-04")
    assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_manual_upsert_rejects_too_many_decimals(client, strategy_id):
    response = await client.put(
        f"{BASE}/{strategy_id}/daily-statistics/2024-03-04",
        json={"dep_wd_amount": "1.123456"},
    )

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["kind"] == "FieldValidationFailed"
    assert detail["errors"][0]["field"] == "dep_wd_amount"


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_bad_month_and_page_arguments(client, strategy_id):
    response = await client.get(f"{BASE}/{strategy_id}/monthly-statistics/2024-13")
    assert response.status_code == 400
    assert response.json()["detail"]["kind"] == "InvalidMonth"

    response = await client.get(f"{BASE}/{strategy_id}/monthly-statistics", params={"page_size": 0})
    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_export_and_rollback_from_month(client, strategy_id):
    for day in ("2024-01-05", "2024-02-10", "2024-03-08"):
        await client.put(f"{BASE}/{strategy_id}/daily-statistics/{day}", json={"daily_profit_loss": "10"})

    response = await client.get(f"{BASE}/{strategy_id}/monthly-statistics/export")
    assert response.status_code == 200
    assert response.headers["content-type"] == XLSX_MEDIA_TYPE
    assert response.content[:2] == b"PK"

    response = await client.delete(f"{BASE}/{strategy_id}/monthly-statistics", params={"from_month": "2024-02"})
    assert response.status_code == 204

    response = await client.get(f"{BASE}/{strategy_id}/monthly-statistics")
    assert [m["analysis_month"] for m in response.json()["items"]] == ["2024-01"]


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_rebuild_and_purge(client, strategy_id):
    await client.put(f"{BASE}/{strategy_id}/daily-statistics/2024-01-05", json={"dep_wd_amount": "1000", "daily_profit_loss": "50"})

    response = await client.post(f"{BASE}/{strategy_id}/monthly-statistics/rebuild")
    assert response.status_code == 200
    assert [m["analysis_month"] for m in response.json()] == ["2024-01"]

    response = await client.delete(f"{BASE}/{strategy_id}/statistics")
    assert response.status_code == 204

    response = await client.get(f"{BASE}/{strategy_id}/daily-statistics")
    assert response.json() == []


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_unknown_strategy_is_404(client):
    response = await client.post(f"{BASE}/424242/monthly-statistics/rebuild")
    assert response.status_code == 404
    assert response.json()["detail"]["kind"] == "StrategyNotFound"


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_health_and_readiness(client):
    assert (await client.get("/health")).json()["status"] == "ok"

    response = await client.get("/ready")
    assert response.json() == {"status": "ready", "db_connected": True}


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_monthly_page_for_unknown_strategy_is_404(client):
    response = await client.get(f"{BASE}/424242/monthly-statistics")
    assert response.status_code == 404
    assert response.json()["detail"]["kind"] == "StrategyNotFound"
