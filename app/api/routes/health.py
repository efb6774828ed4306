from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.infrastructure.db.database import get_db, ping

router = APIRouter()


@router.get("/health")
async def health():
    return {"status": "ok", "env": settings.APP_ENV}


@router.get("/ready")
async def ready(db: AsyncSession = Depends(get_db)):
    db_connected = await ping(db)
    return {
        "status": "ready" if db_connected else "not_ready",
        "db_connected": db_connected,
    }
