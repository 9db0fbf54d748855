"""Health check endpoint."""
from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .config import app_settings
from .database import get_db, ping
from .logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(db: AsyncSession = Depends(get_db)) -> dict:
    """Report service liveness and database reachability."""
    try:
        await ping(db)
        database = "ok"
    except SQLAlchemyError as e:
        logger.warning("health_database_unreachable", error=str(e))
        database = "unreachable"

    return {
        "status": "ok" if database == "ok" else "degraded",
        "version": app_settings.app_version,
        "database": database,
    }
