import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from housing.api.dependencies import get_session_factory

logger = structlog.get_logger(__name__)
router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> dict:  # type: ignore[type-arg]
    """Liveness + record store health check."""
    db_status = "connected"
    try:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("health_check_database_failed", error=str(exc))
        db_status = f"error: {exc}"

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "database": db_status,
    }
