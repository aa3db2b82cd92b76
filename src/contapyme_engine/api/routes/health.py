"""Health check endpoints."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Response, status
from pydantic import BaseModel
from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from contapyme_engine.api.dependencies import DbSession
from contapyme_engine.config import get_settings
from contapyme_engine.models import Base

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: datetime
    database: str
    missing_tables: list[str] = []
    version: str


def _missing_tables(session: Session) -> list[str]:
    present = set(inspect(session.connection()).get_table_names())
    return sorted(set(Base.metadata.tables) - present)


async def _check_store(db: DbSession) -> tuple[str, list[str]]:
    """(database status, engine tables not found in the database)."""
    try:
        missing = await db.run_sync(_missing_tables)
    except SQLAlchemyError:
        logger.exception("Database health check failed")
        return "unhealthy", []
    if missing:
        logger.warning("Database is missing tables: %s", ", ".join(missing))
        return "schema_missing", missing
    return "healthy", []


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
)
async def health_check(db: DbSession) -> HealthResponse:
    """Check API health, database reachability and schema presence."""
    db_status, missing = await _check_store(db)

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        database=db_status,
        missing_tables=missing,
        version=get_settings().engine_version,
    )


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness_check(db: DbSession, response: Response) -> dict[str, str]:
    """Ready once the database is reachable and the schema is in place."""
    db_status, _ = await _check_store(db)
    if db_status != "healthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "not_ready", "database": db_status}
    return {"status": "ready"}


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_check() -> dict[str, str]:
    """Liveness check for container orchestration."""
    return {"status": "alive"}
