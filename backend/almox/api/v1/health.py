"""Health check endpoints."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from almox.db import get_session

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health", operation_id="healthCheck")
async def health_check(session: Annotated[AsyncSession, Depends(get_session)]) -> dict[str, str]:
    """Report whether the record store answers; allocation is useless without it."""
    try:
        await session.execute(text("SELECT 1"))
    except DBAPIError as e:
        logger.error("Health check failed", error=str(e))
        raise HTTPException(status_code=503, detail="Database unavailable") from e
    return {"status": "healthy", "database": "ok"}
