from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe.

    Returns:
        dict: A dictionary with a single "status" key set to "ok".
    """

    return {"status": "ok"}


@router.get("/health/ready")
async def readiness_check(session: Annotated[AsyncSession, Depends(get_db)]) -> dict:
    """Readiness probe: the relational store answers a trivial query.

    Database errors propagate to the global handler (HTTP 500).
    """

    await session.execute(text("SELECT 1"))
    return {"status": "ok", "database": "ok"}
