"""System-level routes for diagnostics."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import get_settings
from ..database import get_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])


class HealthResponse(BaseModel):
    status: str
    database: bool


@router.get("/api")
def api_info() -> dict[str, str]:
    settings = get_settings()
    return {"service": settings.app_name, "version": settings.api_version}


@router.get("/health", response_model=HealthResponse)
def healthcheck(db: Session = Depends(get_session)) -> HealthResponse:
    """Report whether the case store is reachable."""

    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.warning("Health check could not reach the database", exc_info=True)
        return HealthResponse(status="degraded", database=False)
    return HealthResponse(status="ok", database=True)


__all__ = ["router"]
