from __future__ import annotations

import logging
from typing import Any, Dict

import redis
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check(db: Session = Depends(get_db)) -> Dict[str, Any]:
    """Basic health check for the database and the optional Redis."""
    db_ok = True
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.warning("Database health check failed", exc_info=True)
        db_ok = False

    # None means not configured
    redis_ok = None
    if settings.REDIS_URL:
        try:
            with redis.Redis.from_url(settings.REDIS_URL, socket_timeout=2) as client:
                redis_ok = bool(client.ping())
        except redis.RedisError:
            logger.warning("Redis health check failed", exc_info=True)
            redis_ok = False

    healthy = db_ok and redis_ok is not False
    return {
        "status": 1 if healthy else 0,
        "message": "ok" if healthy else "degraded",
        "data": {
            "db": db_ok,
            "redis": redis_ok,
        },
    }
