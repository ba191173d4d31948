# fellowship/api/system.py
from __future__ import annotations

import logging
import os
from datetime import datetime
from zoneinfo import ZoneInfo

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from fellowship.db import DATABASE_URL, engine

router = APIRouter(tags=["ops"])
logger = logging.getLogger(__name__)

APP_NAME = "Fellowship Backend"
APP_VERSION = "0.1.0"


def db_driver_from_url(url: str | None) -> str | None:
    if not url or "://" not in url:
        return None
    scheme = url.split("://", 1)[0]  # e.g. "postgresql+psycopg2"
    if "+" in scheme:
        return scheme.split("+", 1)[1]
    return scheme


def _tz() -> str:
    return os.getenv("TZ") or "UTC"


@router.get("/health")
def health():
    """Liveness check with a lightweight DB ping and local time."""
    tz = _tz()
    db = {"status": "ok", "driver": db_driver_from_url(DATABASE_URL)}
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("health check failed: %s", e)
        db["status"] = f"error: {type(e).__name__}"

    return {
        "status": "ok",
        "time": {"tz": tz, "now": datetime.now(ZoneInfo(tz)).isoformat()},
        "db": db,
    }


@router.get("/version")
def version():
    return {
        "app": APP_NAME,
        "version": APP_VERSION,
        "db_driver": db_driver_from_url(DATABASE_URL),
        "tz": _tz(),
    }
