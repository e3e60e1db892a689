from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from academy.core.config import get_settings
from academy.db.bootstrap import missing_tables
from academy.db.session import engine
from academy.services.notification_hub import notification_hub

router = APIRouter()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/health/ready")
def health_ready() -> JSONResponse:
    settings = get_settings()
    db_ok = True
    db_error: str | None = None
    absent: list[str] = []
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        absent = missing_tables()
    except Exception as exc:  # pragma: no cover - environment dependent
        db_ok = False
        db_error = str(exc)

    ready = db_ok and not absent
    payload = {
        "status": "ok" if ready else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": {"ok": db_ok, "missing_tables": absent, "error": db_error},
        "smtp": {"configured": bool(settings.smtp_host and settings.smtp_from_email)},
        "whatsapp": {"configured": bool(settings.whatsapp_api_url)},
        "realtime": {"connected_users": notification_hub.connected_users()},
    }
    return JSONResponse(status_code=200 if ready else 503, content=payload)
