# app/api/api.py
import logging
import time

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.api.deps import get_cache
from app.api.responses import success, timestamp
from app.core.cache import CacheManager
from app.core.config import settings
from app.core.database import get_db

logger = logging.getLogger(__name__)

api_router = APIRouter()


@api_router.get("/api")
def root():
    return success(f"{settings.APP_NAME} is running", data={
        "version": settings.VERSION,
        "endpoints": {
            "health": "/health",
            "projects": "/api/projects",
            "tasks": "/api/tasks",
            "githubRepos": "/api/github-repos",
            "cache": "/api/cache",
            "docs": "/docs",
        },
    })


@api_router.get("/health")
def health(request: Request, db=Depends(get_db), cache: CacheManager = Depends(get_cache)):
    """Liveness plus database and cache reachability"""
    checks = {"database": "ok", "cache": "ok"}
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("Health check: database unavailable: %s", exc)
        checks["database"] = "unavailable"
    if not cache.ping():
        checks["cache"] = "unavailable"

    healthy = checks["database"] == "ok"
    started_at = getattr(request.app.state, "started_at", None)
    body = {
        "success": healthy,
        "message": "Server is healthy" if healthy else "Server is degraded",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "uptime": round(time.time() - started_at, 3) if started_at else 0,
        "timestamp": timestamp(),
        "checks": checks,
    }
    return JSONResponse(status_code=200 if healthy else 503, content=body)
