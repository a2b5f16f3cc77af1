# app/api/deps.py
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.cache import CacheManager
from app.core.database import get_db
from app.core.exceptions import ValidationError
from app.integrations.github_client import GitHubClient
from app.services.github_service import GitHubService
from app.services.project_service import ProjectService
from app.services.task_service import TaskService


def get_cache(request: Request) -> CacheManager:
    """Process-wide cache built at startup"""
    return request.app.state.cache


def get_github_client(request: Request) -> GitHubClient:
    return request.app.state.github_client


def get_project_service(db: Session = Depends(get_db), cache: CacheManager = Depends(get_cache)) -> ProjectService:
    return ProjectService(db, cache)


def get_task_service(db: Session = Depends(get_db), cache: CacheManager = Depends(get_cache)) -> TaskService:
    return TaskService(db, cache)


def get_github_service(
    db: Session = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    client: GitHubClient = Depends(get_github_client),
) -> GitHubService:
    return GitHubService(db, cache, client)


def parse_flag(value: Optional[str], field: str) -> bool:
    """Boolean query flag; absent or empty means off"""
    if value is None or not value.strip():
        return False
    text = value.strip().lower()
    if text in ("true", "1", "yes", "on"):
        return True
    if text in ("false", "0", "no", "off"):
        return False
    raise ValidationError("Invalid input data", errors=[
        {"field": field, "message": f"{field} must be a boolean"},
    ])
