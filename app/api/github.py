# app/api/github.py
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_cache, get_github_service
from app.api.responses import success
from app.core.cache import CacheManager
from app.services.github_service import GitHubService

github_router = APIRouter(prefix="/github-repos", tags=["github"])
cache_router = APIRouter(prefix="/cache", tags=["cache"])


@github_router.get("")
def search_github_repos(
    q: Optional[str] = Query(None, min_length=2, max_length=255),
    language: Optional[str] = Query(None, max_length=50),
    min_stars: Optional[int] = Query(None, alias="minStars", ge=0),
    project_id: Optional[int] = Query(None, alias="projectId", ge=1),
    service: GitHubService = Depends(get_github_service),
):
    repos = service.search_repositories(query=q, language=language, min_stars=min_stars, project_id=project_id)
    return success(f"Found {len(repos)} repositories", repos, meta={"count": len(repos)})


@cache_router.get("/stats")
def cache_stats(cache: CacheManager = Depends(get_cache)):
    return success("Cache statistics retrieved successfully", cache.stats())


@cache_router.delete("")
def flush_cache(service: GitHubService = Depends(get_github_service)):
    service.flush_all_cache()
    return success("Cache flushed successfully")
