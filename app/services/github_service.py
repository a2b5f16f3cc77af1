# app/services/github_service.py
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.core.cache import KEY_MISSING, CacheManager
from app.core.exceptions import ConflictError, NotFoundError
from app.integrations.github_client import GitHubClient
from app.models.base import utcnow
from app.models.github_repo import GitHubRepo
from app.models.project import Project
from app.repositories.github_repository import GitHubRepoRepository
from app.repositories.project_repository import ProjectRepository
from app.schemas.base import serialize, serialize_many
from app.schemas.github_schemas import GitHubRepoResponse
from app.schemas.project_schemas import ProjectResponse

logger = logging.getLogger(__name__)


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def normalize_repo(raw: Dict[str, Any], project_id: int, username: str) -> Dict[str, Any]:
    """GitHub API repository payload -> github_repos row"""
    return {
        "github_id": raw["id"],
        "name": raw["name"],
        "full_name": raw["full_name"],
        "description": raw.get("description"),
        "html_url": raw["html_url"],
        "clone_url": raw.get("clone_url") or raw["html_url"],
        "language": raw.get("language"),
        "stargazers_count": raw.get("stargazers_count") or 0,
        "forks_count": raw.get("forks_count") or 0,
        "private": bool(raw.get("private", False)),
        "username": username,
        "github_created_at": _parse_timestamp(raw.get("created_at")) or utcnow(),
        "github_updated_at": _parse_timestamp(raw.get("updated_at")) or utcnow(),
        "project_id": project_id,
    }


class GitHubService:
    CACHE_TTL = 600

    def __init__(self, db, cache: CacheManager, client: GitHubClient):
        self.db = db
        self.cache = cache
        self.client = client
        self.github_repo = GitHubRepoRepository(GitHubRepo, db)
        self.project_repo = ProjectRepository(Project, db)

    def _get_project(self, project_id: int) -> Project:
        project = self.project_repo.get(project_id)
        if not project:
            raise NotFoundError(f"Project with ID {project_id} not found")
        return project

    def _cache_key(self, project_id: int, username: str) -> str:
        return self.cache.generate_key("github", project_id, username, "repos")

    def get_user_repositories(self, project_id: int, username: str) -> Dict[str, Any]:
        """
        Repositories of a GitHub user linked to a project.

        Served from cache while fresh; otherwise fetched from GitHub,
        reconciled into github_repos and cached. When the fetch or the
        write fails the rows already stored for (project, username) are
        returned instead.
        """
        project = self._get_project(project_id)
        key = self._cache_key(project_id, username)

        cached = self.cache.get(key)
        if cached is not None:
            ttl = self.cache.get_ttl(key)
            return self._result(project, cached, cached=True, cache_expiry=ttl if ttl != KEY_MISSING else None)

        try:
            rows = [normalize_repo(raw, project_id, username) for raw in self.client.list_user_repos(username)]
            if rows:
                removed, moved_from = self.github_repo.sync(project_id, username, rows)
                logger.info(
                    "Synced %s repositories for %s into project %s (%s stale removed)",
                    len(rows), username, project_id, removed,
                )
                repositories = serialize_many(
                    GitHubRepoResponse, self.github_repo.find_by_project_and_username(project_id, username),
                )
            else:
                repositories, moved_from = [], set()
        except Exception as exc:
            self.db.rollback()
            logger.warning(
                "GitHub fetch for %s failed, falling back to stored repositories: %s", username, exc,
            )
            stored = self.github_repo.find_by_project_and_username(project_id, username)
            return self._result(
                project, serialize_many(GitHubRepoResponse, stored), cached=True, cache_expiry=None,
            )

        # projects that lost rows to this sync hold stale counts and repo lists
        for previous_id in sorted(moved_from):
            logger.info("Repositories of %s moved from project %s to %s", username, previous_id, project_id)
            self.cache.invalidate_github_cache(previous_id)
            self.cache.invalidate_project_cache(previous_id)

        self.cache.set(key, repositories, self.CACHE_TTL)
        self.cache.invalidate_project_cache(project_id)
        return self._result(project, repositories, cached=False, cache_expiry=self.CACHE_TTL)

    def _result(self, project: Project, repositories: List[Dict[str, Any]], cached: bool,
                cache_expiry: Optional[int]) -> Dict[str, Any]:
        return {
            "project": serialize(ProjectResponse, project),
            "repositories": repositories,
            "cached": cached,
            "cacheExpiry": cache_expiry,
        }

    def get_cached_repositories(self, project_id: int, username: str) -> Dict[str, Any]:
        """Cache lookup only, GitHub is never called"""
        self._get_project(project_id)
        key = self._cache_key(project_id, username)
        repositories = self.cache.get(key)
        ttl = self.cache.get_ttl(key) if repositories is not None else KEY_MISSING
        return {
            "repositories": repositories or [],
            "cached": repositories is not None,
            "cacheExpiry": ttl if ttl != KEY_MISSING else None,
        }

    def clear_cache(self, project_id: int, username: Optional[str] = None) -> None:
        self.cache.invalidate_github_cache(project_id, username)

    def flush_all_cache(self) -> bool:
        return self.cache.flush()

    def get_project_repositories(self, project_id: int) -> List[Dict[str, Any]]:
        self._get_project(project_id)
        return serialize_many(GitHubRepoResponse, self.github_repo.find_by_project(project_id))

    def create_repository(self, project_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        self._get_project(project_id)
        github_id = data["github_id"]
        if self.github_repo.get_by_github_id_and_project(github_id, project_id):
            raise ConflictError(f"Repository with GitHub ID {github_id} already exists for this project")

        payload = dict(data)
        payload["project_id"] = project_id
        now = utcnow()
        payload["github_created_at"] = payload.get("github_created_at") or now
        payload["github_updated_at"] = payload.get("github_updated_at") or now

        repo = self.github_repo.create(payload)
        self.cache.invalidate_github_cache(project_id, repo.username)
        self.cache.invalidate_project_cache(project_id)
        logger.info("Registered repository %s for project %s", repo.full_name, project_id)
        return serialize(GitHubRepoResponse, repo)

    def get_project_stats(self, project_id: int) -> Dict[str, Any]:
        self._get_project(project_id)
        return self.github_repo.stats_by_project(project_id)

    def search_repositories(self, query: Optional[str] = None, language: Optional[str] = None,
                            min_stars: Optional[int] = None, project_id: Optional[int] = None) -> List[Dict[str, Any]]:
        if query:
            rows = self.github_repo.search(query, project_id)
        elif language:
            rows = self.github_repo.find_by_language(language)
        elif min_stars is not None:
            rows = self.github_repo.find_popular(min_stars)
        else:
            rows = self.github_repo.find_recent(10)
        return serialize_many(GitHubRepoResponse, rows)
