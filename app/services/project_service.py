# app/services/project_service.py
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from app.core.cache import CacheManager
from app.core.exceptions import BadRequestError, InternalError, NotFoundError
from app.models.enums import ProjectStatus, values
from app.models.project import Project
from app.models.task import Task
from app.repositories.project_repository import ProjectRepository
from app.repositories.task_repository import TaskRepository
from app.schemas.base import serialize, serialize_many
from app.schemas.project_schemas import ProjectDetailResponse, ProjectResponse
from app.schemas.task_schemas import TaskResponse
from app.services.helpers import (
    FieldErrors, as_date, filters_key, page_offset, pagination_meta, slice_page,
)

logger = logging.getLogger(__name__)

PROJECT_FIELDS = ("name", "description", "status", "start_date", "end_date")


class ProjectService:
    LIST_TTL = 300
    DETAIL_TTL = 300

    def __init__(self, db, cache: CacheManager):
        self.db = db
        self.cache = cache
        self.project_repo = ProjectRepository(Project, db)
        self.task_repo = TaskRepository(Task, db)

    def _clean(self, data: Dict[str, Any]) -> Dict[str, Any]:
        payload = {k: v for k, v in data.items() if k in PROJECT_FIELDS}
        if "status" in payload and payload["status"] is None:
            del payload["status"]
        if payload.get("name") is not None:
            payload["name"] = str(payload["name"]).strip()
        for field in ("start_date", "end_date"):
            if field in payload:
                payload[field] = as_date(payload[field])
        return payload

    def _validate(self, data: Dict[str, Any], is_update: bool = False,
                  current: Optional[Project] = None) -> None:
        errors = FieldErrors()
        if not is_update or "name" in data:
            errors.check_text("name", data.get("name"), "Project name", required=True,
                              min_length=2, max_length=255)
        errors.check_text("description", data.get("description"), "Description", max_length=5000)
        errors.check_choice("status", data.get("status"), values(ProjectStatus), "Status")

        # the date order is checked against what the row will hold afterwards
        start = data["start_date"] if "start_date" in data else getattr(current, "start_date", None)
        end = data["end_date"] if "end_date" in data else getattr(current, "end_date", None)
        if start and end and start > end:
            errors.add("endDate", "End date must be after start date")
        if not is_update and data.get("start_date") and data["start_date"] < date.today():
            errors.add("startDate", "Start date cannot be in the past")
        errors.raise_if_any()

    def _get_or_404(self, project_id: int) -> Project:
        project = self.project_repo.get(project_id)
        if not project:
            raise NotFoundError(f"Project with ID {project_id} not found")
        return project

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        payload = self._clean(data)
        self._validate(payload)
        if not payload.get("status"):
            payload["status"] = ProjectStatus.ACTIVE.value

        project = self.project_repo.create(payload)
        self.cache.invalidate_project_cache(project.id)
        logger.info("Created project %s (%s)", project.id, project.name)
        return serialize(ProjectResponse, project)

    def list(self, filters: Optional[Dict[str, Any]] = None, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        """Paginated projects with at most one filter applied: search, status, then date range"""
        filters = filters or {}
        key = self.cache.generate_key("projects", "list", filters_key(filters), page, limit)
        return self.cache.get_or_set(key, lambda: self._list(filters, page, limit), ttl=self.LIST_TTL)

    def _list(self, filters: Dict[str, Any], page: int, limit: int) -> Dict[str, Any]:
        search = filters.get("search")
        status = filters.get("status")
        start_date, end_date = as_date(filters.get("start_date")), as_date(filters.get("end_date"))

        if search:
            rows = self.project_repo.search(search)
        elif status:
            rows = self.project_repo.find_by_status(status)
        elif start_date and end_date:
            rows = self.project_repo.find_by_date_range(start_date, end_date)
        else:
            rows, total = self.project_repo.find_all_with_counts(page_offset(page, limit), limit)
            return {
                "items": serialize_many(ProjectResponse, rows),
                "pagination": pagination_meta(page, limit, total),
            }

        return {
            "items": serialize_many(ProjectResponse, slice_page(rows, page, limit)),
            "pagination": pagination_meta(page, limit, len(rows)),
        }

    def get_by_id(self, project_id: int, include_relations: bool = True) -> Dict[str, Any]:
        variant = "with-relations" if include_relations else "simple"
        key = self.cache.generate_key("project", project_id, variant)

        def load():
            if include_relations:
                project = self.project_repo.get_with_tasks_and_repos(project_id)
            else:
                project = self.project_repo.get(project_id)
            if not project:
                raise NotFoundError(f"Project with ID {project_id} not found")
            schema = ProjectDetailResponse if include_relations else ProjectResponse
            return serialize(schema, project)

        return self.cache.get_or_set(key, load, ttl=self.DETAIL_TTL)

    def update(self, project_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        project = self._get_or_404(project_id)
        payload = self._clean(data)
        if not payload:
            raise BadRequestError("No valid fields provided for update")
        self._validate(payload, is_update=True, current=project)

        affected = self.project_repo.update(project_id, payload)
        if not affected:
            raise InternalError(f"Failed to update project {project_id}")

        self._invalidate_with_children(project_id, self.project_repo.task_ids(project_id))
        logger.info("Updated project %s: %s", project_id, sorted(payload))
        return self.get_by_id(project_id, include_relations=True)

    def delete(self, project_id: int) -> None:
        self._get_or_404(project_id)
        task_ids = self.project_repo.task_ids(project_id)

        self.project_repo.delete(project_id)
        self._invalidate_with_children(project_id, task_ids)
        self.cache.invalidate_github_cache(project_id)
        logger.info("Deleted project %s with %s tasks", project_id, len(task_ids))

    def _invalidate_with_children(self, project_id: int, task_ids: List[int]) -> None:
        self.cache.invalidate_project_cache(project_id)
        for task_id in task_ids:
            self.cache.delete_pattern(f"task:{task_id}:*")
        self.cache.delete_pattern("tasks:*")

    def stats(self) -> Dict[str, Any]:
        def load():
            return {
                "totalProjects": self.project_repo.count(),
                "statusCounts": self.project_repo.count_by_status(),
                "recentProjects": serialize_many(ProjectResponse, self.project_repo.find_recent(5)),
            }

        return self.cache.get_or_set("projects:stats", load)

    def search(self, query: Optional[str]) -> List[Dict[str, Any]]:
        text = (query or "").strip()
        if len(text) < 2:
            raise BadRequestError("Search query must be at least 2 characters long")
        return serialize_many(ProjectResponse, self.project_repo.search(text))

    def get_active(self) -> List[Dict[str, Any]]:
        return self.cache.get_or_set(
            "projects:active",
            lambda: serialize_many(ProjectResponse, self.project_repo.find_active()),
        )

    def get_by_date_range(self, start_date, end_date) -> List[Dict[str, Any]]:
        start_date, end_date = as_date(start_date), as_date(end_date)
        if not start_date or not end_date:
            raise BadRequestError("Both start date and end date are required")
        if start_date > end_date:
            raise BadRequestError("Start date must be before end date")
        return serialize_many(ProjectResponse, self.project_repo.find_by_date_range(start_date, end_date))

    def get_with_tasks(self, project_id: int) -> Dict[str, Any]:
        project = self.project_repo.get_with_tasks(project_id)
        if not project:
            raise NotFoundError(f"Project with ID {project_id} not found")
        data = serialize(ProjectResponse, project)
        data["tasks"] = serialize_many(TaskResponse, project.tasks)
        return data
