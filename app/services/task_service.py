# app/services/task_service.py
import logging
from typing import Any, Dict, List, Optional

from app.core.cache import CacheManager
from app.core.exceptions import BadRequestError, InternalError, NotFoundError
from app.models.enums import TaskPriority, TaskStatus, values
from app.models.project import Project
from app.models.task import Task
from app.repositories.project_repository import ProjectRepository
from app.repositories.task_repository import TaskRepository
from app.schemas.base import serialize, serialize_many
from app.schemas.task_schemas import TaskDetailResponse, TaskResponse
from app.services.helpers import (
    FieldErrors, as_date, filters_key, page_offset, pagination_meta, slice_page,
)

logger = logging.getLogger(__name__)

TASK_FIELDS = ("title", "description", "status", "priority", "due_date", "project_id")


class TaskService:
    LIST_TTL = 300
    DETAIL_TTL = 300

    def __init__(self, db, cache: CacheManager):
        self.db = db
        self.cache = cache
        self.task_repo = TaskRepository(Task, db)
        self.project_repo = ProjectRepository(Project, db)

    def _clean(self, data: Dict[str, Any]) -> Dict[str, Any]:
        payload = {k: v for k, v in data.items() if k in TASK_FIELDS}
        # status and priority are NOT NULL; an explicit null means "leave as is"
        for field in ("status", "priority"):
            if field in payload and payload[field] is None:
                del payload[field]
        if payload.get("title") is not None:
            payload["title"] = str(payload["title"]).strip()
        if "due_date" in payload:
            payload["due_date"] = as_date(payload["due_date"])
        return payload

    def _validate(self, data: Dict[str, Any], is_update: bool = False) -> None:
        errors = FieldErrors()
        if not is_update or "title" in data:
            errors.check_text("title", data.get("title"), "Task title", required=True,
                              min_length=2, max_length=255)
        errors.check_text("description", data.get("description"), "Description", max_length=5000)
        errors.check_choice("status", data.get("status"), values(TaskStatus), "Status")
        errors.check_choice("priority", data.get("priority"), values(TaskPriority), "Priority")
        if not is_update:
            project_id = data.get("project_id")
            if project_id is None:
                errors.add("projectId", "Project ID is required")
            elif not isinstance(project_id, int) or project_id < 1:
                errors.add("projectId", "Project ID must be a positive integer")
        errors.raise_if_any()

    def _get_or_404(self, task_id: int) -> Task:
        task = self.task_repo.get(task_id)
        if not task:
            raise NotFoundError(f"Task with ID {task_id} not found")
        return task

    def _invalidate(self, task_id: int, project_id: int) -> None:
        self.cache.invalidate_task_cache(task_id, project_id)
        # tasksCount and embedded task lists live in project entries
        self.cache.invalidate_project_cache(project_id)

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        payload = self._clean(data)
        self._validate(payload)
        project_id = payload["project_id"]
        if not self.project_repo.exists(project_id):
            raise NotFoundError(f"Project with ID {project_id} not found")

        payload.setdefault("status", TaskStatus.PENDING.value)
        payload.setdefault("priority", TaskPriority.MEDIUM.value)

        task = self.task_repo.create(payload)
        self._invalidate(task.id, project_id)
        logger.info("Created task %s in project %s", task.id, project_id)
        return self.get_by_id(task.id)

    def list(self, filters: Optional[Dict[str, Any]] = None, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        """
        Paginated tasks. Only one filter is applied, in this order:
        overdue, due_in_days, project_id (with its own status/priority),
        status, priority. Without filters the database paginates.
        """
        filters = filters or {}
        key = self.cache.generate_key("tasks", "list", filters_key(filters), page, limit)
        return self.cache.get_or_set(key, lambda: self._list(filters, page, limit), ttl=self.LIST_TTL)

    def _list(self, filters: Dict[str, Any], page: int, limit: int) -> Dict[str, Any]:
        status = filters.get("status")
        priority = filters.get("priority")
        due_in_days = filters.get("due_in_days")

        if filters.get("overdue"):
            rows = self.task_repo.find_overdue()
        elif due_in_days is not None:
            rows = self.task_repo.find_due_in(due_in_days)
        elif filters.get("project_id"):
            rows = self.task_repo.find_for_project(filters["project_id"], status=status, priority=priority)
        elif status:
            rows = self.task_repo.find_by_status(status)
        elif priority:
            rows = self.task_repo.find_by_priority(priority)
        else:
            rows, total = self.task_repo.find_all_paginated(page_offset(page, limit), limit)
            return {
                "items": serialize_many(TaskDetailResponse, rows),
                "pagination": pagination_meta(page, limit, total),
            }

        return {
            "items": serialize_many(TaskDetailResponse, slice_page(rows, page, limit)),
            "pagination": pagination_meta(page, limit, len(rows)),
        }

    def get_by_id(self, task_id: int) -> Dict[str, Any]:
        def load():
            task = self.task_repo.get_with_project(task_id)
            if not task:
                raise NotFoundError(f"Task with ID {task_id} not found")
            return serialize(TaskDetailResponse, task)

        return self.cache.get_or_set(
            self.cache.generate_key("task", task_id, "detail"), load, ttl=self.DETAIL_TTL,
        )

    def update(self, task_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        task = self._get_or_404(task_id)
        payload = self._clean(data)
        # a task never moves between projects
        payload.pop("project_id", None)
        if not payload:
            raise BadRequestError("No valid fields provided for update")
        self._validate(payload, is_update=True)

        project_id = task.project_id
        affected = self.task_repo.update(task_id, payload)
        if not affected:
            raise InternalError(f"Failed to update task {task_id}")

        self._invalidate(task_id, project_id)
        logger.info("Updated task %s: %s", task_id, sorted(payload))
        return self.get_by_id(task_id)

    def delete(self, task_id: int) -> None:
        task = self._get_or_404(task_id)
        project_id = task.project_id
        self.task_repo.delete(task_id)
        self._invalidate(task_id, project_id)
        logger.info("Deleted task %s from project %s", task_id, project_id)

    def get_by_project_id(self, project_id: int, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        if not self.project_repo.exists(project_id):
            raise NotFoundError(f"Project with ID {project_id} not found")
        filters = filters or {}
        key = self.cache.generate_key("project", project_id, "tasks", filters_key(filters))
        return self.cache.get_or_set(
            key,
            lambda: serialize_many(TaskResponse, self.task_repo.find_for_project(
                project_id,
                status=filters.get("status"),
                priority=filters.get("priority"),
                overdue=bool(filters.get("overdue")),
            )),
            ttl=self.LIST_TTL,
        )

    def create_for_project(self, project_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        return self.create({**data, "project_id": project_id})

    def stats(self, project_id: Optional[int] = None) -> Dict[str, Any]:
        def load():
            scope = (Task.project_id == project_id,) if project_id else ()
            return {
                "totalTasks": self.task_repo.count(*scope),
                "statusCounts": self.task_repo.count_by_status(project_id),
                "priorityCounts": self.task_repo.count_by_priority(project_id),
                "overdueTasks": self.task_repo.count_overdue(project_id),
                "recentTasks": serialize_many(TaskDetailResponse, self.task_repo.find_recent(5, project_id)),
            }

        return self.cache.get_or_set(self.cache.generate_key("tasks", "stats", project_id or "all"), load)

    def search(self, query: Optional[str], project_id: Optional[int] = None) -> List[Dict[str, Any]]:
        text = (query or "").strip()
        if len(text) < 2:
            raise BadRequestError("Search query must be at least 2 characters long")
        return serialize_many(TaskDetailResponse, self.task_repo.search(text, project_id))

    def get_overdue(self) -> List[Dict[str, Any]]:
        return self.cache.get_or_set(
            "tasks:overdue",
            lambda: serialize_many(TaskDetailResponse, self.task_repo.find_overdue()),
        )

    def get_due_in(self, days: int) -> List[Dict[str, Any]]:
        if days is None or days < 0:
            raise BadRequestError("Days must be a non-negative number")
        return self.cache.get_or_set(
            self.cache.generate_key("tasks", "due-in", days),
            lambda: serialize_many(TaskDetailResponse, self.task_repo.find_due_in(days)),
        )

    def get_by_status(self, status: str) -> List[Dict[str, Any]]:
        return serialize_many(TaskDetailResponse, self.task_repo.find_by_status(status))

    def get_by_priority(self, priority: str) -> List[Dict[str, Any]]:
        return serialize_many(TaskDetailResponse, self.task_repo.find_by_priority(priority))

    # status shortcuts, no transition rules

    def complete(self, task_id: int) -> Dict[str, Any]:
        return self.update(task_id, {"status": TaskStatus.COMPLETED.value})

    def start(self, task_id: int) -> Dict[str, Any]:
        return self.update(task_id, {"status": TaskStatus.IN_PROGRESS.value})

    def cancel(self, task_id: int) -> Dict[str, Any]:
        return self.update(task_id, {"status": TaskStatus.CANCELLED.value})
