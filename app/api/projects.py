# app/api/projects.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from app.api.deps import get_github_service, get_project_service, get_task_service, parse_flag
from app.api.responses import paginated, success
from app.core.exceptions import ValidationError
from app.models.enums import ProjectStatus, TaskPriority, TaskStatus
from app.schemas.github_schemas import GitHubRepoCreate, is_valid_github_username
from app.schemas.project_schemas import ProjectCreate, ProjectUpdate
from app.schemas.task_schemas import TaskCreateForProject
from app.services.github_service import GitHubService
from app.services.project_service import ProjectService
from app.services.task_service import TaskService

project_router = APIRouter(prefix="/projects", tags=["projects"])


def _check_username(username: str) -> str:
    if not is_valid_github_username(username):
        raise ValidationError("Invalid input data", errors=[
            {"field": "username", "message": "GitHub username has an invalid format"},
        ])
    return username


@project_router.get("")
def list_projects(
    status_filter: Optional[ProjectStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=255),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: ProjectService = Depends(get_project_service),
):
    filters = {
        "search": search.strip() if search and search.strip() else None,
        "status": status_filter.value if status_filter else None,
        "start_date": start_date,
        "end_date": end_date,
    }
    return paginated("Projects retrieved successfully", service.list(filters, page, limit))


@project_router.post("", status_code=status.HTTP_201_CREATED)
def create_project(project: ProjectCreate, service: ProjectService = Depends(get_project_service)):
    return success("Project created successfully", service.create(project.model_dump()))


@project_router.get("/stats")
def project_stats(service: ProjectService = Depends(get_project_service)):
    return success("Project statistics retrieved successfully", service.stats())


@project_router.get("/search")
def search_projects(
    q: str = Query(..., min_length=2, max_length=255),
    service: ProjectService = Depends(get_project_service),
):
    results = service.search(q)
    return success(f"Found {len(results)} projects", results, meta={"query": q, "count": len(results)})


@project_router.get("/active")
def active_projects(service: ProjectService = Depends(get_project_service)):
    return success("Active projects retrieved successfully", service.get_active())


@project_router.get("/date-range")
def projects_in_date_range(
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
    service: ProjectService = Depends(get_project_service),
):
    results = service.get_by_date_range(start_date, end_date)
    return success(f"Found {len(results)} projects in date range", results, meta={
        "startDate": start_date.isoformat(),
        "endDate": end_date.isoformat(),
        "count": len(results),
    })


@project_router.get("/{project_id}")
def get_project(
    project_id: int = Path(..., ge=1),
    include: bool = Query(True),
    service: ProjectService = Depends(get_project_service),
):
    return success("Project retrieved successfully", service.get_by_id(project_id, include_relations=include))


@project_router.put("/{project_id}")
def update_project(
    project: ProjectUpdate,
    project_id: int = Path(..., ge=1),
    service: ProjectService = Depends(get_project_service),
):
    return success("Project updated successfully", service.update(project_id, project.model_dump(exclude_unset=True)))


@project_router.delete("/{project_id}")
def delete_project(project_id: int = Path(..., ge=1), service: ProjectService = Depends(get_project_service)):
    service.delete(project_id)
    return success("Project deleted successfully")


# tasks of a project

@project_router.get("/{project_id}/tasks")
def project_tasks(
    project_id: int = Path(..., ge=1),
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    priority: Optional[TaskPriority] = Query(None),
    overdue: Optional[str] = Query(None),
    service: TaskService = Depends(get_task_service),
):
    filters = {
        "status": status_filter.value if status_filter else None,
        "priority": priority.value if priority else None,
        "overdue": parse_flag(overdue, "overdue"),
    }
    tasks = service.get_by_project_id(project_id, filters)
    return success("Project tasks retrieved successfully", tasks, meta={"projectId": project_id, "count": len(tasks)})


@project_router.post("/{project_id}/tasks", status_code=status.HTTP_201_CREATED)
def create_project_task(
    task: TaskCreateForProject,
    project_id: int = Path(..., ge=1),
    service: TaskService = Depends(get_task_service),
):
    return success("Task created successfully", service.create_for_project(project_id, task.model_dump()))


# GitHub repositories of a project

@project_router.get("/{project_id}/github/{username}")
def github_user_repositories(
    project_id: int = Path(..., ge=1),
    username: str = Path(..., min_length=1, max_length=39),
    service: GitHubService = Depends(get_github_service),
):
    result = service.get_user_repositories(project_id, _check_username(username))
    message = "GitHub repositories retrieved from cache" if result["cached"] else "GitHub repositories retrieved successfully"
    return success(message, result)


@project_router.get("/{project_id}/github-stats")
def github_stats(project_id: int = Path(..., ge=1), service: GitHubService = Depends(get_github_service)):
    return success("GitHub statistics retrieved successfully", service.get_project_stats(project_id))


@project_router.get("/{project_id}/github-repos")
def project_github_repos(project_id: int = Path(..., ge=1), service: GitHubService = Depends(get_github_service)):
    repos = service.get_project_repositories(project_id)
    return success("GitHub repositories retrieved successfully", repos, meta={"projectId": project_id, "count": len(repos)})


@project_router.post("/{project_id}/github-repos", status_code=status.HTTP_201_CREATED)
def create_github_repo(
    repo: GitHubRepoCreate,
    project_id: int = Path(..., ge=1),
    service: GitHubService = Depends(get_github_service),
):
    return success("GitHub repository added successfully", service.create_repository(project_id, repo.model_dump()))


@project_router.get("/{project_id}/github-cache")
def cached_github_repos(
    project_id: int = Path(..., ge=1),
    username: str = Query(..., min_length=1, max_length=39),
    service: GitHubService = Depends(get_github_service),
):
    result = service.get_cached_repositories(project_id, _check_username(username))
    message = "Cached GitHub repositories retrieved" if result["cached"] else "No cached GitHub repositories"
    return success(message, result)


@project_router.delete("/{project_id}/github-cache")
def clear_github_cache(
    project_id: int = Path(..., ge=1),
    username: Optional[str] = Query(None),
    service: GitHubService = Depends(get_github_service),
):
    if username:
        _check_username(username)
    service.clear_cache(project_id, username)
    return success("GitHub cache cleared successfully")
