# app/api/tasks.py
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from app.api.deps import get_task_service, parse_flag
from app.api.responses import paginated, success
from app.models.enums import TaskPriority, TaskStatus
from app.schemas.task_schemas import TaskCreate, TaskUpdate
from app.services.task_service import TaskService

task_router = APIRouter(prefix="/tasks", tags=["tasks"])


@task_router.get("")
def list_tasks(
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    priority: Optional[TaskPriority] = Query(None),
    project_id: Optional[int] = Query(None, alias="projectId", ge=1),
    overdue: Optional[str] = Query(None),
    due_in_days: Optional[int] = Query(None, alias="dueInDays", ge=0, le=365),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: TaskService = Depends(get_task_service),
):
    filters = {
        "status": status_filter.value if status_filter else None,
        "priority": priority.value if priority else None,
        "project_id": project_id,
        "overdue": parse_flag(overdue, "overdue"),
        "due_in_days": due_in_days,
    }
    return paginated("Tasks retrieved successfully", service.list(filters, page, limit))


@task_router.post("", status_code=status.HTTP_201_CREATED)
def create_task(task: TaskCreate, service: TaskService = Depends(get_task_service)):
    return success("Task created successfully", service.create(task.model_dump()))


@task_router.get("/stats")
def task_stats(
    project_id: Optional[int] = Query(None, alias="projectId", ge=1),
    service: TaskService = Depends(get_task_service),
):
    return success("Task statistics retrieved successfully", service.stats(project_id))


@task_router.get("/search")
def search_tasks(
    q: str = Query(..., min_length=2, max_length=255),
    project_id: Optional[int] = Query(None, alias="projectId", ge=1),
    service: TaskService = Depends(get_task_service),
):
    results = service.search(q, project_id)
    return success(f"Found {len(results)} tasks", results, meta={"query": q, "projectId": project_id, "count": len(results)})


@task_router.get("/overdue")
def overdue_tasks(service: TaskService = Depends(get_task_service)):
    tasks = service.get_overdue()
    return success(f"Found {len(tasks)} overdue tasks", tasks, meta={"count": len(tasks)})


@task_router.get("/due-in/{days}")
def tasks_due_in(days: int = Path(..., ge=0, le=365), service: TaskService = Depends(get_task_service)):
    tasks = service.get_due_in(days)
    return success(f"Found {len(tasks)} tasks due in {days} days", tasks, meta={"days": days, "count": len(tasks)})


@task_router.get("/by-status/{task_status}")
def tasks_by_status(task_status: TaskStatus, service: TaskService = Depends(get_task_service)):
    tasks = service.get_by_status(task_status.value)
    return success(f"Found {len(tasks)} tasks with status {task_status.value}", tasks)


@task_router.get("/by-priority/{priority}")
def tasks_by_priority(priority: TaskPriority, service: TaskService = Depends(get_task_service)):
    tasks = service.get_by_priority(priority.value)
    return success(f"Found {len(tasks)} tasks with priority {priority.value}", tasks)


@task_router.get("/{task_id}")
def get_task(task_id: int = Path(..., ge=1), service: TaskService = Depends(get_task_service)):
    return success("Task retrieved successfully", service.get_by_id(task_id))


@task_router.put("/{task_id}")
def update_task(task: TaskUpdate, task_id: int = Path(..., ge=1), service: TaskService = Depends(get_task_service)):
    return success("Task updated successfully", service.update(task_id, task.model_dump(exclude_unset=True)))


@task_router.delete("/{task_id}")
def delete_task(task_id: int = Path(..., ge=1), service: TaskService = Depends(get_task_service)):
    service.delete(task_id)
    return success("Task deleted successfully")


@task_router.patch("/{task_id}/complete")
def complete_task(task_id: int = Path(..., ge=1), service: TaskService = Depends(get_task_service)):
    return success("Task marked as completed", service.complete(task_id))


@task_router.patch("/{task_id}/start")
def start_task(task_id: int = Path(..., ge=1), service: TaskService = Depends(get_task_service)):
    return success("Task marked as in progress", service.start(task_id))


@task_router.patch("/{task_id}/cancel")
def cancel_task(task_id: int = Path(..., ge=1), service: TaskService = Depends(get_task_service)):
    return success("Task cancelled", service.cancel(task_id))
