# app/schemas/task_schemas.py
from datetime import date
from typing import Optional

from pydantic import Field

from app.models.enums import TaskPriority, TaskStatus
from app.schemas.base import BaseSchema, CamelModel, ProjectSummary


class TaskBase(CamelModel):
    title: str = Field(..., min_length=2, max_length=255, description="Task title")
    description: Optional[str] = Field(None, max_length=5000)
    status: TaskStatus = Field(default=TaskStatus.PENDING)
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM)
    due_date: Optional[date] = Field(None, description="Due date (YYYY-MM-DD)")


class TaskCreate(TaskBase):
    project_id: int = Field(..., ge=1, description="Owning project id")


class TaskCreateForProject(TaskBase):
    """Body for POST /projects/{id}/tasks; the project id comes from the path"""
    pass


class TaskUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=2, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[date] = None


class TaskResponse(BaseSchema):
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    due_date: Optional[date] = None
    project_id: int
    is_overdue: bool = False
    days_until_due: Optional[int] = None


class TaskDetailResponse(TaskResponse):
    project: Optional[ProjectSummary] = None
