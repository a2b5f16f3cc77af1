# app/schemas/project_schemas.py
from datetime import date
from typing import List, Optional

from pydantic import Field

from app.models.enums import ProjectStatus
from app.schemas.base import BaseSchema, CamelModel
from app.schemas.github_schemas import GitHubRepoResponse
from app.schemas.task_schemas import TaskResponse


class ProjectBase(CamelModel):
    """Fields shared by project requests"""
    name: str = Field(..., min_length=2, max_length=255, description="Project name")
    description: Optional[str] = Field(None, max_length=5000, description="Project description")
    status: ProjectStatus = Field(default=ProjectStatus.ACTIVE, description="Project status")
    start_date: Optional[date] = Field(None, description="Start date (YYYY-MM-DD)")
    end_date: Optional[date] = Field(None, description="End date (YYYY-MM-DD)")


class ProjectCreate(ProjectBase):
    pass


class ProjectUpdate(CamelModel):
    """Partial update; only the fields sent are applied"""
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    status: Optional[ProjectStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ProjectResponse(BaseSchema):
    name: str
    description: Optional[str] = None
    status: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    tasks_count: int = 0
    github_repos_count: int = 0


class ProjectDetailResponse(ProjectResponse):
    """Project with its tasks and GitHub repositories"""
    tasks: List[TaskResponse] = []
    github_repos: List[GitHubRepoResponse] = []
