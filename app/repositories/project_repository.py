# app/repositories/project_repository.py
from datetime import date
from typing import Dict, List, Optional, Tuple

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import selectinload

from app.models.enums import ProjectStatus
from app.models.github_repo import GitHubRepo  # noqa: F401  registers the mapper
from app.models.project import Project
from app.models.task import Task
from app.repositories.base import BaseRepository


def _ilike(column, text: str):
    return column.ilike(f"%{text}%")


class ProjectRepository(BaseRepository[Project]):
    NEWEST_FIRST = (Project.created_at.desc(), Project.id.desc())
    WITH_CHILDREN = (selectinload(Project.tasks), selectinload(Project.github_repos))

    def get_with_tasks(self, id: int) -> Optional[Project]:
        return self.query().options(selectinload(Project.tasks)).filter(Project.id == id).first()

    def get_with_tasks_and_repos(self, id: int) -> Optional[Project]:
        return self.query().options(*self.WITH_CHILDREN).filter(Project.id == id).first()

    def find_by_status(self, status: str) -> List[Project]:
        return self.find_all(Project.status == status, order_by=self.NEWEST_FIRST, options=self.WITH_CHILDREN)

    def find_active(self) -> List[Project]:
        return self.find_by_status(ProjectStatus.ACTIVE.value)

    def find_by_date_range(self, start_date: date, end_date: date) -> List[Project]:
        """Projects whose [start, end] interval overlaps the query interval"""
        overlap = or_(
            Project.start_date.between(start_date, end_date),
            Project.end_date.between(start_date, end_date),
            and_(Project.start_date <= start_date, Project.end_date >= end_date),
        )
        return self.find_all(overlap, order_by=self.NEWEST_FIRST, options=self.WITH_CHILDREN)

    def count_by_status(self) -> Dict[str, int]:
        rows = self.db.query(Project.status, func.count(Project.id)).group_by(Project.status).all()
        return {status: count for status, count in rows}

    def search(self, text: str) -> List[Project]:
        match = or_(_ilike(Project.name, text), _ilike(Project.description, text))
        return self.find_all(match, order_by=self.NEWEST_FIRST, options=self.WITH_CHILDREN)

    def find_recent(self, limit: int = 5) -> List[Project]:
        return self.find_all(order_by=self.NEWEST_FIRST, limit=limit, options=self.WITH_CHILDREN)

    def find_all_with_counts(self, offset: int = 0, limit: int = 10) -> Tuple[List[Project], int]:
        return self.paginate(offset, limit, order_by=self.NEWEST_FIRST, options=self.WITH_CHILDREN)

    def task_ids(self, project_id: int) -> List[int]:
        return [row[0] for row in self.db.query(Task.id).filter(Task.project_id == project_id).all()]
