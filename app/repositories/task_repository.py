# app/repositories/task_repository.py
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

from sqlalchemy import and_, case, func, or_
from sqlalchemy.orm import joinedload

from app.models.enums import CLOSED_TASK_STATUSES, PRIORITY_RANK
from app.models.project import Project  # noqa: F401  registers the mapper
from app.models.task import Task
from app.repositories.base import BaseRepository

priority_rank = case(PRIORITY_RANK, value=Task.priority, else_=0)


def _open():
    return Task.status.notin_(CLOSED_TASK_STATUSES)


def _overdue():
    return and_(Task.due_date < date.today(), _open())


class TaskRepository(BaseRepository[Task]):
    BY_PRIORITY = (priority_rank.desc(), Task.created_at.desc(), Task.id.desc())
    WITH_PROJECT = (joinedload(Task.project),)

    def _scope(self, project_id: Optional[int]):
        return (Task.project_id == project_id,) if project_id else ()

    def find_by_project(self, project_id: int) -> List[Task]:
        return self.find_all(Task.project_id == project_id, order_by=self.BY_PRIORITY, options=self.WITH_PROJECT)

    def get_with_project(self, id: int) -> Optional[Task]:
        return self.query().options(*self.WITH_PROJECT).filter(Task.id == id).first()

    def find_by_status(self, status: str) -> List[Task]:
        return self.find_all(Task.status == status, order_by=self.BY_PRIORITY, options=self.WITH_PROJECT)

    def find_by_priority(self, priority: str) -> List[Task]:
        return self.find_all(
            Task.priority == priority,
            order_by=(Task.due_date.is_(None), Task.due_date.asc(), Task.created_at.desc()),
            options=self.WITH_PROJECT,
        )

    def find_overdue(self, project_id: Optional[int] = None) -> List[Task]:
        return self.find_all(
            _overdue(), *self._scope(project_id),
            order_by=(Task.due_date.asc(), Task.id.asc()),
            options=self.WITH_PROJECT,
        )

    def count_overdue(self, project_id: Optional[int] = None) -> int:
        return self.count(_overdue(), *self._scope(project_id))

    def find_due_in(self, days: int) -> List[Task]:
        """Open tasks due between today and today + days, inclusive"""
        today = date.today()
        return self.find_all(
            Task.due_date.between(today, today + timedelta(days=days)),
            _open(),
            order_by=(Task.due_date.asc(), priority_rank.desc()),
            options=self.WITH_PROJECT,
        )

    def count_by_status(self, project_id: Optional[int] = None) -> Dict[str, int]:
        query = self.db.query(Task.status, func.count(Task.id))
        if project_id:
            query = query.filter(Task.project_id == project_id)
        return {status: count for status, count in query.group_by(Task.status).all()}

    def count_by_priority(self, project_id: Optional[int] = None) -> Dict[str, int]:
        query = self.db.query(Task.priority, func.count(Task.id))
        if project_id:
            query = query.filter(Task.project_id == project_id)
        return {priority: count for priority, count in query.group_by(Task.priority).all()}

    def search(self, text: str, project_id: Optional[int] = None) -> List[Task]:
        match = or_(Task.title.ilike(f"%{text}%"), Task.description.ilike(f"%{text}%"))
        return self.find_all(match, *self._scope(project_id), order_by=self.BY_PRIORITY, options=self.WITH_PROJECT)

    def find_for_project(self, project_id: int, status: Optional[str] = None,
                         priority: Optional[str] = None, overdue: bool = False) -> List[Task]:
        criteria = [Task.project_id == project_id]
        if priority:
            criteria.append(Task.priority == priority)
        if overdue:
            # overdue wins over an explicit status
            criteria.append(_overdue())
        elif status:
            criteria.append(Task.status == status)
        return self.find_all(
            *criteria,
            order_by=(priority_rank.desc(), Task.due_date.is_(None), Task.due_date.asc(), Task.created_at.desc()),
        )

    def find_recent(self, limit: int = 5, project_id: Optional[int] = None) -> List[Task]:
        return self.find_all(
            *self._scope(project_id),
            order_by=(Task.created_at.desc(), Task.id.desc()),
            limit=limit,
            options=self.WITH_PROJECT,
        )

    def find_all_paginated(self, offset: int, limit: int) -> Tuple[List[Task], int]:
        return self.paginate(offset, limit, order_by=self.BY_PRIORITY, options=self.WITH_PROJECT)
