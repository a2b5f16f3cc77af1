# app/models/task.py
import math
from datetime import date, datetime, time
from typing import Optional

from sqlalchemy import Column, Date, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.models.base import BaseModel
from app.models.enums import CLOSED_TASK_STATUSES, TaskPriority, TaskStatus


class Task(BaseModel):
    __tablename__ = "tasks"

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=TaskStatus.PENDING.value)
    priority = Column(String(20), nullable=False, default=TaskPriority.MEDIUM.value)
    due_date = Column(Date, nullable=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)

    project = relationship("Project", back_populates="tasks")

    @property
    def is_overdue(self) -> bool:
        if not self.due_date:
            return False
        return self.due_date < date.today() and self.status not in CLOSED_TASK_STATUSES

    @property
    def days_until_due(self) -> Optional[int]:
        if not self.due_date:
            return None
        delta = datetime.combine(self.due_date, time.min) - datetime.now()
        return math.ceil(delta.total_seconds() / 86400)

    def __repr__(self):
        return f"<Task(id={self.id}, title='{self.title}', status='{self.status}')>"
