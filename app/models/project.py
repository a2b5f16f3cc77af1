# app/models/project.py
from sqlalchemy import Column, Date, String, Text
from sqlalchemy.orm import relationship

from app.models.base import BaseModel
from app.models.enums import ProjectStatus


class Project(BaseModel):
    __tablename__ = "projects"

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=ProjectStatus.ACTIVE.value)  # 'active', 'inactive', 'completed'
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    # children go with the project
    tasks = relationship(
        "Task", back_populates="project",
        cascade="all, delete-orphan",
    )
    github_repos = relationship(
        "GitHubRepo", back_populates="project",
        cascade="all, delete-orphan",
    )

    @property
    def tasks_count(self) -> int:
        return len(self.tasks or [])

    @property
    def github_repos_count(self) -> int:
        return len(self.github_repos or [])

    def __repr__(self):
        return f"<Project(id={self.id}, name='{self.name}', status='{self.status}')>"
