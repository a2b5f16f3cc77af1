# app/models/github_repo.py
from typing import Optional

from sqlalchemy import BigInteger, Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from app.models.base import BaseModel, as_utc, utcnow

RECENT_UPDATE_DAYS = 30


class GitHubRepo(BaseModel):
    __tablename__ = "github_repos"
    __table_args__ = (
        Index("ix_github_repos_username_project", "username", "project_id"),
    )

    github_id = Column(BigInteger, nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    html_url = Column(String(500), nullable=False)
    clone_url = Column(String(500), nullable=False)
    language = Column(String(100), nullable=True)
    stargazers_count = Column(Integer, nullable=False, default=0)
    forks_count = Column(Integer, nullable=False, default=0)
    private = Column(Boolean, nullable=False, default=False)
    username = Column(String(255), nullable=False)
    github_created_at = Column(DateTime(timezone=True), nullable=False)
    github_updated_at = Column(DateTime(timezone=True), nullable=False)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)

    project = relationship("Project", back_populates="github_repos")

    @property
    def days_since_last_update(self) -> Optional[int]:
        if not self.github_updated_at:
            return None
        return (utcnow() - as_utc(self.github_updated_at)).days

    @property
    def is_recently_updated(self) -> bool:
        if not self.github_updated_at:
            return False
        return (utcnow() - as_utc(self.github_updated_at)).total_seconds() < RECENT_UPDATE_DAYS * 86400

    def __repr__(self):
        return f"<GitHubRepo(id={self.id}, full_name='{self.full_name}', github_id={self.github_id})>"
