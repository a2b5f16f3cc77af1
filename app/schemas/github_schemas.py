# app/schemas/github_schemas.py
import re
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from app.schemas.base import BaseSchema, CamelModel

GITHUB_USERNAME_RE = re.compile(r"^[a-z\d](?:[a-z\d]|-(?=[a-z\d])){0,38}$", re.IGNORECASE)
URL_PATTERN = r"^https?://\S+$"


def is_valid_github_username(username: str) -> bool:
    return bool(username) and GITHUB_USERNAME_RE.match(username) is not None


class GitHubRepoCreate(CamelModel):
    """Manually registered repository"""
    github_id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=100)
    full_name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    html_url: str = Field(..., pattern=URL_PATTERN)
    clone_url: str = Field(..., pattern=URL_PATTERN)
    language: Optional[str] = Field(None, max_length=50)
    stargazers_count: int = Field(0, ge=0)
    forks_count: int = Field(0, ge=0)
    private: bool = False
    username: str = Field(..., min_length=1, max_length=39)
    github_created_at: Optional[datetime] = None
    github_updated_at: Optional[datetime] = None

    @field_validator("username")
    @classmethod
    def _check_username(cls, value: str) -> str:
        if not is_valid_github_username(value):
            raise ValueError("GitHub username has an invalid format")
        return value


class GitHubRepoResponse(BaseSchema):
    github_id: int
    name: str
    full_name: str
    description: Optional[str] = None
    html_url: str
    clone_url: str
    language: Optional[str] = None
    stargazers_count: int = 0
    forks_count: int = 0
    private: bool = False
    username: str
    github_created_at: Optional[datetime] = None
    github_updated_at: Optional[datetime] = None
    project_id: int
    is_recently_updated: bool = False
    days_since_last_update: Optional[int] = None
