# app/models/registry.py
# Importing this module registers every table on Base.metadata.
from app.models.github_repo import GitHubRepo
from app.models.project import Project
from app.models.task import Task

__all__ = ["Project", "Task", "GitHubRepo"]
