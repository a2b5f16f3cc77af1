# app/repositories/github_repository.py
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy import or_

from app.models.github_repo import GitHubRepo
from app.models.project import Project  # noqa: F401  registers the mapper
from app.models.base import as_utc
from app.repositories.base import BaseRepository


class GitHubRepoRepository(BaseRepository[GitHubRepo]):
    RECENTLY_UPDATED = (GitHubRepo.github_updated_at.desc(), GitHubRepo.id.desc())
    POPULAR = (GitHubRepo.stargazers_count.desc(), GitHubRepo.github_updated_at.desc())

    def find_by_project_and_username(self, project_id: int, username: str) -> List[GitHubRepo]:
        return self.find_all(
            GitHubRepo.project_id == project_id,
            GitHubRepo.username == username,
            order_by=self.RECENTLY_UPDATED,
        )

    def find_by_project(self, project_id: int) -> List[GitHubRepo]:
        return self.find_all(GitHubRepo.project_id == project_id, order_by=self.POPULAR)

    def get_by_github_id(self, github_id: int) -> Optional[GitHubRepo]:
        return self.query().filter(GitHubRepo.github_id == github_id).first()

    def get_by_github_id_and_project(self, github_id: int, project_id: int) -> Optional[GitHubRepo]:
        return self.query().filter(
            GitHubRepo.github_id == github_id,
            GitHubRepo.project_id == project_id,
        ).first()

    def bulk_upsert(self, rows: Iterable[Dict[str, Any]], commit: bool = True) -> List[GitHubRepo]:
        """Insert or update each row, keyed on github_id"""
        results = []
        for row in rows:
            instance = self.get_by_github_id(row["github_id"])
            if instance is None:
                instance = GitHubRepo(**row)
                self.db.add(instance)
            else:
                for field, value in row.items():
                    setattr(instance, field, value)
            results.append(instance)
        self.db.flush()
        if commit:
            self.db.commit()
        return results

    def delete_stale(self, project_id: int, username: str, keep_ids: Iterable[int], commit: bool = True) -> int:
        """Remove the user's rows under this project whose github_id is not in keep_ids"""
        criteria = [GitHubRepo.project_id == project_id, GitHubRepo.username == username]
        keep_ids = list(keep_ids)
        if keep_ids:
            criteria.append(GitHubRepo.github_id.notin_(keep_ids))
        removed = self.query().filter(*criteria).delete(synchronize_session="fetch")
        if commit:
            self.db.commit()
        return removed

    def find_other_project_ids(self, github_ids: Iterable[int], project_id: int) -> Set[int]:
        """Projects other than project_id that currently own any of github_ids"""
        github_ids = list(github_ids)
        if not github_ids:
            return set()
        rows = self.db.query(GitHubRepo.project_id).filter(
            GitHubRepo.github_id.in_(github_ids),
            GitHubRepo.project_id != project_id,
        ).distinct().all()
        return {row[0] for row in rows}

    def sync(self, project_id: int, username: str, rows: List[Dict[str, Any]]) -> Tuple[int, Set[int]]:
        """
        Upsert the fetched rows and prune the stale ones in a single commit.

        Returns the pruned row count and the ids of the projects whose rows
        were moved under project_id by the upsert.
        """
        github_ids = [r["github_id"] for r in rows]
        try:
            moved_from = self.find_other_project_ids(github_ids, project_id)
            self.bulk_upsert(rows, commit=False)
            removed = self.delete_stale(project_id, username, github_ids, commit=False)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return removed, moved_from

    def find_recent(self, limit: int = 10) -> List[GitHubRepo]:
        return self.find_all(order_by=self.RECENTLY_UPDATED, limit=limit)

    def find_by_language(self, language: str) -> List[GitHubRepo]:
        return self.find_all(GitHubRepo.language.ilike(f"%{language}%"), order_by=self.POPULAR)

    def find_popular(self, min_stars: int = 1) -> List[GitHubRepo]:
        return self.find_all(
            GitHubRepo.stargazers_count >= min_stars,
            order_by=(GitHubRepo.stargazers_count.desc(), GitHubRepo.forks_count.desc()),
        )

    def search(self, text: str, project_id: Optional[int] = None) -> List[GitHubRepo]:
        pattern = f"%{text}%"
        criteria = [or_(
            GitHubRepo.name.ilike(pattern),
            GitHubRepo.description.ilike(pattern),
            GitHubRepo.language.ilike(pattern),
        )]
        if project_id:
            criteria.append(GitHubRepo.project_id == project_id)
        return self.find_all(*criteria, order_by=self.POPULAR)

    def stats_by_project(self, project_id: int) -> Dict[str, Any]:
        repos = self.find_by_project(project_id)
        languages: Dict[str, int] = {}
        last_update = None
        for repo in repos:
            if repo.language:
                languages[repo.language] = languages.get(repo.language, 0) + 1
            updated = as_utc(repo.github_updated_at) if repo.github_updated_at else None
            if updated and (last_update is None or updated > last_update):
                last_update = updated

        return {
            "totalRepos": len(repos),
            "totalStars": sum(r.stargazers_count or 0 for r in repos),
            "totalForks": sum(r.forks_count or 0 for r in repos),
            "languages": languages,
            "lastUpdate": last_update.isoformat() if last_update else None,
        }
