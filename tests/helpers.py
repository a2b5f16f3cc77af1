# tests/helpers.py
from datetime import date, timedelta

from app.core.exceptions import GitHubAPIError


class FakeClock:
    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeGitHubClient:
    """Stands in for GitHubClient; responses are set per username"""

    def __init__(self):
        self.responses = {}
        self.calls = []

    def list_user_repos(self, username):
        self.calls.append(username)
        response = self.responses.get(username, [])
        if isinstance(response, Exception):
            raise response
        return list(response)

    def fail_with(self, username, message="GitHub API error: 500", status_code=500):
        self.responses[username] = GitHubAPIError(message, status_code)

    def close(self):
        pass


def github_payload(github_id, name, owner="octocat", stars=0, forks=0, language="Python",
                   updated_at="2024-05-01T10:00:00Z", description=None):
    return {
        "id": github_id,
        "name": name,
        "full_name": f"{owner}/{name}",
        "description": description,
        "html_url": f"https://github.com/{owner}/{name}",
        "clone_url": f"https://github.com/{owner}/{name}.git",
        "language": language,
        "stargazers_count": stars,
        "forks_count": forks,
        "private": False,
        "created_at": "2023-01-01T00:00:00Z",
        "updated_at": updated_at,
        "owner": {"login": owner},
    }


def days_from_today(days: int) -> date:
    return date.today() + timedelta(days=days)
