# tests/test_github_service.py
import pytest

from app.core.exceptions import ConflictError, NotFoundError
from app.models.github_repo import GitHubRepo
from app.services.github_service import GitHubService, normalize_repo
from app.services.project_service import ProjectService

from helpers import github_payload


@pytest.fixture
def service(db_session, cache, github_client):
    return GitHubService(db_session, cache, github_client)


@pytest.fixture
def project(make_project):
    return make_project(name="Portfolio")


def _manual_repo(github_id=900, username="octocat"):
    return {
        "github_id": github_id,
        "name": "manual",
        "full_name": f"{username}/manual",
        "description": "Added by hand",
        "html_url": f"https://github.com/{username}/manual",
        "clone_url": f"https://github.com/{username}/manual.git",
        "language": "Rust",
        "stargazers_count": 4,
        "forks_count": 1,
        "private": False,
        "username": username,
    }


def test_normalize_repo_maps_api_fields():
    row = normalize_repo(github_payload(7, "tool", stars=3, forks=2), project_id=1, username="octocat")

    assert row["github_id"] == 7
    assert row["full_name"] == "octocat/tool"
    assert row["stargazers_count"] == 3
    assert row["forks_count"] == 2
    assert row["project_id"] == 1
    assert row["github_updated_at"].isoformat() == "2024-05-01T10:00:00+00:00"


def test_fresh_fetch_persists_and_caches(service, project, github_client, db_session):
    github_client.responses["octocat"] = [github_payload(1, "alpha"), github_payload(2, "beta")]

    first = service.get_user_repositories(project.id, "octocat")
    assert first["cached"] is False
    assert first["cacheExpiry"] == 600
    assert {r["name"] for r in first["repositories"]} == {"alpha", "beta"}
    assert first["project"]["githubReposCount"] == 2
    assert db_session.query(GitHubRepo).count() == 2

    second = service.get_user_repositories(project.id, "octocat")
    assert second["cached"] is True
    assert 0 < second["cacheExpiry"] <= 600
    assert second["repositories"] == first["repositories"]
    assert github_client.calls == ["octocat"]


def test_refetch_after_clearing_cache_does_not_duplicate(service, project, github_client, db_session):
    github_client.responses["octocat"] = [github_payload(1, "alpha"), github_payload(2, "beta")]

    service.get_user_repositories(project.id, "octocat")
    service.clear_cache(project.id, "octocat")
    again = service.get_user_repositories(project.id, "octocat")

    assert again["cached"] is False
    assert len(again["repositories"]) == 2
    assert db_session.query(GitHubRepo).count() == 2


def test_repositories_missing_from_a_fetch_are_pruned(service, project, github_client, db_session):
    github_client.responses["octocat"] = [github_payload(1, "alpha"), github_payload(2, "beta")]
    service.get_user_repositories(project.id, "octocat")

    github_client.responses["octocat"] = [github_payload(2, "beta", stars=8)]
    service.clear_cache(project.id)
    result = service.get_user_repositories(project.id, "octocat")

    assert [r["name"] for r in result["repositories"]] == ["beta"]
    assert result["repositories"][0]["stargazersCount"] == 8
    assert db_session.query(GitHubRepo).count() == 1


def test_moving_repositories_invalidates_the_previous_project(service, project, make_project, github_client,
                                                              db_session, cache):
    other = make_project(name="Other portfolio")
    github_client.responses["octocat"] = [github_payload(1, "alpha"), github_payload(2, "beta")]
    service.get_user_repositories(project.id, "octocat")

    projects = ProjectService(db_session, cache)
    assert projects.get_by_id(project.id)["githubReposCount"] == 2
    assert service.get_cached_repositories(project.id, "octocat")["cached"] is True

    moved = service.get_user_repositories(other.id, "octocat")

    assert moved["project"]["githubReposCount"] == 2
    assert projects.get_by_id(project.id)["githubReposCount"] == 0
    assert service.get_cached_repositories(project.id, "octocat")["cached"] is False
    assert service.get_user_repositories(project.id, "octocat")["cached"] is False


def test_failed_fetch_falls_back_to_stored_rows(service, project, github_client):
    github_client.responses["octocat"] = [github_payload(1, "alpha")]
    service.get_user_repositories(project.id, "octocat")
    service.clear_cache(project.id, "octocat")

    github_client.fail_with("octocat", "GitHub API rate limit exceeded or forbidden", 403)
    result = service.get_user_repositories(project.id, "octocat")

    assert result["cached"] is True
    assert result["cacheExpiry"] is None
    assert [r["name"] for r in result["repositories"]] == ["alpha"]
    # fallback results are not cached, the next call tries GitHub again
    service.get_user_repositories(project.id, "octocat")
    assert github_client.calls.count("octocat") == 3


def test_empty_fetch_stores_nothing(service, project, github_client, db_session):
    result = service.get_user_repositories(project.id, "nobody")

    assert result["repositories"] == []
    assert result["cached"] is False
    assert db_session.query(GitHubRepo).count() == 0


def test_unknown_project_raises_not_found(service, github_client):
    with pytest.raises(NotFoundError):
        service.get_user_repositories(404, "octocat")
    assert github_client.calls == []


def test_cached_repositories_lookup(service, project, github_client):
    assert service.get_cached_repositories(project.id, "octocat") == {
        "repositories": [], "cached": False, "cacheExpiry": None,
    }

    github_client.responses["octocat"] = [github_payload(1, "alpha")]
    service.get_user_repositories(project.id, "octocat")
    cached = service.get_cached_repositories(project.id, "octocat")
    assert cached["cached"] is True
    assert len(cached["repositories"]) == 1


def test_create_repository_and_conflict(service, project):
    repo = service.create_repository(project.id, _manual_repo())

    assert repo["githubId"] == 900
    assert repo["projectId"] == project.id
    assert repo["isRecentlyUpdated"] is True
    assert repo["daysSinceLastUpdate"] == 0

    with pytest.raises(ConflictError):
        service.create_repository(project.id, _manual_repo())
    with pytest.raises(NotFoundError):
        service.create_repository(999, _manual_repo(github_id=901))


def test_project_stats_and_listing(service, project, github_client):
    github_client.responses["octocat"] = [
        github_payload(1, "alpha", stars=5, forks=1, language="Python"),
        github_payload(2, "beta", stars=2, language="Go"),
    ]
    service.get_user_repositories(project.id, "octocat")

    stats = service.get_project_stats(project.id)
    assert stats["totalRepos"] == 2
    assert stats["totalStars"] == 7
    assert stats["totalForks"] == 1
    assert stats["languages"] == {"Python": 1, "Go": 1}
    assert [r["name"] for r in service.get_project_repositories(project.id)] == ["alpha", "beta"]

    with pytest.raises(NotFoundError):
        service.get_project_stats(999)


def test_search_repositories_uses_one_filter(service, project, github_client):
    github_client.responses["octocat"] = [
        github_payload(1, "alpha", stars=5, language="Python"),
        github_payload(2, "beta", stars=0, language="Go"),
    ]
    service.get_user_repositories(project.id, "octocat")

    assert [r["name"] for r in service.search_repositories(query="alp", language="Go")] == ["alpha"]
    assert [r["name"] for r in service.search_repositories(language="go")] == ["beta"]
    assert [r["name"] for r in service.search_repositories(min_stars=1)] == ["alpha"]
    assert len(service.search_repositories()) == 2
