# tests/test_github_client.py
import httpx
import pytest

from app.core.exceptions import GitHubAPIError
from app.integrations.github_client import GitHubClient

from helpers import github_payload


def _client(handler, token=None) -> GitHubClient:
    return GitHubClient(base_url="https://api.github.test", token=token, transport=httpx.MockTransport(handler))


def test_list_user_repos_sends_expected_request():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            headers={"x-ratelimit-remaining": "59", "x-ratelimit-limit": "60"},
            json=[github_payload(1, "alpha")],
        )

    client = _client(handler, token="secret")
    repos = client.list_user_repos("octocat")
    client.close()

    assert [r["name"] for r in repos] == ["alpha"]
    request = seen[0]
    assert request.url.path == "/users/octocat/repos"
    assert request.url.params["per_page"] == "5"
    assert request.url.params["sort"] == "updated"
    assert request.url.params["direction"] == "desc"
    assert request.url.params["type"] == "public"
    assert request.headers["accept"] == "application/vnd.github.v3+json"
    assert request.headers["authorization"] == "token secret"


def test_anonymous_client_sends_no_authorization_header():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[])

    _client(handler).list_user_repos("octocat")
    assert "authorization" not in seen[0].headers


@pytest.mark.parametrize(
    "status_code,expected",
    [
        (404, "GitHub user 'ghost' not found"),
        (401, "GitHub API authentication failed"),
    ],
)
def test_http_errors_are_mapped(status_code, expected):
    client = _client(lambda request: httpx.Response(status_code, json={"message": "whatever"}))

    with pytest.raises(GitHubAPIError) as exc_info:
        client.list_user_repos("ghost")

    assert exc_info.value.status_code == status_code
    assert exc_info.value.message == expected


def test_rate_limit_is_reported_as_403():
    client = _client(lambda request: httpx.Response(403, headers={"x-ratelimit-reset": "1700000000"}))

    with pytest.raises(GitHubAPIError) as exc_info:
        client.list_user_repos("octocat")

    assert exc_info.value.status_code == 403
    assert "rate limit" in exc_info.value.message


def test_other_errors_use_the_api_message():
    client = _client(lambda request: httpx.Response(422, json={"message": "Validation Failed"}))

    with pytest.raises(GitHubAPIError) as exc_info:
        client.list_user_repos("octocat")

    assert exc_info.value.status_code == 422
    assert exc_info.value.message == "Validation Failed"


def test_non_list_body_is_rejected():
    client = _client(lambda request: httpx.Response(200, json={"unexpected": True}))

    with pytest.raises(GitHubAPIError, match="invalid data format"):
        client.list_user_repos("octocat")


def test_transport_failures_become_503():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GitHubAPIError) as exc_info:
        _client(handler).list_user_repos("octocat")

    assert exc_info.value.status_code == 503
    assert exc_info.value.message.startswith("Failed to fetch GitHub repositories")
