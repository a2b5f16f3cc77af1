# app/integrations/github_client.py
import logging
from typing import Any, Dict, List, Optional

import httpx

from app.core.exceptions import GitHubAPIError

logger = logging.getLogger(__name__)

USER_AGENT = "project-task-manager-api/1.0"


class GitHubClient:
    """
    Thin wrapper over the GitHub REST API.

    One attempt per call, no retries. HTTP and transport failures are
    raised as GitHubAPIError so callers can fall back to stored data.
    """

    def __init__(
        self,
        base_url: str = "https://api.github.com",
        token: Optional[str] = None,
        timeout: float = 15.0,
        per_page: int = 5,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.per_page = per_page
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": USER_AGENT,
        }
        if token:
            headers["Authorization"] = f"token {token}"
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        if not token:
            logger.info("No GitHub token configured, using anonymous requests (60 requests/hour)")

    def list_user_repos(self, username: str) -> List[Dict[str, Any]]:
        """Most recently updated public repositories of a user"""
        params = {
            "per_page": self.per_page,
            "sort": "updated",
            "direction": "desc",
            "type": "public",
        }
        logger.info("Fetching GitHub repositories for %s", username)
        try:
            response = self._client.get(f"/users/{username}/repos", params=params)
        except httpx.HTTPError as exc:
            logger.warning("GitHub request for %s failed: %s", username, exc)
            raise GitHubAPIError(f"Failed to fetch GitHub repositories: {exc}", 503) from exc

        self._log_rate_limit(response)
        self._raise_for_status(response, username)

        try:
            data = response.json()
        except ValueError as exc:
            raise GitHubAPIError("GitHub API returned invalid data format") from exc
        if not isinstance(data, list):
            raise GitHubAPIError("GitHub API returned invalid data format")

        logger.info("GitHub returned %s repositories for %s", len(data), username)
        return data

    def close(self) -> None:
        self._client.close()

    @staticmethod
    def _log_rate_limit(response: httpx.Response) -> None:
        remaining = response.headers.get("x-ratelimit-remaining")
        if remaining is not None:
            logger.info(
                "GitHub rate limit: %s/%s remaining, resets at %s",
                remaining,
                response.headers.get("x-ratelimit-limit"),
                response.headers.get("x-ratelimit-reset"),
            )

    @staticmethod
    def _raise_for_status(response: httpx.Response, username: str) -> None:
        status = response.status_code
        if status < 400:
            return
        if status == 404:
            raise GitHubAPIError(f"GitHub user '{username}' not found", 404)
        if status == 403:
            reset = response.headers.get("x-ratelimit-reset")
            hint = f" (resets at {reset})" if reset else ""
            logger.warning("GitHub rate limit exceeded or access forbidden%s", hint)
            raise GitHubAPIError(f"GitHub API rate limit exceeded or forbidden{hint}", 403)
        if status == 401:
            raise GitHubAPIError("GitHub API authentication failed", 401)

        message = None
        try:
            body = response.json()
            if isinstance(body, dict):
                message = body.get("message")
        except ValueError:
            pass
        logger.warning("GitHub API error %s: %s", status, message)
        raise GitHubAPIError(message or f"GitHub API error: {status} {response.reason_phrase}", status)
