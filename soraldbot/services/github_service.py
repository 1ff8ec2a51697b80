"""
GitHub Service - Handles GitHub API interactions
Forks the target repository and opens pull requests from the fork.
"""
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import httpx

from soraldbot.core.config import Settings, settings as default_settings
from soraldbot.core.exceptions import PullRequestError
from soraldbot.utils.logger import logger


class GitHubService:
    """Service for GitHub API operations"""

    def __init__(self, config: Optional[Settings] = None, transport: Optional[httpx.BaseTransport] = None):
        self.settings = config or default_settings
        self.token = (self.settings.GITHUB_TOKEN or "").strip()
        self.transport = transport

    def _client(self) -> httpx.Client:
        headers = {"Accept": "application/vnd.github+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return httpx.Client(
            base_url=self.settings.GITHUB_API_URL,
            headers=headers,
            timeout=self.settings.GITHUB_HTTP_TIMEOUT,
            transport=self.transport,
        )

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        with self._client() as client:
            try:
                response = client.post(path, json=payload)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise PullRequestError(
                    f"GitHub API {path} returned {e.response.status_code}: {e.response.text}"
                ) from e
            except httpx.HTTPError as e:
                raise PullRequestError(f"GitHub API {path} failed: {e}") from e
            return response.json()

    def get_forked_repo_name(self, repo_slug: str) -> Optional[str]:
        """
        Fork ``repo_slug`` under the token's account.

        Returns the fork's full name (owner/repo), or None when forking is
        disabled or no token is configured.
        """
        if not self.settings.FORK_REPO:
            logger.info("[GitHub] Forking disabled, patches stay local")
            return None
        if not self.token:
            logger.warning("[GitHub] GITHUB_TOKEN not set, cannot fork")
            return None

        data = self._post(f"/repos/{repo_slug}/forks", {})
        full_name = data.get("full_name")
        if not full_name:
            raise PullRequestError(f"GitHub fork response for {repo_slug} has no full_name")
        logger.info(f"[GitHub] Using fork {full_name}")
        return full_name

    def push_url(self, full_name: str) -> str:
        """
        HTTPS remote URL embedding the token.
        NOTE: Do not print this URL in logs.
        """
        host = urlparse(self.settings.GITHUB_API_URL).hostname or "api.github.com"
        if host == "api.github.com":
            host = "github.com"
        if self.token:
            return f"https://x-access-token:{self.token}@{host}/{full_name}.git"
        return f"https://{host}/{full_name}.git"

    def create_pull_request(
        self,
        repo_slug: str,
        base_branch: str,
        head_owner: str,
        head_branch: str,
        title: str,
        body: str = "",
    ) -> str:
        """
        Open a PR on ``repo_slug`` from ``head_owner:head_branch``; returns the PR html_url.
        """
        data = self._post(
            f"/repos/{repo_slug}/pulls",
            {
                "title": title,
                "head": f"{head_owner}:{head_branch}",
                "base": base_branch,
                "body": body,
                "maintainer_can_modify": True,
                "draft": False,
            },
        )
        logger.info(f"[GitHub] Opened pull request {data['html_url']}")
        return data["html_url"]
