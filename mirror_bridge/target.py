"""
Target Repository — Confirm the Cloud Source Repository exists.

The bridge never creates repositories: a GitHub repository named ``demo``
is mirrored only if ``projects/<project>/repos/demo`` already exists.
"""

from __future__ import annotations

import logging
from typing import Dict

import httpx

from .errors import ConfigurationError, TargetRepositoryError

logger = logging.getLogger(__name__)


def repo_resource_name(project_id: str, repository_name: str) -> str:
    """Cloud Source Repositories resource name for a repository."""
    return f"projects/{project_id}/repos/{repository_name}"


def target_remote_url(base_url: str, project_id: str, repository_name: str) -> str:
    """Git remote a mirror is pushed to, e.g. https://source.developers.google.com/p/proj/r/demo"""
    return f"{base_url.rstrip('/')}/p/{project_id}/r/{repository_name}"


def _get_headers(token: str) -> Dict[str, str]:
    return {
        "Accept": "application/json",
        "Authorization": f"Bearer {token}",
    }


class SourceRepoResolver:
    """Read-only existence check against the Source Repositories API."""

    def __init__(
        self,
        project_id: str,
        api_url: str = "https://sourcerepo.googleapis.com/v1",
        timeout: int = 10,
    ):
        self.project_id = project_id
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    def ensure_exists(self, repository_name: str, access_token: str) -> str:
        """
        Check the target repository exists; return its resource name.

        Raises:
            ConfigurationError: no target project configured
            TargetRepositoryError: lookup failed for any reason
        """
        if not self.project_id:
            raise ConfigurationError(
                "A target project is required to resolve repositories",
                repository=repository_name,
            )

        name = repo_resource_name(self.project_id, repository_name)
        url = f"{self.api_url}/{name}"

        try:
            resp = httpx.get(url, headers=_get_headers(access_token), timeout=self.timeout)
        except httpx.HTTPError as e:
            raise TargetRepositoryError(
                f"Unable to fetch the {name} source repo: {e}",
                repository=repository_name,
            ) from e

        if resp.status_code != 200:
            raise TargetRepositoryError(
                f"Unable to fetch the {name} source repo: HTTP {resp.status_code}",
                repository=repository_name,
                details={"status_code": resp.status_code, "body": resp.text[:200]},
            )

        logger.info(f"[mirror-target] Found {name}")
        return name
