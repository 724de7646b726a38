"""
Bridge Configuration — Parse mirror settings from environment variables.

Settings are read once (by the CLI or the server factory) and passed
explicitly into the pipeline, so nothing below this module reads the
process environment.

Minimal required config:
    GCP_PROJECT=my-project

Optional:
    GITHUB_TOKEN=ghp_xxxxx        # clone private GitHub repositories
    WEBHOOK_SECRET=xxxxx          # shared secret for X-Hub-Signature
    MIRROR_TARGET_HOST=source.developers.google.com
    SOURCEREPO_API_URL=https://sourcerepo.googleapis.com/v1
    GCE_METADATA_HOST=metadata.google.internal
    GIT_BINARY=git
    GIT_TIMEOUT_SECONDS=600
    HTTP_TIMEOUT_SECONDS=10
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_WEBHOOK_SECRET = "pipeline"
DEFAULT_TARGET_HOST = "source.developers.google.com"
DEFAULT_SOURCEREPO_API_URL = "https://sourcerepo.googleapis.com/v1"
DEFAULT_METADATA_HOST = "metadata.google.internal"


def _int_setting(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"{name}={raw!r} is not an integer, using {default}")
        return default
    if value <= 0:
        logger.warning(f"{name} must be positive, using {default}")
        return default
    return value


@dataclass(frozen=True)
class BridgeSettings:
    """Everything the pipeline needs to know about its environment."""

    project_id: str = ""
    github_token: Optional[str] = None
    webhook_secret: str = DEFAULT_WEBHOOK_SECRET
    target_host: str = DEFAULT_TARGET_HOST
    sourcerepo_api_url: str = DEFAULT_SOURCEREPO_API_URL
    metadata_host: str = DEFAULT_METADATA_HOST
    git_binary: str = "git"
    git_timeout: int = 600
    http_timeout: int = 10

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "BridgeSettings":
        """Parse settings from environment variables."""
        env = os.environ if env is None else env

        settings = cls(
            project_id=env.get("GCP_PROJECT", "").strip(),
            github_token=env.get("GITHUB_TOKEN", "").strip() or None,
            webhook_secret=env.get("WEBHOOK_SECRET") or DEFAULT_WEBHOOK_SECRET,
            target_host=env.get("MIRROR_TARGET_HOST", "").strip() or DEFAULT_TARGET_HOST,
            sourcerepo_api_url=(
                env.get("SOURCEREPO_API_URL", "").strip() or DEFAULT_SOURCEREPO_API_URL
            ).rstrip("/"),
            metadata_host=env.get("GCE_METADATA_HOST", "").strip() or DEFAULT_METADATA_HOST,
            git_binary=env.get("GIT_BINARY", "").strip() or "git",
            git_timeout=_int_setting(env, "GIT_TIMEOUT_SECONDS", 600),
            http_timeout=_int_setting(env, "HTTP_TIMEOUT_SECONDS", 10),
        )

        if not settings.project_id:
            logger.warning("GCP_PROJECT is not set; every mirror request will fail")

        return settings

    @property
    def target_base_url(self) -> str:
        """Base URL git pushes go to, e.g. https://source.developers.google.com"""
        return f"https://{self.target_host}"

    def require_project(self) -> str:
        """Return the target project id, or fail if it is not configured."""
        if not self.project_id:
            raise ConfigurationError(
                "The GCP_PROJECT environment variable must be set and non-empty"
            )
        return self.project_id

    def masked(self) -> Dict[str, str]:
        """Settings as strings, secrets hidden, for display."""

        def _mask(value: Optional[str]) -> str:
            if not value:
                return "(not set)"
            return value[:4] + "…" if len(value) > 8 else "****"

        return {
            "project_id": self.project_id or "(not set)",
            "github_token": _mask(self.github_token),
            "webhook_secret": _mask(self.webhook_secret),
            "target_host": self.target_host,
            "sourcerepo_api_url": self.sourcerepo_api_url,
            "metadata_host": self.metadata_host,
            "git_binary": self.git_binary,
            "git_timeout": str(self.git_timeout),
            "http_timeout": str(self.http_timeout),
        }
