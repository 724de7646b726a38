"""
Mirror Engine — Full mirror of one GitHub repository into its target.

Each sync owns two temporary resources, both removed when it ends no
matter which step failed:

    credential file   https://<email>:<token>@source.developers.google.com
    working directory bare mirror clone of the GitHub repository

Steps run strictly in order and the first failure aborts the rest:

    1. write credential file
    2. create working directory
    3. git clone --mirror <github url>        → SourceCloneError
    4. git config credential.helper store     → CredentialConfigError
    5. git push --mirror --repo <target url>  → TargetPushError

A mirror push makes the target's refs identical to GitHub's, including
deleted branches and force-pushed tags, so no ref diffing is needed. The
price is a full transfer on every push event.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional
from urllib.parse import quote, quote_plus, urlsplit, urlunsplit

from ..credentials import ServiceAccountCredential
from ..errors import (
    CredentialConfigError,
    GitCommandError,
    SourceCloneError,
    TargetPushError,
)
from ..target import target_remote_url
from ..webhook.events import PushEvent
from .git import GitBackend, redact

logger = logging.getLogger(__name__)


def credential_line(credential: ServiceAccountCredential, host: str) -> str:
    """Single git-credential-store entry for the target host."""
    return f"https://{quote_plus(credential.principal_email)}:{credential.access_token}@{host}"


def effective_clone_url(clone_url: str, github_token: Optional[str] = None) -> str:
    """
    URL to clone from: with a GitHub token, embed ``<token>:x-oauth-basic``
    so private repositories can be fetched; otherwise ``clone_url`` unchanged.
    """
    if not github_token:
        return clone_url

    parts = urlsplit(clone_url)
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    netloc = f"{quote(github_token, safe='')}:x-oauth-basic@{host}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


@dataclass
class MirrorJob:
    """Working context of one synchronization attempt."""

    working_directory: Path
    credential_file: Path
    target_remote_url: str


@dataclass
class MirrorResult:
    """Outcome of a successful sync."""

    repository_name: str
    target_remote_url: str
    duration_ms: int


def _remove(job_paths: list) -> None:
    for path in job_paths:
        try:
            if path.is_dir():
                shutil.rmtree(path)
            elif path.exists():
                path.unlink()
        except OSError as e:
            logger.warning(f"[mirror-engine] Could not remove {path}: {e}")


@contextmanager
def mirror_job(credential_entry: str, remote_url: str) -> Iterator[MirrorJob]:
    """Create the job's credential file and working directory; remove both on exit."""
    created: list = []
    try:
        fd, name = tempfile.mkstemp(prefix="git-credentials")
        credential_file = Path(name)
        created.append(credential_file)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(credential_entry + "\n")

        working_directory = Path(tempfile.mkdtemp(prefix="mirror-"))
        created.append(working_directory)

        yield MirrorJob(
            working_directory=working_directory,
            credential_file=credential_file,
            target_remote_url=remote_url,
        )
    finally:
        _remove(created)


class MirrorSyncEngine:
    """Runs the clone/push sequence for one push event."""

    def __init__(
        self,
        git: GitBackend,
        target_host: str = "source.developers.google.com",
        github_token: Optional[str] = None,
    ):
        self.git = git
        self.target_host = target_host
        self.github_token = github_token

    def sync(
        self,
        event: PushEvent,
        credential: ServiceAccountCredential,
        project_id: str,
    ) -> MirrorResult:
        name = event.repository_name
        remote = target_remote_url(f"https://{self.target_host}", project_id, name)
        started = time.monotonic()

        with mirror_job(credential_line(credential, self.target_host), remote) as job:
            clone_url = effective_clone_url(event.clone_url, self.github_token)
            logger.info(
                f"[mirror-engine] Cloning {redact(clone_url)} into {job.working_directory}",
                extra={"repository": name, "step": "clone"},
            )
            try:
                self.git.mirror_clone(clone_url, job.working_directory)
            except GitCommandError as e:
                raise SourceCloneError(
                    f"Unable to clone the {event.clone_url} repo: {e}",
                    repository=name,
                ) from e

            logger.info(
                f"[mirror-engine] Pushing mirror to {job.target_remote_url}",
                extra={"repository": name, "step": "push"},
            )
            try:
                self.git.push(job.working_directory, job.target_remote_url, job.credential_file)
            except GitCommandError as e:
                if e.operation == "config":
                    raise CredentialConfigError(
                        f"Unable to create git credential.helper: {e}",
                        repository=name,
                    ) from e
                raise TargetPushError(
                    f"Unable to sync the {job.target_remote_url} source repo: {e}",
                    repository=name,
                ) from e

        duration_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            f"[mirror-engine] {name} mirrored to {remote} ({duration_ms}ms)",
            extra={"repository": name, "step": "done"},
        )
        return MirrorResult(repository_name=name, target_remote_url=remote, duration_ms=duration_ms)
