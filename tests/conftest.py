"""
Shared fixtures for mirror bridge tests.

Provides signed webhook builders and fake collaborators (git, metadata
server, Source Repositories API) so the pipeline runs without network,
subprocesses, or a real repository.
"""

from __future__ import annotations

import hashlib
import hmac
import json
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

from mirror_bridge.config import BridgeSettings
from mirror_bridge.credentials import ServiceAccountCredential
from mirror_bridge.errors import CredentialError, GitCommandError, TargetRepositoryError
from mirror_bridge.mirror.engine import MirrorSyncEngine
from mirror_bridge.mirror.git import GitBackend
from mirror_bridge.pipeline import MirrorPipeline
from mirror_bridge.server import create_app
from mirror_bridge.target import repo_resource_name

SECRET = "pipeline"
SERVICE_ACCOUNT = "mirror@proj1.iam.gserviceaccount.com"
ACCESS_TOKEN = "ya29.test-token"


def sign(body: bytes, secret: str = SECRET, algorithm: str = "sha256") -> str:
    """X-Hub-Signature value for ``body``."""
    digest = hmac.new(secret.encode("utf-8"), body, getattr(hashlib, algorithm)).hexdigest()
    return f"{algorithm}={digest}"


def push_body(
    name: str = "demo",
    clone_url: str = "https://src/demo.git",
    url: str = "https://src/demo",
) -> bytes:
    """Minimal GitHub push payload."""
    return json.dumps({
        "ref": "refs/heads/main",
        "after": "0123456789abcdef0123456789abcdef01234567",
        "repository": {
            "name": name,
            "full_name": f"octo/{name}",
            "clone_url": clone_url,
            "url": url,
        },
    }).encode("utf-8")


def webhook_headers(
    body: bytes,
    event: str = "push",
    secret: str = SECRET,
    content_type: str = "application/json",
) -> Dict[str, str]:
    return {
        "Content-Type": content_type,
        "X-GitHub-Event": event,
        "X-GitHub-Delivery": "72d3162e-cc78-11e3-81ab-4c9367dc0958",
        "X-Hub-Signature-256": sign(body, secret),
    }


class FakeGit(GitBackend):
    """GitBackend recording calls; ``fail_on`` names an operation to fail."""

    def __init__(self, fail_on: Optional[str] = None):
        self.fail_on = fail_on
        self.calls: List[Tuple] = []
        self.credentials_seen: Optional[str] = None
        self.directories_seen: List[Path] = []

    def _maybe_fail(self, operation: str) -> None:
        if self.fail_on == operation:
            raise GitCommandError(operation, 128, f"fatal: {operation} failed")

    def mirror_clone(self, url: str, destination: Path) -> None:
        self.calls.append(("clone", url, destination))
        self.directories_seen.append(destination)
        assert destination.is_dir()
        assert not any(destination.iterdir())
        self._maybe_fail("clone")
        (destination / "HEAD").write_text("ref: refs/heads/main\n")

    def configure_credential_helper(self, git_dir: Path, credential_file: Path) -> None:
        self.calls.append(("config", git_dir, credential_file))
        self.credentials_seen = credential_file.read_text()
        self._maybe_fail("config")

    def push_mirror(self, git_dir: Path, remote: str) -> None:
        self.calls.append(("push", git_dir, remote))
        self._maybe_fail("push")

    def operations(self) -> List[str]:
        return [call[0] for call in self.calls]


class FakeCredentials:
    """Stands in for the metadata server."""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.calls = 0

    def default_credentials(self) -> ServiceAccountCredential:
        self.calls += 1
        if self.error:
            raise self.error
        return ServiceAccountCredential(
            principal_email=SERVICE_ACCOUNT,
            access_token=ACCESS_TOKEN,
            expires_in_seconds=3599,
        )


class FakeResolver:
    """Stands in for the Source Repositories API."""

    def __init__(self, existing=("demo",), project_id: str = "proj1"):
        self.existing = set(existing)
        self.project_id = project_id
        self.calls: List[Tuple[str, str]] = []

    def ensure_exists(self, repository_name: str, access_token: str) -> str:
        self.calls.append((repository_name, access_token))
        name = repo_resource_name(self.project_id, repository_name)
        if repository_name not in self.existing:
            raise TargetRepositoryError(
                f"Unable to fetch the {name} source repo: HTTP 404",
                repository=repository_name,
            )
        return name


@pytest.fixture
def settings() -> BridgeSettings:
    return BridgeSettings(
        project_id="proj1",
        webhook_secret=SECRET,
        target_host="source.example",
    )


@pytest.fixture
def fake_git() -> FakeGit:
    return FakeGit()


@pytest.fixture
def fake_credentials() -> FakeCredentials:
    return FakeCredentials()


@pytest.fixture
def fake_resolver() -> FakeResolver:
    return FakeResolver()


@pytest.fixture
def pipeline(settings, fake_git, fake_credentials, fake_resolver) -> MirrorPipeline:
    return MirrorPipeline(
        settings=settings,
        credentials=fake_credentials,
        resolver=fake_resolver,
        engine=MirrorSyncEngine(git=fake_git, target_host=settings.target_host),
    )


@pytest.fixture
def app(settings, pipeline):
    """Flask test app wired to the fake pipeline."""
    app = create_app(settings=settings, pipeline=pipeline)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def credential_error() -> CredentialError:
    return CredentialError("Unable to get the default service account email: HTTP 503")
