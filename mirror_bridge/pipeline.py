"""
Mirror Pipeline — Webhook in, mirrored repository out.

This is the main entry point for mirror operations. It coordinates
webhook validation, credential lookup, the target existence check and
the mirror sync, in that order.

## Usage

    from mirror_bridge.config import BridgeSettings
    from mirror_bridge.pipeline import MirrorPipeline

    pipeline = MirrorPipeline.from_settings(BridgeSettings.from_env())
    pipeline.handle(body, headers)   # raises MirrorBridgeError on failure

There is no locking across invocations: two pushes to the same
repository may mirror concurrently and the last push to land wins.
"""

from __future__ import annotations

import logging
from typing import Optional

from .config import BridgeSettings
from .credentials import MetadataCredentialProvider
from .errors import MirrorBridgeError
from .mirror.engine import MirrorResult, MirrorSyncEngine
from .mirror.git import GitBackend, GitCli
from .target import SourceRepoResolver
from .webhook.events import PushEvent
from .webhook.validator import HeaderSource, push_event_from_request

logger = logging.getLogger(__name__)


class MirrorPipeline:
    """Runs one mirror attempt per inbound webhook."""

    def __init__(
        self,
        settings: BridgeSettings,
        credentials: MetadataCredentialProvider,
        resolver: SourceRepoResolver,
        engine: MirrorSyncEngine,
    ):
        self.settings = settings
        self.credentials = credentials
        self.resolver = resolver
        self.engine = engine

    @classmethod
    def from_settings(
        cls,
        settings: BridgeSettings,
        git: Optional[GitBackend] = None,
    ) -> "MirrorPipeline":
        """Wire the real collaborators from settings."""
        return cls(
            settings=settings,
            credentials=MetadataCredentialProvider(
                metadata_host=settings.metadata_host,
                timeout=settings.http_timeout,
            ),
            resolver=SourceRepoResolver(
                project_id=settings.project_id,
                api_url=settings.sourcerepo_api_url,
                timeout=settings.http_timeout,
            ),
            engine=MirrorSyncEngine(
                git=git or GitCli(settings.git_binary, settings.git_timeout),
                target_host=settings.target_host,
                github_token=settings.github_token,
            ),
        )

    def handle(self, body: bytes, headers: HeaderSource) -> MirrorResult:
        """Validate a webhook request and mirror the pushed repository."""
        try:
            event = push_event_from_request(body, headers, self.settings.webhook_secret)
        except MirrorBridgeError as e:
            logger.error(f"[mirror] Rejected webhook: {e}", extra={"step": e.step})
            raise

        return self.mirror(event)

    def mirror(self, event: PushEvent) -> MirrorResult:
        """Mirror an already validated push event."""
        name = event.repository_name
        try:
            project_id = self.settings.require_project()
            credential = self.credentials.default_credentials()
            self.resolver.ensure_exists(name, credential.access_token)
            return self.engine.sync(event, credential, project_id)
        except MirrorBridgeError as e:
            logger.error(
                f"[mirror] {name} not mirrored: {e}",
                extra={"repository": name, "step": e.step},
            )
            raise
