"""
Errors — Failure taxonomy for the mirror pipeline.

Every failure is raised where it happens, carrying the repository and the
pipeline step it belongs to. Nothing is retried: the pipeline logs the error
once and the HTTP surface answers 500.

## Usage

    from mirror_bridge.errors import MirrorBridgeError, TargetPushError

    try:
        pipeline.handle(body, headers)
    except MirrorBridgeError as e:
        logger.error(f"Mirror failed: {e}")
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class MirrorBridgeError(Exception):
    """Base class for all pipeline failures."""

    step: str = "pipeline"

    def __init__(
        self,
        message: str,
        repository: Optional[str] = None,
        step: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.repository = repository
        if step:
            self.step = step
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        prefix = f"[{self.step}] "
        if self.repository:
            return f"{prefix}{self.repository}: {self.message}"
        return f"{prefix}{self.message}"


class ValidationError(MirrorBridgeError):
    """Webhook signature or content type did not validate."""

    step = "validate"


class UnsupportedEventError(MirrorBridgeError):
    """Webhook event type is not one we mirror on."""

    step = "validate"

    def __init__(self, event_type: str, **kwargs: Any):
        self.event_type = event_type
        super().__init__(f"The {event_type or '<missing>'} event type is not supported", **kwargs)


class ParseError(MirrorBridgeError):
    """Webhook payload could not be decoded."""

    step = "parse"


class ConfigurationError(MirrorBridgeError):
    """Raised when configuration is missing or invalid."""

    step = "config"


class CredentialError(MirrorBridgeError):
    """Metadata server did not yield a usable identity or token."""

    step = "credentials"


class TargetRepositoryError(MirrorBridgeError):
    """Target repository lookup failed (missing, forbidden, unreachable)."""

    step = "resolve"


class SourceCloneError(MirrorBridgeError):
    step = "clone"


class CredentialConfigError(MirrorBridgeError):
    step = "credential-helper"


class TargetPushError(MirrorBridgeError):
    step = "push"


class GitCommandError(Exception):
    """A git subprocess exited non-zero, timed out, or could not start."""

    def __init__(self, operation: str, returncode: Optional[int], output: str = ""):
        self.operation = operation
        self.returncode = returncode
        self.output = output
        if returncode is None:
            summary = f"git {operation} did not complete"
        else:
            summary = f"git {operation} exited with status {returncode}"
        if output:
            summary = f"{summary}: {output}"
        super().__init__(summary)
