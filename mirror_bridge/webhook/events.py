"""
Webhook Events — Typed GitHub webhook payloads.

Only push events are mirrored. Every other GitHub event type is an
explicit unsupported variant rather than a silently ignored string.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Type

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from ..errors import ParseError, UnsupportedEventError


class EventKind(str, Enum):
    """Webhook event types the bridge acts on."""

    PUSH = "push"

    @classmethod
    def from_header(cls, event_type: Optional[str]) -> "EventKind":
        """Map an X-GitHub-Event value to a supported kind."""
        try:
            return cls((event_type or "").strip())
        except ValueError:
            raise UnsupportedEventError(event_type or "")


class RepositoryPayload(BaseModel):
    """The ``repository`` object embedded in a push payload."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(min_length=1)
    clone_url: str = Field(min_length=1)
    url: str = Field(min_length=1)


class PushPayload(BaseModel):
    """The subset of a GitHub push payload the bridge reads."""

    model_config = ConfigDict(extra="ignore")

    ref: Optional[str] = None
    after: Optional[str] = None
    repository: RepositoryPayload


class PushEvent(BaseModel):
    """A validated push: which repository to mirror and where to fetch it."""

    model_config = ConfigDict(frozen=True)

    repository_name: str = Field(min_length=1)
    clone_url: str
    canonical_url: str
    ref: Optional[str] = None
    after: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: PushPayload) -> "PushEvent":
        repo = payload.repository
        return cls(
            repository_name=repo.name,
            clone_url=repo.clone_url,
            canonical_url=repo.url,
            ref=payload.ref,
            after=payload.after,
        )


_PAYLOAD_MODELS: Dict[EventKind, Type[BaseModel]] = {
    EventKind.PUSH: PushPayload,
}


def parse_webhook(kind: EventKind, payload: bytes) -> PushEvent:
    """
    Decode a webhook payload for the given event kind.

    Raises:
        ParseError: payload is not JSON or lacks the repository identity
    """
    model = _PAYLOAD_MODELS[kind]
    try:
        parsed = model.model_validate_json(payload)
    except pydantic.ValidationError as e:
        raise ParseError(
            f"Unable to parse webhook payload: {e.error_count()} error(s)",
            details={"errors": e.errors(include_url=False, include_input=False)},
        ) from e

    return PushEvent.from_payload(parsed)
