"""
Webhook Validator — Check X-Hub-Signature and extract the push event.

GitHub signs the raw request body with HMAC using the webhook's shared
secret and sends the digest as ``sha256=<hex>`` (X-Hub-Signature-256) and,
for older hooks, ``sha1=<hex>`` (X-Hub-Signature). Both are accepted, the
SHA-256 header wins when present.

Nothing here touches the network or the filesystem: a request that fails
validation never reaches the credential, resolve or git steps.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Mapping, Union
from urllib.parse import parse_qs

from werkzeug.datastructures import Headers

from ..errors import ValidationError
from .events import EventKind, PushEvent, parse_webhook

logger = logging.getLogger(__name__)

SIGNATURE_256_HEADER = "X-Hub-Signature-256"
SIGNATURE_HEADER = "X-Hub-Signature"
EVENT_TYPE_HEADER = "X-GitHub-Event"
DELIVERY_ID_HEADER = "X-GitHub-Delivery"

_HASHES = {
    "sha1": hashlib.sha1,
    "sha256": hashlib.sha256,
    "sha512": hashlib.sha512,
}

HeaderSource = Union[Headers, Mapping[str, str]]


def _headers(headers: HeaderSource) -> Headers:
    # Header names are case-insensitive; plain dicts come from the harness
    if isinstance(headers, Headers):
        return headers
    return Headers(dict(headers))


def validate_signature(signature: str, body: bytes, secret: bytes) -> None:
    """Raise ValidationError unless ``signature`` is the HMAC of ``body``."""
    algorithm, sep, hex_digest = signature.strip().partition("=")
    hash_fn = _HASHES.get(algorithm.lower())
    if not sep or hash_fn is None:
        raise ValidationError(f"Unsupported or malformed signature {signature[:12]!r}")

    try:
        expected = bytes.fromhex(hex_digest)
    except ValueError:
        raise ValidationError("Signature is not a hex digest")

    actual = hmac.new(secret, body, hash_fn).digest()
    if not hmac.compare_digest(actual, expected):
        raise ValidationError("Payload signature check failed")


def validate_payload(body: bytes, headers: HeaderSource, secret: bytes) -> bytes:
    """
    Authenticate a webhook request and return its JSON payload.

    JSON bodies are returned as-is; form-encoded bodies yield the
    ``payload`` field. The signature always covers the raw body.

    Raises:
        ValidationError: unsupported content type, missing or bad signature
    """
    headers = _headers(headers)

    content_type = headers.get("Content-Type", "")
    media_type = content_type.split(";", 1)[0].strip().lower()

    if media_type == "application/json":
        payload = body
    elif media_type == "application/x-www-form-urlencoded":
        form = parse_qs(body.decode("utf-8", errors="replace"))
        payload = form.get("payload", [""])[0].encode("utf-8")
    else:
        raise ValidationError(f"Webhook request has unsupported Content-Type {content_type!r}")

    signature = headers.get(SIGNATURE_256_HEADER) or headers.get(SIGNATURE_HEADER)
    if not signature:
        raise ValidationError("Missing signature")

    validate_signature(signature, body, secret)
    return payload


def webhook_type(headers: HeaderSource) -> str:
    """Return the X-GitHub-Event header value ('' if absent)."""
    return _headers(headers).get(EVENT_TYPE_HEADER, "")


def push_event_from_request(
    body: bytes,
    headers: HeaderSource,
    secret: Union[str, bytes],
) -> PushEvent:
    """
    Validate a GitHub webhook request and extract the pushed repository.

    Raises:
        ValidationError: signature or content type invalid
        UnsupportedEventError: event type is not ``push``
        ParseError: payload malformed
    """
    if isinstance(secret, str):
        secret = secret.encode("utf-8")

    headers = _headers(headers)
    try:
        payload = validate_payload(body, headers, secret)
    except ValidationError as e:
        raise ValidationError(f"Unable to validate webhook payload: {e.message}") from e

    kind = EventKind.from_header(webhook_type(headers))
    event = parse_webhook(kind, payload)

    logger.info(
        f"[mirror-webhook] {kind.value} to {event.repository_name} "
        f"{event.ref or '-'} at {(event.after or '-')[:12]} "
        f"(delivery {headers.get(DELIVERY_ID_HEADER, '-')})",
        extra={"repository": event.repository_name, "step": "validate"},
    )
    return event
