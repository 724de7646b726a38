"""
Credentials — Default service account identity from the GCE metadata server.

The function runs as a service account; its email and a short-lived OAuth
access token come from the local metadata server:

    GET http://metadata.google.internal/computeMetadata/v1/instance/service-accounts/default/email
    GET http://metadata.google.internal/computeMetadata/v1/instance/service-accounts/default/token
        -> {"access_token": "...", "expires_in": 3599, "token_type": "Bearer"}

Credentials are fetched fresh on every invocation and never written
anywhere except the per-job git credential file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import httpx
import pydantic
from pydantic import BaseModel

from .errors import CredentialError

logger = logging.getLogger(__name__)

METADATA_FLAVOR_HEADERS = {"Metadata-Flavor": "Google"}
EMAIL_PATH = "instance/service-accounts/default/email"
TOKEN_PATH = "instance/service-accounts/default/token"


class ServiceAccountToken(BaseModel):
    """Token document returned by the metadata server."""

    access_token: str
    expires_in: int
    token_type: str


@dataclass(frozen=True)
class ServiceAccountCredential:
    """Identity used to authenticate git pushes to the target service."""

    principal_email: str
    access_token: str = field(repr=False)
    expires_in_seconds: int = 0


class MetadataCredentialProvider:
    """Reads the default service account from the metadata server."""

    def __init__(self, metadata_host: str = "metadata.google.internal", timeout: int = 10):
        self.metadata_host = metadata_host
        self.timeout = timeout

    @property
    def base_url(self) -> str:
        return f"http://{self.metadata_host}/computeMetadata/v1"

    def _get(self, path: str, what: str) -> str:
        url = f"{self.base_url}/{path}"
        try:
            resp = httpx.get(url, headers=METADATA_FLAVOR_HEADERS, timeout=self.timeout)
        except httpx.HTTPError as e:
            raise CredentialError(
                f"Unable to get the default service account {what}: {e}"
            ) from e

        if resp.status_code != 200:
            raise CredentialError(
                f"Unable to get the default service account {what}: HTTP {resp.status_code}",
                details={"status_code": resp.status_code},
            )
        return resp.text.strip()

    def default_credentials(self) -> ServiceAccountCredential:
        """
        Fetch the default service account email and access token.

        Raises:
            CredentialError: metadata server unreachable or token undecodable
        """
        email = self._get(EMAIL_PATH, "email")
        if not email:
            raise CredentialError("Metadata server returned an empty service account email")

        raw_token = self._get(TOKEN_PATH, "token")
        try:
            token = ServiceAccountToken.model_validate_json(raw_token)
        except pydantic.ValidationError as e:
            raise CredentialError(
                f"Unable to parse the default service account token: {e.error_count()} error(s)"
            ) from e

        logger.info(
            f"[mirror-credentials] Using service account {email} "
            f"(token expires in {token.expires_in}s)"
        )
        return ServiceAccountCredential(
            principal_email=email,
            access_token=token.access_token,
            expires_in_seconds=token.expires_in,
        )
