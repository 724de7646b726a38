"""
Harness — Run one JSON-encoded HTTP request through the webhook app.

Input (stdin):
    {"body": "...", "header": {"X-GitHub-Event": "push", ...},
     "method": "POST", "remote_addr": "192.0.2.1:4711", "url": "https://host/"}

Output (stdout):
    {"body": "", "header": {"Content-Type": "..."}, "status_code": 200}

Repeated response headers are joined with commas.
"""

from __future__ import annotations

import logging
from typing import Dict
from urllib.parse import urlsplit

from flask import Flask
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class HarnessRequest(BaseModel):
    body: str = ""
    header: Dict[str, str] = Field(default_factory=dict)
    method: str = "POST"
    remote_addr: str = ""
    url: str = "/"


class HarnessResponse(BaseModel):
    body: str
    header: Dict[str, str]
    status_code: int


def _remote_host(remote_addr: str) -> str:
    host, sep, port = remote_addr.rpartition(":")
    if sep and port.isdigit():
        return host.strip("[]")
    return remote_addr


def dispatch(app: Flask, http_request: HarnessRequest) -> HarnessResponse:
    """Synthesize a WSGI request from ``http_request`` and run it through ``app``."""
    parts = urlsplit(http_request.url)
    base_url = f"{parts.scheme}://{parts.netloc}" if parts.scheme and parts.netloc else None

    environ_base = {}
    if http_request.remote_addr:
        environ_base["REMOTE_ADDR"] = _remote_host(http_request.remote_addr)

    client = app.test_client()
    resp = client.open(
        parts.path or "/",
        base_url=base_url,
        method=(http_request.method or "POST").upper(),
        query_string=parts.query or None,
        headers=list(http_request.header.items()),
        data=http_request.body.encode("utf-8"),
        environ_base=environ_base,
    )

    header: Dict[str, str] = {}
    for name in resp.headers.keys():
        if name not in header:
            header[name] = ",".join(resp.headers.getlist(name))

    return HarnessResponse(
        body=resp.get_data(as_text=True),
        header=header,
        status_code=resp.status_code,
    )


def run_harness(app: Flask, raw: str) -> str:
    """Decode a JSON request, dispatch it, and return the JSON response."""
    http_request = HarnessRequest.model_validate_json(raw)
    logger.debug(f"[harness] {http_request.method} {http_request.url}")
    return dispatch(app, http_request).model_dump_json()
