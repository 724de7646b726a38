"""
Webhook API — Receive GitHub push webhooks.

Blueprint: webhook_bp

Any failure answers 500 with an empty body; the reason is only logged.
Every method reaches the pipeline, so a request that is not a signed
push (a bare GET included) fails validation like any other.
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response, current_app, jsonify, request

from .errors import MirrorBridgeError

logger = logging.getLogger(__name__)

webhook_bp = Blueprint("webhook", __name__)

# HEAD is added by Flask alongside GET
WEBHOOK_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def _pipeline():
    return current_app.config["MIRROR_PIPELINE"]


@webhook_bp.route("/healthz", methods=["GET"])
def api_healthz():
    """Liveness probe."""
    return jsonify({"status": "ok"})


@webhook_bp.route("/", defaults={"path": ""}, methods=WEBHOOK_METHODS)
@webhook_bp.route("/<path:path>", methods=WEBHOOK_METHODS)
def api_webhook(path: str):
    """Mirror the repository named by a GitHub push webhook."""
    try:
        _pipeline().handle(request.get_data(), request.headers)
    except MirrorBridgeError:
        # Already logged with context by the pipeline
        return Response(status=500)
    return Response(status=200)
