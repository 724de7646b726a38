"""
Webhook Server — Flask application receiving GitHub webhooks.

    POST /            mirror the pushed repository (200 or 500, empty body)
    GET  /healthz     liveness
"""

from __future__ import annotations

import logging
import time
import traceback
from typing import Optional

from flask import Flask, Response, g, request

from .config import BridgeSettings
from .pipeline import MirrorPipeline
from .routes import webhook_bp
from .webhook.validator import DELIVERY_ID_HEADER, EVENT_TYPE_HEADER

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[BridgeSettings] = None,
    pipeline: Optional[MirrorPipeline] = None,
) -> Flask:
    """Create the Flask application."""
    settings = settings or BridgeSettings.from_env()
    pipeline = pipeline or MirrorPipeline.from_settings(settings)

    app = Flask(__name__)
    app.config["BRIDGE_SETTINGS"] = settings
    app.config["MIRROR_PIPELINE"] = pipeline

    app.register_blueprint(webhook_bp)

    # ── Error Handlers ────────────────────────────────────────────

    @app.errorhandler(500)
    def internal_server_error(e):
        """Unhandled errors keep the same empty-bodied 500 as pipeline failures."""
        logger.error(
            f"Unhandled 500 on {request.method} {request.path}: {e}\n{traceback.format_exc()}"
        )
        return Response(status=500)

    # ── Request Logging ───────────────────────────────────────────

    @app.before_request
    def log_request_start():
        g.start_time = time.time()

    @app.after_request
    def log_request_end(response):
        duration_ms = 0
        if "start_time" in g:
            duration_ms = int((time.time() - g.start_time) * 1000)

        log_fn = logger.debug if request.path == "/healthz" else logger.info
        log_fn(
            f"{request.method} {request.path} "
            f"[{request.headers.get(EVENT_TYPE_HEADER, '-')}] → {response.status_code} ({duration_ms}ms)",
            extra={"delivery_id": request.headers.get(DELIVERY_ID_HEADER, "-")},
        )
        return response

    logger.info(f"Webhook server initialized (project={settings.project_id or '-'})")

    return app


def run_server(host: str = "0.0.0.0", port: int = 8080, debug: bool = False) -> None:
    """Run the development server."""
    app = create_app()
    logger.info(f"Listening on http://{host}:{port}")
    app.run(host=host, port=port, debug=debug, use_reloader=False)
