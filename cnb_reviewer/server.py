"""FastAPI server to receive CNB pull request webhooks and trigger reviews."""

import hashlib
import hmac
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request

from .config import Config
from .review_engine import ReviewOrchestrator

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-cnb-signature"


def verify_signature(body: bytes, signature: Optional[str], secret: Optional[str]) -> None:
    """Check the HMAC-SHA256 signature of a webhook body or raise HTTPException."""
    if not signature:
        raise HTTPException(status_code=401, detail="Missing webhook signature")

    if not secret:
        logger.error("Webhook secret is not configured")
        raise HTTPException(status_code=500, detail="Server configuration error")

    expected = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    if not hmac.compare_digest(signature, expected):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")


def create_app(orchestrator: Optional[ReviewOrchestrator] = None,
               webhook_secret: Optional[str] = None) -> FastAPI:
    """Build the webhook application.

    Without an explicit orchestrator one is built from ``Config`` on the first
    webhook and reused for the lifetime of the process.
    """
    app = FastAPI(title="CNB AI Code Reviewer Webhook")
    app.state.orchestrator = orchestrator
    app.state.webhook_secret = webhook_secret
    app.state.config = None

    def _config() -> Config:
        if app.state.config is None:
            app.state.config = Config()
        return app.state.config

    def _get_orchestrator() -> ReviewOrchestrator:
        if app.state.orchestrator is None:
            try:
                app.state.orchestrator = ReviewOrchestrator.from_config(_config())
            except Exception as e:
                logger.error(f"Failed to build review pipeline from configuration: {e}")
                raise HTTPException(status_code=500, detail="Server configuration error")
        return app.state.orchestrator

    def _get_secret() -> Optional[str]:
        if app.state.webhook_secret is None:
            try:
                return _config().cnb.webhook_secret
            except Exception as e:
                logger.error(f"Failed to load configuration: {e}")
                raise HTTPException(status_code=500, detail="Server configuration error")
        return app.state.webhook_secret

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.post("/webhook/pr")
    async def pr_webhook(request: Request) -> Dict[str, Any]:
        body = await request.body()
        verify_signature(body, request.headers.get(SIGNATURE_HEADER), _get_secret())

        try:
            event = json.loads(body)
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid JSON body")
        if not isinstance(event, dict):
            raise HTTPException(status_code=400, detail="Invalid JSON body")

        logger.info("Received CNB PR webhook event")
        report = await _get_orchestrator().process_pr_event(event)

        return {
            "status": "success",
            "message": "PR event received and processed",
            "state": report.state.value,
            "files_reviewed": report.files_reviewed,
            "comments_posted": report.comments_posted,
        }

    return app


app = create_app()
