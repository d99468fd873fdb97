"""Webhook receiver for Heroku release events (FastAPI)."""
from __future__ import annotations

import hmac
import logging
from typing import Any, Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse

from .config import Config
from .errors import HerokuError, PipelineError, TransportError
from .heroku import resolve_base_revision
from .pipeline import DeployEvent, PipelineResult, run_pipeline

logger = logging.getLogger(__name__)

Notify = Callable[[DeployEvent, Config], Awaitable[PipelineResult]]


def verify_token(provided: str, secret: str) -> bool:
    """Constant-time comparison of the webhook auth token."""
    if not secret:
        return False
    return hmac.compare_digest(provided.encode(), secret.encode())


def create_app(config: Config, notify: Notify = run_pipeline) -> FastAPI:
    """Create a FastAPI application with webhook and health endpoints.

    Args:
        config: Service configuration, shared read-only by all requests.
        notify: Pipeline entry point, replaceable for tests.

    Returns:
        A FastAPI application.
    """
    app = FastAPI(title="heroku-deploy-notifier", debug=config.debug)

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        return "Heroku Deploy Notifier"

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok"}

    @app.post("/heroku_webhook")
    async def heroku_webhook(
        request: Request,
        auth_token: str = "",
        github_org_name: str = "",
        github_repo_name: str = "",
    ) -> Response:
        """Receive a Heroku release webhook and notify the deployed authors."""
        if not verify_token(auth_token, config.secret):
            return Response(content="Invalid auth token", status_code=403)

        try:
            payload: dict[str, Any] = await request.json()
        except ValueError:
            return Response(content="Invalid JSON", status_code=400)
        if not isinstance(payload, dict):
            return Response(content="Invalid JSON", status_code=400)

        # Only finished releases carry the deployed slug.
        if payload.get("action") != "update":
            return Response(content="ignored", status_code=200)

        data = payload.get("data")
        if not isinstance(data, dict):
            return Response(content="Missing release data", status_code=400)
        slug = data.get("slug")
        if slug is None:
            return Response(content="ignored", status_code=200)

        app_info = data.get("app")
        app_name = app_info.get("name") if isinstance(app_info, dict) else None
        version = data.get("version")
        head = slug.get("commit") if isinstance(slug, dict) else None
        if (
            not isinstance(app_name, str)
            or not app_name
            or not isinstance(version, int)
            or isinstance(version, bool)
            or not isinstance(head, str)
            or not head
        ):
            return Response(content="Missing release data", status_code=400)
        if not github_org_name or not github_repo_name:
            return Response(content="Missing GitHub repository", status_code=400)

        try:
            base = await resolve_base_revision(
                app_name,
                version,
                config.heroku_token,
                api_url=config.heroku_api,
                timeout=config.http_timeout,
            )
        except (HerokuError, TransportError) as e:
            logger.error("Could not resolve previous release of %s: %s", app_name, e)
            return Response(content=f"Heroku lookup failed: {e}", status_code=502)

        event = DeployEvent(
            app_name=app_name,
            org=github_org_name,
            repo=github_repo_name,
            base_revision=base,
            head_revision=head,
            release_id=f"v{version}",
        )
        try:
            result = await notify(event, config)
        except PipelineError as e:
            logger.error("Deploy notification for %s v%d failed: %s", app_name, version, e)
            return Response(content=f"{e.step} failed", status_code=500)

        logger.info(
            "Deploy v%d of %s: notified %d of %d authors",
            version,
            app_name,
            len(result.notified),
            result.author_count,
        )
        return Response(content="ok", status_code=200)

    return app
