"""GitHub webhook handlers."""

import hashlib
import hmac
import json
from typing import Any

import logfire
from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from inkwell.api.deps import get_token_cache
from inkwell.core.config import get_settings
from inkwell.github import TokenCache
from inkwell.worker import celery_app

router = APIRouter()


def verify_webhook_signature(payload: bytes, signature: str | None, secret: str) -> bool:
    """Verify GitHub webhook signature using HMAC.

    Args:
        payload: Raw request body
        signature: X-Hub-Signature-256 header value
        secret: Webhook secret configured in GitHub App

    Returns:
        True if signature is valid, False otherwise
    """
    if not signature:
        return False

    expected = (
        "sha256="
        + hmac.new(
            secret.encode("utf-8"),
            payload,
            hashlib.sha256,
        ).hexdigest()
    )

    return hmac.compare_digest(expected, signature)


@router.post("/github")
async def handle_github_webhook(
    request: Request,
    token_cache: TokenCache = Depends(get_token_cache),
    x_hub_signature_256: str | None = Header(default=None),
    x_github_event: str | None = Header(default=None),
    x_github_delivery: str | None = Header(default=None),
) -> dict[str, str]:
    """Handle incoming GitHub webhooks.

    Only installation events matter: an uninstall queues cleanup of the stored
    installation references and returns immediately.
    """
    settings = get_settings()
    if not settings.github_webhook_secret:
        logfire.error("GITHUB_WEBHOOK_SECRET is not set", delivery_id=x_github_delivery)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook secret not configured",
        )

    body = await request.body()
    if not verify_webhook_signature(body, x_hub_signature_256, settings.github_webhook_secret):
        logfire.warn("Invalid webhook signature", delivery_id=x_github_delivery)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid webhook signature",
        )

    try:
        payload = json.loads(body)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Webhook payload is not valid JSON",
        ) from e

    if not isinstance(payload, dict):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Webhook payload must be a JSON object",
        )

    logfire.info(
        "Received GitHub webhook",
        event=x_github_event,
        delivery_id=x_github_delivery,
        action=payload.get("action"),
    )

    match x_github_event:
        case "installation":
            return handle_installation(payload, token_cache)
        case "ping":
            # GitHub sends ping on webhook setup
            return {"status": "pong"}
        case _:
            logfire.debug("Unhandled webhook event", event=x_github_event)

    return {"status": "received"}


def handle_installation(payload: dict[str, Any], token_cache: TokenCache) -> dict[str, str]:
    """Handle GitHub App installation lifecycle events."""
    action = payload.get("action")
    installation = payload.get("installation")
    installation_id = installation.get("id") if isinstance(installation, dict) else None

    logfire.info(
        "Installation event",
        action=action,
        installation_id=installation_id,
    )

    if action != "deleted":
        return {"status": "received"}

    # bool is an int subclass
    if not isinstance(installation_id, int) or isinstance(installation_id, bool):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Installation event without a valid installation id",
        )

    token_cache.invalidate(installation_id)
    celery_app.send_task(
        "inkwell.worker.tasks.clear_installation",
        kwargs={"installation_id": installation_id},
    )

    logfire.info("Installation cleanup queued", installation_id=installation_id)
    return {"status": "queued"}
