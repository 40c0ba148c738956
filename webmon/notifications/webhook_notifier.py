"""Webhook notifications for Discord and Slack."""

import logging
from datetime import datetime, timezone
from typing import Dict

import httpx

from webmon.config import settings

logger = logging.getLogger(__name__)


def _is_slack_webhook(url: str) -> bool:
    """Detect if webhook URL is for Slack."""
    return "slack.com" in url or "hooks.slack" in url


def _build_discord_embed(subject: str, body: str, kind: str) -> Dict:
    """Build Discord embed format."""
    color = 65280 if kind == "recovered" else 16711680  # Green / Red
    return {
        "embeds": [{
            "title": subject,
            "description": body,
            "color": color,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }],
    }


def _build_slack_payload(subject: str, body: str, kind: str) -> Dict:
    """Build Slack message format."""
    color = "#00FF00" if kind == "recovered" else "#FF0000"
    return {
        "attachments": [{
            "color": color,
            "title": subject,
            "text": body,
            "ts": int(datetime.now(timezone.utc).timestamp()),
        }],
    }


async def send_webhook(subject: str, body: str, kind: str = "alert") -> bool:
    """Send webhook notification (Discord/Slack compatible).

    Args:
        subject: Notification title.
        body: Plain-text notification body.
        kind: Notification kind ('down' or 'recovered'), selects the color.

    Returns:
        True if webhook sent successfully, False otherwise.
    """
    if not settings.webhook_configured:
        logger.debug("Webhook not configured, skipping notification")
        return False

    webhook_url = settings.webhook_url

    if _is_slack_webhook(webhook_url):
        payload = _build_slack_payload(subject, body, kind)
    else:
        # Default to Discord format
        payload = _build_discord_embed(subject, body, kind)

    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                webhook_url,
                json=payload,
                timeout=10.0,
            )
            response.raise_for_status()

    except httpx.HTTPStatusError as e:
        logger.error("Webhook HTTP error: %s - %s", e.response.status_code, e.response.text[:200])
        return False

    except Exception as e:
        logger.error("Failed to send webhook: %s", e)
        return False

    logger.info("Webhook notification sent: %s", subject)
    return True
