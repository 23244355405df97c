from __future__ import annotations

from typing import Any

import httpx
import structlog

from status_checks.transitions import Notification

logger = structlog.get_logger(__name__)

DISCORD_TIMEOUT_SECONDS = 15.0


def build_embed(notification: Notification) -> dict[str, Any]:
    return {
        "title": notification.title,
        "description": notification.description,
        "url": notification.url,
        "color": notification.color,
        "timestamp": notification.timestamp.isoformat(),
        "footer": {"text": notification.footer},
    }


def redact_webhook(text: str, webhook_url: str | None) -> str:
    if webhook_url:
        return text.replace(webhook_url, "<redacted-webhook>")
    return text


class DiscordNotifier:
    """
    Delivers notifications as Discord webhook embeds.

    Delivery is best effort: a missing webhook, a transport error or a non-2xx
    response is logged and reported as False, never raised.
    """

    def __init__(self, client: httpx.AsyncClient, webhook_url: str | None) -> None:
        self.client = client
        self.webhook_url = (webhook_url or "").strip() or None

    async def deliver(self, notification: Notification) -> bool:
        if not self.webhook_url:
            logger.error("Missing DISCORD_WEBHOOK_URL; notification not sent", title=notification.title)
            return False

        payload = {"embeds": [build_embed(notification)]}
        try:
            resp = await self.client.post(self.webhook_url, json=payload, timeout=DISCORD_TIMEOUT_SECONDS)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            msg = redact_webhook(f"{type(e).__name__}: {e}", self.webhook_url)
            logger.error("Failed to send Discord notification", url=notification.url, error=msg)
            return False

        if resp.status_code >= 400:
            body = redact_webhook((resp.text or "")[:300], self.webhook_url)
            logger.error(
                "Discord rejected notification",
                url=notification.url,
                status_code=resp.status_code,
                body=body,
            )
            return False

        logger.info("Sent Discord notification", url=notification.url, kind=notification.kind.value)
        return True
