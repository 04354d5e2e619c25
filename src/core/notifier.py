from __future__ import annotations

import asyncio
import logging

import requests

from src.core.config import settings

logger = logging.getLogger(__name__)


class WeChatNotifier:
    """Posts plain-text messages to a WeChat Work group robot.

    Delivery problems are logged and reported as ``False``; there is no
    fallback channel, so nothing is raised to the caller.
    """

    def __init__(self, webhook_url: str | None = None, timeout: float | None = None) -> None:
        self.webhook_url = webhook_url or settings.wechat_webhook_url
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds

    async def send(self, webhook_key: str, message: str) -> bool:
        if not webhook_key:
            logger.error("WeChat webhook key is not configured, dropping message: %s", message)
            return False

        def _post() -> bool:
            response = requests.post(
                self.webhook_url,
                params={"key": webhook_key},
                json={"msgtype": "text", "text": {"content": message}},
                timeout=self.timeout,
            )
            if not response.ok:
                logger.error("Notification failed: HTTP %s", response.status_code)
                return False

            body = response.json()
            if not isinstance(body, dict) or body.get("errcode") != 0:
                logger.error("Notification rejected: %s", body)
                return False
            return True

        try:
            delivered = await asyncio.to_thread(_post)
        except Exception as exc:
            logger.error("Notification raised %s: %s", type(exc).__name__, exc)
            return False

        if delivered:
            logger.info("Notification sent: %s", message)
        return delivered
