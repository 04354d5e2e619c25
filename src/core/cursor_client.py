from __future__ import annotations

import asyncio
import logging
from typing import Any

import requests
from pydantic import ValidationError

from src.core.config import settings
from src.schemas.account import BillingStatus

logger = logging.getLogger(__name__)

DISABLE_HARD_LIMIT_BODY: dict[str, Any] = {
    "hardLimit": 0,
    "noUsageBasedAllowed": True,
    "preserveHardLimitPerUser": False,
    "perUserMonthlyLimitDollars": 0,
    "clearPerUserMonthlyLimitDollars": False,
    "isDynamicTeamLimit": False,
}


class CursorDashboardClient:
    """Thin wrapper over the dashboard's hard-limit endpoints.

    Each method performs exactly one request and never retries.
    """

    def __init__(self, base_url: str | None = None, timeout: float | None = None) -> None:
        self.base_url = (base_url or settings.cursor_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds

    def _headers(self, cookie: str) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Cookie": cookie,
            "User-Agent": settings.cursor_user_agent,
            "Origin": self.base_url,
            "Referer": f"{self.base_url}/settings",
        }

    def _post(self, path: str, cookie: str, body: dict[str, Any]) -> requests.Response:
        return requests.post(
            f"{self.base_url}{path}",
            headers=self._headers(cookie),
            json=body,
            timeout=self.timeout,
        )

    async def check_hard_limit(self, cookie: str) -> BillingStatus | None:
        def _check() -> BillingStatus | None:
            response = self._post("/api/dashboard/get-hard-limit", cookie, {})
            if not response.ok:
                logger.error("Hard limit check failed: HTTP %s", response.status_code)
                return None
            return BillingStatus.model_validate(response.json())

        try:
            return await asyncio.to_thread(_check)
        except (requests.RequestException, ValueError, ValidationError) as exc:
            logger.error("Hard limit check raised %s: %s", type(exc).__name__, exc)
            return None

    async def disable_hard_limit(self, cookie: str) -> bool:
        def _disable() -> bool:
            response = self._post("/api/dashboard/set-hard-limit", cookie, DISABLE_HARD_LIMIT_BODY)
            if not response.ok:
                logger.error("Disabling usage-based billing failed: HTTP %s", response.status_code)
                return False
            return True

        try:
            disabled = await asyncio.to_thread(_disable)
        except requests.RequestException as exc:
            logger.error("Disabling usage-based billing raised %s: %s", type(exc).__name__, exc)
            return False

        if disabled:
            logger.info("Usage-based billing disabled")
        return disabled
