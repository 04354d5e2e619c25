from __future__ import annotations

import json
import logging

import redis.asyncio as redis
from pydantic import ValidationError

from src.core.config import settings
from src.schemas.account import AccountList, MonitoredAccount

logger = logging.getLogger(__name__)


class AccountConfigError(Exception):
    pass


class AccountConfigMissingError(AccountConfigError):
    pass


class AccountConfigMalformedError(AccountConfigError):
    pass


def parse_accounts(raw: str) -> list[MonitoredAccount]:
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise AccountConfigMalformedError(f"Account list is not valid JSON: {exc}") from exc

    try:
        return AccountList.validate_python(payload)
    except ValidationError as exc:
        raise AccountConfigMalformedError(f"Account list has an unexpected shape: {exc}") from exc


class AccountStore:
    """Read-only view of the account list kept in Redis."""

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        self._redis = redis_client or redis.from_url(settings.redis_url, decode_responses=True)

    async def close(self) -> None:
        await self._redis.aclose()

    async def get_raw(self, key: str) -> str | None:
        return await self._redis.get(key)

    async def load_accounts(self, key: str) -> list[MonitoredAccount]:
        raw = await self.get_raw(key)
        if not raw:
            raise AccountConfigMissingError(f"No account list stored under key={key}")

        accounts = parse_accounts(raw)
        logger.debug("Loaded %s account(s) from key=%s", len(accounts), key)
        return accounts
