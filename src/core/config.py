from __future__ import annotations

from dataclasses import dataclass

from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(slots=True, frozen=True)
class RunConfig:
    webhook_key: str
    accounts_key: str


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    service_name: str = "Cursor usage-based billing monitor"

    redis_url: str = "redis://localhost:6379/0"
    accounts_key: str = "cursor_accounts"

    wechat_webhook_key: str = ""
    wechat_webhook_url: str = "https://qyapi.weixin.qq.com/cgi-bin/webhook/send"

    cursor_base_url: str = "https://cursor.com"
    cursor_user_agent: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"

    http_timeout_seconds: float = 30.0
    check_interval_seconds: int = 3600
    run_on_startup: bool = False

    host: str = "0.0.0.0"
    port: int = 8000

    def run_config(self) -> RunConfig:
        return RunConfig(webhook_key=self.wechat_webhook_key.strip(), accounts_key=self.accounts_key)


settings = Settings()


def load_run_config() -> RunConfig:
    """Re-read the environment and `.env` so each run sees the current webhook key."""
    return Settings().run_config()
