from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime, timezone

import redis.asyncio as redis
import uvicorn
from fastapi import FastAPI

from src.agents.report import AccountOutcome, RunReport
from src.core.config import RunConfig, load_run_config, settings
from src.core.cursor_client import CursorDashboardClient
from src.core.notifier import WeChatNotifier
from src.core.storage import AccountConfigMalformedError, AccountConfigMissingError, AccountStore
from src.schemas.account import MonitoredAccount
from src.schemas.service import CheckTriggeredResponse, HealthResponse, ServiceInfoResponse

logger = logging.getLogger(__name__)


class AccountProcessor:
    def __init__(self, client: CursorDashboardClient, notifier: WeChatNotifier) -> None:
        self.client = client
        self.notifier = notifier

    async def process(self, account: MonitoredAccount, config: RunConfig) -> AccountOutcome:
        logger.info("Checking account %s", account.email)

        status = await self.client.check_hard_limit(account.cookie)
        if status is None:
            logger.error("Check failed for account %s, cookie may have expired", account.email)
            await self.notifier.send(
                config.webhook_key,
                f"Account {account.email}: billing check failed, the cookie may have expired. "
                "Please update the cookie.",
            )
            return AccountOutcome.CHECK_FAILED

        if status.no_usage_based_allowed is True:
            logger.info("Account %s has usage-based billing off", account.email)
            return AccountOutcome.OK

        if not status.usage_based_enabled:
            logger.info("Account %s is in a normal state", account.email)
            return AccountOutcome.OK

        logger.warning(
            "Account %s has usage-based billing on (limit $%s), disabling",
            account.email,
            status.hard_limit,
        )
        if await self.client.disable_hard_limit(account.cookie):
            await self.notifier.send(
                config.webhook_key,
                f"Account {account.email}: usage-based billing was enabled "
                f"(limit ${status.hard_limit}) and has been disabled automatically.",
            )
            return AccountOutcome.DISABLED

        await self.notifier.send(
            config.webhook_key,
            f"Account {account.email}: usage-based billing was enabled but disabling it "
            "automatically failed. Please turn it off manually!",
        )
        return AccountOutcome.DISABLE_FAILED


class BillingMonitor:
    """Checks every stored account once per interval.

    Runs are spawned as background tasks so neither the timer nor the
    ``/check`` route waits on them; ``stop`` drains whatever is still running.
    """

    def __init__(
        self,
        store: AccountStore | None = None,
        client: CursorDashboardClient | None = None,
        notifier: WeChatNotifier | None = None,
    ) -> None:
        self.store = store or AccountStore()
        self.notifier = notifier or WeChatNotifier()
        self.processor = AccountProcessor(client or CursorDashboardClient(), self.notifier)
        self.last_report: RunReport | None = None
        self._stop_event: asyncio.Event | None = None
        self._runs: set[asyncio.Task[RunReport]] = set()

    async def run_once(self, config: RunConfig) -> RunReport:
        report = RunReport()
        logger.info("=== Billing monitor run started at %s ===", report.started_at.isoformat())

        try:
            accounts = await self.store.load_accounts(config.accounts_key)
        except AccountConfigMissingError:
            logger.error("No account configuration found under key=%s", config.accounts_key)
            await self.notifier.send(
                config.webhook_key,
                f"Monitor stopped: no account configuration found, please add {config.accounts_key} "
                "to the store.",
            )
            report.abort("missing_config")
            return self._finish(report)
        except AccountConfigMalformedError as exc:
            logger.error("Failed to parse account configuration: %s", exc)
            await self.notifier.send(
                config.webhook_key,
                "Monitor stopped: the account configuration is not a valid JSON account list, please check it.",
            )
            report.abort("malformed_config")
            return self._finish(report)
        except redis.RedisError as exc:
            logger.exception("Failed to read account configuration")
            await self.notifier.send(
                config.webhook_key,
                f"Monitor stopped: the account store is unreachable ({type(exc).__name__}).",
            )
            report.abort("store_unavailable")
            return self._finish(report)

        report.accounts_total = len(accounts)
        if not accounts:
            logger.info("Account list is empty")
            report.abort("empty")
            return self._finish(report)

        logger.info("%s account(s) to check", len(accounts))
        for account in accounts:
            try:
                outcome = await self.processor.process(account, config)
            except Exception:
                logger.exception("Unexpected error while processing account %s", account.email)
                await self.notifier.send(
                    config.webhook_key,
                    f"Unexpected error while processing account {account.email}, please check the logs.",
                )
                outcome = AccountOutcome.ERROR
            report.record(account.email, outcome)

        report.finish()
        logger.info("=== Billing monitor run finished ===")
        return self._finish(report)

    def _finish(self, report: RunReport) -> RunReport:
        self.last_report = report
        logger.info("Run summary: %s", report.payload())
        return report

    def trigger(self) -> asyncio.Task[RunReport]:
        task = asyncio.create_task(self.run_once(load_run_config()))
        self._runs.add(task)
        task.add_done_callback(self._on_run_done)
        return task

    def _on_run_done(self, task: asyncio.Task[RunReport]) -> None:
        self._runs.discard(task)
        if task.cancelled():
            logger.warning("Billing monitor run was cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Billing monitor run crashed", exc_info=exc)

    async def run(self) -> None:
        self._stop_event = asyncio.Event()
        if settings.run_on_startup:
            self.trigger()

        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=settings.check_interval_seconds)
            except asyncio.TimeoutError:
                self.trigger()

    async def stop(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()
        if self._runs:
            logger.info("Waiting for %s in-flight run(s) to finish", len(self._runs))
            await asyncio.gather(*self._runs, return_exceptions=True)
        await self.store.close()


ANY_METHOD = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

billing_monitor = BillingMonitor()
app = FastAPI(title="Cursor Billing Monitor")


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO)
    app.state.task = asyncio.create_task(billing_monitor.run())


@app.on_event("shutdown")
async def shutdown_event() -> None:
    await billing_monitor.stop()
    task: asyncio.Task[None] = app.state.task
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task


@app.api_route("/check", methods=ANY_METHOD, tags=["monitor"], response_model=CheckTriggeredResponse)
async def trigger_check() -> CheckTriggeredResponse:
    billing_monitor.trigger()
    return CheckTriggeredResponse(message="Check triggered, see the logs for results")


@app.api_route("/health", methods=ANY_METHOD, tags=["system"], response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(timestamp=datetime.now(timezone.utc).isoformat())


@app.api_route("/", methods=ANY_METHOD, tags=["system"], response_model=ServiceInfoResponse)
@app.api_route("/{path:path}", methods=ANY_METHOD, include_in_schema=False, response_model=ServiceInfoResponse)
async def service_info(path: str = "") -> ServiceInfoResponse:
    return ServiceInfoResponse(
        name=settings.service_name,
        endpoints={
            "/check": "Trigger a billing check manually",
            "/health": "Health check",
        },
    )


def main() -> None:
    uvicorn.run("src.agents.billing_monitor:app", host=settings.host, port=settings.port)
