from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class AccountOutcome(str, Enum):
    OK = "ok"
    DISABLED = "disabled"
    DISABLE_FAILED = "disable_failed"
    CHECK_FAILED = "check_failed"
    ERROR = "error"


@dataclass(slots=True)
class RunReport:
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None
    accounts_total: int = 0
    aborted_reason: str | None = None
    outcomes: dict[str, AccountOutcome] = field(default_factory=dict)

    def record(self, email: str, outcome: AccountOutcome) -> None:
        self.outcomes[email] = outcome

    def abort(self, reason: str) -> None:
        self.aborted_reason = reason
        self.finish()

    def finish(self) -> None:
        self.finished_at = datetime.now(timezone.utc)

    def count(self, outcome: AccountOutcome) -> int:
        return sum(1 for value in self.outcomes.values() if value is outcome)

    def payload(self) -> dict[str, object]:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "accounts_total": self.accounts_total,
            "aborted_reason": self.aborted_reason,
            "metrics": {outcome.value: self.count(outcome) for outcome in AccountOutcome},
        }
