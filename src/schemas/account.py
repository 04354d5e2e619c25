from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class MonitoredAccount(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    email: str
    cookie: str


class BillingStatus(BaseModel):
    """Hard-limit settings as reported by the dashboard.

    Missing fields stay ``None`` so that "not reported" is never confused
    with ``False`` or ``0``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    no_usage_based_allowed: bool | None = Field(default=None, alias="noUsageBasedAllowed")
    hard_limit: int | float | None = Field(default=None, alias="hardLimit")

    @field_validator("no_usage_based_allowed", mode="before")
    @classmethod
    def _strict_flag(cls, value: object) -> bool | None:
        # Only a real JSON boolean counts as the flag.
        return value if isinstance(value, bool) else None

    @property
    def usage_based_enabled(self) -> bool:
        if self.no_usage_based_allowed is True:
            return False
        return self.hard_limit is not None and self.hard_limit > 0


AccountList = TypeAdapter(list[MonitoredAccount])
