from __future__ import annotations

from pydantic import BaseModel


class CheckTriggeredResponse(BaseModel):
    status: str = "ok"
    message: str


class HealthResponse(BaseModel):
    status: str = "healthy"
    timestamp: str


class ServiceInfoResponse(BaseModel):
    name: str
    endpoints: dict[str, str]
