from src.schemas.account import AccountList, BillingStatus, MonitoredAccount
from src.schemas.service import CheckTriggeredResponse, HealthResponse, ServiceInfoResponse

__all__ = [
    "AccountList",
    "BillingStatus",
    "MonitoredAccount",
    "CheckTriggeredResponse",
    "HealthResponse",
    "ServiceInfoResponse",
]
