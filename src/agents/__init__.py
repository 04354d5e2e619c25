from src.agents.billing_monitor import app as billing_monitor_app

__all__ = ["billing_monitor_app"]
