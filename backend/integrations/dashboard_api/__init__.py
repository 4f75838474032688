"""대시보드 API 클라이언트 (폴링)."""
from .client import DashboardAPIClient, TERMINAL_STATUSES

__all__ = ["DashboardAPIClient", "TERMINAL_STATUSES"]
