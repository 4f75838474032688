# Integrations - Supabase 원천 데이터, LLM 생성 백엔드, 대시보드 API 폴링
from integrations.base_client import BaseAPIClient, RateLimiter
from integrations.supabase import SupabaseClient
from integrations.llm import LLMClient, DeepSeekClient, ClaudeClient
from integrations.dashboard_api import DashboardAPIClient

__all__ = [
    "BaseAPIClient",
    "RateLimiter",
    "SupabaseClient",
    "LLMClient",
    "DeepSeekClient",
    "ClaudeClient",
    "DashboardAPIClient",
]
