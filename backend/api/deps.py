"""라우터 공용 의존성.

외부 클라이언트는 프로세스 단위 싱글톤이고, 테스트에서는 dependency_overrides 로 교체한다.
"""
from integrations.llm import LLMClient, get_claude_client, get_deepseek_client, get_takeaways_client
from integrations.supabase import get_supabase_client
from services.market_data import MarketDataSource


def get_market_data() -> MarketDataSource:
    return MarketDataSource(get_supabase_client())


def get_insight_llm() -> LLMClient:
    return get_deepseek_client()


def get_advisory_llm() -> LLMClient:
    return get_claude_client()


def get_takeaways_llm() -> LLMClient:
    return get_takeaways_client()
