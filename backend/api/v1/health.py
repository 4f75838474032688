"""API 헬스체크 엔드포인트."""
from fastapi import APIRouter

from core.config import get_settings
from integrations.llm import get_claude_client, get_deepseek_client
from integrations.supabase import get_supabase_client

router = APIRouter()


def _status() -> dict:
    return {"configured": False, "connected": False, "error": None}


@router.get("/apis")
async def check_all_apis():
    """외부 서비스 설정/연결 상태 확인.

    LLM 은 호출 비용이 있어서 설정 여부만 본다.
    """
    settings = get_settings()

    results = {
        "supabase": _status(),
        "deepseek": _status(),
        "anthropic": _status(),
    }

    # Supabase 체크
    if settings.is_supabase_configured:
        results["supabase"]["configured"] = True
        try:
            client = get_supabase_client()
            await client.select("v_regime_snapshot", columns="asof_date", limit=1)
            results["supabase"]["connected"] = True
        except Exception as e:
            results["supabase"]["error"] = str(e)[:100]

    results["deepseek"]["configured"] = get_deepseek_client().is_configured
    results["anthropic"]["configured"] = get_claude_client().is_configured

    return results
